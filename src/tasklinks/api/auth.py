"""Principal resolution for the API."""

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from tasklinks.access import Principal
from tasklinks.config import get_settings
from tasklinks.errors import AuthenticationError
from tasklinks.services.identity_service import decode_access_token

# Session token via Authorization header; service credential via its own header
bearer_scheme = HTTPBearer(auto_error=False)
service_key_header = APIKeyHeader(name="X-Service-Key", auto_error=False)


async def get_principal(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Security(bearer_scheme)
    ] = None,
    service_key: Annotated[str | None, Security(service_key_header)] = None,
) -> Principal:
    """Resolve the caller.

    - Bearer session token -> authenticated principal
    - X-Service-Key matching TASKLINKS_SERVICE_ROLE_KEY -> service role
    - nothing -> anonymous
    """
    settings = get_settings()

    if credentials is not None:
        try:
            return decode_access_token(credentials.credentials, settings)
        except AuthenticationError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=e.message,
                headers={"WWW-Authenticate": "Bearer"},
            )

    if service_key is not None:
        # Use constant-time comparison to prevent timing attacks
        if settings.service_role_key is None or not secrets.compare_digest(
            service_key, settings.service_role_key
        ):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid service key",
            )
        return Principal.service()

    return Principal.anonymous()


async def require_user(
    principal: Annotated[Principal, Depends(get_principal)],
) -> Principal:
    """Same as get_principal but insists on a signed-in user."""
    if not principal.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


# Dependencies for use in routes
CurrentPrincipal = Annotated[Principal, Depends(get_principal)]
RequireUser = Annotated[Principal, Depends(require_user)]
