"""Async HTTP client for the TaskLinks API.

Mirrors what the web client does around authentication: after a signup it
double-checks that the profile was provisioned and repairs it if not, and a
429 from an auth endpoint pauses further auth attempts for a fixed cooldown.
"""

import asyncio
import logging
import math
import time
from collections.abc import Callable
from datetime import date
from typing import Any

import httpx

from tasklinks.errors import (
    AccessDeniedError,
    AuthenticationError,
    IdentityExistsError,
    NotFoundError,
    RateLimitedError,
    TaskLinksError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

_STATUS_ERRORS: dict[int, type[TaskLinksError]] = {
    400: ValidationFailedError,
    401: AuthenticationError,
    403: AccessDeniedError,
    404: NotFoundError,
    409: IdentityExistsError,
    422: ValidationFailedError,
}


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    detail = body.get("detail") if isinstance(body, dict) else body
    if isinstance(detail, list):
        # pydantic validation errors
        return "; ".join(str(item.get("msg", item)) for item in detail)
    return str(detail or response.reason_phrase)


class TaskLinksClient:
    """Thin async wrapper over the REST API that keeps the session token."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        settle_seconds: float = 1.0,
        cooldown_seconds: float = 5.0,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._http = httpx.AsyncClient(
            base_url=base_url, transport=transport, timeout=timeout
        )
        self.settle_seconds = settle_seconds
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._cooldown_until = 0.0
        self.access_token: str | None = None
        self.identity: dict[str, Any] | None = None

    async def __aenter__(self) -> "TaskLinksClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ---- plumbing ----------------------------------------------------

    def _headers(self) -> dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    @property
    def cooldown_remaining(self) -> int:
        """Whole seconds left before auth calls are allowed again."""
        return max(0, math.ceil(self._cooldown_until - self._clock()))

    def _check_cooldown(self) -> None:
        remaining = self.cooldown_remaining
        if remaining > 0:
            raise RateLimitedError(remaining)

    def _start_cooldown(self) -> None:
        self._cooldown_until = self._clock() + self.cooldown_seconds
        logger.info("Auth rate limited, pausing for %ss", self.cooldown_seconds)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        response = await self._http.request(
            method, path, headers=self._headers(), **kwargs
        )
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitedError(
                int(retry_after) if retry_after and retry_after.isdigit() else 0
            )
        if response.is_error:
            error_cls = _STATUS_ERRORS.get(response.status_code, TaskLinksError)
            raise error_cls(_error_message(response))
        return response

    async def _auth_request(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        self._check_cooldown()
        try:
            response = await self._request("POST", path, json=payload)
        except RateLimitedError:
            self._start_cooldown()
            raise RateLimitedError(self.cooldown_remaining)

        session = response.json()
        self.access_token = session["access_token"]
        self.identity = session["identity"]
        return session

    # ---- auth --------------------------------------------------------

    async def sign_up(
        self, email: str, password: str, full_name: str = ""
    ) -> dict[str, Any]:
        """Register and sign in, then make sure the profile exists.

        Problems while checking or repairing the profile are logged only;
        the signup result is returned regardless.
        """
        session = await self._auth_request(
            "/api/auth/signup",
            {"email": email, "password": password, "full_name": full_name},
        )
        await self._ensure_profile_after_signup(
            session["identity"]["id"], email, full_name
        )
        return session

    async def _ensure_profile_after_signup(
        self, user_id: str, email: str, full_name: str
    ) -> None:
        try:
            # Give provisioning a moment to land
            await asyncio.sleep(self.settle_seconds)
            try:
                await self.get_profile()
                return
            except NotFoundError:
                logger.info("Profile missing after signup for %s, repairing", user_id)

            await self.ensure_profile(user_id, email, full_name)
        except Exception as exc:  # noqa: BLE001
            logger.error("Error checking/creating profile for %s: %s", user_id, exc)

    async def sign_in(self, email: str, password: str) -> dict[str, Any]:
        return await self._auth_request(
            "/api/auth/login", {"email": email, "password": password}
        )

    def sign_out(self) -> None:
        self.access_token = None
        self.identity = None

    async def delete_account(self) -> None:
        await self._request("DELETE", "/api/auth/me")
        self.sign_out()

    # ---- profile -----------------------------------------------------

    async def get_profile(self) -> dict[str, Any]:
        return (await self._request("GET", "/api/profile")).json()

    async def update_profile(self, **fields) -> dict[str, Any]:
        return (await self._request("PATCH", "/api/profile", json=fields)).json()

    async def ensure_profile(
        self, user_id: str, email: str = "", full_name: str = ""
    ) -> None:
        await self._request(
            "POST",
            "/api/rpc/ensure_user_profile",
            json={"user_id": user_id, "user_email": email, "user_name": full_name},
        )

    async def create_default_categories(self) -> None:
        await self._request("POST", "/api/rpc/create_default_categories")

    # ---- categories --------------------------------------------------

    async def list_categories(self) -> list[dict[str, Any]]:
        return (await self._request("GET", "/api/categories")).json()

    async def create_category(self, name: str, color: str | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": name}
        if color is not None:
            payload["color"] = color
        return (await self._request("POST", "/api/categories", json=payload)).json()

    async def delete_category(self, category_id: str) -> None:
        await self._request("DELETE", f"/api/categories/{category_id}")

    # ---- tasks -------------------------------------------------------

    async def list_tasks(self, **params) -> dict[str, Any]:
        query = {k: v for k, v in params.items() if v is not None}
        return (await self._request("GET", "/api/tasks", params=query)).json()

    async def create_task(
        self,
        title: str,
        *,
        description: str | None = None,
        due_date: date | None = None,
        priority: str | None = None,
        status: str | None = None,
        category_id: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"title": title}
        if description is not None:
            payload["description"] = description
        if due_date is not None:
            payload["due_date"] = due_date.isoformat()
        if priority is not None:
            payload["priority"] = priority
        if status is not None:
            payload["status"] = status
        if category_id is not None:
            payload["category_id"] = category_id
        return (await self._request("POST", "/api/tasks", json=payload)).json()

    async def update_task(self, task_id: str, **fields) -> dict[str, Any]:
        if isinstance(fields.get("due_date"), date):
            fields["due_date"] = fields["due_date"].isoformat()
        return (
            await self._request("PATCH", f"/api/tasks/{task_id}", json=fields)
        ).json()

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/api/tasks/{task_id}")

    # ---- stats -------------------------------------------------------

    async def task_statistics(self) -> dict[str, Any]:
        return (await self._request("GET", "/api/stats/tasks")).json()

    async def category_statistics(self) -> list[dict[str, Any]]:
        return (await self._request("GET", "/api/stats/categories")).json()
