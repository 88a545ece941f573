"""Shared rate limiter and its dynamic limits."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from tasklinks.config import get_settings

limiter = Limiter(key_func=get_remote_address)

# Effectively unlimited when disabled
_UNLIMITED = "1000000/minute"


def default_rate_limit() -> str:
    """Get the default rate limit from settings."""
    settings = get_settings()
    if not settings.rate_limit_enabled:
        return _UNLIMITED
    return settings.rate_limit_default


def auth_rate_limit() -> str:
    """Get the signup/sign-in rate limit from settings."""
    settings = get_settings()
    if not settings.rate_limit_enabled:
        return _UNLIMITED
    return settings.rate_limit_auth
