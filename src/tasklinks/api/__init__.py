"""HTTP API for TaskLinks."""

from tasklinks.api.routes import router

__all__ = ["router"]
