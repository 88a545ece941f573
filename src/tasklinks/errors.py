"""Error taxonomy shared by services, the API layer and the client."""


class TaskLinksError(Exception):
    """Base class for errors with a user-facing message."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AccessDeniedError(TaskLinksError):
    """No policy grants the operation. Terminal, never retried."""

    def __init__(self, message: str = "Not permitted"):
        super().__init__(message)


class ValidationFailedError(TaskLinksError):
    """Rejected write (enum mismatch, missing field, length exceeded)."""


class NotFoundError(TaskLinksError):
    """Row does not exist or is not visible to the caller."""


class AuthenticationError(TaskLinksError):
    """Bad credentials or an invalid session token."""


class IdentityExistsError(TaskLinksError):
    """An identity with this email is already registered."""


class RateLimitedError(TaskLinksError):
    """Auth attempts are paused; ``retry_after`` is the remaining wait in seconds."""

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(f"Too many attempts, retry in {retry_after}s")
