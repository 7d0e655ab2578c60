class PrintvaultError(Exception):
    """Base error for all user-facing Printvault exceptions."""


class ConfigurationError(PrintvaultError):
    """Raised when configuration is invalid or incomplete."""


class ProjectNotInitializedError(PrintvaultError):
    """Raised when the .printvault data directory or database is missing."""


class ValidationError(PrintvaultError):
    """Raised when request input or model invariants fail."""


class NotFoundError(PrintvaultError):
    """Raised when a slug, id or file format cannot be resolved."""


class StoreError(PrintvaultError):
    """Raised when the underlying database operation fails."""


class AuthError(PrintvaultError):
    """Raised when an admin token is missing, invalid, expired or lacks privileges."""

    def __init__(self, message: str, reason: str = "invalid") -> None:
        super().__init__(message)
        self.reason = reason

    @property
    def status_code(self) -> int:
        return 403 if self.reason == "forbidden" else 401


class SlugConflictError(StoreError):
    """Raised when a write collides with an existing slug."""
