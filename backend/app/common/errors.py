from typing import Optional


class DomainError(Exception):
    """Base domain error with a stable code and a user-facing message."""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)


class ValidationError(DomainError):
    """Raised when input violates a field constraint."""

    code = "VALIDATION_ERROR"


class NotFound(DomainError):
    """Raised when a required entity is missing."""

    code = "NOT_FOUND"


class AccessDenied(DomainError):
    """Raised when the user has insufficient permissions."""

    code = "ACCESS_DENIED"


class InvalidStatusTransition(DomainError):
    """Raised when the request is not in a valid state for the action."""

    code = "INVALID_STATUS"


class InvalidCredentials(DomainError):
    code = "INVALID_CREDENTIALS"


class AccountLocked(DomainError):
    code = "ACCOUNT_LOCKED"


class Conflict(DomainError):
    """Raised when a concurrent writer modified the record first."""

    code = "CONCURRENT_MODIFICATION"
