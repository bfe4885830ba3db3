class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class BusinessRuleViolation(DomainError):
    """Raised before any write when an operation breaks a business rule."""


class AttendanceLockedError(BusinessRuleViolation):
    """Raised when attendance for a (date, cohort) key has already been marked."""


class ConcurrencyError(DomainError):
    """Raised when the caller's expected version is stale; re-fetch and retry."""

    def __init__(self, message: str, *, expected: int | None = None, actual: int | None = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class TransactionConflictError(DomainError):
    """Raised when a transaction kept conflicting after all retry attempts."""
