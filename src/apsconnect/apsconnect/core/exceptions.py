class DomainError(Exception):
    """Base exception for business rule violations."""

    http_status = 400


class ValidationError(DomainError):
    """Raised when input data is missing or invalid."""

    http_status = 400


class AuthenticationError(DomainError):
    """Raised when no valid identity is presented."""

    http_status = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks the role or scope for an action."""

    http_status = 403


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    http_status = 404


class ConflictError(DomainError):
    """Raised when an operation would violate a ledger invariant."""

    http_status = 409


class BackendError(DomainError):
    """Raised when the database fails unexpectedly."""

    http_status = 500
