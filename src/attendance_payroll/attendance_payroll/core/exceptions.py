class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "validation_error"


class ConflictError(DomainError):
    """Raised when a change would violate a uniqueness rule."""

    kind = "conflict"


class StaleRecordError(ConflictError):
    """Raised when a day record changed between read and write."""


class NotFoundError(DomainError):
    """Raised when the targeted record or open session does not exist."""

    kind = "not_found"


class DependencyError(DomainError):
    """Raised when storage or the rate provider is unavailable."""

    kind = "dependency_unavailable"
