"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class InconsistentStateError(DomainError):
    """Raised when stored rows contradict each other.

    For example an identity whose owning account no longer exists.
    """

    pass
