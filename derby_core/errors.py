"""Exceptions raised by the race engine."""


class DerbyError(RuntimeError):
    """Base class for engine errors."""
    pass


class InvalidStateTransition(DerbyError):
    """Raised when an operation is invoked outside its required race phase."""
    pass


class InvalidWager(DerbyError, ValueError):
    """Raised for negative, non-numeric or unknown-category stakes."""
    pass
