"""Error taxonomy for the animals knowledge tree."""


class AnimalsError(Exception):
    """Base class for every error raised by the game core."""


class NotFound(AnimalsError, KeyError):
    """A key does not resolve to a stored node (dangling or stale pointer)."""

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Node not found: {self.key}"


class InvariantViolation(AnimalsError):
    """A stored record does not have the shape the tree requires.

    Raised when a question was expected and a leaf was found (or vice versa),
    or when a record is neither or both node variants.
    """


class StaleReference(AnimalsError):
    """The parent/branch coordinates carried by a session no longer resolve."""


class StorageError(AnimalsError):
    """I/O failure in the underlying node store."""


class SessionStateError(AnimalsError, ValueError):
    """An operation was attempted in a session phase that does not allow it."""
