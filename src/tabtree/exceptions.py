"""Unified exception hierarchy for tabtree."""


class TabTreeError(Exception):
    """Base exception for all tabtree errors."""


# Navigation event source
class ProbeError(TabTreeError):
    """Navigation capability probe failed or the tab no longer exists."""


class EventParseError(TabTreeError):
    """A recorded navigation event could not be parsed."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


# Storage
class PersistenceError(TabTreeError):
    """Failed to read or write the key-value store."""


class SnapshotLoadError(PersistenceError):
    """Stored snapshot is missing fields or cannot be decoded."""


# Command surface
class UnknownActionError(TabTreeError):
    """Request named an action the command surface does not know."""
