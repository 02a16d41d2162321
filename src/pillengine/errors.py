# src/pillengine/errors.py


class PillEngineError(Exception):
    """Base class for errors raised by pillengine."""


class InvalidInput(PillEngineError, ValueError):
    """A request was rejected before any search ran."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class SearchBudgetExceeded(PillEngineError):
    """A search branch ran past its iteration or time cap."""
