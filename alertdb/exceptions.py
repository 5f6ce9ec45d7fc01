"""Exception hierarchy for alertdb errors."""


class AlertDBError(Exception):
    """Base exception for all alertdb errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class MalformedAlertError(AlertDBError):
    """Raised when a stored alert document is missing or mistypes a field."""


class StoreError(AlertDBError):
    """Raised when reading from or writing to MongoDB fails."""
