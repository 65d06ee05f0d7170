class LiveLinkError(Exception):
    """Base class for errors raised by LiveLink code."""

class ConflictError(LiveLinkError):
    """A write was rejected by a data store constraint (unique key, foreign key)."""

class BackendError(LiveLinkError):
    """The query gateway answered a mutation with an error message."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.message = message
        self.operation = operation

class FetchError(BackendError):
    """The query gateway answered a read with an error message."""
