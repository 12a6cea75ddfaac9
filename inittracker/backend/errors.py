"""Error taxonomy shared by the engine, service and API layers."""


class TrackerError(Exception):
    """Base class for failures reported back to the caller."""

    kind = "Error"


class NotFoundError(TrackerError):
    """Raised when a referenced encounter or entity does not exist."""

    kind = "NotFound"


class ValidationFailedError(TrackerError):
    """Raised when an add, update or import payload is malformed or out of range."""

    kind = "ValidationFailed"
