"""Domain errors raised by the service layer.

Routes translate these into ``HTTPException`` responses; nothing in this
module knows about HTTP.
"""


class DriveTrackError(Exception):
    """Base class for all request-scoped domain errors."""


class ValidationError(DriveTrackError):
    """Bad input shape or an empty required field."""


class NotFoundError(DriveTrackError):
    """A referenced record or checklist item does not exist."""


class ConflictError(DriveTrackError):
    """The requested change contradicts the current state of a record."""


class MalformedDataError(DriveTrackError):
    """A persisted checklist blob could not be decoded at all."""
