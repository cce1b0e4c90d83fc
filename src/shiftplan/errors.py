"""Exception types raised by shiftplan."""


class ShiftPlanError(Exception):
    """Base class for all shiftplan errors."""


class ValidationError(ShiftPlanError, ValueError):
    """Input the user can fix: duplicate team name, missing field, invalid swap."""


class NotFoundError(ShiftPlanError, LookupError):
    """A referenced row (team, entry, request) does not exist."""


class StorageError(ShiftPlanError):
    """The database rejected or failed an operation."""


class NotificationError(ShiftPlanError):
    """An email could not be delivered."""
