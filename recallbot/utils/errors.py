"""Error taxonomy for the reminder engine."""


class ReminderError(Exception):
    """Base class for all reminder engine errors."""


class NotFound(ReminderError):
    """A definition, language or reminder status does not exist."""


class Unauthorized(ReminderError):
    """The caller could not be identified as a registered user."""


class InvalidInput(ReminderError):
    """A required field is missing or malformed."""


class DeliveryFailure(ReminderError):
    """A single channel could not receive a pushed event."""


class PersistenceFailure(ReminderError):
    """The backing store is unavailable or rejected an operation."""
