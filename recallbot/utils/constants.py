"""Constants and default values."""

# Reminder states
STATUS_PENDING = "pending"
STATUS_ACHIEVED = "achieved"
STATUS_FAILED = "failed"

REMINDER_STATES = (STATUS_PENDING, STATUS_ACHIEVED, STATUS_FAILED)

# States a client may report in a status update message
ANSWER_STATES = (STATUS_ACHIEVED, STATUS_FAILED)

# Default delay schedule: (label, duration in milliseconds)
DEFAULT_DELAYS = [
    ("3_seconds", 3_000),
    ("1_minute", 60_000),
    ("5_minutes", 300_000),
    ("5_hours", 18_000_000),
]

# Limits
MAX_WORD_LENGTH = 100
MAX_DEFINITION_LENGTH = 500
MAX_LANGUAGE_NAME_LENGTH = 20

# Telegram caps callback_data at 64 bytes (UTF-8 encoded)
CALLBACK_DATA_MAX_BYTES = 64

# "language:<id>"
MAX_LANGUAGE_ID_BYTES = CALLBACK_DATA_MAX_BYTES - len("language:")

# "forgot:<32 hex id>:<label>"
MAX_DELAY_LABEL_BYTES = 20
