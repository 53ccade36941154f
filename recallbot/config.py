"""Configuration management from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

from recallbot.engine.schedule import DelaySchedule
from recallbot.utils.constants import DEFAULT_DELAYS

# Load .env file if it exists
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

    # Database
    DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", "./data/recallbot.db"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Engine: comma separated label=milliseconds pairs
    REMINDER_DELAYS: str = os.getenv(
        "REMINDER_DELAYS",
        ",".join(f"{label}={ms}" for label, ms in DEFAULT_DELAYS),
    )

    @classmethod
    def delay_schedule(cls) -> DelaySchedule:
        """Parse the configured delay list."""
        return DelaySchedule.parse(cls.REMINDER_DELAYS)

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        if not cls.TELEGRAM_BOT_TOKEN:
            raise ValueError("TELEGRAM_BOT_TOKEN environment variable is required")

        # Raises ValueError on a malformed delay list
        cls.delay_schedule()

        # Ensure database directory exists
        cls.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
