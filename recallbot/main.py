"""Main entry point for RecallBot."""

import logging
import sys

from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    MessageHandler,
    filters,
)

from recallbot.bot.callbacks import callback_router
from recallbot.bot.handlers import (
    add_command,
    cancel_command,
    connect_command,
    delete_command,
    disconnect_command,
    handle_plain_text,
    help_command,
    language_command,
    list_command,
    start_command,
    stats_command,
)
from recallbot.config import Config
from recallbot.db.kv_store import KeyValueStore
from recallbot.db.migrations import run_migrations
from recallbot.db.repository import Repository
from recallbot.engine.notifier import Notifier
from recallbot.engine.service import ReminderService
from recallbot.utils.error_handler import error_handler

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, Config.LOG_LEVEL),
    stream=sys.stdout,
)

# Keep HTTP polling noise out of the reminder logs
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


async def post_init(application: Application) -> None:
    """Initialize bot resources after application is created."""
    # Initialize database
    await run_migrations(Config.DATABASE_PATH)

    store = KeyValueStore(Config.DATABASE_PATH)
    await store.connect()
    application.bot_data["store"] = store

    job_queue = application.job_queue
    if job_queue is None:
        raise RuntimeError(
            "JobQueue is unavailable, install python-telegram-bot[job-queue]"
        )

    schedule = Config.delay_schedule()
    service = ReminderService(Repository(store), schedule, Notifier(), job_queue=job_queue)
    application.bot_data["service"] = service

    logger.info(f"Reminder delays: {', '.join(schedule.labels)}")
    logger.warning(
        "Reminders armed before the last restart are not re-armed; "
        "only words added from now on will be quizzed."
    )
    logger.info("RecallBot initialized successfully")


async def post_shutdown(application: Application) -> None:
    """Cleanup resources on shutdown."""
    store: KeyValueStore = application.bot_data.get("store")
    if store:
        await store.close()

    logger.info("RecallBot shut down")


def main() -> None:
    """Start the bot."""
    # Validate configuration
    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    # Create application
    application = (
        Application.builder()
        .token(Config.TELEGRAM_BOT_TOKEN)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    # Commands
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("connect", connect_command))
    application.add_handler(CommandHandler("disconnect", disconnect_command))
    application.add_handler(CommandHandler("language", language_command))
    application.add_handler(CommandHandler("add", add_command))
    application.add_handler(CommandHandler("list", list_command))
    application.add_handler(CommandHandler("delete", delete_command))
    application.add_handler(CommandHandler("stats", stats_command))
    application.add_handler(CommandHandler("cancel", cancel_command))

    # Callback queries (buttons)
    application.add_handler(CallbackQueryHandler(callback_router))

    # Plain text is an answer to the current reminder (must be last)
    application.add_handler(
        MessageHandler(filters.TEXT & ~filters.COMMAND, handle_plain_text)
    )

    # Error handler
    application.add_error_handler(error_handler)

    # Start the bot
    logger.info("Starting RecallBot...")
    application.run_polling(allowed_updates=["message", "callback_query"])


if __name__ == "__main__":
    main()
