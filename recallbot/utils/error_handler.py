"""Global error handler for the bot."""

import logging
import traceback

from telegram import Update
from telegram.ext import ContextTypes

from recallbot.utils.errors import (
    InvalidInput,
    NotFound,
    PersistenceFailure,
    Unauthorized,
)

logger = logging.getLogger(__name__)


def describe_error(error: BaseException | None) -> str:
    """Pick the message shown to the user for an error."""
    if isinstance(error, Unauthorized):
        return "Please /start the bot first."
    if isinstance(error, NotFound):
        return f"🤔 {error}"
    if isinstance(error, InvalidInput):
        return f"❌ {error}"
    if isinstance(error, PersistenceFailure):
        return (
            "💾 I couldn't reach my storage just now.\n\n"
            "Nothing was saved. Please try again in a moment."
        )
    if "Timeout" in str(error):
        return "⏱️ Request timed out.\n\nPlease try again in a moment."
    if "Network" in str(error):
        return "🌐 Network error.\n\nPlease check your connection and try again."
    return (
        "😅 Oops! Something went wrong.\n\n"
        "The error has been logged. Please try again or use /help for assistance."
    )


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle errors in the bot."""
    error = context.error

    # Expected user-facing errors don't need a traceback
    if isinstance(error, (Unauthorized, NotFound, InvalidInput)):
        logger.info(f"Rejected update: {type(error).__name__}: {error}")
    else:
        logger.error("Exception while handling an update:", exc_info=error)

        tb_list = traceback.format_exception(None, error, error.__traceback__)  # type: ignore
        logger.error(f"Traceback:\n{''.join(tb_list)}")

    # Try to notify the user
    if not isinstance(update, Update):
        return

    message = describe_error(error)
    try:
        if update.callback_query:
            await update.callback_query.answer()
        if update.effective_message:
            await update.effective_message.reply_text(message)
    except Exception as e:
        logger.error(f"Failed to send error message to user: {e}")
