"""Callback query handlers for inline buttons."""

import logging
from html import escape

from telegram import Update
from telegram.constants import ParseMode
from telegram.ext import ContextTypes

from recallbot.bot.handlers import get_service
from recallbot.utils.constants import STATUS_FAILED

logger = logging.getLogger(__name__)


async def handle_answer_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, definition_id: str, delay_label: str
) -> None:
    """Handle 'Answer' button press - wait for the answer as plain text."""
    if not update.effective_user or not update.callback_query:
        return

    service = get_service(context)
    user_id = await service.authenticate(update.effective_user.id)
    definition = await service.get_definition(user_id, definition_id)

    context.user_data["awaiting_answer"] = (definition_id, delay_label)

    await update.callback_query.answer()
    if update.callback_query.message:
        await update.callback_query.message.reply_text(
            f"What does <b>{escape(definition.word)}</b> mean?\n\n"
            "Send your answer, or /cancel.",
            parse_mode=ParseMode.HTML,
        )


async def handle_forgot_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, definition_id: str, delay_label: str
) -> None:
    """Handle 'I forgot' button press - record the reminder as failed."""
    if not update.effective_user or not update.callback_query:
        return

    service = get_service(context)
    user_id = await service.authenticate(update.effective_user.id)
    definition = await service.get_definition(user_id, definition_id)

    await service.apply_status_update(
        user_id, definition_id, {"status": STATUS_FAILED, "interval": delay_label}
    )

    if update.callback_query.message:
        await update.callback_query.message.edit_text(
            f"<b>{escape(definition.word)}</b> means <i>{escape(definition.definition)}</i>.\n\n"
            "No worries, you'll get it next time.",
            parse_mode=ParseMode.HTML,
        )
    await update.callback_query.answer("Marked as missed")


async def handle_language_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, language_id: str
) -> None:
    """Handle language button press - switch the current language."""
    if not update.effective_user or not update.callback_query:
        return

    service = get_service(context)
    user_id = await service.authenticate(update.effective_user.id)
    language = await service.get_language(user_id, language_id)

    context.user_data["language_id"] = language.language_id

    await update.callback_query.answer(
        f"✓ Switched to {language.learning_language} → {language.translation_language}"
    )


async def callback_router(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route callback queries to appropriate handlers."""
    if not update.callback_query:
        return

    query = update.callback_query
    data = query.data

    if not data:
        return

    # Parse callback data
    parts = data.split(":")

    if parts[0] == "answer" and len(parts) == 3:
        await handle_answer_callback(update, context, parts[1], parts[2])

    elif parts[0] == "forgot" and len(parts) == 3:
        await handle_forgot_callback(update, context, parts[1], parts[2])

    elif parts[0] == "language" and len(parts) == 2:
        await handle_language_callback(update, context, parts[1])

    else:
        await query.answer("Unknown action")
