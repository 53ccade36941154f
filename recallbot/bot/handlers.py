"""Command handlers."""

import logging
from html import escape

from telegram import Update
from telegram.ext import ContextTypes

from recallbot.bot.channel import TelegramChannel
from recallbot.bot.formatters import (
    format_answer_result,
    format_definition_list,
    format_help_message,
    format_language_list,
    format_stats_message,
    format_welcome_message,
)
from recallbot.bot.keyboards import language_keyboard
from recallbot.db.models import LanguagePair
from recallbot.engine.service import ReminderService

logger = logging.getLogger(__name__)


def get_service(context: ContextTypes.DEFAULT_TYPE) -> ReminderService:
    return context.bot_data["service"]


async def current_language(
    service: ReminderService, user_id: str, context: ContextTypes.DEFAULT_TYPE
) -> LanguagePair | None:
    """The language selected with /language, or the only one the user has."""
    language_id = context.user_data.get("language_id")
    if language_id:
        language = await service.repo.get_language(user_id, language_id)
        if language:
            return language

    languages = await service.list_languages(user_id)
    if len(languages) == 1:
        context.user_data["language_id"] = languages[0].language_id
        return languages[0]
    return None


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command - register the user and connect this chat."""
    if not update.effective_user or not update.effective_chat or not update.message:
        return

    service = get_service(context)
    user = await service.register_user(update.effective_user.id)
    await service.connect(user.stored_id, TelegramChannel(update.effective_chat.id, context.bot))

    await update.message.reply_html(format_welcome_message(service.schedule))


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    if not update.message:
        return

    await update.message.reply_html(format_help_message())


async def connect_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /connect command - receive reminders in this chat."""
    if not update.effective_user or not update.effective_chat or not update.message:
        return

    service = get_service(context)
    user_id = await service.authenticate(update.effective_user.id)
    await service.connect(user_id, TelegramChannel(update.effective_chat.id, context.bot))

    await update.message.reply_text("🔔 Reminders will be delivered to this chat.")


async def disconnect_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /disconnect command - stop receiving reminders in this chat."""
    if not update.effective_chat or not update.message:
        return

    service = get_service(context)
    removed = await service.disconnect(TelegramChannel(update.effective_chat.id, context.bot))

    if removed:
        await update.message.reply_text(
            "🔕 Disconnected. Reminders that fire while no chat is connected are skipped."
        )
    else:
        await update.message.reply_text("This chat was not connected.")


async def language_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /language [add <learning> <translation> | <id>] command."""
    if not update.effective_user or not update.message:
        return

    service = get_service(context)
    user_id = await service.authenticate(update.effective_user.id)
    args = context.args or []

    if args and args[0].lower() == "add":
        if len(args) != 3:
            await update.message.reply_text("Usage: /language add <learning> <translation>")
            return

        language = await service.add_language(user_id, args[1], args[2])
        context.user_data["language_id"] = language.language_id
        await update.message.reply_html(
            f"✓ Added <b>{escape(language.learning_language)} → {escape(language.translation_language)}</b>"
            " and made it your current language.\n\n"
            "Add words with <code>/add word = definition</code>"
        )
        return

    if args:
        language = await service.get_language(user_id, args[0].lower())
        context.user_data["language_id"] = language.language_id
        await update.message.reply_html(
            f"✓ Switched to <b>{escape(language.learning_language)} → "
            f"{escape(language.translation_language)}</b>"
        )
        return

    languages = await service.list_languages(user_id)
    current = await current_language(service, user_id, context)
    await update.message.reply_html(
        format_language_list(languages, current.language_id if current else None),
        reply_markup=language_keyboard(languages) if languages else None,
    )


async def add_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /add word = definition command."""
    if not update.effective_user or not update.message:
        return

    service = get_service(context)
    user_id = await service.authenticate(update.effective_user.id)

    word, sep, definition = " ".join(context.args or []).partition("=")
    if not sep:
        await update.message.reply_html(
            "Usage: <code>/add word = definition</code>\n\n"
            "Example: <code>/add casa = house</code>"
        )
        return

    language = await current_language(service, user_id, context)
    if language is None:
        await update.message.reply_text(
            "Pick a language first with /language (or add one with /language add)."
        )
        return

    await service.create_definition(user_id, language.language_id, word, definition)

    await update.message.reply_html(
        f"✓ Added <b>{escape(word.strip())}</b> to {escape(language.learning_language)}.\n\n"
        "I'll quiz you on it soon. Use /list to follow your progress."
    )


async def list_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /list command - words of the current language with progress."""
    if not update.effective_user or not update.message:
        return

    service = get_service(context)
    user_id = await service.authenticate(update.effective_user.id)

    language = await current_language(service, user_id, context)
    if language is None:
        await update.message.reply_text(
            "Pick a language first with /language (or add one with /language add)."
        )
        return

    items = await service.list_definitions(user_id, language.language_id)
    await update.message.reply_html(format_definition_list(items, language, service.schedule))


async def delete_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /delete <id> command."""
    if not update.effective_user or not update.message:
        return

    if not context.args or len(context.args) != 1:
        await update.message.reply_text("Usage: /delete <word_id>")
        return

    service = get_service(context)
    user_id = await service.authenticate(update.effective_user.id)

    definition = await service.delete_definition(user_id, None, context.args[0])

    await update.message.reply_html(f"🗑 Deleted: <b>{escape(definition.word)}</b>")


async def stats_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /stats command - reminder outcomes per language."""
    if not update.effective_user or not update.message:
        return

    service = get_service(context)
    user_id = await service.authenticate(update.effective_user.id)

    counts = await service.reminder_counts(user_id)
    languages = await service.list_languages(user_id)
    await update.message.reply_html(format_stats_message(counts, languages))


async def cancel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /cancel command - stop waiting for an answer."""
    if not update.message:
        return

    if context.user_data.pop("awaiting_answer", None):
        await update.message.reply_text("❌ Cancelled.")
    else:
        await update.message.reply_text("Nothing to cancel.")


async def handle_plain_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Treat plain text as the answer to the reminder being answered."""
    if not update.effective_user or not update.message or not update.message.text:
        return

    # One answer per tap, even if grading fails
    awaiting = context.user_data.pop("awaiting_answer", None)
    if not awaiting:
        await update.message.reply_text(
            "Tap Answer on a reminder first, or use /help to see what I can do."
        )
        return

    service = get_service(context)
    user_id = await service.authenticate(update.effective_user.id)
    definition_id, delay_label = awaiting

    definition = await service.get_definition(user_id, definition_id)
    result = await service.submit_answer(
        user_id, None, definition_id, delay_label, update.message.text
    )

    await update.message.reply_html(
        format_answer_result(definition.word, result.correct, definition.definition)
    )
