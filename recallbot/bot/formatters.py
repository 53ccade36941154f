"""Message text formatters."""

from html import escape
from typing import Dict, List

from recallbot.db.models import DefinitionWithStatuses, LanguagePair, ReminderCounts
from recallbot.engine.schedule import DelaySchedule
from recallbot.utils.time_utils import format_age, format_duration

STATUS_EMOJI = {
    "pending": "⏳",
    "achieved": "✅",
    "failed": "❌",
}


def format_delay(schedule: DelaySchedule, delay_label: str) -> str:
    """Human-readable delay, falling back to the raw label."""
    entry = schedule.get(delay_label)
    if entry is None:
        return delay_label.replace("_", " ")
    return format_duration(entry.duration_ms)


def format_reminder_message(payload: dict) -> str:
    """Format a reminder event pushed to a chat."""
    delay = payload["delayLabel"].replace("_", " ")
    return (
        f"🧠 <b>Time to review!</b> ({delay})\n\n"
        f"What does <b>{escape(payload['word'])}</b> mean?\n\n"
        "Tap <i>Answer</i> and send me the translation."
    )


def format_answer_result(word: str, correct: bool, expected: str) -> str:
    """Feedback after an answer."""
    if correct:
        return f"✅ Correct! <b>{escape(word)}</b> means <i>{escape(expected)}</i>."
    return (
        f"❌ Not quite. <b>{escape(word)}</b> means <i>{escape(expected)}</i>.\n\n"
        "You can tap <i>Answer</i> again to retry."
    )


def format_definition_list(
    items: List[DefinitionWithStatuses], language: LanguagePair, schedule: DelaySchedule
) -> str:
    """Format the definitions of a language with their reminder states."""
    title = f"{escape(language.learning_language)} → {escape(language.translation_language)}"

    if not items:
        return f"<b>{title}</b>\n\nNo words yet. Add one with /add word = definition"

    lines = [f"<b>{title} ({len(items)})</b>\n"]

    for item in items:
        definition = item.definition
        states = " ".join(
            f"{STATUS_EMOJI.get(item.statuses.get(label, 'pending'), '')}"
            f"{format_delay(schedule, label)}"
            for label in schedule.labels
        )
        lines.append(
            f"<b>{escape(definition.word)}</b> = {escape(definition.definition)}\n"
            f"   {states}\n"
            f"   added {format_age(definition.created_at)} · <code>{definition.id}</code>"
        )

    return "\n\n".join(lines)


def format_language_list(languages: List[LanguagePair], current: str | None) -> str:
    if not languages:
        return (
            "You have no languages yet.\n\n"
            "Add one with <code>/language add Spanish English</code>"
        )

    lines = ["<b>Your Languages</b>\n"]
    for language in languages:
        marker = "👉 " if language.language_id == current else "• "
        lines.append(
            f"{marker}{escape(language.learning_language)} → "
            f"{escape(language.translation_language)} "
            f"(<code>{language.language_id}</code>)"
        )
    lines.append("\nTap a language below to switch to it.")
    return "\n".join(lines)


def format_stats_message(
    counts: Dict[str, ReminderCounts], languages: List[LanguagePair]
) -> str:
    """Format reminder outcomes per language."""
    if not languages:
        return "No statistics yet. Add a language with /language add"

    names = {
        language.language_id: f"{language.learning_language} → {language.translation_language}"
        for language in languages
    }

    lines = ["<b>📊 Your Recall Statistics</b>"]
    for language_id, language_counts in counts.items():
        total = language_counts.total
        lines.append(f"\n<b>{escape(names.get(language_id, language_id))}</b>")
        lines.append(f"✅ Correct: {language_counts.correct}")
        lines.append(f"⏳ In progress: {language_counts.in_progress}")
        lines.append(f"❌ Missed: {language_counts.missed}")
        if total:
            rate = language_counts.correct / total * 100
            lines.append(f"🎯 Success rate: {rate:.1f}% of {total} reminders")

    return "\n".join(lines)


def format_welcome_message(schedule: DelaySchedule) -> str:
    delays = ", ".join(format_duration(entry.duration_ms) for entry in schedule)
    return (
        "<b>Welcome to RecallBot!</b> 🧠\n\n"
        "Add the words you are learning and I will quiz you on them "
        f"after {delays}.\n\n"
        "Start by adding a language:\n"
        "<code>/language add Spanish English</code>\n\n"
        "Then add words:\n"
        "<code>/add casa = house</code>\n\n"
        "Use /help to see every command."
    )


def format_help_message() -> str:
    return (
        "<b>RecallBot Commands</b>\n\n"
        "<b>Languages</b>\n"
        "/language - List and switch languages\n"
        "/language add &lt;learning&gt; &lt;translation&gt; - Add a language\n\n"
        "<b>Words</b>\n"
        "/add word = definition - Add a word to the current language\n"
        "/list - Words and reminder progress\n"
        "/delete &lt;id&gt; - Delete a word and its reminders\n"
        "/stats - Success rate per language\n\n"
        "<b>Reminders</b>\n"
        "/connect - Receive reminders in this chat\n"
        "/disconnect - Stop receiving reminders in this chat\n"
        "/cancel - Stop answering the current reminder\n\n"
        "Reminders are only delivered while a chat is connected."
    )
