"""Inline keyboard builders."""

from typing import List

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from recallbot.db.models import LanguagePair


def answer_keyboard(definition_id: str, delay_label: str) -> InlineKeyboardMarkup:
    """Keyboard for reminder messages: Answer, I forgot."""
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(
                    "✍️ Answer", callback_data=f"answer:{definition_id}:{delay_label}"
                ),
                InlineKeyboardButton(
                    "🤷 I forgot", callback_data=f"forgot:{definition_id}:{delay_label}"
                ),
            ]
        ]
    )


def language_keyboard(languages: List[LanguagePair]) -> InlineKeyboardMarkup:
    """One button per language pair to select it."""
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(
                    f"{language.learning_language} → {language.translation_language}",
                    callback_data=f"language:{language.language_id}",
                )
            ]
            for language in languages
        ]
    )

