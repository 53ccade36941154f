"""Telegram chat as a push channel for reminder events."""

from dataclasses import dataclass, field

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import TelegramError

from recallbot.bot.formatters import format_reminder_message
from recallbot.bot.keyboards import answer_keyboard
from recallbot.utils.errors import DeliveryFailure


@dataclass(frozen=True)
class TelegramChannel:
    """One chat that receives reminders. Equal chats are the same session."""

    chat_id: int
    bot: Bot = field(compare=False, repr=False)

    async def send(self, payload: dict) -> None:
        """Render a reminder event and push it to the chat.

        Raises DeliveryFailure if Telegram refuses the message (for example
        when the user blocked the bot).
        """
        try:
            await self.bot.send_message(
                chat_id=self.chat_id,
                text=format_reminder_message(payload),
                parse_mode=ParseMode.HTML,
                reply_markup=answer_keyboard(payload["definitionId"], payload["delayLabel"]),
            )
        except TelegramError as e:
            raise DeliveryFailure(f"Chat {self.chat_id}: {e}") from e
