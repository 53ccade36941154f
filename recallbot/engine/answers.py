"""Answer processing - grade a recall attempt and record the outcome."""

import logging
from dataclasses import dataclass

from recallbot.db.models import ReminderState
from recallbot.engine.schedule import DelaySchedule
from recallbot.engine.status_store import StatusStore
from recallbot.utils.constants import (
    ANSWER_STATES,
    STATUS_ACHIEVED,
    STATUS_FAILED,
)
from recallbot.utils.errors import InvalidInput, NotFound

logger = logging.getLogger(__name__)


@dataclass
class AnswerResult:
    """Outcome of a submitted answer."""

    correct: bool
    state: ReminderState

    def to_dict(self) -> dict:
        return {"correct": self.correct}


def normalize_answer(text: str) -> str:
    """Trim surrounding whitespace and case-fold."""
    return text.strip().casefold()


def is_correct(answer: str, expected: str) -> bool:
    """Exact match after normalization. No fuzzy matching."""
    return normalize_answer(answer) == normalize_answer(expected)


def next_state(current: ReminderState, target: ReminderState) -> ReminderState:
    """Apply an answer outcome to the current state.

    achieved is terminal. pending and failed take the new outcome, so a
    later correct answer can turn failed into achieved.
    """
    if current == STATUS_ACHIEVED:
        return STATUS_ACHIEVED
    return target


class AnswerProcessor:
    """Grades answers against the stored definition and persists the result."""

    def __init__(self, status_store: StatusStore, schedule: DelaySchedule):
        self.status_store = status_store
        self.schedule = schedule

    async def submit_answer(
        self, definition_id: str, delay_label: str, user_answer: str
    ) -> AnswerResult:
        if not definition_id or not delay_label:
            raise InvalidInput("A definition and a delay are required.")
        if user_answer is None or not user_answer.strip():
            raise InvalidInput("Please send a non-empty answer.")
        self._check_label(delay_label)

        definition = await self.status_store.get_definition(definition_id)
        if definition is None:
            raise NotFound("This word no longer exists.")

        correct = is_correct(user_answer, definition.definition)
        target: ReminderState = STATUS_ACHIEVED if correct else STATUS_FAILED

        state = await self.status_store.update(
            definition_id, delay_label, lambda current: next_state(current, target)
        )
        logger.info(
            f"Answer for {definition_id}/{delay_label}: "
            f"{'correct' if correct else 'incorrect'}, status {state}"
        )
        return AnswerResult(correct=correct, state=state)

    async def apply_status_update(self, definition_id: str, message: dict) -> ReminderState:
        """Record a client-reported outcome.

        The message shape is ``{"status": "achieved"|"failed", "interval": label}``.
        """
        status = message.get("status")
        delay_label = message.get("interval")

        if status not in ANSWER_STATES:
            raise InvalidInput(f"Status must be one of {', '.join(ANSWER_STATES)}.")
        if not delay_label:
            raise InvalidInput("An interval is required.")
        self._check_label(delay_label)

        if await self.status_store.get_definition(definition_id) is None:
            raise NotFound("This word no longer exists.")

        return await self.status_store.update(
            definition_id, delay_label, lambda current: next_state(current, status)
        )

    def _check_label(self, delay_label: str) -> None:
        if delay_label not in self.schedule:
            raise InvalidInput(f"Unknown reminder delay: {delay_label}")
