"""Status store - per-delay reminder states with per-key atomicity."""

import asyncio
import logging
from typing import Callable, Dict, Iterable, Tuple

from recallbot.db.models import Definition, ReminderState, ReminderStatus
from recallbot.db.repository import Repository
from recallbot.utils.constants import REMINDER_STATES
from recallbot.utils.errors import InvalidInput, NotFound

logger = logging.getLogger(__name__)


class StatusStore:
    """Reminder statuses keyed by (definition_id, delay_label).

    Writes to one key are serialized through an asyncio.Lock, so two
    answers racing for the same reminder cannot interleave their
    read-modify-write. Different keys never block each other.
    """

    def __init__(self, repo: Repository):
        self.repo = repo
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}

    def _lock(self, definition_id: str, delay_label: str) -> asyncio.Lock:
        return self._locks.setdefault((definition_id, delay_label), asyncio.Lock())

    async def get_definition(self, definition_id: str) -> Definition | None:
        return await self.repo.get_definition(definition_id)

    async def initialize(self, definition_id: str, labels: Iterable[str]) -> None:
        """Set every delay of a new definition to pending."""
        await self.repo.init_statuses(definition_id, labels)

    async def get_status(self, definition_id: str, delay_label: str) -> ReminderStatus:
        state = await self.repo.get_status(definition_id, delay_label)
        if state is None:
            raise NotFound(f"No reminder status for {definition_id}/{delay_label}")
        return ReminderStatus(definition_id, delay_label, state)

    async def get_statuses(self, definition_id: str) -> Dict[str, ReminderState]:
        return await self.repo.get_statuses(definition_id)

    async def set_status(
        self, definition_id: str, delay_label: str, state: ReminderState
    ) -> None:
        """Upsert a status. Last writer wins."""
        if state not in REMINDER_STATES:
            raise InvalidInput(f"Unknown reminder state: {state}")
        async with self._lock(definition_id, delay_label):
            await self.repo.set_status(definition_id, delay_label, state)

    async def update(
        self,
        definition_id: str,
        delay_label: str,
        compute: Callable[[ReminderState], ReminderState],
    ) -> ReminderState:
        """Atomically replace a status with ``compute(current)``.

        Raises NotFound if the status does not exist. Returns the state
        stored after the update.
        """
        async with self._lock(definition_id, delay_label):
            current = await self.repo.get_status(definition_id, delay_label)
            if current is None:
                raise NotFound(f"No reminder status for {definition_id}/{delay_label}")

            new_state = compute(current)
            if new_state != current:
                await self.repo.set_status(definition_id, delay_label, new_state)
                logger.info(
                    f"Reminder {definition_id}/{delay_label}: {current} -> {new_state}"
                )
            return new_state

    def forget(self, definition_id: str) -> None:
        """Drop the locks of a deleted definition."""
        for key in [key for key in self._locks if key[0] == definition_id]:
            del self._locks[key]
