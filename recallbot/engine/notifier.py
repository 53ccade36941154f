"""Notifier - fan-out of reminder events to a user's connected sessions."""

import asyncio
import logging
from typing import Dict, List, Protocol, Set

from recallbot.db.models import ReminderEvent

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """A live push channel to one client session.

    Implementations must be hashable so the same session registers once.
    """

    async def send(self, payload: dict) -> None:
        ...


class Notifier:
    """Tracks open channels per user and broadcasts events to them.

    Delivery is fire-and-forget: a channel whose send fails is dropped and
    the remaining channels still receive the event. Nothing is queued for
    users with no open channel.
    """

    def __init__(self) -> None:
        self._channels: Dict[str, Set[Channel]] = {}
        self._lock = asyncio.Lock()

    async def register(self, user_id: str, channel: Channel) -> None:
        """Register a channel for a user."""
        async with self._lock:
            self._channels.setdefault(user_id, set()).add(channel)
            total = len(self._channels[user_id])
        logger.info(f"Channel connected for user {user_id} ({total} open)")

    async def unregister(self, channel: Channel) -> bool:
        """Remove a channel from whichever user owns it.

        Returns True if the channel was registered.
        """
        async with self._lock:
            return self._discard(channel)

    async def connection_count(self, user_id: str) -> int:
        async with self._lock:
            return len(self._channels.get(user_id, ()))

    async def broadcast(self, user_id: str, event: ReminderEvent) -> int:
        """Send an event to every channel of a user.

        Returns the number of channels that received it.
        """
        async with self._lock:
            channels: List[Channel] = list(self._channels.get(user_id, ()))

        if not channels:
            logger.info(
                f"No open channel for user {user_id}, dropping reminder "
                f"{event.definition_id}/{event.delay_label}"
            )
            return 0

        payload = event.to_payload()
        delivered = 0
        dead = []

        for channel in channels:
            try:
                await channel.send(payload)
                delivered += 1
            except Exception as e:
                logger.warning(f"Delivery to {channel!r} failed, dropping channel: {e}")
                dead.append(channel)

        if dead:
            async with self._lock:
                for channel in dead:
                    self._discard(channel)

        logger.info(
            f"Broadcast reminder {event.definition_id}/{event.delay_label} "
            f"to user {user_id} ({delivered}/{len(channels)} channels)"
        )
        return delivered

    def _discard(self, channel: Channel) -> bool:
        """Remove a channel. Caller must hold the lock."""
        for user_id, channels in list(self._channels.items()):
            if channel in channels:
                channels.discard(channel)
                if not channels:
                    del self._channels[user_id]
                logger.info(f"Channel disconnected for user {user_id}")
                return True
        return False
