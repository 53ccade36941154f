"""Tests for the notifier fan-out."""

import pytest

from recallbot.db.models import ReminderEvent
from recallbot.engine.notifier import Notifier

from tests.utils import RecordingChannel


def make_event() -> ReminderEvent:
    return ReminderEvent(
        definition_id="def-1", word="casa", definition="house", delay_label="1s"
    )


@pytest.mark.asyncio
async def test_broadcast_reaches_every_channel_of_the_user():
    notifier = Notifier()
    phone = RecordingChannel("phone")
    laptop = RecordingChannel("laptop")

    await notifier.register("user-1", phone)
    await notifier.register("user-1", laptop)

    delivered = await notifier.broadcast("user-1", make_event())

    assert delivered == 2
    expected = {"definitionId": "def-1", "word": "casa", "definition": "house", "delayLabel": "1s"}
    assert phone.sent == [expected]
    assert laptop.sent == [expected]


@pytest.mark.asyncio
async def test_unregistered_channel_stops_receiving():
    notifier = Notifier()
    phone = RecordingChannel("phone")
    laptop = RecordingChannel("laptop")
    await notifier.register("user-1", phone)
    await notifier.register("user-1", laptop)

    await notifier.broadcast("user-1", make_event())
    assert await notifier.unregister(laptop) is True
    await notifier.broadcast("user-1", make_event())

    assert len(phone.sent) == 2
    assert len(laptop.sent) == 1
    assert await notifier.connection_count("user-1") == 1
    assert await notifier.unregister(laptop) is False


@pytest.mark.asyncio
async def test_failed_channel_is_dropped_without_aborting_delivery():
    notifier = Notifier()
    dead = RecordingChannel("dead")
    alive = RecordingChannel("alive")
    dead.closed = True
    await notifier.register("user-1", dead)
    await notifier.register("user-1", alive)

    delivered = await notifier.broadcast("user-1", make_event())

    assert delivered == 1
    assert len(alive.sent) == 1
    assert await notifier.connection_count("user-1") == 1

    # The dead channel is gone for good
    dead.closed = False
    await notifier.broadcast("user-1", make_event())
    assert dead.sent == []
    assert len(alive.sent) == 2


@pytest.mark.asyncio
async def test_broadcast_without_channels_drops_event():
    notifier = Notifier()
    other = RecordingChannel("other")
    await notifier.register("user-2", other)

    assert await notifier.broadcast("user-1", make_event()) == 0
    assert other.sent == []


@pytest.mark.asyncio
async def test_registering_same_channel_twice_is_idempotent():
    notifier = Notifier()
    phone = RecordingChannel("phone")

    await notifier.register("user-1", phone)
    await notifier.register("user-1", phone)
    await notifier.broadcast("user-1", make_event())

    assert await notifier.connection_count("user-1") == 1
    assert len(phone.sent) == 1


@pytest.mark.asyncio
async def test_last_channel_removal_forgets_user():
    notifier = Notifier()
    phone = RecordingChannel("phone")
    await notifier.register("user-1", phone)

    await notifier.unregister(phone)

    assert await notifier.connection_count("user-1") == 0
    assert await notifier.broadcast("user-1", make_event()) == 0
