"""Tests for answer grading and status transitions."""

import asyncio
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from recallbot.db.models import Definition
from recallbot.db.repository import Repository, status_key
from recallbot.engine.answers import AnswerProcessor, is_correct, next_state, normalize_answer
from recallbot.engine.status_store import StatusStore
from recallbot.utils.errors import InvalidInput, NotFound

from tests.utils import YieldingKeyValueStore


def test_normalize_answer():
    assert normalize_answer("  House \n") == "house"
    assert normalize_answer("STRASSE") == "strasse"
    assert normalize_answer("Straße") == "strasse"


def test_is_correct_is_exact_after_normalization():
    assert is_correct("House", "house")
    assert is_correct("  house  ", "House")
    assert not is_correct("houses", "house")
    assert not is_correct("the house", "house")
    assert not is_correct("ho use", "house")


@pytest.mark.parametrize(
    "current,target,expected",
    [
        ("pending", "achieved", "achieved"),
        ("pending", "failed", "failed"),
        ("failed", "achieved", "achieved"),
        ("failed", "failed", "failed"),
        ("achieved", "achieved", "achieved"),
        ("achieved", "failed", "achieved"),
    ],
)
def test_next_state(current, target, expected):
    assert next_state(current, target) == expected


@pytest.mark.asyncio
async def test_case_mismatched_answer_is_correct(service, user_id, language_id):
    definition_id = await service.create_definition(user_id, language_id, "casa", "house")

    result = await service.submit_answer(user_id, language_id, definition_id, "1s", "House")

    assert result.correct is True
    assert result.to_dict() == {"correct": True}
    status = await service.status_store.get_status(definition_id, "1s")
    assert status.state == "achieved"


@pytest.mark.asyncio
async def test_wrong_answer_fails(service, user_id, language_id):
    definition_id = await service.create_definition(user_id, language_id, "casa", "house")

    result = await service.submit_answer(user_id, language_id, definition_id, "1s", "home")

    assert result.correct is False
    assert result.state == "failed"
    status = await service.status_store.get_status(definition_id, "1s")
    assert status.state == "failed"


@pytest.mark.asyncio
async def test_correct_answer_twice_stays_achieved(service, user_id, language_id):
    definition_id = await service.create_definition(user_id, language_id, "casa", "house")

    first = await service.submit_answer(user_id, language_id, definition_id, "1s", "house")
    second = await service.submit_answer(user_id, language_id, definition_id, "1s", "house")

    assert first.state == second.state == "achieved"


@pytest.mark.asyncio
async def test_failed_then_correct_becomes_achieved(service, user_id, language_id):
    definition_id = await service.create_definition(user_id, language_id, "casa", "house")

    await service.submit_answer(user_id, language_id, definition_id, "1s", "home")
    result = await service.submit_answer(user_id, language_id, definition_id, "1s", "house")

    assert result.correct is True
    assert result.state == "achieved"


@pytest.mark.asyncio
async def test_achieved_ignores_later_wrong_answer(service, user_id, language_id):
    definition_id = await service.create_definition(user_id, language_id, "casa", "house")

    await service.submit_answer(user_id, language_id, definition_id, "1s", "house")
    result = await service.submit_answer(user_id, language_id, definition_id, "1s", "home")

    # Feedback is still honest, the recorded state does not regress
    assert result.correct is False
    assert result.state == "achieved"


@pytest.mark.asyncio
async def test_answer_for_deleted_definition_is_not_found(service, user_id, language_id):
    definition_id = await service.create_definition(user_id, language_id, "casa", "house")
    await service.delete_definition(user_id, language_id, definition_id)

    with pytest.raises(NotFound, match="no longer exists"):
        await service.submit_answer(user_id, language_id, definition_id, "1s", "house")


@pytest.mark.asyncio
async def test_invalid_answers_are_rejected_before_any_write(service, user_id, language_id):
    definition_id = await service.create_definition(user_id, language_id, "casa", "house")

    with pytest.raises(InvalidInput):
        await service.submit_answer(user_id, language_id, definition_id, "1s", "   ")
    with pytest.raises(InvalidInput):
        await service.submit_answer(user_id, language_id, definition_id, "", "house")
    with pytest.raises(InvalidInput):
        await service.submit_answer(user_id, language_id, definition_id, "5_hours", "house")

    status = await service.status_store.get_status(definition_id, "1s")
    assert status.state == "pending"


@pytest.mark.asyncio
async def test_racing_answers_are_serialized_per_reminder(schedule):
    """Interleaving answers never overwrite achieved with a stale outcome."""
    store = YieldingKeyValueStore()
    repo = Repository(store)  # type: ignore[arg-type]
    status_store = StatusStore(repo)
    processor = AnswerProcessor(status_store, schedule)
    definition = await repo.create_definition(
        Definition(
            user_id="user-1",
            language_id="spanish_english",
            word="casa",
            definition="house",
            created_at=datetime.now(ZoneInfo("UTC")),
        )
    )
    await status_store.initialize(definition.stored_id, schedule.labels)

    results = await asyncio.gather(
        processor.submit_answer(definition.stored_id, "1s", "home"),
        processor.submit_answer(definition.stored_id, "1s", "house"),
        processor.submit_answer(definition.stored_id, "1s", "hose"),
    )

    status = await status_store.get_status(definition.stored_id, "1s")
    assert status.state == "achieved"
    assert [result.correct for result in results] == [False, True, False]

    written = [
        value
        for key, field, value in store.writes
        if key == status_key(definition.stored_id) and field == "1s"
    ]
    assert written[0] == "pending"
    assert written[written.index("achieved") + 1:] == []



@pytest.mark.asyncio
async def test_status_update_message(service, user_id, language_id):
    """Client reported outcomes follow the same state machine."""
    definition_id = await service.create_definition(user_id, language_id, "casa", "house")

    state = await service.apply_status_update(
        user_id, definition_id, {"status": "failed", "interval": "1s"}
    )
    assert state == "failed"

    state = await service.apply_status_update(
        user_id, definition_id, {"status": "achieved", "interval": "1s"}
    )
    assert state == "achieved"

    state = await service.apply_status_update(
        user_id, definition_id, {"status": "failed", "interval": "1s"}
    )
    assert state == "achieved"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message",
    [
        {"status": "pending", "interval": "1s"},
        {"status": "achieved"},
        {"status": "achieved", "interval": "5_hours"},
        {},
    ],
)
async def test_invalid_status_update_message(service, user_id, language_id, message):
    definition_id = await service.create_definition(user_id, language_id, "casa", "house")

    with pytest.raises(InvalidInput):
        await service.apply_status_update(user_id, definition_id, message)
