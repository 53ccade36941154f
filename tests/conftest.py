"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest
import pytest_asyncio

from recallbot.db.repository import Repository
from recallbot.engine.notifier import Notifier
from recallbot.engine.schedule import DelaySchedule
from recallbot.engine.service import ReminderService
from recallbot.engine.status_store import StatusStore
from recallbot.engine.timer_engine import TimerEngine

from tests.utils import FakeJobQueue, InMemoryKeyValueStore


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def repo(kv_store: InMemoryKeyValueStore) -> Repository:
    return Repository(kv_store)  # type: ignore[arg-type]


@pytest.fixture
def schedule() -> DelaySchedule:
    return DelaySchedule([("1s", 1000)])


@pytest.fixture
def job_queue() -> FakeJobQueue:
    return FakeJobQueue()


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def status_store(repo: Repository) -> StatusStore:
    return StatusStore(repo)


@pytest.fixture
def timer_engine(schedule, status_store, notifier, job_queue) -> TimerEngine:
    return TimerEngine(schedule, status_store, notifier, job_queue)  # type: ignore[arg-type]


@pytest.fixture
def service(repo, schedule, notifier, status_store, timer_engine) -> ReminderService:
    return ReminderService(
        repo,
        schedule,
        notifier,
        status_store=status_store,
        timer_engine=timer_engine,
    )


@pytest_asyncio.fixture
async def user_id(service: ReminderService) -> str:
    user = await service.register_user(12345)
    return user.id  # type: ignore


@pytest_asyncio.fixture
async def language_id(service: ReminderService, user_id: str) -> str:
    language = await service.add_language(user_id, "Spanish", "English")
    return language.language_id
