"""Test doubles shared across the test suite."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Mapping, Set, Tuple

from recallbot.utils.errors import DeliveryFailure


class InMemoryKeyValueStore:
    """Dict-backed double of KeyValueStore. Never suspends."""

    def __init__(self) -> None:
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.sets: Dict[str, Set[str]] = {}

    async def hget(self, key: str, field: str) -> str | None:
        return self.hashes.get(key, {}).get(field)

    async def hset(self, key: str, field: str, value: str) -> None:
        self.hashes.setdefault(key, {})[field] = value

    async def hset_many(self, key: str, mapping: Mapping[str, str]) -> None:
        self.hashes.setdefault(key, {}).update(mapping)

    async def hdel(self, key: str, field: str) -> bool:
        return self.hashes.get(key, {}).pop(field, None) is not None

    async def hkeys(self, key: str) -> List[str]:
        return list(self.hashes.get(key, {}))

    async def hgetall(self, key: str) -> Dict[str, str]:
        return dict(self.hashes.get(key, {}))

    async def delete(self, key: str) -> None:
        self.hashes.pop(key, None)
        self.sets.pop(key, None)

    async def sadd(self, key: str, member: str) -> None:
        self.sets.setdefault(key, set()).add(member)

    async def srem(self, key: str, member: str) -> None:
        self.sets.get(key, set()).discard(member)

    async def smembers(self, key: str) -> Set[str]:
        return set(self.sets.get(key, set()))


class YieldingKeyValueStore(InMemoryKeyValueStore):
    """In-memory store that yields to the event loop on every call.

    Lets concurrent coroutines interleave between a read and a write, the
    way they do against the SQLite store. Hash writes are recorded in order.
    """

    def __init__(self) -> None:
        super().__init__()
        self.writes: List[Tuple[str, str, str]] = []

    async def hget(self, key: str, field: str) -> str | None:
        await asyncio.sleep(0)
        return await super().hget(key, field)

    async def hset(self, key: str, field: str, value: str) -> None:
        await asyncio.sleep(0)
        self.writes.append((key, field, value))
        await super().hset(key, field, value)

    async def hset_many(self, key: str, mapping: Mapping[str, str]) -> None:
        await asyncio.sleep(0)
        self.writes.extend((key, field, value) for field, value in mapping.items())
        await super().hset_many(key, mapping)


class FakeJob:
    """Job double with the parts of telegram.ext.Job the engine touches."""

    def __init__(self, callback: Callable, due: float, name: str | None, data: Any) -> None:
        self.callback = callback
        self.due = due
        self.name = name
        self.data = data
        self.removed = False

    def schedule_removal(self) -> None:
        self.removed = True


class FakeJobQueue:
    """JobQueue double driven by a simulated clock.

    run_once jobs only run when advance() moves the clock past them, in
    order of their due time.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._jobs: List[FakeJob] = []

    def run_once(
        self, callback: Callable, when: float, data: Any = None, name: str | None = None
    ) -> FakeJob:
        job = FakeJob(callback, self.now + when, name, data)
        self._jobs.append(job)
        return job

    def jobs(self) -> Tuple[FakeJob, ...]:
        return tuple(job for job in self._jobs if not job.removed)

    def get_jobs_by_name(self, name: str) -> Tuple[FakeJob, ...]:
        return tuple(job for job in self.jobs() if job.name == name)

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [job for job in self.jobs() if job.due <= target + 1e-9]
            if not due:
                break
            job = min(due, key=lambda j: j.due)
            # One-shot jobs leave the queue once they run
            job.removed = True
            self.now = max(self.now, job.due)
            await job.callback(SimpleNamespace(job=job))
        self.now = target



class RecordingChannel:
    """Channel double that records payloads; a closed channel fails to send."""

    def __init__(self, name: str = "channel") -> None:
        self.name = name
        self.sent: List[dict] = []
        self.closed = False

    async def send(self, payload: dict) -> None:
        if self.closed:
            raise DeliveryFailure(f"{self.name} is closed")
        self.sent.append(payload)

    def __repr__(self) -> str:
        return f"RecordingChannel({self.name})"
