"""Delay schedule - the fixed offsets at which reminders fire."""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple

from recallbot.utils.constants import MAX_DELAY_LABEL_BYTES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DelayEntry:
    """A single reminder delay."""

    label: str
    duration_ms: int

    @property
    def seconds(self) -> float:
        return self.duration_ms / 1000


class DelaySchedule:
    """Ordered, immutable list of reminder delays.

    Durations are expected to increase along the list. A schedule that
    breaks this is still accepted (reminders then fire in wall-clock
    order, not label order) but a warning is logged.
    """

    def __init__(self, entries: Iterable[Tuple[str, int]]):
        parsed: List[DelayEntry] = []
        seen = set()

        for label, duration_ms in entries:
            label = label.strip()
            if not label:
                raise ValueError("Delay label cannot be empty")
            if ":" in label or len(label.encode("utf-8")) > MAX_DELAY_LABEL_BYTES:
                raise ValueError(f"Invalid delay label: {label!r}")
            if label in seen:
                raise ValueError(f"Duplicate delay label: {label}")
            if int(duration_ms) <= 0:
                raise ValueError(f"Delay {label} must be positive, got {duration_ms}")

            seen.add(label)
            parsed.append(DelayEntry(label, int(duration_ms)))

        if not parsed:
            raise ValueError("Delay schedule must contain at least one entry")

        self._entries = tuple(parsed)

        if not self.is_monotonic():
            logger.warning(
                f"Delay schedule is not increasing: {self.labels}. "
                "Reminders will fire in duration order."
            )

    @classmethod
    def parse(cls, text: str) -> "DelaySchedule":
        """Parse a schedule from ``label=ms,label=ms`` text.

        Example:
            "3_seconds=3000,1_minute=60000"
        """
        entries = []
        for chunk in text.split(","):
            chunk = chunk.strip()
            if not chunk:
                continue
            label, sep, duration = chunk.partition("=")
            if not sep:
                raise ValueError(f"Expected label=milliseconds, got {chunk!r}")
            try:
                entries.append((label, int(duration)))
            except ValueError:
                raise ValueError(f"Invalid duration for {label.strip()}: {duration!r}")
        return cls(entries)

    def __iter__(self) -> Iterator[DelayEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, label: object) -> bool:
        return any(entry.label == label for entry in self._entries)

    def __repr__(self) -> str:
        return f"DelaySchedule({[(e.label, e.duration_ms) for e in self._entries]})"

    @property
    def labels(self) -> List[str]:
        return [entry.label for entry in self._entries]

    def get(self, label: str) -> DelayEntry | None:
        for entry in self._entries:
            if entry.label == label:
                return entry
        return None

    def is_monotonic(self) -> bool:
        durations = [entry.duration_ms for entry in self._entries]
        return all(a < b for a, b in zip(durations, durations[1:]))
