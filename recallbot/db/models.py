"""Data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Literal


ReminderState = Literal["pending", "achieved", "failed"]


@dataclass
class User:
    """Telegram user."""

    telegram_id: int
    created_at: datetime
    id: str | None = None

    @property
    def stored_id(self) -> str:
        """The id assigned on creation."""
        if self.id is None:
            raise ValueError("User has not been stored yet")
        return self.id


@dataclass
class LanguagePair:
    """A language being learned and the language it is translated into."""

    user_id: str
    language_id: str
    learning_language: str
    translation_language: str


@dataclass
class Definition:
    """A word and its translation, scoped to a language pair."""

    user_id: str
    language_id: str
    word: str
    definition: str
    created_at: datetime
    id: str | None = None

    @property
    def stored_id(self) -> str:
        if self.id is None:
            raise ValueError("Definition has not been stored yet")
        return self.id


@dataclass
class ReminderStatus:
    """Progress of one definition at one delay."""

    definition_id: str
    delay_label: str
    state: ReminderState


@dataclass
class ReminderEvent:
    """Message pushed to a user's sessions when a delay expires."""

    definition_id: str
    word: str
    definition: str
    delay_label: str

    def to_payload(self) -> dict:
        return {
            "definitionId": self.definition_id,
            "word": self.word,
            "definition": self.definition,
            "delayLabel": self.delay_label,
        }


@dataclass
class DefinitionWithStatuses:
    """A definition together with its per-delay reminder states."""

    definition: Definition
    statuses: Dict[str, ReminderState] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "definitionId": self.definition.id,
            "word": self.definition.word,
            "definition": self.definition.definition,
            "statuses": dict(self.statuses),
        }


@dataclass
class ReminderCounts:
    """Aggregate reminder outcomes for a language."""

    correct: int = 0
    in_progress: int = 0
    missed: int = 0

    @property
    def total(self) -> int:
        return self.correct + self.in_progress + self.missed

    def add(self, state: ReminderState) -> None:
        if state == "achieved":
            self.correct += 1
        elif state == "failed":
            self.missed += 1
        else:
            self.in_progress += 1

    def to_dict(self) -> dict:
        return {
            "correct": self.correct,
            "inProgress": self.in_progress,
            "missed": self.missed,
            "total": self.total,
        }
