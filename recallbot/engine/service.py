"""Reminder service - the operations exposed to the bot surface."""

import logging
from datetime import datetime
from typing import Dict, List
from zoneinfo import ZoneInfo

from telegram.ext import JobQueue

from recallbot.db.models import (
    Definition,
    DefinitionWithStatuses,
    LanguagePair,
    ReminderCounts,
    ReminderState,
    User,
)
from recallbot.db.repository import Repository, make_language_id
from recallbot.engine.answers import AnswerProcessor, AnswerResult
from recallbot.engine.notifier import Channel, Notifier
from recallbot.engine.schedule import DelaySchedule
from recallbot.engine.status_store import StatusStore
from recallbot.engine.timer_engine import TimerEngine
from recallbot.utils.constants import (
    MAX_DEFINITION_LENGTH,
    MAX_LANGUAGE_ID_BYTES,
    MAX_LANGUAGE_NAME_LENGTH,
    MAX_WORD_LENGTH,
)
from recallbot.utils.errors import InvalidInput, NotFound, PersistenceFailure, Unauthorized

logger = logging.getLogger(__name__)


class ReminderService:
    """Wires the engine components together behind user-scoped operations.

    Every operation checks that the definition or language belongs to the
    calling user; someone else's definition is reported as NotFound.
    """

    def __init__(
        self,
        repo: Repository,
        schedule: DelaySchedule,
        notifier: Notifier,
        job_queue: JobQueue | None = None,
        status_store: StatusStore | None = None,
        timer_engine: TimerEngine | None = None,
        answer_processor: AnswerProcessor | None = None,
    ):
        self.repo = repo
        self.schedule = schedule
        self.notifier = notifier
        self.status_store = status_store or StatusStore(repo)
        if timer_engine is None:
            if job_queue is None:
                raise ValueError("A job queue or a timer engine is required")
            timer_engine = TimerEngine(schedule, self.status_store, notifier, job_queue)
        self.timer_engine = timer_engine
        self.answer_processor = answer_processor or AnswerProcessor(
            self.status_store, schedule
        )

    # Users and sessions

    async def register_user(self, telegram_id: int) -> User:
        """Get or create the user behind a Telegram account."""
        user = await self.repo.get_user_by_telegram_id(telegram_id)
        if user is None:
            user = await self.repo.create_user(telegram_id)
        return user

    async def authenticate(self, telegram_id: int) -> str:
        """Resolve a Telegram account to a user id."""
        user = await self.repo.get_user_by_telegram_id(telegram_id)
        if user is None:
            raise Unauthorized(f"Unknown Telegram user {telegram_id}")
        return user.stored_id

    async def connect(self, user_id: str, channel: Channel) -> None:
        await self.notifier.register(user_id, channel)

    async def disconnect(self, channel: Channel) -> bool:
        return await self.notifier.unregister(channel)

    # Languages

    async def add_language(
        self, user_id: str, learning_language: str, translation_language: str
    ) -> LanguagePair:
        learning_language = (learning_language or "").strip()
        translation_language = (translation_language or "").strip()

        if not learning_language or not translation_language:
            raise InvalidInput("Both learning and translation languages are required.")
        if max(len(learning_language), len(translation_language)) > MAX_LANGUAGE_NAME_LENGTH:
            raise InvalidInput(
                f"Language names are limited to {MAX_LANGUAGE_NAME_LENGTH} characters."
            )

        language_id = make_language_id(learning_language, translation_language)
        if not language_id:
            raise InvalidInput("Language names must contain letters or digits.")
        if len(language_id.encode("utf-8")) > MAX_LANGUAGE_ID_BYTES:
            raise InvalidInput("These language names are too long, please use shorter ones.")

        language = LanguagePair(
            user_id=user_id,
            language_id=language_id,
            learning_language=learning_language,
            translation_language=translation_language,
        )
        return await self.repo.create_language(language)

    async def list_languages(self, user_id: str) -> List[LanguagePair]:
        return await self.repo.get_languages(user_id)

    async def get_language(self, user_id: str, language_id: str) -> LanguagePair:
        language = await self.repo.get_language(user_id, language_id)
        if language is None:
            raise NotFound(f"Language {language_id} not found.")
        return language

    # Definitions

    async def create_definition(
        self, user_id: str, language_id: str, word: str, definition: str
    ) -> str:
        """Store a definition and arm its reminders.

        All statuses are pending before the first timer is armed.
        """
        word = (word or "").strip()
        definition = (definition or "").strip()

        if not word or not definition:
            raise InvalidInput("Word and definition are required.")
        if len(word) > MAX_WORD_LENGTH:
            raise InvalidInput(f"Words are limited to {MAX_WORD_LENGTH} characters.")
        if len(definition) > MAX_DEFINITION_LENGTH:
            raise InvalidInput(
                f"Definitions are limited to {MAX_DEFINITION_LENGTH} characters."
            )

        await self.get_language(user_id, language_id)

        created = await self.repo.create_definition(
            Definition(
                user_id=user_id,
                language_id=language_id,
                word=word,
                definition=definition,
                created_at=datetime.now(ZoneInfo("UTC")),
            )
        )
        try:
            await self.status_store.initialize(created.stored_id, self.schedule.labels)
        except PersistenceFailure:
            logger.error(f"Could not initialize reminders for {created.id}, rolling back")
            await self.repo.delete_definition(created)
            raise
        self.timer_engine.schedule(created)

        logger.info(f"User {user_id} added '{word}' to {language_id} ({created.id})")
        return created.stored_id

    async def list_definitions(
        self, user_id: str, language_id: str
    ) -> List[DefinitionWithStatuses]:
        definitions = await self.repo.get_definitions(user_id, language_id)
        return [
            DefinitionWithStatuses(
                definition=definition,
                statuses=await self.status_store.get_statuses(definition.stored_id),
            )
            for definition in definitions
        ]

    async def delete_definition(
        self, user_id: str, language_id: str | None, definition_id: str
    ) -> Definition:
        """Delete a definition and cancel its outstanding reminders."""
        definition = await self._owned_definition(user_id, language_id, definition_id)

        self.timer_engine.cancel(definition_id)
        await self.repo.delete_definition(definition)
        self.status_store.forget(definition_id)

        logger.info(f"User {user_id} deleted '{definition.word}' ({definition_id})")
        return definition

    # Answers

    async def submit_answer(
        self,
        user_id: str,
        language_id: str | None,
        definition_id: str,
        delay_label: str,
        answer_text: str,
    ) -> AnswerResult:
        """Grade an answer for one reminder.

        language_id may be None when the caller only knows the definition id.
        """
        await self._owned_definition(user_id, language_id, definition_id)
        return await self.answer_processor.submit_answer(
            definition_id, delay_label, answer_text
        )

    async def apply_status_update(
        self, user_id: str, definition_id: str, message: dict
    ) -> ReminderState:
        """Record an outcome reported by the client, e.g. "I forgot"."""
        await self._owned_definition(user_id, None, definition_id)
        return await self.answer_processor.apply_status_update(definition_id, message)

    # Statistics

    async def reminder_counts(self, user_id: str) -> Dict[str, ReminderCounts]:
        """Aggregate reminder outcomes per language."""
        counts = {}
        for language in await self.repo.get_languages(user_id):
            language_counts = ReminderCounts()
            for definition in await self.repo.get_definitions(user_id, language.language_id):
                statuses = await self.status_store.get_statuses(definition.stored_id)
                for state in statuses.values():
                    language_counts.add(state)
            counts[language.language_id] = language_counts
        return counts

    async def get_definition(self, user_id: str, definition_id: str) -> Definition:
        return await self._owned_definition(user_id, None, definition_id)

    # Helper methods

    async def _owned_definition(
        self, user_id: str, language_id: str | None, definition_id: str
    ) -> Definition:
        if not definition_id:
            raise InvalidInput("A definition id is required.")

        definition = await self.status_store.get_definition(definition_id)
        if (
            definition is None
            or definition.user_id != user_id
            or (language_id is not None and definition.language_id != language_id)
        ):
            raise NotFound("This word no longer exists.")
        return definition
