"""Repository - users, languages, definitions and statuses on the key-value store."""

import json
import logging
import re
import uuid
from datetime import datetime
from typing import Dict, Iterable, List
from zoneinfo import ZoneInfo

from recallbot.db.kv_store import KeyValueStore
from recallbot.db.models import Definition, LanguagePair, ReminderState, User
from recallbot.utils.constants import STATUS_PENDING

logger = logging.getLogger(__name__)

# Key layout
USERS_KEY = "users"
DEFINITION_INDEX_KEY = "definition_index"


def languages_key(user_id: str) -> str:
    return f"languages:{user_id}"


def language_ids_key(user_id: str) -> str:
    return f"language_ids:{user_id}"


def definitions_key(user_id: str, language_id: str) -> str:
    return f"definitions:{user_id}:{language_id}"


def status_key(definition_id: str) -> str:
    return f"reminder_status:{definition_id}"


def make_language_id(learning_language: str, translation_language: str) -> str:
    """Derive a stable, typeable id from the two language names."""
    slug = f"{learning_language}_{translation_language}".casefold()
    return re.sub(r"[^\w]+", "_", slug).strip("_")


class Repository:
    """Data access layer.

    Definitions are stored twice: in a per-user, per-language hash (for
    listing) and in a global index holding the owner of each definition id
    (for lookups by id alone).
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    # User operations

    async def get_user_by_telegram_id(self, telegram_id: int) -> User | None:
        """Get user by Telegram ID."""
        raw = await self.store.hget(USERS_KEY, str(telegram_id))
        if raw is None:
            return None
        data = json.loads(raw)
        return User(
            id=data["userId"],
            telegram_id=telegram_id,
            created_at=datetime.fromisoformat(data["createdAt"]),
        )

    async def create_user(self, telegram_id: int) -> User:
        """Create a new user."""
        user = User(
            id=uuid.uuid4().hex,
            telegram_id=telegram_id,
            created_at=datetime.now(ZoneInfo("UTC")),
        )
        await self.store.hset(
            USERS_KEY,
            str(telegram_id),
            json.dumps({"userId": user.id, "createdAt": user.created_at.isoformat()}),
        )
        logger.info(f"Created user {telegram_id}")
        return user

    # Language operations

    async def create_language(self, language: LanguagePair) -> LanguagePair:
        """Store a language pair (overwrites an existing pair with the same id)."""
        await self.store.hset(
            languages_key(language.user_id),
            language.language_id,
            json.dumps(
                {
                    "learningLanguage": language.learning_language,
                    "translationLanguage": language.translation_language,
                }
            ),
        )
        await self.store.sadd(language_ids_key(language.user_id), language.language_id)
        return language

    async def get_language(self, user_id: str, language_id: str) -> LanguagePair | None:
        raw = await self.store.hget(languages_key(user_id), language_id)
        if raw is None:
            return None
        data = json.loads(raw)
        return LanguagePair(
            user_id=user_id,
            language_id=language_id,
            learning_language=data["learningLanguage"],
            translation_language=data["translationLanguage"],
        )

    async def get_languages(self, user_id: str) -> List[LanguagePair]:
        """Get all language pairs for a user, sorted by id."""
        languages = []
        for language_id in sorted(await self.store.smembers(language_ids_key(user_id))):
            language = await self.get_language(user_id, language_id)
            if language:
                languages.append(language)
        return languages

    # Definition operations

    async def create_definition(self, definition: Definition) -> Definition:
        """Create a new definition and assign it an id."""
        definition.id = uuid.uuid4().hex
        await self.store.hset(
            definitions_key(definition.user_id, definition.language_id),
            definition.id,
            json.dumps(
                {
                    "word": definition.word,
                    "definition": definition.definition,
                    "createdAt": definition.created_at.isoformat(),
                }
            ),
        )
        await self.store.hset(
            DEFINITION_INDEX_KEY,
            definition.id,
            json.dumps({"userId": definition.user_id, "languageId": definition.language_id}),
        )
        return definition

    async def get_definition(self, definition_id: str) -> Definition | None:
        """Get a definition by ID."""
        raw_owner = await self.store.hget(DEFINITION_INDEX_KEY, definition_id)
        if raw_owner is None:
            return None
        owner = json.loads(raw_owner)

        raw = await self.store.hget(
            definitions_key(owner["userId"], owner["languageId"]), definition_id
        )
        if raw is None:
            return None
        return self._to_definition(definition_id, owner["userId"], owner["languageId"], raw)

    async def get_definitions(self, user_id: str, language_id: str) -> List[Definition]:
        """Get all definitions of a language, oldest first."""
        rows = await self.store.hgetall(definitions_key(user_id, language_id))
        return [
            self._to_definition(definition_id, user_id, language_id, raw)
            for definition_id, raw in rows.items()
        ]

    async def delete_definition(self, definition: Definition) -> None:
        """Delete a definition along with its reminder statuses."""
        await self.store.hdel(
            definitions_key(definition.user_id, definition.language_id),
            definition.stored_id,
        )
        await self.store.hdel(DEFINITION_INDEX_KEY, definition.stored_id)
        await self.store.delete(status_key(definition.stored_id))

    # Reminder status operations

    async def init_statuses(self, definition_id: str, labels: Iterable[str]) -> None:
        """Create a pending status for every delay label."""
        await self.store.hset_many(
            status_key(definition_id), {label: STATUS_PENDING for label in labels}
        )

    async def get_status(self, definition_id: str, delay_label: str) -> ReminderState | None:
        return await self.store.hget(status_key(definition_id), delay_label)  # type: ignore

    async def get_statuses(self, definition_id: str) -> Dict[str, ReminderState]:
        return await self.store.hgetall(status_key(definition_id))  # type: ignore

    async def set_status(
        self, definition_id: str, delay_label: str, state: ReminderState
    ) -> None:
        await self.store.hset(status_key(definition_id), delay_label, state)

    # Helper methods

    def _to_definition(
        self, definition_id: str, user_id: str, language_id: str, raw: str
    ) -> Definition:
        """Convert a stored JSON document to a Definition object."""
        data = json.loads(raw)
        return Definition(
            id=definition_id,
            user_id=user_id,
            language_id=language_id,
            word=data["word"],
            definition=data["definition"],
            created_at=datetime.fromisoformat(data["createdAt"]),
        )
