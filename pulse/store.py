"""Per-scope journal storage on top of the ``storage_items`` key-value table.

Each scope owns three keys: the serialized entry collection, a "seeded" flag
and an "onboarded" flag. Every write replaces the whole value; concurrent
writers to the same scope are not coordinated (last write wins).
"""
import logging
import random
from datetime import date, datetime, timedelta

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from pulse import obfuscation
from pulse.config import Settings, get_settings
from pulse.models import StorageItem
from pulse.schemas import DailyEntry, ScreenTime, new_entry_id

logger = logging.getLogger(__name__)

_entry_list = TypeAdapter(list[DailyEntry])

SEED_DAYS = 10
SEED_NOTE = "Feeling okay, just a bit tired."
FLAG_TRUE = "true"


class KeyValueStore:
    """get/set/delete of string values by key."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, key: str) -> str | None:
        item = await self._session.get(StorageItem, key)
        return item.value if item else None

    async def set(self, key: str, value: str) -> None:
        item = await self._session.get(StorageItem, key)
        if item:
            item.value = value
        else:
            self._session.add(StorageItem(key=key, value=value))
        await self._session.flush()

    async def delete(self, *keys: str) -> None:
        for key in keys:
            item = await self._session.get(StorageItem, key)
            if item:
                await self._session.delete(item)
        await self._session.flush()


class EntryStore:
    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.kv = KeyValueStore(session)
        self.settings = settings or get_settings()

    # ---- keys ----

    def entries_key(self, scope: str) -> str:
        return f"{self.settings.entries_key_prefix}_{scope}"

    def seeded_key(self, scope: str) -> str:
        return f"{self.settings.seeded_key_prefix}_{scope}"

    def onboarded_key(self, scope: str) -> str:
        return f"{self.settings.onboarded_key_prefix}_{scope}"

    # ---- entries ----

    async def list_entries(self, scope: str) -> list[DailyEntry]:
        """Stored entries, newest date first. Unreadable data counts as no data."""
        raw = await self.kv.get(self.entries_key(scope))
        if raw is None:
            return []

        if self.settings.obfuscate_storage and not obfuscation.is_obfuscated(raw):
            logger.debug("Scope %s holds plain JSON; it is obfuscated on the next write", scope)

        data = obfuscation.decode(raw)
        if data is None:
            logger.warning("Entries for scope %s could not be read; treating as empty", scope)
            return []

        try:
            return _entry_list.validate_python(data)
        except ValidationError as e:
            logger.warning("Entries for scope %s failed validation (%d errors); treating as empty",
                           scope, e.error_count())
            return []

    async def get_entry(self, scope: str, entry_date: date) -> DailyEntry | None:
        for entry in await self.list_entries(scope):
            if entry.date == entry_date:
                return entry
        return None

    async def upsert(self, entry: DailyEntry, scope: str) -> list[DailyEntry]:
        """Save ``entry``, replacing any entry with the same date. Returns the new collection."""
        entries = await self.list_entries(scope)

        for i, existing in enumerate(entries):
            if existing.date == entry.date:
                entries[i] = entry
                logger.debug("Replaced entry for %s in scope %s", entry.date, scope)
                break
        else:
            entries.insert(0, entry)
            logger.debug("Added entry for %s in scope %s", entry.date, scope)

        entries.sort(key=lambda e: e.date, reverse=True)
        await self._write_entries(scope, entries)
        return entries

    async def _write_entries(self, scope: str, entries: list[DailyEntry]) -> None:
        data = _entry_list.dump_python(entries, mode="json", by_alias=True)
        if self.settings.obfuscate_storage:
            value = obfuscation.encode(data)
        else:
            value = _entry_list.dump_json(entries, by_alias=True).decode("utf-8")
        await self.kv.set(self.entries_key(scope), value)

    # ---- demo data ----

    async def has_seeded(self, scope: str) -> bool:
        return await self.kv.get(self.seeded_key(scope)) == FLAG_TRUE

    async def seed_if_empty(
        self,
        scope: str,
        rng: random.Random | None = None,
        today: date | None = None,
    ) -> list[DailyEntry]:
        """Write demo entries the first time an empty scope is opened.

        Does nothing when the scope was seeded before or already has entries.
        """
        if await self.has_seeded(scope):
            return await self.list_entries(scope)

        existing = await self.list_entries(scope)
        if existing:
            return existing

        entries = generate_demo_entries(rng or random.Random(), today or date.today())
        await self._write_entries(scope, entries)
        await self.kv.set(self.seeded_key(scope), FLAG_TRUE)
        logger.info("Seeded %d demo entries for scope %s", len(entries), scope)
        return entries

    # ---- onboarding ----

    async def is_onboarded(self, scope: str) -> bool:
        return await self.kv.get(self.onboarded_key(scope)) == FLAG_TRUE

    async def complete_onboarding(self, scope: str) -> None:
        await self.kv.set(self.onboarded_key(scope), FLAG_TRUE)

    async def clear_scope(self, scope: str) -> None:
        await self.kv.delete(self.entries_key(scope), self.seeded_key(scope), self.onboarded_key(scope))
        logger.info("Cleared stored data for scope %s", scope)


def generate_demo_entries(rng: random.Random, today: date, days: int = SEED_DAYS) -> list[DailyEntry]:
    """Synthetic history, newest first, where mood follows sleep, exercise and screen time."""
    now = datetime.utcnow()
    entries = []
    for i in range(days):
        sleep = 5 + rng.randint(0, 3)
        exercise = 30 if rng.random() > 0.4 else 0
        screen_time = ScreenTime.HIGH if rng.random() > 0.5 else ScreenTime.LOW

        mood = 3
        if sleep >= 7:
            mood += 1
        if exercise > 0:
            mood += 1
        if screen_time == ScreenTime.HIGH:
            mood -= 1
        if rng.random() > 0.8:
            mood -= 1

        entries.append(
            DailyEntry(
                id=new_entry_id(),
                date=today - timedelta(days=i),
                mood=max(1, min(5, mood)),
                sleep_hours=sleep,
                exercise_minutes=exercise,
                screen_time=screen_time,
                note=SEED_NOTE if i == 0 else "",
                timestamp=now - timedelta(days=i),
            )
        )
    return entries
