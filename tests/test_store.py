"""Tests for the per-scope entry store."""

import json
import random
from datetime import date, timedelta

import pytest

from pulse.config import Settings
from pulse.schemas import DailyEntry, ScreenTime
from pulse.store import SEED_DAYS, SEED_NOTE, EntryStore, generate_demo_entries

SCOPE = "guest"


# ---- list / upsert ----


@pytest.mark.asyncio
async def test_list_empty_scope(store):
    assert await store.list_entries(SCOPE) == []


@pytest.mark.asyncio
async def test_upsert_adds_entry(store, make_entry):
    entries = await store.upsert(make_entry(day=0, mood=4), SCOPE)
    assert len(entries) == 1
    assert (await store.list_entries(SCOPE))[0].mood == 4


@pytest.mark.asyncio
async def test_upsert_same_date_replaces(store, make_entry):
    first = make_entry(day=0, mood=2)
    await store.upsert(first, SCOPE)
    second = make_entry(day=0, mood=5, id=first.id)
    entries = await store.upsert(second, SCOPE)

    assert len(entries) == 1
    stored = await store.list_entries(SCOPE)
    assert len(stored) == 1
    assert stored[0].mood == 5
    assert stored[0].id == first.id


@pytest.mark.asyncio
async def test_upsert_sorts_newest_first(store, make_entry):
    for day in (3, 0, 7, 5):
        await store.upsert(make_entry(day=day), SCOPE)
    dates = [e.date for e in await store.list_entries(SCOPE)]
    assert dates == sorted(dates, reverse=True)
    assert len(dates) == 4


@pytest.mark.asyncio
async def test_get_entry(store, make_entry):
    await store.upsert(make_entry(day=2, mood=1), SCOPE)
    assert (await store.get_entry(SCOPE, date(2026, 1, 3))).mood == 1
    assert await store.get_entry(SCOPE, date(2026, 1, 4)) is None


@pytest.mark.asyncio
async def test_scopes_are_isolated(store, make_entry):
    await store.upsert(make_entry(day=0, mood=5), "user_1")
    assert await store.list_entries("user_2") == []
    assert await store.list_entries(SCOPE) == []
    assert len(await store.list_entries("user_1")) == 1


# ---- stored format ----


@pytest.mark.asyncio
async def test_stored_value_is_obfuscated(store, make_entry):
    await store.upsert(make_entry(day=0, note="private"), SCOPE)
    raw = await store.kv.get(store.entries_key(SCOPE))
    assert raw.startswith("enc_v1_")
    assert "private" not in raw


@pytest.mark.asyncio
async def test_stored_value_plain_when_obfuscation_off(db_session, make_entry):
    plain = EntryStore(db_session, Settings(obfuscate_storage=False))
    await plain.upsert(make_entry(day=0, sleep=8.5), SCOPE)
    raw = await plain.kv.get(plain.entries_key(SCOPE))
    data = json.loads(raw)
    assert data[0]["sleepHours"] == 8.5
    assert data[0]["screenTime"] == "Low"


@pytest.mark.asyncio
async def test_reads_legacy_plain_json(store):
    legacy = [{
        "id": "x7k2p9q1a",
        "date": "2026-01-02",
        "mood": 4,
        "sleepHours": 7.5,
        "exerciseMinutes": 30,
        "screenTime": "Low",
        "note": "",
        "timestamp": 1767312000000,
    }]
    await store.kv.set(store.entries_key(SCOPE), json.dumps(legacy))

    entries = await store.list_entries(SCOPE)
    assert len(entries) == 1
    assert entries[0].id == "x7k2p9q1a"
    assert entries[0].sleep_hours == 7.5
    assert entries[0].screen_time is ScreenTime.LOW


@pytest.mark.asyncio
async def test_unreadable_value_counts_as_empty(store):
    await store.kv.set(store.entries_key(SCOPE), "enc_v1_@@@@")
    assert await store.list_entries(SCOPE) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["enc_v1_ü", "enc_v1_é==", "enc_v1_" + "=03e" + "☀"])
async def test_non_ascii_value_counts_as_empty(store, raw):
    await store.kv.set(store.entries_key(SCOPE), raw)
    assert await store.list_entries(SCOPE) == []


@pytest.mark.asyncio
async def test_invalid_entries_count_as_empty(store):
    await store.kv.set(store.entries_key(SCOPE), json.dumps([{"date": "2026-01-01", "mood": 9}]))
    assert await store.list_entries(SCOPE) == []


@pytest.mark.asyncio
async def test_upsert_over_unreadable_value_starts_fresh(store, make_entry):
    await store.kv.set(store.entries_key(SCOPE), "garbage")
    entries = await store.upsert(make_entry(day=0), SCOPE)
    assert len(entries) == 1


# ---- seeding ----


@pytest.mark.asyncio
async def test_seed_if_empty(store):
    today = date(2026, 2, 10)
    entries = await store.seed_if_empty(SCOPE, rng=random.Random(42), today=today)

    assert len(entries) == SEED_DAYS
    assert await store.has_seeded(SCOPE)
    assert entries[0].date == today
    assert entries[-1].date == today - timedelta(days=SEED_DAYS - 1)
    assert entries[0].note == SEED_NOTE
    assert all(e.note == "" for e in entries[1:])
    assert len({e.date for e in entries}) == SEED_DAYS
    assert await store.list_entries(SCOPE) == entries


@pytest.mark.asyncio
async def test_seed_is_idempotent(store):
    first = await store.seed_if_empty(SCOPE, rng=random.Random(1))
    second = await store.seed_if_empty(SCOPE, rng=random.Random(2))
    assert [e.id for e in second] == [e.id for e in first]


@pytest.mark.asyncio
async def test_seed_skips_scope_with_entries(store, make_entry):
    await store.upsert(make_entry(day=0), SCOPE)
    entries = await store.seed_if_empty(SCOPE)
    assert len(entries) == 1
    assert not await store.has_seeded(SCOPE)


@pytest.mark.asyncio
async def test_seed_does_not_refill_after_seeding(store):
    await store.seed_if_empty(SCOPE)
    await store.kv.delete(store.entries_key(SCOPE))
    assert await store.seed_if_empty(SCOPE) == []


def test_demo_entries_follow_habits():
    entries = generate_demo_entries(random.Random(3), date(2026, 1, 31), days=200)
    for e in entries:
        assert 1 <= e.mood <= 5
        assert 5 <= e.sleep_hours <= 8
        assert e.exercise_minutes in (0, 30)
        assert e.screen_time in (ScreenTime.LOW, ScreenTime.HIGH)

        expected = 3 + (e.sleep_hours >= 7) + (e.exercise_minutes > 0) - (e.screen_time == ScreenTime.HIGH)
        assert e.mood in (max(1, expected), max(1, expected - 1))


def test_demo_entries_are_deterministic_for_a_seeded_rng():
    a = generate_demo_entries(random.Random(5), date(2026, 1, 31))
    b = generate_demo_entries(random.Random(5), date(2026, 1, 31))
    assert [(e.date, e.mood, e.sleep_hours) for e in a] == [(e.date, e.mood, e.sleep_hours) for e in b]


# ---- flags ----


@pytest.mark.asyncio
async def test_onboarding_flag(store):
    assert not await store.is_onboarded(SCOPE)
    await store.complete_onboarding(SCOPE)
    assert await store.is_onboarded(SCOPE)
    assert not await store.is_onboarded("user_1")


@pytest.mark.asyncio
async def test_clear_scope(store, make_entry):
    await store.upsert(make_entry(day=0), "user_1")
    await store.complete_onboarding("user_1")
    await store.upsert(make_entry(day=0), SCOPE)

    await store.clear_scope("user_1")

    assert await store.list_entries("user_1") == []
    assert not await store.is_onboarded("user_1")
    assert len(await store.list_entries(SCOPE)) == 1


def test_keys_are_prefix_and_scope(db_session):
    store = EntryStore(db_session, Settings(entries_key_prefix="data", seeded_key_prefix="seeded"))
    assert store.entries_key("user_7") == "data_user_7"
    assert store.seeded_key("guest") == "seeded_guest"


@pytest.mark.asyncio
async def test_entries_survive_new_session(session_maker, make_entry):
    settings = Settings()
    async with session_maker() as session:
        await EntryStore(session, settings).upsert(make_entry(day=0, mood=5), SCOPE)
        await session.commit()
    async with session_maker() as session:
        entries = await EntryStore(session, settings).list_entries(SCOPE)
    assert [e.mood for e in entries] == [5]
    assert isinstance(entries[0], DailyEntry)
