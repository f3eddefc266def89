import logging
from datetime import date

from fastapi import APIRouter, HTTPException, status

from pulse.dependencies import Scope, Store
from pulse.schemas import CheckIn, DailyEntry, DailyEntryListResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/entries", tags=["entries"])


@router.get("", response_model=DailyEntryListResponse)
async def list_entries(scope: Scope, store: Store):
    """All entries in the current scope, newest date first."""
    entries = await store.list_entries(scope)
    return DailyEntryListResponse(entries=entries, total=len(entries))


@router.get("/today", response_model=DailyEntry | None)
async def get_today_entry(scope: Scope, store: Store):
    """Today's entry, or null if today has not been logged yet."""
    return await store.get_entry(scope, date.today())


@router.get("/{entry_date}", response_model=DailyEntry)
async def get_entry(entry_date: date, scope: Scope, store: Store):
    entry = await store.get_entry(scope, entry_date)
    if not entry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No entry found for {entry_date}",
        )
    return entry


@router.put("", response_model=DailyEntryListResponse)
async def save_entry(check_in: CheckIn, scope: Scope, store: Store):
    """Save a check-in. A second check-in for the same date replaces the first."""
    existing = await store.get_entry(scope, check_in.date)
    entries = await store.upsert(check_in.to_entry(existing), scope)
    logger.info("Saved check-in for %s in scope %s", check_in.date, scope)
    return DailyEntryListResponse(entries=entries, total=len(entries))


@router.post("/seed", response_model=DailyEntryListResponse)
async def seed_entries(scope: Scope, store: Store):
    """Fill an empty scope with demo entries. Has no effect once the scope has data."""
    entries = await store.seed_if_empty(scope)
    return DailyEntryListResponse(entries=entries, total=len(entries))
