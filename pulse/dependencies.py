from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pulse.auth import get_scope
from pulse.config import Settings, get_settings
from pulse.database import get_db
from pulse.store import EntryStore


def get_entry_store(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> EntryStore:
    return EntryStore(db, settings)


Store = Annotated[EntryStore, Depends(get_entry_store)]
Scope = Annotated[str, Depends(get_scope)]
