"""Record store adapter.

The backend is chosen once at process start:
- DATABASE_URL set   -> SQLRecordStore (durable)
- DATABASE_URL unset -> InMemoryRecordStore (offline/demo mode)

Usage:
    from newsletter.store import create_record_store

    store = create_record_store(DATABASE_URL)
    store.put(generation)
"""

from typing import Optional

from newsletter.config import STORE_TIMEOUT_SECONDS
from newsletter.store.base import (
    RecordNotFoundError,
    RecordQuery,
    RecordStore,
    RecordStoreError,
    StaleRecordError,
)
from newsletter.store.memory import InMemoryRecordStore
from newsletter.store.sql import SQLRecordStore


def create_record_store(
    database_url: Optional[str],
    timeout_seconds: float = STORE_TIMEOUT_SECONDS,
    create_tables: bool = False,
) -> RecordStore:
    """Build the record store for this process.

    Args:
        database_url: Durable store URL, or None for the in-memory backend
        timeout_seconds: Connect/checkout bound for the durable backend
        create_tables: Create missing tables (development and tests only)
    """
    if not database_url:
        return InMemoryRecordStore()

    from newsletter.db.engine import create_store_engine, init_db

    engine = create_store_engine(database_url, timeout_seconds)
    if create_tables:
        init_db(engine)
    return SQLRecordStore(engine)


__all__ = [
    "InMemoryRecordStore",
    "RecordNotFoundError",
    "RecordQuery",
    "RecordStore",
    "RecordStoreError",
    "SQLRecordStore",
    "StaleRecordError",
    "create_record_store",
]
