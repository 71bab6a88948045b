"""Database infrastructure for SQLModel + PostgreSQL.

Usage:
    from newsletter.db import create_store_engine, init_db

    engine = create_store_engine(DATABASE_URL)
    init_db(engine)
"""

from newsletter.db.engine import create_store_engine, drop_all_tables, init_db

__all__ = [
    "create_store_engine",
    "drop_all_tables",
    "init_db",
]
