"""Alembic environment for the voice_profiles and generations tables.

DATABASE_URL is required; the in-memory store has nothing to migrate.
"""

from logging.config import fileConfig

from alembic import context
from sqlmodel import SQLModel

from newsletter.config import DATABASE_URL, STORE_TIMEOUT_SECONDS
from newsletter.db.engine import create_store_engine
from newsletter.db.models import Generation, VoiceProfile  # noqa: F401

config = context.config

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL must be set to run migrations")

config.set_main_option("sqlalchemy.url", DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def _configure_options(url: str) -> dict:
    # SQLite cannot ALTER most columns in place
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit migration SQL without connecting."""
    context.configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(DATABASE_URL),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over the same time-bounded engine the store uses."""
    engine = create_store_engine(DATABASE_URL, STORE_TIMEOUT_SECONDS)

    try:
        with engine.connect() as connection:
            context.configure(connection=connection, **_configure_options(DATABASE_URL))

            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
