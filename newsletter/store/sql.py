"""Durable record store backed by SQLModel.

Each operation runs in its own short-lived session. Sessions are opened with
expire_on_commit=False so returned records stay readable after the session
closes. Backend exceptions (SQLAlchemy errors) propagate unmodified.
"""

from contextlib import contextmanager
from typing import Any, Generator, Optional, Sequence
from uuid import UUID

from sqlalchemy import or_, text
from sqlalchemy import update as sa_update
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from newsletter.logging import get_logger
from newsletter.models import utc_now
from newsletter.store.base import (
    RecordNotFoundError,
    RecordQuery,
    RecordStore,
    RecordT,
    StaleRecordError,
    check_update_fields,
)

logger = get_logger(__name__)


class SQLRecordStore(RecordStore):
    """RecordStore implementation over a SQLAlchemy engine."""

    backend = "sql"

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Get a database session.

        Usage:
            with store.session() as session:
                profile = session.get(VoiceProfile, profile_id)

        Yields:
            SQLModel Session instance
        """
        with Session(self.engine, expire_on_commit=False) as session:
            try:
                yield session
            except Exception:
                session.rollback()
                raise

    def put(self, record: RecordT) -> RecordT:
        with self.session() as session:
            session.add(record)
            session.commit()
            session.refresh(record)
            return record

    def get(self, model: type[RecordT], record_id: UUID) -> Optional[RecordT]:
        with self.session() as session:
            return session.get(model, record_id)

    def list(
        self,
        model: type[RecordT],
        owner_id: UUID,
        query: Optional[RecordQuery] = None,
    ) -> list[RecordT]:
        query = query or RecordQuery()
        statement = select(model).where(model.user_id == owner_id)

        if query.statuses is not None:
            statement = statement.where(model.status.in_(list(query.statuses)))
        for column, value in query.where.items():
            attribute = getattr(model, column)
            if value is None:
                statement = statement.where(attribute.is_(None))
            else:
                statement = statement.where(attribute == value)

        order_column = getattr(model, query.order_by)
        ordering = order_column.desc() if query.descending else order_column.asc()
        ordering = ordering.nulls_last() if query.nulls_last else ordering.nulls_first()
        statement = statement.order_by(ordering)

        if query.limit is not None:
            statement = statement.limit(query.limit)

        with self.session() as session:
            return list(session.exec(statement).all())

    def update(
        self,
        model: type[RecordT],
        record_id: UUID,
        fields: dict[str, Any],
        owner_id: Optional[UUID] = None,
        expected: Optional[dict[str, Sequence[Any]]] = None,
    ) -> RecordT:
        check_update_fields(model, fields)
        if expected:
            return self._update_if(model, record_id, fields, owner_id, expected)

        with self.session() as session:
            record = session.get(model, record_id)
            if record is None or (owner_id is not None and record.user_id != owner_id):
                raise RecordNotFoundError(model, record_id)

            for name, value in fields.items():
                setattr(record, name, value)
            record.updated_at = utc_now()

            session.add(record)
            session.commit()
            session.refresh(record)
            return record

    def _update_if(
        self,
        model: type[RecordT],
        record_id: UUID,
        fields: dict[str, Any],
        owner_id: Optional[UUID],
        expected: dict[str, Sequence[Any]],
    ) -> RecordT:
        """Single UPDATE ... WHERE so the guard and the write cannot interleave."""
        statement = sa_update(model).where(model.id == record_id)
        if owner_id is not None:
            statement = statement.where(model.user_id == owner_id)
        for column, allowed in expected.items():
            statement = statement.where(_allowed_values(getattr(model, column), allowed))
        statement = statement.values({**fields, "updated_at": utc_now()})

        with self.engine.begin() as connection:
            rowcount = connection.execute(statement).rowcount

        record = self.get(model, record_id)
        if record is None or (owner_id is not None and record.user_id != owner_id):
            raise RecordNotFoundError(model, record_id)
        if rowcount == 0:
            raise StaleRecordError(model, record_id, expected)
        return record

    def delete(self, model: type[RecordT], record_id: UUID, owner_id: UUID) -> bool:
        with self.session() as session:
            record = session.get(model, record_id)
            if record is None or record.user_id != owner_id:
                return False
            session.delete(record)
            session.commit()
            return True

    def ping(self) -> bool:
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("record_store_unreachable", error=str(e))
            return False


def _allowed_values(column, allowed: Sequence[Any]):
    # IN never matches NULL
    values = [value for value in allowed if value is not None]
    clause = column.in_(values)
    if len(values) < len(allowed):
        clause = or_(column.is_(None), clause)
    return clause
