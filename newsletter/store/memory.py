"""Volatile record store used when no durable store is configured.

Records are kept as validated snapshots; every read returns a fresh copy so
callers can never mutate stored state by holding on to a returned object.
"""

import copy
import itertools
import threading
from typing import Any, Optional, Sequence
from uuid import UUID

from newsletter.models import utc_now
from newsletter.store.base import (
    RecordNotFoundError,
    RecordQuery,
    RecordStore,
    RecordT,
    StaleRecordError,
    check_update_fields,
    matches_expected,
)


class InMemoryRecordStore(RecordStore):
    """Dict-backed store honoring the same contract as SQLRecordStore."""

    backend = "memory"

    def __init__(self):
        self._tables: dict[type, dict[UUID, tuple[int, dict[str, Any]]]] = {}
        self._sequence = itertools.count()
        self._lock = threading.RLock()

    def _table(self, model: type) -> dict[UUID, tuple[int, dict[str, Any]]]:
        return self._tables.setdefault(model, {})

    @staticmethod
    def _snapshot(record) -> dict[str, Any]:
        return copy.deepcopy(record.model_dump())

    @staticmethod
    def _restore(model: type[RecordT], snapshot: dict[str, Any]) -> RecordT:
        return model.model_validate(copy.deepcopy(snapshot))

    def put(self, record: RecordT) -> RecordT:
        model = type(record)
        with self._lock:
            table = self._table(model)
            if record.id in table:
                raise ValueError(f"{model.__name__} {record.id} already exists")
            table[record.id] = (next(self._sequence), self._snapshot(record))
            return self._restore(model, table[record.id][1])

    def get(self, model: type[RecordT], record_id: UUID) -> Optional[RecordT]:
        with self._lock:
            entry = self._table(model).get(record_id)
            if entry is None:
                return None
            return self._restore(model, entry[1])

    def list(
        self,
        model: type[RecordT],
        owner_id: UUID,
        query: Optional[RecordQuery] = None,
    ) -> list[RecordT]:
        query = query or RecordQuery()
        with self._lock:
            rows = [
                (sequence, snapshot)
                for sequence, snapshot in self._table(model).values()
                if snapshot["user_id"] == owner_id
            ]

        if query.statuses is not None:
            allowed = set(query.statuses)
            rows = [row for row in rows if row[1].get("status") in allowed]
        for column, value in query.where.items():
            rows = [row for row in rows if row[1].get(column) == value]

        # Insertion order breaks ties so equal timestamps stay deterministic
        present = [row for row in rows if row[1].get(query.order_by) is not None]
        missing = [row for row in rows if row[1].get(query.order_by) is None]
        present.sort(
            key=lambda row: (row[1][query.order_by], row[0]),
            reverse=query.descending,
        )
        missing.sort(key=lambda row: row[0], reverse=query.descending)
        ordered = present + missing if query.nulls_last else missing + present

        if query.limit is not None:
            ordered = ordered[: query.limit]
        return [self._restore(model, snapshot) for _, snapshot in ordered]

    def update(
        self,
        model: type[RecordT],
        record_id: UUID,
        fields: dict[str, Any],
        owner_id: Optional[UUID] = None,
        expected: Optional[dict[str, Sequence[Any]]] = None,
    ) -> RecordT:
        check_update_fields(model, fields)
        with self._lock:
            table = self._table(model)
            entry = table.get(record_id)
            if entry is None or (owner_id is not None and entry[1]["user_id"] != owner_id):
                raise RecordNotFoundError(model, record_id)

            sequence, snapshot = entry
            if not matches_expected(snapshot, expected):
                raise StaleRecordError(model, record_id, expected)
            merged = {**snapshot, **copy.deepcopy(fields), "updated_at": utc_now()}
            # Validate before committing so a bad write leaves the record intact
            record = model.model_validate(merged)
            table[record_id] = (sequence, self._snapshot(record))
            return self._restore(model, table[record_id][1])

    def delete(self, model: type[RecordT], record_id: UUID, owner_id: UUID) -> bool:
        with self._lock:
            table = self._table(model)
            entry = table.get(record_id)
            if entry is None or entry[1]["user_id"] != owner_id:
                return False
            del table[record_id]
            return True

    def clear(self) -> None:
        """Drop every record (tests and demo resets)."""
        with self._lock:
            self._tables.clear()
