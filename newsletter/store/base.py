"""Record store contract shared by the durable and in-memory backends.

Records are SQLModel table instances (VoiceProfile, Generation); the record
kind is the model class. Every record carries a user_id owner column.

Owner scoping:
- list() only returns records owned by the given user
- update() and delete() verify ownership when an owner is given; a record
  owned by someone else is reported exactly like a missing one
- update() can be made conditional on the current column values; the check
  and the write happen as one atomic step
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, TypeVar
from uuid import UUID

from sqlmodel import SQLModel

RecordT = TypeVar("RecordT", bound=SQLModel)

# Columns callers may never overwrite through update()
IMMUTABLE_FIELDS = frozenset({"id", "user_id", "created_at"})


class RecordStoreError(Exception):
    """Base exception for record store errors."""

    pass


class RecordNotFoundError(RecordStoreError):
    """Raised when a record is missing or not owned by the caller."""

    def __init__(self, model: type, record_id: UUID):
        self.model = model
        self.record_id = record_id
        super().__init__(f"{model.__name__} {record_id} not found")


class StaleRecordError(RecordStoreError):
    """Raised when a conditional update finds the record changed underneath it."""

    def __init__(self, model: type, record_id: UUID, expected: dict[str, Any]):
        self.model = model
        self.record_id = record_id
        self.expected = expected
        super().__init__(f"{model.__name__} {record_id} no longer matches {expected}")


@dataclass
class RecordQuery:
    """Filter and ordering for list().

    Attributes:
        statuses: Only return records whose status is one of these
        where: Exact-match column filters
        order_by: Column to order by
        descending: Sort direction
        nulls_last: Place NULL order values last regardless of direction
        limit: Maximum number of records
    """

    statuses: Optional[Sequence[str]] = None
    where: dict[str, Any] = field(default_factory=dict)
    order_by: str = "created_at"
    descending: bool = True
    nulls_last: bool = True
    limit: Optional[int] = None


class RecordStore(ABC):
    """Keyed storage for owner-scoped records."""

    #: Short backend name for health reporting ("sql" or "memory")
    backend: str = "abstract"

    @abstractmethod
    def put(self, record: RecordT) -> RecordT:
        """Insert a new record and return the stored copy."""

    @abstractmethod
    def get(self, model: type[RecordT], record_id: UUID) -> Optional[RecordT]:
        """Return the record or None when it does not exist."""

    @abstractmethod
    def list(
        self,
        model: type[RecordT],
        owner_id: UUID,
        query: Optional[RecordQuery] = None,
    ) -> list[RecordT]:
        """Return the owner's records, filtered and ordered by query."""

    @abstractmethod
    def update(
        self,
        model: type[RecordT],
        record_id: UUID,
        fields: dict[str, Any],
        owner_id: Optional[UUID] = None,
        expected: Optional[dict[str, Sequence[Any]]] = None,
    ) -> RecordT:
        """Merge fields into the record and refresh updated_at.

        expected maps column names to the values each may currently hold;
        the write only happens when every column matches.

        Raises:
            RecordNotFoundError: Record missing or owned by someone else
            StaleRecordError: A column no longer holds an expected value
        """

    @abstractmethod
    def delete(self, model: type[RecordT], record_id: UUID, owner_id: UUID) -> bool:
        """Delete an owned record. Returns False when missing or not owned."""

    def ping(self) -> bool:
        """Return True when the backend is reachable."""
        return True


def check_update_fields(model: type, fields: dict[str, Any]) -> None:
    """Reject writes to immutable or unknown columns."""
    forbidden = IMMUTABLE_FIELDS.intersection(fields)
    if forbidden:
        raise ValueError(f"Cannot update immutable field(s): {', '.join(sorted(forbidden))}")
    unknown = [name for name in fields if name not in model.model_fields]
    if unknown:
        raise ValueError(f"Unknown field(s) for {model.__name__}: {', '.join(sorted(unknown))}")


def matches_expected(values: dict[str, Any], expected: Optional[dict[str, Sequence[Any]]]) -> bool:
    """True when every expected column currently holds one of its allowed values."""
    if not expected:
        return True
    return all(values.get(column) in allowed for column, allowed in expected.items())
