"""Shared columns for the record tables.

Every record is addressed by a random UUID and carries timezone-aware
created_at/updated_at stamps; list ordering relies on created_at.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from newsletter.models import utc_now


class UUIDModel(SQLModel):
    """Random UUID primary key, assigned on construction."""

    id: UUID = Field(default_factory=uuid4, primary_key=True, nullable=False)


class TimestampMixin(SQLModel):
    """created_at is set once; updated_at is refreshed by every store update."""

    created_at: datetime = Field(
        default_factory=utc_now,
        nullable=False,
        index=True,
        sa_type=DateTime(timezone=True),
    )
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
