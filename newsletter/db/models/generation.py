"""Generation model: one request for five newsletters and its outcome."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import DateTime, Text
from sqlmodel import Field, SQLModel

from newsletter.db.custom_types import JsonOrJsonb
from newsletter.db.models.base import UUIDModel, TimestampMixin
from newsletter.models import GenerationStatus


class Generation(UUIDModel, TimestampMixin, table=True):
    """Generation table.

    profile_id is a weak reference: deleting the profile nulls it here and
    never deletes the generation.
    """

    __tablename__ = "generations"

    user_id: UUID = Field(index=True)
    profile_id: Optional[UUID] = Field(default=None, index=True)

    # Input snapshot
    content_type: Optional[str] = None
    content_source: str = Field(default="")
    input_data: Optional[dict[str, Any]] = Field(default=None, sa_type=JsonOrJsonb())

    # Processing
    status: str = Field(default=GenerationStatus.PENDING.value, index=True)
    n8n_execution_id: Optional[str] = None
    error_message: Optional[str] = Field(default=None, sa_type=Text)

    # Output (populated together on completion)
    newsletters: Optional[list[dict[str, Any]]] = Field(default=None, sa_type=JsonOrJsonb())
    google_drive_folder: Optional[str] = None
    google_drive_files: Optional[list[dict[str, Any]]] = Field(
        default=None, sa_type=JsonOrJsonb()
    )

    # Metrics
    execution_time_seconds: Optional[int] = None
    api_cost: Optional[float] = None
    word_count_total: Optional[int] = None

    started_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    completed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    @property
    def is_terminal(self) -> bool:
        return GenerationStatus(self.status).is_terminal


class GenerationRead(SQLModel):
    """Schema for reading generation data."""

    id: UUID
    user_id: UUID
    profile_id: Optional[UUID]
    content_type: Optional[str]
    content_source: str
    input_data: Optional[dict[str, Any]]
    status: str
    n8n_execution_id: Optional[str]
    error_message: Optional[str]
    newsletters: Optional[list[dict[str, Any]]]
    google_drive_folder: Optional[str]
    google_drive_files: Optional[list[dict[str, Any]]]
    execution_time_seconds: Optional[int]
    api_cost: Optional[float]
    word_count_total: Optional[int]
    created_at: datetime
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    updated_at: Optional[datetime]
