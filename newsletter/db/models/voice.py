"""Voice models: VoiceProfile and its create/update/read schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import field_validator, model_validator
from sqlalchemy import DateTime, Text
from sqlmodel import Field, SQLModel

from newsletter.db.custom_types import JsonOrJsonb, TextList
from newsletter.db.models.base import UUIDModel, TimestampMixin
from newsletter.models import (
    MAX_TONES,
    TONE_OPTIONS,
    ParagraphPattern,
    SentenceStyle,
    VocabularyLevel,
    VoiceProfileStatus,
    WritingSample,
)


def _check_tones(value: Optional[list[str]]) -> Optional[list[str]]:
    if value is None:
        return value
    if len(value) > MAX_TONES:
        raise ValueError(f"at most {MAX_TONES} tones may be selected")
    unknown = [tone for tone in value if tone not in TONE_OPTIONS]
    if unknown:
        raise ValueError(f"unknown tone(s): {', '.join(unknown)}")
    if len(set(value)) != len(value):
        raise ValueError("tones must not repeat")
    return value


_NULLABLE_CONTENT_FIELDS = frozenset(
    {"newsletter_name", "sentence_style", "vocabulary_level", "paragraph_pattern"}
)

# =============================================================================
# VoiceProfile
# =============================================================================

class VoiceProfileBase(SQLModel):
    """Scalar style fields shared by the table and its schemas."""

    profile_name: str = Field(min_length=1, max_length=100)
    newsletter_name: Optional[str] = None
    formality: int = Field(default=3, ge=1, le=5)
    detail_level: int = Field(default=3, ge=1, le=5)

    # Signature elements
    uses_questions: bool = False
    uses_data: bool = False
    uses_anecdotes: bool = False
    uses_metaphors: bool = False
    uses_humor: bool = False


class VoiceProfile(UUIDModel, VoiceProfileBase, TimestampMixin, table=True):
    """VoiceProfile table - style preferences that steer generated prose."""

    __tablename__ = "voice_profiles"

    user_id: UUID = Field(index=True)

    sentence_style: Optional[str] = None
    vocabulary_level: Optional[str] = None
    paragraph_pattern: Optional[str] = None

    # Ordered list values
    tone: list[str] = Field(default_factory=list, sa_type=JsonOrJsonb())
    common_phrases: list[str] = Field(default_factory=list, sa_type=TextList())
    avoid_phrases: list[str] = Field(default_factory=list, sa_type=TextList())
    samples: list[dict[str, Any]] = Field(default_factory=list, sa_type=JsonOrJsonb())

    # Analysis results (null until analysis runs)
    avg_sentence_length: Optional[float] = None
    voice_prompt: Optional[str] = Field(default=None, sa_type=Text)
    system_prompt: Optional[str] = Field(default=None, sa_type=Text)

    # Status and usage
    status: str = Field(default=VoiceProfileStatus.DRAFT.value, index=True)
    total_generations: int = Field(default=0)
    average_rating: Optional[float] = None
    approved_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    last_used_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


class VoiceProfileCreate(VoiceProfileBase):
    """Schema for creating a new voice profile (wizard output)."""

    tone: list[str] = Field(default_factory=list)
    sentence_style: Optional[SentenceStyle] = None
    vocabulary_level: Optional[VocabularyLevel] = None
    paragraph_pattern: Optional[ParagraphPattern] = None
    common_phrases: list[str] = Field(default_factory=list)
    avoid_phrases: list[str] = Field(default_factory=list)
    samples: list[WritingSample] = Field(default_factory=list)

    @field_validator("tone")
    @classmethod
    def _validate_tone(cls, value: list[str]) -> list[str]:
        return _check_tones(value)


class VoiceProfileUpdate(SQLModel):
    """Schema for a partial update of content fields.

    Status, counters and analysis fields are not editable here.
    """

    profile_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    newsletter_name: Optional[str] = None
    tone: Optional[list[str]] = None
    formality: Optional[int] = Field(default=None, ge=1, le=5)
    detail_level: Optional[int] = Field(default=None, ge=1, le=5)
    sentence_style: Optional[SentenceStyle] = None
    vocabulary_level: Optional[VocabularyLevel] = None
    paragraph_pattern: Optional[ParagraphPattern] = None
    common_phrases: Optional[list[str]] = None
    avoid_phrases: Optional[list[str]] = None
    uses_questions: Optional[bool] = None
    uses_data: Optional[bool] = None
    uses_anecdotes: Optional[bool] = None
    uses_metaphors: Optional[bool] = None
    uses_humor: Optional[bool] = None
    samples: Optional[list[WritingSample]] = None

    @field_validator("tone")
    @classmethod
    def _validate_tone(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        return _check_tones(value)

    @model_validator(mode="after")
    def _reject_null_required(self) -> "VoiceProfileUpdate":
        # Only the nullable columns can be cleared with an explicit null
        cleared = sorted(
            name
            for name in self.model_fields_set - _NULLABLE_CONTENT_FIELDS
            if getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"field(s) cannot be null: {', '.join(cleared)}")
        return self


class VoiceProfileRead(VoiceProfileBase):
    """Schema for reading voice profile data."""

    id: UUID
    user_id: UUID
    tone: list[str]
    sentence_style: Optional[str]
    vocabulary_level: Optional[str]
    paragraph_pattern: Optional[str]
    common_phrases: list[str]
    avoid_phrases: list[str]
    samples: list[dict[str, Any]]
    avg_sentence_length: Optional[float]
    voice_prompt: Optional[str]
    system_prompt: Optional[str]
    status: str
    total_generations: int
    average_rating: Optional[float]
    approved_at: Optional[datetime]
    last_used_at: Optional[datetime]
    created_at: datetime
    updated_at: Optional[datetime]
