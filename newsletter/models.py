"""Pydantic models for the generation workflow wire formats.

These models describe the three exchanges with the external workflow:
- DispatchPayload: what we POST to start a generation
- DispatchReply: the synchronous acknowledgment
- CompletionCallback: the asynchronous completion notification

Article and export-file field names match the workflow byte for byte, since
they are persisted as-is on the generation record.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# Enumerations
# =============================================================================


class ContentSource(str, Enum):
    """Where the generation draws its material from."""

    TWITTER = "Twitter"
    YOUTUBE = "YouTube"
    ARTICLE = "Article"


class VoiceProfileStatus(str, Enum):
    DRAFT = "draft"
    ANALYZING = "analyzing"
    READY = "ready"
    APPROVED = "approved"


class GenerationStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationStatus.COMPLETED, GenerationStatus.FAILED)


class SentenceStyle(str, Enum):
    SHORT = "short"
    MIXED = "mixed"
    FLOWING = "flowing"


class VocabularyLevel(str, Enum):
    SIMPLE = "simple"
    PROFESSIONAL = "professional"
    ACADEMIC = "academic"


class ParagraphPattern(str, Enum):
    SHORT_MIXED = "short_mixed"
    LONG_FLOWING = "long_flowing"
    VARIED = "varied"


class WritingSampleSource(str, Enum):
    NEWSLETTER = "newsletter"
    BLOG = "blog"
    TWITTER = "twitter"
    EMAIL = "email"


TONE_OPTIONS = (
    "bold",
    "direct",
    "conversational",
    "contrarian",
    "personal",
    "mentor-like",
    "warm",
    "analytical",
    "inspiring",
    "witty",
    "professional",
    "casual",
)

MAX_TONES = 5
MAX_ARTICLES = 5

TERMINAL_STATUSES = (GenerationStatus.COMPLETED.value, GenerationStatus.FAILED.value)


def utc_now() -> datetime:
    """Timezone-aware current time used for every stored timestamp."""
    return datetime.now(timezone.utc)


# =============================================================================
# Voice profile content
# =============================================================================


class WritingSample(BaseModel):
    """A writing sample carried through to the workflow untouched."""

    text: str
    source: WritingSampleSource
    url: Optional[str] = None


# =============================================================================
# Newsletter output
# =============================================================================


class NewsletterArticle(BaseModel):
    """One generated newsletter article.

    Older workflow versions send idea_number/markdown_content/content/
    newsletter_name/created_at; those names are accepted on input and
    normalized to the stored names.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    newsletter_number: int = Field(
        ge=1,
        le=MAX_ARTICLES,
        validation_alias=AliasChoices("newsletter_number", "idea_number"),
    )
    title: str
    subject_line: str = ""
    preview_text: str = ""
    content_markdown: str = Field(
        default="",
        validation_alias=AliasChoices("content_markdown", "markdown_content"),
    )
    content_html: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("content_html", "content"),
    )
    word_count: int = Field(default=0, ge=0)
    source_type: str = ""
    newsletter_type: str = Field(
        default="",
        validation_alias=AliasChoices("newsletter_type", "newsletter_name"),
    )
    google_drive_url: Optional[str] = None
    google_drive_file_id: Optional[str] = None
    generated_at: datetime = Field(
        default_factory=utc_now,
        validation_alias=AliasChoices("generated_at", "created_at"),
    )


class GoogleDriveFile(BaseModel):
    """Export file reference for one article."""

    newsletter_number: int = Field(ge=1, le=MAX_ARTICLES)
    file_id: str
    file_url: str


def check_article_ordinals(articles: list[NewsletterArticle]) -> list[NewsletterArticle]:
    """Ensure ordinals are unique and dense over [1, count]."""
    if len(articles) > MAX_ARTICLES:
        raise ValueError(f"at most {MAX_ARTICLES} newsletters are allowed")
    numbers = sorted(article.newsletter_number for article in articles)
    if numbers != list(range(1, len(articles) + 1)):
        raise ValueError("newsletter_number values must be unique and dense from 1")
    return articles


def total_word_count(articles: list[NewsletterArticle]) -> int:
    return sum(article.word_count or 0 for article in articles)


# =============================================================================
# Generation request (user input)
# =============================================================================


class DeliveryOptions(BaseModel):
    email: bool = False
    google_drive: bool = True
    slack: Optional[str] = None


class GenerationRequest(BaseModel):
    """A user's request to generate newsletters.

    Required fields are optional at the type level so that every problem
    can be reported at once by validate_generation_request().
    Unknown keys are kept; the request is stored verbatim as input_data.
    """

    model_config = ConfigDict(extra="allow")

    profile_id: Optional[UUID] = None
    newsletter_name: Optional[str] = None
    content_source: Optional[ContentSource] = None

    # Conditional on content_source
    twitter_username: Optional[str] = None
    youtube_url: Optional[str] = None
    article_content: Optional[str] = None

    custom_instructions: Optional[str] = None
    delivery_options: Optional[DeliveryOptions] = None

    def snapshot(self) -> dict[str, Any]:
        """Verbatim JSON-safe copy for audit/replay."""
        return self.model_dump(mode="json", exclude_unset=True)

    def content_source_value(self) -> str:
        """Display value for the content source."""
        if self.content_source == ContentSource.TWITTER:
            return self.twitter_username or ""
        if self.content_source == ContentSource.YOUTUBE:
            return self.youtube_url or ""
        if self.content_source == ContentSource.ARTICLE:
            return "article"
        return ""


# =============================================================================
# Dispatch exchange
# =============================================================================


class VoiceProfilePayload(BaseModel):
    """Style attributes the workflow needs to replicate a voice."""

    profile_name: str
    tone: list[str] = Field(default_factory=list)
    formality: int
    detail_level: int
    sentence_style: Optional[str] = None
    vocabulary_level: Optional[str] = None
    common_phrases: list[str] = Field(default_factory=list)
    avoid_phrases: list[str] = Field(default_factory=list)
    uses_questions: bool = False
    uses_data: bool = False
    uses_anecdotes: bool = False
    uses_metaphors: bool = False
    uses_humor: bool = False
    samples: list[dict[str, Any]] = Field(default_factory=list)


class DispatchPayload(BaseModel):
    """Outbound request that starts the workflow.

    twitter_username, youtube_url and article_content are always serialized;
    exactly one of them is non-null.
    """

    user_id: str
    profile_id: str
    generation_id: str
    newsletter_name: str
    content_source: ContentSource
    twitter_username: Optional[str]
    youtube_url: Optional[str]
    article_content: Optional[str]
    voice_profile: VoiceProfilePayload
    callback_url: str

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "DispatchPayload":
        populated = [
            value
            for value in (self.twitter_username, self.youtube_url, self.article_content)
            if value is not None
        ]
        if len(populated) != 1:
            raise ValueError("exactly one content source field must be populated")
        return self


class DispatchReply(BaseModel):
    """Synchronous acknowledgment returned by the workflow webhook."""

    model_config = ConfigDict(extra="ignore")

    execution_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    status: Literal["completed", "failed", "pending"]
    newsletters: list[NewsletterArticle] = Field(default_factory=list)
    google_drive_folder: Optional[str] = None
    google_drive_files: Optional[list[GoogleDriveFile]] = None
    execution_time_seconds: Optional[int] = None
    completed_at: Optional[str] = None

    @field_validator("newsletters")
    @classmethod
    def _ordinals(cls, value: list[NewsletterArticle]) -> list[NewsletterArticle]:
        return check_article_ordinals(value)

    @model_validator(mode="after")
    def _completed_has_articles(self) -> "DispatchReply":
        if self.status == "completed" and not self.newsletters:
            raise ValueError("completed reply must include newsletters")
        return self


# =============================================================================
# Completion callback
# =============================================================================


class CompletionCallback(BaseModel):
    """Asynchronous notification that a generation finished."""

    model_config = ConfigDict(extra="ignore")

    generation_id: UUID
    execution_id: Optional[str] = None
    user_id: Optional[str] = None
    status: Literal["completed", "failed"]
    newsletters: Optional[list[NewsletterArticle]] = None
    google_drive_folder: Optional[str] = None
    google_drive_files: Optional[list[GoogleDriveFile]] = None
    execution_time_seconds: Optional[int] = Field(default=None, ge=0)
    total_words: Optional[int] = Field(default=None, ge=0)
    api_cost: Optional[float] = Field(default=None, ge=0)
    completed_at: Optional[str] = None
    error_message: Optional[str] = None

    @field_validator("newsletters")
    @classmethod
    def _ordinals(
        cls, value: Optional[list[NewsletterArticle]]
    ) -> Optional[list[NewsletterArticle]]:
        if value is None:
            return value
        return check_article_ordinals(value)

    @model_validator(mode="after")
    def _completed_has_articles(self) -> "CompletionCallback":
        if self.status == "completed" and not self.newsletters:
            raise ValueError("completed callback must include newsletters")
        return self


class CallbackResult(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    CONFLICT = "conflict"
    UNKNOWN_GENERATION = "unknown_generation"
    MALFORMED = "malformed"


class CallbackAck(BaseModel):
    """Acknowledgment returned to the workflow for a completion callback."""

    result: CallbackResult
    generation_id: Optional[str] = None
    message: str

    @property
    def accepted(self) -> bool:
        return self.result != CallbackResult.MALFORMED
