"""Repository layer over the record store.

Each repository handles one record kind and knows nothing about which
backend is in use.

Usage:
    from newsletter.store import create_record_store
    from newsletter.content.repository import VoiceProfileRepository

    repo = VoiceProfileRepository(create_record_store(DATABASE_URL))
    profile = repo.create(user_id, VoiceProfileCreate(profile_name="Weekly"))
    ready = repo.list_ready(user_id)
"""

from typing import Any, Generic, Optional, Sequence, TypeVar
from uuid import UUID

from newsletter.db.models import (
    Generation,
    VoiceProfile,
    VoiceProfileCreate,
    VoiceProfileUpdate,
)
from newsletter.logging import get_logger
from newsletter.models import GenerationRequest, GenerationStatus, VoiceProfileStatus, utc_now
from newsletter.store import RecordNotFoundError, RecordQuery, RecordStore

logger = get_logger(__name__)

T = TypeVar("T")

# Intended order of voice profile statuses
_PROFILE_STATUS_ORDER = [
    VoiceProfileStatus.DRAFT,
    VoiceProfileStatus.ANALYZING,
    VoiceProfileStatus.READY,
    VoiceProfileStatus.APPROVED,
]


# =============================================================================
# Base Repository
# =============================================================================

class BaseRepository(Generic[T]):
    """Base repository with common owner-scoped operations."""

    model: type[T]

    def __init__(self, store: RecordStore):
        self.store = store

    def get(self, id: UUID) -> Optional[T]:
        """Get a record by ID. Returns None when absent."""
        return self.store.get(self.model, id)

    def get_owned(self, id: UUID, user_id: UUID) -> Optional[T]:
        """Get a record by ID only if it belongs to user_id."""
        record = self.store.get(self.model, id)
        if record is None or record.user_id != user_id:
            return None
        return record

    def update(
        self,
        id: UUID,
        fields: dict[str, Any],
        user_id: Optional[UUID] = None,
        expected: Optional[dict[str, Sequence[Any]]] = None,
    ) -> T:
        """Partial update; refreshes updated_at.

        With expected, the write only lands while those columns still hold
        one of the listed values; otherwise StaleRecordError is raised.
        """
        return self.store.update(self.model, id, fields, owner_id=user_id, expected=expected)

    def delete(self, id: UUID, user_id: UUID) -> bool:
        """Delete a record owned by user_id. Returns True if deleted."""
        return self.store.delete(self.model, id, user_id)


# =============================================================================
# VoiceProfile Repository
# =============================================================================

class VoiceProfileRepository(BaseRepository[VoiceProfile]):
    """Repository for VoiceProfile operations."""

    model = VoiceProfile

    def __init__(
        self,
        store: RecordStore,
        initial_status: VoiceProfileStatus = VoiceProfileStatus.DRAFT,
    ):
        super().__init__(store)
        self.initial_status = initial_status

    def create(self, user_id: UUID, data: VoiceProfileCreate) -> VoiceProfile:
        """Create a profile with zeroed counters and empty analysis fields."""
        profile = VoiceProfile(
            user_id=user_id,
            **data.model_dump(mode="json"),
            status=self.initial_status.value,
            total_generations=0,
            avg_sentence_length=None,
            voice_prompt=None,
            system_prompt=None,
            average_rating=None,
            approved_at=None,
            last_used_at=None,
        )
        profile = self.store.put(profile)
        logger.info(
            "voice_profile_created",
            profile_id=str(profile.id),
            user_id=str(user_id),
            status=profile.status,
        )
        return profile

    def list_by_owner(self, user_id: UUID) -> list[VoiceProfile]:
        """List all profiles for a user, newest first."""
        return self.store.list(self.model, user_id, RecordQuery(order_by="created_at"))

    def list_ready(self, user_id: UUID) -> list[VoiceProfile]:
        """List profiles usable for generation, most recently used first."""
        return self.store.list(
            self.model,
            user_id,
            RecordQuery(
                statuses=[VoiceProfileStatus.READY.value, VoiceProfileStatus.APPROVED.value],
                order_by="last_used_at",
                descending=True,
                nulls_last=True,
            ),
        )

    def update_content(
        self, id: UUID, user_id: UUID, data: VoiceProfileUpdate
    ) -> VoiceProfile:
        """Merge the set content fields into the profile."""
        fields = data.model_dump(mode="json", exclude_unset=True)
        return self.update(id, fields, user_id=user_id)

    def update_status(
        self,
        id: UUID,
        status: VoiceProfileStatus,
        user_id: Optional[UUID] = None,
    ) -> VoiceProfile:
        """Set the status; stamps approved_at when entering approved.

        Any status may be written. Moving backwards is logged, not rejected.
        approved_at is never cleared.
        """
        current = self.get(id) if user_id is None else self.get_owned(id, user_id)
        if current is None:
            raise RecordNotFoundError(self.model, id)

        previous = VoiceProfileStatus(current.status)
        if _PROFILE_STATUS_ORDER.index(status) < _PROFILE_STATUS_ORDER.index(previous):
            logger.warning(
                "voice_profile_status_regression",
                profile_id=str(id),
                from_status=previous.value,
                to_status=status.value,
            )

        fields: dict[str, Any] = {"status": status.value}
        if status == VoiceProfileStatus.APPROVED:
            fields["approved_at"] = utc_now()
        return self.update(id, fields, user_id=user_id)

    def record_usage(self, id: UUID) -> VoiceProfile:
        """Stamp last_used_at and count one more generation."""
        profile = self.get(id)
        if profile is None:
            raise RecordNotFoundError(self.model, id)
        return self.update(
            id,
            {
                "last_used_at": utc_now(),
                "total_generations": (profile.total_generations or 0) + 1,
            },
        )

    def delete(self, id: UUID, user_id: UUID) -> bool:
        """Delete a profile; its generations survive with profile_id cleared."""
        deleted = self.store.delete(self.model, id, user_id)
        if deleted:
            detached = GenerationRepository(self.store).detach_profile(id, user_id)
            logger.info(
                "voice_profile_deleted",
                profile_id=str(id),
                detached_generations=detached,
            )
        return deleted


# =============================================================================
# Generation Repository
# =============================================================================

class GenerationRepository(BaseRepository[Generation]):
    """Repository for Generation operations."""

    model = Generation

    def create_pending(self, user_id: UUID, request: GenerationRequest) -> Generation:
        """Persist a new pending generation with its input snapshot."""
        generation = Generation(
            user_id=user_id,
            profile_id=request.profile_id,
            content_type=request.content_source.value if request.content_source else None,
            content_source=request.content_source_value(),
            input_data=request.snapshot(),
            status=GenerationStatus.PENDING.value,
        )
        return self.store.put(generation)

    def list_by_owner(
        self,
        user_id: UUID,
        limit: int = 20,
        status: Optional[GenerationStatus] = None,
    ) -> list[Generation]:
        """List a user's generations, newest first."""
        return self.store.list(
            self.model,
            user_id,
            RecordQuery(
                statuses=[status.value] if status else None,
                order_by="created_at",
                limit=limit,
            ),
        )

    def detach_profile(self, profile_id: UUID, user_id: UUID) -> int:
        """Clear profile_id on the user's generations that reference it."""
        generations = self.store.list(
            self.model, user_id, RecordQuery(where={"profile_id": profile_id})
        )
        for generation in generations:
            self.store.update(self.model, generation.id, {"profile_id": None})
        return len(generations)
