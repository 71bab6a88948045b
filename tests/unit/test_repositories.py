"""Unit tests for the voice profile and generation repositories.

These run against both record store backends via the store fixture.
"""

import pytest
from uuid import uuid4

from pydantic import ValidationError

from newsletter.content.repository import VoiceProfileRepository
from newsletter.db.models import VoiceProfileCreate, VoiceProfileUpdate
from newsletter.models import ContentSource, GenerationRequest, GenerationStatus, VoiceProfileStatus
from newsletter.store import RecordNotFoundError
from tests.conftest import article_request


def _create(profiles, user_id, name="Weekly voice", **fields):
    return profiles.create(user_id, VoiceProfileCreate(profile_name=name, **fields))


# =============================================================================
# VoiceProfileRepository Tests
# =============================================================================

class TestVoiceProfileCreate:
    def test_create_initializes_counters_and_analysis(self, profiles, user_id):
        profile = _create(profiles, user_id, tone=["bold", "witty"])

        assert profile.user_id == user_id
        assert profile.status == VoiceProfileStatus.DRAFT.value
        assert profile.total_generations == 0
        assert profile.avg_sentence_length is None
        assert profile.voice_prompt is None
        assert profile.system_prompt is None
        assert profile.approved_at is None
        assert profile.last_used_at is None
        assert profile.tone == ["bold", "witty"]

    def test_initial_status_is_injected(self, store, user_id):
        profiles = VoiceProfileRepository(store, initial_status=VoiceProfileStatus.READY)

        profile = _create(profiles, user_id)
        assert profile.status == VoiceProfileStatus.READY.value

    def test_samples_are_stored_as_plain_dicts(self, profiles, user_id):
        profile = _create(
            profiles,
            user_id,
            samples=[{"text": "Hello", "source": "blog", "url": "https://example.com"}],
        )

        stored = profiles.get(profile.id)
        assert stored.samples == [
            {"text": "Hello", "source": "blog", "url": "https://example.com"}
        ]

    def test_too_many_tones_rejected(self):
        with pytest.raises(ValidationError):
            VoiceProfileCreate(
                profile_name="Too much",
                tone=["bold", "direct", "warm", "witty", "casual", "personal"],
            )

    def test_unknown_tone_rejected(self):
        with pytest.raises(ValidationError):
            VoiceProfileCreate(profile_name="Odd", tone=["grumpy"])

    def test_formality_bounds(self):
        with pytest.raises(ValidationError):
            VoiceProfileCreate(profile_name="Stiff", formality=6)

    def test_profile_name_required(self):
        with pytest.raises(ValidationError):
            VoiceProfileCreate(profile_name="")


class TestVoiceProfileReads:
    def test_get_missing_returns_none(self, profiles):
        assert profiles.get(uuid4()) is None

    def test_get_owned_hides_other_users(self, profiles, user_id, other_user_id):
        profile = _create(profiles, user_id)

        assert profiles.get_owned(profile.id, user_id) is not None
        assert profiles.get_owned(profile.id, other_user_id) is None

    def test_list_by_owner_newest_first(self, profiles, user_id, other_user_id):
        first = _create(profiles, user_id, name="first")
        second = _create(profiles, user_id, name="second")
        _create(profiles, other_user_id, name="not mine")

        assert [p.id for p in profiles.list_by_owner(user_id)] == [second.id, first.id]

    def test_list_ready_filters_and_orders(self, profiles, user_id):
        draft = _create(profiles, user_id, name="draft")
        ready_unused = profiles.update_status(
            _create(profiles, user_id, name="ready unused").id, VoiceProfileStatus.READY
        )
        approved = profiles.update_status(
            _create(profiles, user_id, name="approved").id, VoiceProfileStatus.APPROVED
        )
        ready_used = profiles.update_status(
            _create(profiles, user_id, name="ready used").id, VoiceProfileStatus.READY
        )
        profiles.record_usage(approved.id)
        profiles.record_usage(ready_used.id)

        ids = [p.id for p in profiles.list_ready(user_id)]

        assert draft.id not in ids
        # Most recently used first, never-used last
        assert ids == [ready_used.id, approved.id, ready_unused.id]


class TestVoiceProfileUpdates:
    def test_update_content_merges(self, profiles, user_id):
        profile = _create(profiles, user_id, tone=["bold"], formality=2)

        updated = profiles.update_content(
            profile.id, user_id, VoiceProfileUpdate(formality=4, uses_humor=True)
        )

        assert updated.formality == 4
        assert updated.uses_humor is True
        assert updated.tone == ["bold"]
        assert updated.updated_at is not None

    def test_explicit_null_clears_nullable_field(self, profiles, user_id):
        profile = _create(profiles, user_id, newsletter_name="Weekly Bytes", sentence_style="short")

        updated = profiles.update_content(
            profile.id,
            user_id,
            VoiceProfileUpdate.model_validate({"newsletter_name": None, "sentence_style": None}),
        )

        assert updated.newsletter_name is None
        assert updated.sentence_style is None
        assert updated.profile_name == "Weekly voice"

    def test_unset_fields_are_left_alone(self, profiles, user_id):
        profile = _create(profiles, user_id, newsletter_name="Weekly Bytes")

        updated = profiles.update_content(profile.id, user_id, VoiceProfileUpdate(formality=5))

        assert updated.newsletter_name == "Weekly Bytes"

    def test_null_for_required_field_rejected(self):
        with pytest.raises(ValidationError, match="profile_name"):
            VoiceProfileUpdate.model_validate({"profile_name": None})

    def test_update_content_foreign_owner(self, profiles, user_id, other_user_id):
        profile = _create(profiles, user_id)

        with pytest.raises(RecordNotFoundError):
            profiles.update_content(profile.id, other_user_id, VoiceProfileUpdate(formality=1))

    def test_approved_stamps_approved_at(self, profiles, user_id):
        profile = _create(profiles, user_id)
        profiles.update_status(profile.id, VoiceProfileStatus.READY)

        approved = profiles.update_status(profile.id, VoiceProfileStatus.APPROVED)

        assert approved.status == VoiceProfileStatus.APPROVED.value
        assert approved.approved_at is not None

    def test_other_statuses_do_not_stamp_approved_at(self, profiles, user_id):
        profile = _create(profiles, user_id)

        ready = profiles.update_status(profile.id, VoiceProfileStatus.READY)
        assert ready.approved_at is None

    def test_approved_at_not_cleared(self, profiles, user_id):
        profile = _create(profiles, user_id)
        approved = profiles.update_status(profile.id, VoiceProfileStatus.APPROVED)

        regressed = profiles.update_status(profile.id, VoiceProfileStatus.DRAFT)

        assert regressed.status == VoiceProfileStatus.DRAFT.value
        assert regressed.approved_at == approved.approved_at

    def test_update_status_missing(self, profiles):
        with pytest.raises(RecordNotFoundError):
            profiles.update_status(uuid4(), VoiceProfileStatus.READY)

    def test_update_status_owner_scoped(self, profiles, user_id, other_user_id):
        profile = _create(profiles, user_id)

        with pytest.raises(RecordNotFoundError):
            profiles.update_status(profile.id, VoiceProfileStatus.READY, user_id=other_user_id)

    def test_record_usage(self, profiles, user_id):
        profile = _create(profiles, user_id)

        profiles.record_usage(profile.id)
        used = profiles.record_usage(profile.id)

        assert used.total_generations == 2
        assert used.last_used_at is not None


class TestVoiceProfileDelete:
    def test_delete_owned(self, profiles, user_id):
        profile = _create(profiles, user_id)

        assert profiles.delete(profile.id, user_id) is True
        assert profiles.get(profile.id) is None

    def test_delete_foreign_owner(self, profiles, user_id, other_user_id):
        profile = _create(profiles, user_id)

        assert profiles.delete(profile.id, other_user_id) is False
        assert profiles.get(profile.id) is not None

    def test_delete_keeps_generations(self, profiles, generations, user_id):
        profile = _create(profiles, user_id)
        generation = generations.create_pending(user_id, article_request(profile.id))

        profiles.delete(profile.id, user_id)

        kept = generations.get(generation.id)
        assert kept is not None
        assert kept.profile_id is None


# =============================================================================
# GenerationRepository Tests
# =============================================================================

class TestGenerationRepository:
    def test_create_pending_snapshots_input(self, generations, user_id):
        profile_id = uuid4()
        request = GenerationRequest(
            profile_id=profile_id,
            newsletter_name="Weekly Bytes",
            content_source=ContentSource.TWITTER,
            twitter_username="beehiiv",
            campaign="spring",
        )

        generation = generations.create_pending(user_id, request)

        assert generation.status == GenerationStatus.PENDING.value
        assert generation.content_type == "Twitter"
        assert generation.content_source == "beehiiv"
        assert generation.n8n_execution_id is None
        assert generation.input_data == {
            "profile_id": str(profile_id),
            "newsletter_name": "Weekly Bytes",
            "content_source": "Twitter",
            "twitter_username": "beehiiv",
            "campaign": "spring",
        }

    def test_list_by_owner_limit_and_status(self, generations, user_id, other_user_id):
        created = [generations.create_pending(user_id, article_request(uuid4())) for _ in range(3)]
        generations.create_pending(other_user_id, article_request(uuid4()))
        generations.update(created[0].id, {"status": GenerationStatus.FAILED.value})

        assert len(generations.list_by_owner(user_id)) == 3
        assert len(generations.list_by_owner(user_id, limit=2)) == 2
        failed = generations.list_by_owner(user_id, status=GenerationStatus.FAILED)
        assert [g.id for g in failed] == [created[0].id]

    def test_owner_scoped_delete(self, generations, user_id, other_user_id):
        generation = generations.create_pending(user_id, article_request(uuid4()))

        assert generations.delete(generation.id, other_user_id) is False
        assert generations.delete(generation.id, user_id) is True
        assert generations.get(generation.id) is None
