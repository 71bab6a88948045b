"""Voice profile routes.

All operations are scoped to the authenticated user; a profile owned by
someone else is reported exactly like a missing one.
"""

from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel

from api.auth.dependencies import CurrentUserDep
from api.exceptions import NotFoundError
from api.responses import COMMON_ERROR_RESPONSES
from api.routes.v1.dependencies import ProfileRepo
from newsletter.db.models import VoiceProfileCreate, VoiceProfileRead, VoiceProfileUpdate
from newsletter.models import VoiceProfileStatus

router = APIRouter(
    prefix="/v1/voice-profiles",
    tags=["voice-profiles"],
    responses=COMMON_ERROR_RESPONSES,
)

PROFILE_NOT_FOUND = "Voice profile not found"


class UpdateStatusRequest(BaseModel):
    """Request to move a profile to another status."""

    status: VoiceProfileStatus


@router.get("", response_model=list[VoiceProfileRead])
async def list_voice_profiles(current_user: CurrentUserDep, profiles: ProfileRepo):
    """List the user's voice profiles, newest first."""
    return profiles.list_by_owner(current_user.user_id)


@router.get("/ready", response_model=list[VoiceProfileRead])
async def list_ready_voice_profiles(current_user: CurrentUserDep, profiles: ProfileRepo):
    """Profiles usable for generation (ready or approved), most recently used first."""
    return profiles.list_ready(current_user.user_id)


@router.get("/{profile_id}", response_model=VoiceProfileRead)
async def get_voice_profile(profile_id: UUID, current_user: CurrentUserDep, profiles: ProfileRepo):
    profile = profiles.get_owned(profile_id, current_user.user_id)
    if profile is None:
        raise NotFoundError(PROFILE_NOT_FOUND)
    return profile


@router.post("", response_model=VoiceProfileRead, status_code=status.HTTP_201_CREATED)
async def create_voice_profile(
    request: VoiceProfileCreate,
    current_user: CurrentUserDep,
    profiles: ProfileRepo,
):
    """Create a voice profile from the wizard output."""
    return profiles.create(current_user.user_id, request)


@router.put("/{profile_id}", response_model=VoiceProfileRead)
async def update_voice_profile(
    profile_id: UUID,
    request: VoiceProfileUpdate,
    current_user: CurrentUserDep,
    profiles: ProfileRepo,
):
    """Partially update content fields. Status has its own endpoint."""
    return profiles.update_content(profile_id, current_user.user_id, request)


@router.patch("/{profile_id}/status", response_model=VoiceProfileRead)
async def update_voice_profile_status(
    profile_id: UUID,
    request: UpdateStatusRequest,
    current_user: CurrentUserDep,
    profiles: ProfileRepo,
):
    """Set the profile status; entering approved stamps approved_at."""
    return profiles.update_status(profile_id, request.status, user_id=current_user.user_id)


@router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_voice_profile(profile_id: UUID, current_user: CurrentUserDep, profiles: ProfileRepo):
    """Delete a profile. Generations that used it are kept."""
    if not profiles.delete(profile_id, current_user.user_id):
        raise NotFoundError(PROFILE_NOT_FOUND)
