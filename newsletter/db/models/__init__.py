"""SQLModel table definitions.

Usage:
    from newsletter.db.models import VoiceProfile, Generation
"""

from newsletter.db.models.base import UUIDModel, TimestampMixin
from newsletter.db.models.voice import (
    VoiceProfile,
    VoiceProfileBase,
    VoiceProfileCreate,
    VoiceProfileRead,
    VoiceProfileUpdate,
)
from newsletter.db.models.generation import Generation, GenerationRead

__all__ = [
    # Base
    "UUIDModel",
    "TimestampMixin",
    # Voice
    "VoiceProfile",
    "VoiceProfileBase",
    "VoiceProfileCreate",
    "VoiceProfileRead",
    "VoiceProfileUpdate",
    # Generation
    "Generation",
    "GenerationRead",
]
