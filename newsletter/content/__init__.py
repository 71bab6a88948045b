"""Repositories for voice profiles and generations."""

from newsletter.content.repository import (
    BaseRepository,
    GenerationRepository,
    VoiceProfileRepository,
)

__all__ = [
    "BaseRepository",
    "GenerationRepository",
    "VoiceProfileRepository",
]
