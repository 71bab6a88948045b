"""Exceptions raised by the generation lifecycle."""

from typing import Optional
from uuid import UUID


class GenerationError(Exception):
    """Base exception for generation errors."""

    pass


class GenerationValidationError(GenerationError):
    """Raised when a generation request is incomplete or malformed.

    Carries every problem found so they can be shown at once.
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class DispatchError(GenerationError):
    """Raised when the external workflow could not accept a request.

    reason is one of:
        timeout: no response within the dispatch timeout
        network: connection-level failure
        rejected: non-2xx response (status_code and body kept verbatim)
        malformed_response: 2xx response that failed reply validation
    """

    TIMEOUT = "timeout"
    NETWORK = "network"
    REJECTED = "rejected"
    MALFORMED_RESPONSE = "malformed_response"

    def __init__(
        self,
        reason: str,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.reason = reason
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class GenerationNotFoundError(GenerationError):
    """Raised when a generation is missing or owned by someone else."""

    def __init__(self, generation_id: UUID):
        self.generation_id = generation_id
        super().__init__(f"Generation {generation_id} not found")


class VoiceProfileNotFoundError(GenerationError):
    """Raised when the requested voice profile is missing or not owned."""

    def __init__(self, profile_id: Optional[UUID]):
        self.profile_id = profile_id
        super().__init__("Voice profile not found")


class GenerationConflictError(GenerationError):
    """Raised when a terminal write contradicts the stored terminal status."""

    def __init__(self, generation_id: UUID, stored_status: str, incoming_status: str):
        self.generation_id = generation_id
        self.stored_status = stored_status
        self.incoming_status = incoming_status
        super().__init__(
            f"Generation {generation_id} is already {stored_status}; "
            f"ignoring {incoming_status}"
        )


class PollTimeoutError(GenerationError):
    """Raised when polling gives up while the generation is still running.

    This does not mean the generation failed; it keeps moving toward its
    terminal state whether or not anyone is watching.
    """

    def __init__(self, generation_id: UUID, attempts: int, last_status: Optional[str]):
        self.generation_id = generation_id
        self.attempts = attempts
        self.last_status = last_status
        super().__init__(
            f"Generation {generation_id} still {last_status} after {attempts} checks; "
            "stopped watching"
        )
