"""Generation lifecycle: validation, dispatch, orchestration and polling."""

from newsletter.generation.dispatch import (
    N8nDispatchClient,
    WorkflowClient,
    build_dispatch_payload,
    validate_generation_request,
)
from newsletter.generation.errors import (
    DispatchError,
    GenerationConflictError,
    GenerationError,
    GenerationNotFoundError,
    GenerationValidationError,
    PollTimeoutError,
    VoiceProfileNotFoundError,
)
from newsletter.generation.orchestrator import GenerationOrchestrator, GenerationOutcome
from newsletter.generation.polling import (
    GenerationWatcher,
    poll_until_terminal,
    watch_until_terminal,
)
from newsletter.generation.simulation import SimulatedWorkflowClient

__all__ = [
    "DispatchError",
    "GenerationConflictError",
    "GenerationError",
    "GenerationNotFoundError",
    "GenerationOrchestrator",
    "GenerationOutcome",
    "GenerationValidationError",
    "GenerationWatcher",
    "N8nDispatchClient",
    "PollTimeoutError",
    "SimulatedWorkflowClient",
    "VoiceProfileNotFoundError",
    "WorkflowClient",
    "build_dispatch_payload",
    "poll_until_terminal",
    "validate_generation_request",
    "watch_until_terminal",
]
