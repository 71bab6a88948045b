"""Generation routes: start, list, read, delete and pre-flight validation."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import BaseModel

from api.auth.dependencies import CurrentUserDep
from api.responses import COMMON_ERROR_RESPONSES
from api.routes.v1.dependencies import Orchestrator
from newsletter.db.models import GenerationRead
from newsletter.generation.errors import DispatchError
from newsletter.models import GenerationRequest, GenerationStatus

router = APIRouter(
    prefix="/v1/generations",
    tags=["generations"],
    responses=COMMON_ERROR_RESPONSES,
)


# =============================================================================
# Request/Response Models
# =============================================================================


class StartGenerationResponse(BaseModel):
    """Result of starting a generation.

    The record is always created; when it failed before reaching the
    workflow, errors explains why.
    """

    generation: GenerationRead
    execution_id: Optional[str] = None
    errors: list[str] = []
    failure_reason: Optional[str] = None


class ValidateGenerationResponse(BaseModel):
    valid: bool
    errors: list[str]


# =============================================================================
# Generation Endpoints
# =============================================================================


@router.post("", response_model=StartGenerationResponse, status_code=status.HTTP_201_CREATED)
def start_generation(
    request: GenerationRequest,
    current_user: CurrentUserDep,
    orchestrator: Orchestrator,
):
    """Create a generation and dispatch it to the workflow.

    Each call creates a new generation; clients must not resubmit on
    accidental repeat clicks.
    """
    outcome = orchestrator.start_generation(current_user.user_id, request)

    failure_reason = None
    if isinstance(outcome.error, DispatchError):
        failure_reason = outcome.error.reason
    elif outcome.error is not None:
        failure_reason = type(outcome.error).__name__

    return StartGenerationResponse(
        generation=GenerationRead.model_validate(outcome.generation),
        execution_id=outcome.execution_id,
        errors=outcome.errors,
        failure_reason=failure_reason,
    )


@router.post("/validate", response_model=ValidateGenerationResponse)
async def validate_generation(
    request: GenerationRequest,
    current_user: CurrentUserDep,
    orchestrator: Orchestrator,
):
    """Check a request without creating anything."""
    errors = orchestrator.workflow.validate(request)
    return ValidateGenerationResponse(valid=not errors, errors=errors)


@router.get("", response_model=list[GenerationRead])
async def list_generations(
    current_user: CurrentUserDep,
    orchestrator: Orchestrator,
    limit: int = Query(default=20, ge=1, le=100),
    status_filter: Optional[GenerationStatus] = Query(default=None, alias="status"),
):
    """List the user's generations, newest first."""
    return orchestrator.list_generations(current_user.user_id, limit=limit, status=status_filter)


@router.get("/{generation_id}", response_model=GenerationRead)
async def get_generation(generation_id: UUID, current_user: CurrentUserDep, orchestrator: Orchestrator):
    return orchestrator.get_generation(generation_id, current_user.user_id)


@router.delete("/{generation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_generation(
    generation_id: UUID,
    current_user: CurrentUserDep,
    orchestrator: Orchestrator,
):
    """Delete a generation; ownership is re-verified server side."""
    orchestrator.delete_generation(current_user.user_id, generation_id)
