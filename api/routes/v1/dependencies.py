"""Dependencies shared by the v1 routes.

The Services bundle is built once per app (see api.main.create_app) and
handed to route handlers through these dependencies.
"""

from typing import Annotated

from fastapi import Depends, Request

from newsletter.bootstrap import Services
from newsletter.content.repository import VoiceProfileRepository
from newsletter.generation.orchestrator import GenerationOrchestrator


def get_services(request: Request) -> Services:
    """Services attached to the running app."""
    return request.app.state.services


def get_profile_repository(
    services: Annotated[Services, Depends(get_services)],
) -> VoiceProfileRepository:
    return services.profiles


def get_orchestrator(
    services: Annotated[Services, Depends(get_services)],
) -> GenerationOrchestrator:
    return services.orchestrator


ServicesDep = Annotated[Services, Depends(get_services)]
ProfileRepo = Annotated[VoiceProfileRepository, Depends(get_profile_repository)]
Orchestrator = Annotated[GenerationOrchestrator, Depends(get_orchestrator)]
