"""Composition root: builds the services a process runs with.

The record store and the workflow client are selected here, once, from
configuration. Nothing below this layer checks which backend is in use.
"""

from dataclasses import dataclass
from typing import Optional

from newsletter import config
from newsletter.content.repository import GenerationRepository, VoiceProfileRepository
from newsletter.generation.dispatch import N8nDispatchClient, WorkflowClient
from newsletter.generation.orchestrator import GenerationOrchestrator
from newsletter.generation.simulation import SimulatedWorkflowClient
from newsletter.logging import get_logger
from newsletter.models import VoiceProfileStatus
from newsletter.store import RecordStore, create_record_store

logger = get_logger(__name__)


@dataclass
class Services:
    """Everything the API needs, wired together."""

    store: RecordStore
    profiles: VoiceProfileRepository
    generations: GenerationRepository
    workflow: WorkflowClient
    orchestrator: GenerationOrchestrator
    demo_mode: bool

    @property
    def simulated(self) -> bool:
        return isinstance(self.workflow, SimulatedWorkflowClient)


def build_services(
    database_url: Optional[str] = config.DATABASE_URL,
    webhook_url: Optional[str] = config.N8N_WEBHOOK_URL,
    callback_url: str = config.CALLBACK_URL,
    dispatch_timeout_seconds: float = config.DISPATCH_TIMEOUT_SECONDS,
    profile_initial_status: str = config.PROFILE_INITIAL_STATUS,
    store: Optional[RecordStore] = None,
    workflow: Optional[WorkflowClient] = None,
    create_tables: Optional[bool] = None,
) -> Services:
    """Build services from configuration.

    Args:
        database_url: Durable store URL; None selects the in-memory store
        webhook_url: n8n webhook URL; None selects the simulated workflow
        callback_url: Where the workflow reports completion
        dispatch_timeout_seconds: Bound on the dispatch exchange
        profile_initial_status: Status given to new voice profiles
        store: Pre-built store (overrides database_url)
        workflow: Pre-built workflow client (overrides webhook_url)
        create_tables: Create missing tables; defaults to True for SQLite
    """
    if store is None:
        if create_tables is None:
            create_tables = bool(database_url) and database_url.startswith("sqlite")
        store = create_record_store(database_url, create_tables=create_tables)

    if workflow is None:
        if webhook_url:
            workflow = N8nDispatchClient(webhook_url, timeout_seconds=dispatch_timeout_seconds)
        else:
            workflow = SimulatedWorkflowClient()

    profiles = VoiceProfileRepository(
        store, initial_status=VoiceProfileStatus(profile_initial_status)
    )
    generations = GenerationRepository(store)
    orchestrator = GenerationOrchestrator(
        generations, profiles, workflow, callback_url=callback_url
    )

    # The simulation reports back through the normal callback handler
    if isinstance(workflow, SimulatedWorkflowClient):
        workflow.bind(orchestrator.handle_completion_callback)

    services = Services(
        store=store,
        profiles=profiles,
        generations=generations,
        workflow=workflow,
        orchestrator=orchestrator,
        demo_mode=store.backend == "memory",
    )
    logger.info(
        "services_built",
        store=store.backend,
        workflow=type(workflow).__name__,
        demo_mode=services.demo_mode,
    )
    return services
