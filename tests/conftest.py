"""Shared fixtures and fakes for testing.

Environment variables are set before any project import so that the API
modules (which require JWT_SECRET) can be imported and the default
services run offline.
"""

import asyncio
import os

os.environ.setdefault("JWT_SECRET", "test-secret-for-unit-tests")
os.environ.pop("DATABASE_URL", None)
os.environ.pop("N8N_WEBHOOK_URL", None)
os.environ.pop("CALLBACK_SECRET", None)

from typing import Optional
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from newsletter.content.repository import GenerationRepository, VoiceProfileRepository
from newsletter.db.models import VoiceProfileCreate
from newsletter.generation.dispatch import validate_generation_request
from newsletter.generation.orchestrator import GenerationOrchestrator
from newsletter.models import (
    ContentSource,
    DispatchPayload,
    DispatchReply,
    GenerationRequest,
    NewsletterArticle,
    VoiceProfileStatus,
)
from newsletter.store import create_record_store

DEMO_WORD_COUNTS = [450, 380, 520, 410, 490]

ARTICLE_TEXT = "A long-form article about building an audience. " * 100


class FakeWorkflowClient:
    """WorkflowClient double that records every dispatch."""

    def __init__(
        self,
        reply_status: str = "pending",
        error: Optional[Exception] = None,
        newsletters: Optional[list[dict]] = None,
    ):
        self.reply_status = reply_status
        self.error = error
        self.newsletters = newsletters or []
        self.call_count = 0
        self.payloads: list[DispatchPayload] = []

    def validate(self, request: GenerationRequest) -> list[str]:
        return validate_generation_request(request)

    def dispatch(self, payload: DispatchPayload) -> DispatchReply:
        self.call_count += 1
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return DispatchReply(
            execution_id=f"exec-{self.call_count}",
            user_id=payload.user_id,
            status=self.reply_status,
            newsletters=self.newsletters,
        )


class ManualScheduler:
    """Scheduler double: collects callbacks until run_all() is called."""

    def __init__(self):
        self.pending: list[tuple[float, object]] = []

    def __call__(self, delay_seconds, callback):
        self.pending.append((delay_seconds, callback))

    def run_all(self) -> int:
        ran = 0
        while self.pending:
            _, callback = self.pending.pop(0)
            callback()
            ran += 1
        return ran


class SyncTestClient:
    """Synchronous wrapper around httpx AsyncClient for testing."""

    def __init__(self, app, headers: Optional[dict] = None):
        self.app = app
        self.transport = ASGITransport(app=app)
        self.base_url = "http://testserver"
        self.headers = headers or {}

    def _run_async(self, coro):
        """Run async coroutine synchronously."""
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()

    async def _request(self, method: str, url: str, **kwargs):
        headers = {**self.headers, **kwargs.pop("headers", {})}
        async with AsyncClient(transport=self.transport, base_url=self.base_url) as client:
            return await client.request(method, url, headers=headers, **kwargs)

    def get(self, url: str, **kwargs):
        return self._run_async(self._request("GET", url, **kwargs))

    def post(self, url: str, **kwargs):
        return self._run_async(self._request("POST", url, **kwargs))

    def put(self, url: str, **kwargs):
        return self._run_async(self._request("PUT", url, **kwargs))

    def patch(self, url: str, **kwargs):
        return self._run_async(self._request("PATCH", url, **kwargs))

    def delete(self, url: str, **kwargs):
        return self._run_async(self._request("DELETE", url, **kwargs))


def make_articles(word_counts=DEMO_WORD_COUNTS) -> list[NewsletterArticle]:
    return [
        NewsletterArticle(
            newsletter_number=number,
            title=f"Newsletter {number}",
            subject_line=f"Subject {number}",
            preview_text=f"Preview {number}",
            content_markdown=f"# Newsletter {number}",
            word_count=words,
            source_type="Article",
            newsletter_type="Weekly Bytes",
        )
        for number, words in enumerate(word_counts, start=1)
    ]


def article_request(profile_id, **overrides) -> GenerationRequest:
    data = {
        "profile_id": profile_id,
        "newsletter_name": "Weekly Bytes",
        "content_source": ContentSource.ARTICLE,
        "article_content": ARTICLE_TEXT,
    }
    data.update(overrides)
    return GenerationRequest(**data)


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Both record store backends; the durable one runs on in-memory SQLite."""
    if request.param == "memory":
        return create_record_store(None)
    return create_record_store("sqlite://", create_tables=True)


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def other_user_id():
    return uuid4()


@pytest.fixture
def profiles(store):
    return VoiceProfileRepository(store)


@pytest.fixture
def generations(store):
    return GenerationRepository(store)


@pytest.fixture
def ready_profile(profiles, user_id):
    """A profile that is usable for generation."""
    profile = profiles.create(
        user_id,
        VoiceProfileCreate(
            profile_name="Founder voice",
            newsletter_name="Weekly Bytes",
            tone=["direct", "warm"],
            formality=2,
            detail_level=4,
            common_phrases=["Here's the thing"],
            uses_questions=True,
            samples=[{"text": "Short and punchy.", "source": "newsletter"}],
        ),
    )
    return profiles.update_status(profile.id, VoiceProfileStatus.READY)


@pytest.fixture
def workflow():
    return FakeWorkflowClient()


@pytest.fixture
def orchestrator(generations, profiles, workflow):
    return GenerationOrchestrator(
        generations, profiles, workflow, callback_url="http://testserver/api/v1/webhooks/n8n"
    )
