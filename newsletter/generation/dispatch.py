"""Dispatch client for the external generation workflow (n8n).

Translates a generation request plus its voice profile into the workflow's
wire request, sends it, and validates the synchronous reply.

Usage:
    client = N8nDispatchClient(N8N_WEBHOOK_URL)
    errors = client.validate(request)
    if not errors:
        reply = client.dispatch(build_dispatch_payload(...))
"""

import re
import time
from typing import Optional, Protocol
from uuid import UUID

import httpx
from pydantic import ValidationError

from newsletter.config import DISPATCH_TIMEOUT_SECONDS
from newsletter.db.models import VoiceProfile
from newsletter.generation.errors import DispatchError
from newsletter.logging import get_logger
from newsletter.models import (
    ContentSource,
    DispatchPayload,
    DispatchReply,
    GenerationRequest,
    VoiceProfilePayload,
)
from newsletter.observability.metrics import DISPATCH_LATENCY, record_dispatch_failure

logger = get_logger(__name__)

TWITTER_USERNAME_PATTERN = re.compile(r"[a-zA-Z0-9_]{1,15}")
YOUTUBE_URL_PATTERN = re.compile(r"^https://(www\.)?youtube\.com/watch\?v=|youtu\.be/")

MIN_ARTICLE_LENGTH = 100
MAX_ARTICLE_LENGTH = 50000

# Response bodies are kept for diagnostics, truncated to this size
MAX_BODY_CHARS = 10000


def validate_generation_request(request: GenerationRequest) -> list[str]:
    """Check a request before anything is sent.

    Returns every problem found as a human-readable message; an empty list
    means the request can be dispatched.
    """
    errors = []

    if not request.profile_id:
        errors.append("Voice profile is required")

    if not request.newsletter_name:
        errors.append("Newsletter name is required")

    if not request.content_source:
        errors.append("Content source is required")

    if request.content_source == ContentSource.TWITTER:
        if not request.twitter_username:
            errors.append("Twitter username is required")
        elif not TWITTER_USERNAME_PATTERN.fullmatch(request.twitter_username):
            errors.append("Invalid Twitter username format")

    elif request.content_source == ContentSource.YOUTUBE:
        if not request.youtube_url:
            errors.append("YouTube URL is required")
        elif not YOUTUBE_URL_PATTERN.search(request.youtube_url):
            errors.append("Invalid YouTube URL format")

    elif request.content_source == ContentSource.ARTICLE:
        if not request.article_content:
            errors.append("Article content is required")
        elif len(request.article_content) < MIN_ARTICLE_LENGTH:
            errors.append("Article content must be at least 100 characters")
        elif len(request.article_content) > MAX_ARTICLE_LENGTH:
            errors.append("Article content must be less than 50,000 characters")

    return errors


def build_voice_profile_payload(profile: VoiceProfile) -> VoiceProfilePayload:
    """Style attributes only; status, counters and timestamps stay behind."""
    return VoiceProfilePayload(
        profile_name=profile.profile_name,
        tone=list(profile.tone or []),
        formality=profile.formality,
        detail_level=profile.detail_level,
        sentence_style=profile.sentence_style,
        vocabulary_level=profile.vocabulary_level,
        common_phrases=list(profile.common_phrases or []),
        avoid_phrases=list(profile.avoid_phrases or []),
        uses_questions=profile.uses_questions,
        uses_data=profile.uses_data,
        uses_anecdotes=profile.uses_anecdotes,
        uses_metaphors=profile.uses_metaphors,
        uses_humor=profile.uses_humor,
        samples=list(profile.samples or []),
    )


def build_dispatch_payload(
    user_id: UUID,
    generation_id: UUID,
    request: GenerationRequest,
    profile: VoiceProfile,
    callback_url: str,
) -> DispatchPayload:
    """Build the outbound request for a validated generation request.

    Only the field matching the content source is populated; the other two
    are sent as explicit nulls.
    """
    source = request.content_source
    return DispatchPayload(
        user_id=str(user_id),
        profile_id=str(profile.id),
        generation_id=str(generation_id),
        newsletter_name=request.newsletter_name,
        content_source=source,
        twitter_username=request.twitter_username if source == ContentSource.TWITTER else None,
        youtube_url=request.youtube_url if source == ContentSource.YOUTUBE else None,
        article_content=request.article_content if source == ContentSource.ARTICLE else None,
        voice_profile=build_voice_profile_payload(profile),
        callback_url=callback_url,
    )


class WorkflowClient(Protocol):
    """What the orchestrator needs from a generation workflow."""

    def validate(self, request: GenerationRequest) -> list[str]:
        ...

    def dispatch(self, payload: DispatchPayload) -> DispatchReply:
        ...


class N8nDispatchClient:
    """Sends generation requests to the n8n webhook over HTTP."""

    def __init__(
        self,
        webhook_url: str,
        timeout_seconds: float = DISPATCH_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    def validate(self, request: GenerationRequest) -> list[str]:
        return validate_generation_request(request)

    def dispatch(self, payload: DispatchPayload) -> DispatchReply:
        """POST the payload and validate the synchronous reply.

        Raises:
            DispatchError: With reason timeout, network, rejected or
                malformed_response
        """
        start_time = time.perf_counter()
        try:
            with httpx.Client(transport=self.transport, timeout=self.timeout_seconds) as client:
                response = client.post(
                    self.webhook_url,
                    json=payload.model_dump(mode="json"),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException:
            raise self._failure(
                payload,
                DispatchError.TIMEOUT,
                f"Workflow did not respond within {self.timeout_seconds:g} seconds",
            )
        except httpx.RequestError as e:
            raise self._failure(
                payload, DispatchError.NETWORK, f"Could not reach workflow: {e}"
            )
        finally:
            DISPATCH_LATENCY.observe(time.perf_counter() - start_time)

        if not 200 <= response.status_code < 300:
            body = response.text[:MAX_BODY_CHARS]
            raise self._failure(
                payload,
                DispatchError.REJECTED,
                f"n8n webhook failed: {response.status_code} - {body}",
                status_code=response.status_code,
                body=body,
            )

        return self._parse_reply(payload, response)

    def _parse_reply(self, payload: DispatchPayload, response: httpx.Response) -> DispatchReply:
        body = response.text[:MAX_BODY_CHARS]
        try:
            reply = DispatchReply.model_validate(response.json())
        except ValueError as e:
            # json.JSONDecodeError and pydantic ValidationError are both ValueErrors
            detail = (
                f"{e.error_count()} invalid field(s)"
                if isinstance(e, ValidationError)
                else "body is not JSON"
            )
            raise self._failure(
                payload,
                DispatchError.MALFORMED_RESPONSE,
                f"Workflow reply was malformed: {detail}",
                status_code=response.status_code,
                body=body,
            )

        if reply.user_id != payload.user_id:
            raise self._failure(
                payload,
                DispatchError.MALFORMED_RESPONSE,
                "Workflow reply was malformed: user_id does not match the request",
                status_code=response.status_code,
                body=body,
            )

        logger.info(
            "generation_dispatched",
            generation_id=payload.generation_id,
            execution_id=reply.execution_id,
            reply_status=reply.status,
        )
        return reply

    def _failure(
        self,
        payload: DispatchPayload,
        reason: str,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> DispatchError:
        record_dispatch_failure(reason)
        logger.warning(
            "generation_dispatch_failed",
            generation_id=payload.generation_id,
            reason=reason,
            status_code=status_code,
            error=message,
        )
        return DispatchError(reason, message, status_code=status_code, body=body)
