"""Generation orchestrator: the generation lifecycle state machine.

States: pending -> processing -> completed | failed

Two paths can move a generation out of pending/processing: the synchronous
dispatch reply and the asynchronous completion callback. Every write reads
the record first and is applied only if the status and execution id are
still what was read, so that:
- the processing write is skipped once the record has moved on
- a terminal record is never overwritten; repeating the same terminal
  status is a no-op and a contradicting one is logged and dropped
- the execution reference is written once and never replaced

Usage:
    orchestrator = GenerationOrchestrator(generations, profiles, workflow)
    outcome = orchestrator.start_generation(user_id, request)
    ack = orchestrator.handle_completion_callback(payload)
"""

from dataclasses import dataclass
from typing import Any, Optional, Union
from uuid import UUID

from pydantic import ValidationError

from newsletter.config import CALLBACK_URL, POLL_INTERVAL_MS, POLL_MAX_ATTEMPTS
from newsletter.content.repository import GenerationRepository, VoiceProfileRepository
from newsletter.db.models import Generation
from newsletter.generation.dispatch import WorkflowClient, build_dispatch_payload
from newsletter.generation.errors import (
    DispatchError,
    GenerationConflictError,
    GenerationError,
    GenerationNotFoundError,
    GenerationValidationError,
    VoiceProfileNotFoundError,
)
from newsletter.generation.polling import Observer, poll_until_terminal
from newsletter.logging import get_logger
from newsletter.models import (
    CallbackAck,
    CallbackResult,
    CompletionCallback,
    DispatchReply,
    GenerationRequest,
    GenerationStatus,
    GoogleDriveFile,
    NewsletterArticle,
    check_article_ordinals,
    total_word_count,
    utc_now,
)
from newsletter.observability.metrics import record_callback, record_transition
from newsletter.store import StaleRecordError

logger = get_logger(__name__)


@dataclass
class GenerationOutcome:
    """Result of start_generation.

    generation is the record as last written; error is set when the
    generation failed before or during dispatch.
    """

    generation: Generation
    execution_id: Optional[str] = None
    error: Optional[GenerationError] = None

    @property
    def errors(self) -> list[str]:
        if isinstance(self.error, GenerationValidationError):
            return self.error.errors
        if self.error is not None:
            return [str(self.error)]
        return []


class GenerationOrchestrator:
    """Drives generations through their lifecycle."""

    def __init__(
        self,
        generations: GenerationRepository,
        profiles: VoiceProfileRepository,
        workflow: WorkflowClient,
        callback_url: str = CALLBACK_URL,
    ):
        self.generations = generations
        self.profiles = profiles
        self.workflow = workflow
        self.callback_url = callback_url

    # =========================================================================
    # Start
    # =========================================================================

    def start_generation(self, user_id: UUID, request: GenerationRequest) -> GenerationOutcome:
        """Create a generation and hand it to the workflow.

        Each call creates a new record. Validation, missing-profile and
        dispatch failures leave the record failed and are returned in the
        outcome; store errors propagate.
        """
        generation = self.generations.create_pending(user_id, request)
        record_transition(GenerationStatus.PENDING.value)
        log = logger.bind(generation_id=str(generation.id), user_id=str(user_id))
        log.info("generation_created", content_type=generation.content_type)

        errors = self.workflow.validate(request)
        if errors:
            error = GenerationValidationError(errors)
            log.info("generation_validation_failed", errors=errors)
            return GenerationOutcome(self._fail_quietly(generation.id, str(error)), error=error)

        profile = self.profiles.get_owned(request.profile_id, user_id)
        if profile is None:
            error = VoiceProfileNotFoundError(request.profile_id)
            log.info("generation_profile_not_found", profile_id=str(request.profile_id))
            return GenerationOutcome(self._fail_quietly(generation.id, str(error)), error=error)

        payload = build_dispatch_payload(
            user_id, generation.id, request, profile, self.callback_url
        )
        try:
            reply = self.workflow.dispatch(payload)
        except DispatchError as e:
            return GenerationOutcome(self._fail_quietly(generation.id, e.message), error=e)

        generation = self._apply_reply(generation.id, reply)
        self._record_profile_usage(profile.id)
        return GenerationOutcome(generation, execution_id=reply.execution_id)

    def _apply_reply(self, generation_id: UUID, reply: DispatchReply) -> Generation:
        if reply.status == "completed" and reply.newsletters:
            try:
                generation, _ = self._complete(
                    generation_id,
                    reply.newsletters,
                    google_drive_folder=reply.google_drive_folder,
                    google_drive_files=reply.google_drive_files,
                    execution_time_seconds=reply.execution_time_seconds,
                    execution_id=reply.execution_id,
                )
                return generation
            except GenerationConflictError as e:
                self._log_conflict(e, source="dispatch_reply")
                return self._require(generation_id)
        return self._mark_processing(generation_id, reply.execution_id)

    def _mark_processing(self, generation_id: UUID, execution_id: str) -> Generation:
        while True:
            current = self._require(generation_id)
            if current.status != GenerationStatus.PENDING.value:
                # A callback overtook the acknowledgment
                logger.info(
                    "generation_processing_skipped",
                    generation_id=str(generation_id),
                    status=current.status,
                )
                return current

            fields: dict[str, Any] = {
                "status": GenerationStatus.PROCESSING.value,
                "started_at": utc_now(),
            }
            fields.update(self._execution_id_fields(current, execution_id))
            try:
                generation = self.generations.update(
                    generation_id, fields, expected=self._guard(current)
                )
            except StaleRecordError:
                continue
            record_transition(GenerationStatus.PROCESSING.value)
            logger.info(
                "generation_processing",
                generation_id=str(generation_id),
                execution_id=execution_id,
            )
            return generation

    def _record_profile_usage(self, profile_id: UUID) -> None:
        try:
            self.profiles.record_usage(profile_id)
        except Exception as e:
            logger.warning(
                "voice_profile_usage_update_failed",
                profile_id=str(profile_id),
                error=str(e),
            )

    # =========================================================================
    # Terminal writes
    # =========================================================================

    def complete_generation(
        self,
        generation_id: UUID,
        newsletters: list[NewsletterArticle],
        google_drive_folder: Optional[str] = None,
        google_drive_files: Optional[list[GoogleDriveFile]] = None,
        execution_time_seconds: Optional[int] = None,
        total_words: Optional[int] = None,
    ) -> Generation:
        """Mark a generation completed with its articles.

        total_words defaults to the sum of the article word counts.

        Raises:
            GenerationNotFoundError: Unknown generation
            GenerationConflictError: Generation already failed
        """
        generation, _ = self._complete(
            generation_id,
            newsletters,
            google_drive_folder=google_drive_folder,
            google_drive_files=google_drive_files,
            execution_time_seconds=execution_time_seconds,
            total_words=total_words,
        )
        return generation

    def fail_generation(self, generation_id: UUID, error_message: str) -> Generation:
        """Mark a generation failed with a human-readable message.

        Raises:
            GenerationNotFoundError: Unknown generation
            GenerationConflictError: Generation already completed
        """
        generation, _ = self._fail(generation_id, error_message)
        return generation

    def _complete(
        self,
        generation_id: UUID,
        newsletters: list[NewsletterArticle],
        google_drive_folder: Optional[str] = None,
        google_drive_files: Optional[list[GoogleDriveFile]] = None,
        execution_time_seconds: Optional[int] = None,
        total_words: Optional[int] = None,
        api_cost: Optional[float] = None,
        execution_id: Optional[str] = None,
    ) -> tuple[Generation, bool]:
        if not newsletters:
            raise ValueError("a completed generation needs at least one newsletter")
        check_article_ordinals(newsletters)

        fields: dict[str, Any] = {
            "status": GenerationStatus.COMPLETED.value,
            "newsletters": [article.model_dump(mode="json") for article in newsletters],
            "word_count_total": (
                total_words if total_words is not None else total_word_count(newsletters)
            ),
            "google_drive_folder": google_drive_folder,
            "google_drive_files": (
                [item.model_dump(mode="json") for item in google_drive_files]
                if google_drive_files is not None
                else None
            ),
            "execution_time_seconds": execution_time_seconds,
            "completed_at": utc_now(),
        }
        if api_cost is not None:
            fields["api_cost"] = api_cost
        return self._write_terminal(generation_id, GenerationStatus.COMPLETED, fields, execution_id)

    def _fail(
        self,
        generation_id: UUID,
        error_message: Optional[str],
        execution_id: Optional[str] = None,
    ) -> tuple[Generation, bool]:
        fields = {
            "status": GenerationStatus.FAILED.value,
            "error_message": error_message or "Unknown error",
        }
        return self._write_terminal(generation_id, GenerationStatus.FAILED, fields, execution_id)

    def _fail_quietly(self, generation_id: UUID, error_message: str) -> Generation:
        """Fail a generation from the start path, tolerating a raced terminal write."""
        try:
            generation, _ = self._fail(generation_id, error_message)
            return generation
        except GenerationConflictError as e:
            self._log_conflict(e, source="start")
            return self._require(generation_id)

    def _write_terminal(
        self,
        generation_id: UUID,
        status: GenerationStatus,
        fields: dict[str, Any],
        execution_id: Optional[str],
    ) -> tuple[Generation, bool]:
        """Apply a terminal transition. Returns (record, applied).

        The write is conditional on the status and execution id just read;
        when another writer got there first the record is read again.
        """
        while True:
            current = self._require(generation_id)

            if current.is_terminal:
                if current.status == status.value:
                    logger.info(
                        "generation_terminal_duplicate",
                        generation_id=str(generation_id),
                        status=status.value,
                    )
                    return current, False
                raise GenerationConflictError(generation_id, current.status, status.value)

            try:
                generation = self.generations.update(
                    generation_id,
                    {**fields, **self._execution_id_fields(current, execution_id)},
                    expected=self._guard(current),
                )
            except StaleRecordError:
                logger.info("generation_write_retried", generation_id=str(generation_id))
                continue
            record_transition(status.value)
            logger.info(
                "generation_" + status.value,
                generation_id=str(generation_id),
                word_count_total=generation.word_count_total,
                error_message=generation.error_message,
            )
            return generation, True

    @staticmethod
    def _guard(current: Generation) -> dict[str, list[Any]]:
        return {
            "status": [current.status],
            "n8n_execution_id": [current.n8n_execution_id],
        }

    @staticmethod
    def _execution_id_fields(current: Generation, execution_id: Optional[str]) -> dict[str, Any]:
        if not execution_id:
            return {}
        if current.n8n_execution_id is None:
            return {"n8n_execution_id": execution_id}
        if current.n8n_execution_id != execution_id:
            logger.warning(
                "generation_execution_id_mismatch",
                generation_id=str(current.id),
                stored=current.n8n_execution_id,
                received=execution_id,
            )
        return {}

    @staticmethod
    def _log_conflict(error: GenerationConflictError, source: str) -> None:
        logger.warning(
            "completion_callback_conflict",
            generation_id=str(error.generation_id),
            stored_status=error.stored_status,
            incoming_status=error.incoming_status,
            source=source,
        )

    # =========================================================================
    # Completion callback
    # =========================================================================

    def handle_completion_callback(
        self, payload: Union[CompletionCallback, dict[str, Any]]
    ) -> CallbackAck:
        """Apply a completion notification from the workflow.

        Looked up by generation id. Safe to deliver more than once.
        """
        if not isinstance(payload, CompletionCallback):
            try:
                payload = CompletionCallback.model_validate(payload)
            except ValidationError as e:
                return self._malformed(payload, e)

        generation_id = payload.generation_id
        current = self.generations.get(generation_id)
        if current is None:
            return self._ack(CallbackResult.UNKNOWN_GENERATION, generation_id, "Generation not found")

        if payload.user_id and payload.user_id != str(current.user_id):
            logger.warning(
                "completion_callback_owner_mismatch",
                generation_id=str(generation_id),
            )
            return self._ack(CallbackResult.UNKNOWN_GENERATION, generation_id, "Generation not found")

        try:
            if payload.status == GenerationStatus.COMPLETED.value:
                _, applied = self._complete(
                    generation_id,
                    payload.newsletters,
                    google_drive_folder=payload.google_drive_folder,
                    google_drive_files=payload.google_drive_files,
                    execution_time_seconds=payload.execution_time_seconds,
                    total_words=payload.total_words,
                    api_cost=payload.api_cost,
                    execution_id=payload.execution_id,
                )
            else:
                _, applied = self._fail(
                    generation_id, payload.error_message, execution_id=payload.execution_id
                )
        except GenerationConflictError as e:
            self._log_conflict(e, source="callback")
            return self._ack(
                CallbackResult.CONFLICT,
                generation_id,
                f"Generation already {e.stored_status}; update ignored",
            )
        except GenerationNotFoundError:
            return self._ack(CallbackResult.UNKNOWN_GENERATION, generation_id, "Generation not found")

        if applied:
            return self._ack(CallbackResult.APPLIED, generation_id, "Generation updated successfully")
        return self._ack(CallbackResult.DUPLICATE, generation_id, "Generation already up to date")

    def _malformed(self, payload: Any, error: ValidationError) -> CallbackAck:
        missing_id = not isinstance(payload, dict) or not payload.get("generation_id")
        message = (
            "Missing generation_id"
            if missing_id
            else f"Invalid callback payload: {error.error_count()} invalid field(s)"
        )
        generation_id = None if missing_id else str(payload.get("generation_id"))
        logger.warning("completion_callback_malformed", generation_id=generation_id, error=message)
        return self._ack(CallbackResult.MALFORMED, generation_id, message)

    @staticmethod
    def _ack(
        result: CallbackResult, generation_id: Optional[Any], message: str
    ) -> CallbackAck:
        record_callback(result.value)
        if result == CallbackResult.UNKNOWN_GENERATION:
            logger.warning("completion_callback_unknown", generation_id=str(generation_id))
        return CallbackAck(
            result=result,
            generation_id=str(generation_id) if generation_id is not None else None,
            message=message,
        )

    # =========================================================================
    # Reads and deletion
    # =========================================================================

    def get_generation(self, generation_id: UUID, user_id: Optional[UUID] = None) -> Generation:
        """Get a generation, owner-scoped when user_id is given.

        Raises:
            GenerationNotFoundError: Missing or owned by someone else
        """
        if user_id is None:
            generation = self.generations.get(generation_id)
        else:
            generation = self.generations.get_owned(generation_id, user_id)
        if generation is None:
            raise GenerationNotFoundError(generation_id)
        return generation

    def list_generations(
        self,
        user_id: UUID,
        limit: int = 20,
        status: Optional[GenerationStatus] = None,
    ) -> list[Generation]:
        return self.generations.list_by_owner(user_id, limit=limit, status=status)

    def delete_generation(self, user_id: UUID, generation_id: UUID) -> None:
        """Delete a generation after re-verifying ownership.

        Raises:
            GenerationNotFoundError: Missing or owned by someone else
        """
        if not self.generations.delete(generation_id, user_id):
            raise GenerationNotFoundError(generation_id)
        logger.info("generation_deleted", generation_id=str(generation_id), user_id=str(user_id))

    def poll_until_terminal(
        self,
        generation_id: UUID,
        on_update: Optional[Observer] = None,
        interval_ms: int = POLL_INTERVAL_MS,
        max_attempts: int = POLL_MAX_ATTEMPTS,
        **kwargs,
    ) -> Generation:
        """Re-read the generation until terminal; see polling.poll_until_terminal."""
        return poll_until_terminal(
            self.generations.get,
            generation_id,
            on_update=on_update,
            interval_ms=interval_ms,
            max_attempts=max_attempts,
            **kwargs,
        )

    def _require(self, generation_id: UUID) -> Generation:
        generation = self.generations.get(generation_id)
        if generation is None:
            raise GenerationNotFoundError(generation_id)
        return generation
