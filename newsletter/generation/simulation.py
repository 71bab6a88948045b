"""Simulated generation workflow used when no webhook URL is configured.

The simulation follows the live protocol: dispatch is acknowledged with a
pending reply, and the finished newsletters arrive later through the same
completion callback handler the real workflow calls.
"""

import threading
import time
from typing import Any, Callable, Optional

from newsletter.config import DEMO_COMPLETION_DELAY_SECONDS
from newsletter.generation.dispatch import validate_generation_request
from newsletter.generation.errors import DispatchError
from newsletter.logging import get_logger
from newsletter.models import (
    CallbackAck,
    DispatchPayload,
    DispatchReply,
    GenerationRequest,
    utc_now,
)
from newsletter.observability.metrics import record_dispatch_failure

logger = get_logger(__name__)

DEMO_FOLDER_URL = "https://drive.google.com/drive/folders/demo-folder"
DEMO_EXECUTION_TIME_SECONDS = 185

# (title, subject line, preview text, word count)
DEMO_NEWSLETTERS = [
    (
        "The Hidden Strategy Behind Viral Content",
        "Why your content isn't going viral (and how to fix it)",
        "Most creators miss this one crucial element...",
        450,
    ),
    (
        "The Compound Effect of Daily Publishing",
        "One simple habit that 10x'd my audience",
        "It's not about writing more, it's about writing consistently",
        380,
    ),
    (
        "Why Your Newsletter Isn't Growing",
        "The growth plateau nobody talks about",
        "And the counterintuitive solution that works",
        520,
    ),
    (
        "The Email Subject Line Formula",
        "Steal this subject line template",
        "47% open rates using this simple framework",
        410,
    ),
    (
        "Monetization Myths Debunked",
        "Stop leaving money on the table",
        "The truth about newsletter monetization",
        490,
    ),
]

CompletionHandler = Callable[[dict[str, Any]], CallbackAck]
Scheduler = Callable[[float, Callable[[], None]], Any]


def timer_scheduler(delay_seconds: float, callback: Callable[[], None]) -> threading.Timer:
    """Run callback once after delay_seconds on a daemon timer thread."""
    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    timer.start()
    return timer


def demo_newsletters(source_type: str, newsletter_type: str) -> list[dict[str, Any]]:
    """The five canned newsletters delivered by the simulation."""
    generated_at = utc_now().isoformat()
    newsletters = []
    for number, (title, subject_line, preview_text, word_count) in enumerate(
        DEMO_NEWSLETTERS, start=1
    ):
        newsletters.append(
            {
                "newsletter_number": number,
                "title": title,
                "subject_line": subject_line,
                "preview_text": preview_text,
                "content_markdown": (
                    f"# {title}\n\n{preview_text}\n\n---\n\n"
                    "*This is a demo newsletter generated for testing purposes.*"
                ),
                "word_count": word_count,
                "source_type": source_type,
                "newsletter_type": newsletter_type,
                "generated_at": generated_at,
            }
        )
    return newsletters


class SimulatedWorkflowClient:
    """WorkflowClient that completes every generation locally."""

    def __init__(
        self,
        delay_seconds: float = DEMO_COMPLETION_DELAY_SECONDS,
        scheduler: Scheduler = timer_scheduler,
    ):
        self.delay_seconds = delay_seconds
        self.scheduler = scheduler
        self._completion_handler: Optional[CompletionHandler] = None

    def bind(self, completion_handler: CompletionHandler) -> None:
        """Set where completion callbacks are delivered."""
        self._completion_handler = completion_handler

    def validate(self, request: GenerationRequest) -> list[str]:
        return validate_generation_request(request)

    def dispatch(self, payload: DispatchPayload) -> DispatchReply:
        if self._completion_handler is None:
            record_dispatch_failure(DispatchError.NETWORK)
            logger.error("simulated_workflow_unbound", generation_id=payload.generation_id)
            raise DispatchError(
                DispatchError.NETWORK,
                "Demo workflow is not connected to a completion handler",
            )

        execution_id = f"demo-exec-{int(time.time() * 1000)}"
        callback = {
            "generation_id": payload.generation_id,
            "execution_id": execution_id,
            "user_id": payload.user_id,
            "status": "completed",
            "newsletters": demo_newsletters(
                payload.content_source.value, payload.newsletter_name
            ),
            "google_drive_folder": DEMO_FOLDER_URL,
            "execution_time_seconds": DEMO_EXECUTION_TIME_SECONDS,
        }

        self.scheduler(self.delay_seconds, lambda: self._deliver(callback))
        logger.info(
            "simulated_generation_scheduled",
            generation_id=payload.generation_id,
            execution_id=execution_id,
            delay_seconds=self.delay_seconds,
        )

        return DispatchReply(
            execution_id=execution_id,
            user_id=payload.user_id,
            status="pending",
        )

    def _deliver(self, callback: dict[str, Any]) -> None:
        callback["completed_at"] = utc_now().isoformat()
        try:
            ack = self._completion_handler(callback)
        except Exception:
            # Runs on a timer thread; nobody else would see the error
            logger.exception(
                "simulated_callback_failed",
                generation_id=callback["generation_id"],
            )
            return
        logger.info(
            "simulated_callback_delivered",
            generation_id=callback["generation_id"],
            result=ack.result.value,
        )
