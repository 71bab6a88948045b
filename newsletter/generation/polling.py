"""Polling fallback for observing a generation until it finishes.

The completion callback is the primary way a generation reaches its
terminal state; polling only re-reads the record. Giving up on polling
never changes the generation.
"""

import asyncio
import threading
import time
from typing import Awaitable, Callable, Optional
from uuid import UUID

from newsletter.config import POLL_INTERVAL_MS, POLL_MAX_ATTEMPTS
from newsletter.db.models import Generation
from newsletter.generation.errors import GenerationNotFoundError, PollTimeoutError
from newsletter.logging import get_logger

logger = get_logger(__name__)

Fetch = Callable[[UUID], Optional[Generation]]
Observer = Callable[[Generation], None]


def _check_budget(max_attempts: int) -> None:
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")


def poll_until_terminal(
    fetch: Fetch,
    generation_id: UUID,
    on_update: Optional[Observer] = None,
    interval_ms: int = POLL_INTERVAL_MS,
    max_attempts: int = POLL_MAX_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
) -> Generation:
    """Re-read a generation until it is terminal.

    The observer sees every read. At most max_attempts reads are made, with
    one sleep between consecutive reads.

    Raises:
        PollTimeoutError: Budget exhausted while still pending/processing
        GenerationNotFoundError: The record disappeared
    """
    _check_budget(max_attempts)
    last_status = None

    for attempt in range(1, max_attempts + 1):
        generation = fetch(generation_id)
        if generation is None:
            raise GenerationNotFoundError(generation_id)

        last_status = generation.status
        if on_update is not None:
            on_update(generation)
        if generation.is_terminal:
            return generation

        if attempt < max_attempts:
            sleep(interval_ms / 1000)

    logger.info(
        "generation_poll_timeout",
        generation_id=str(generation_id),
        attempts=max_attempts,
        last_status=last_status,
    )
    raise PollTimeoutError(generation_id, max_attempts, last_status)


async def watch_until_terminal(
    fetch: Fetch,
    generation_id: UUID,
    on_update: Callable[[Generation], Awaitable[None]],
    interval_ms: int = POLL_INTERVAL_MS,
    max_attempts: int = POLL_MAX_ATTEMPTS,
) -> Generation:
    """Async variant of poll_until_terminal for streaming consumers.

    Cancelling the awaiting task stops the polling.
    """
    _check_budget(max_attempts)
    last_status = None

    for attempt in range(1, max_attempts + 1):
        generation = await asyncio.to_thread(fetch, generation_id)
        if generation is None:
            raise GenerationNotFoundError(generation_id)

        last_status = generation.status
        await on_update(generation)
        if generation.is_terminal:
            return generation

        if attempt < max_attempts:
            await asyncio.sleep(interval_ms / 1000)

    raise PollTimeoutError(generation_id, max_attempts, last_status)


class WatchStopped(Exception):
    """Raised inside a watcher thread when stop() interrupts it."""

    pass


class GenerationWatcher:
    """Polls a generation on a background thread for one observer.

    The watcher lives only as long as its observer wants it: stop() wakes
    the thread from its sleep and ends it.

    Usage:
        with GenerationWatcher(repo.get, generation_id, on_update) as watcher:
            watcher.wait(timeout=30)
    """

    def __init__(
        self,
        fetch: Fetch,
        generation_id: UUID,
        on_update: Observer,
        interval_ms: int = POLL_INTERVAL_MS,
        max_attempts: int = POLL_MAX_ATTEMPTS,
    ):
        _check_budget(max_attempts)
        self.fetch = fetch
        self.generation_id = generation_id
        self.on_update = on_update
        self.interval_ms = interval_ms
        self.max_attempts = max_attempts

        self.result: Optional[Generation] = None
        self.error: Optional[Exception] = None

        self._stop_event = threading.Event()
        self._done = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> "GenerationWatcher":
        if self._thread is not None:
            raise RuntimeError("GenerationWatcher can only be started once")
        self._thread = threading.Thread(
            target=self._run,
            name=f"generation-watcher-{self.generation_id}",
            daemon=True,
        )
        self._thread.start()
        return self

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop watching. The generation itself is left untouched."""
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the watcher finishes. Returns False on timeout."""
        return self._done.wait(timeout)

    def __enter__(self) -> "GenerationWatcher":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def _sleep(self, seconds: float) -> None:
        if self._stop_event.wait(seconds):
            raise WatchStopped()

    def _observe(self, generation: Generation) -> None:
        if not self._stop_event.is_set():
            self.on_update(generation)

    def _run(self) -> None:
        try:
            self.result = poll_until_terminal(
                self.fetch,
                self.generation_id,
                on_update=self._observe,
                interval_ms=self.interval_ms,
                max_attempts=self.max_attempts,
                sleep=self._sleep,
            )
        except WatchStopped:
            logger.debug("generation_watch_stopped", generation_id=str(self.generation_id))
        except Exception as e:
            self.error = e
        finally:
            self._done.set()
