"""Tests for the polling fallback and background watcher."""

import pytest
from uuid import uuid4

from newsletter.generation.errors import GenerationNotFoundError, PollTimeoutError
from newsletter.generation.polling import (
    GenerationWatcher,
    poll_until_terminal,
    watch_until_terminal,
)
from newsletter.models import GenerationStatus
from tests.conftest import article_request, make_articles


class CountingFetch:
    """Fetch double that counts reads and can finish after N of them."""

    def __init__(self, generations, finish_after=None, on_finish=None):
        self.generations = generations
        self.finish_after = finish_after
        self.on_finish = on_finish
        self.reads = 0

    def __call__(self, generation_id):
        self.reads += 1
        if self.finish_after is not None and self.reads == self.finish_after:
            self.on_finish(generation_id)
        return self.generations.get(generation_id)


@pytest.fixture
def pending(generations, user_id):
    return generations.create_pending(user_id, article_request(uuid4()))


class TestPollUntilTerminal:
    def test_exhausts_exact_budget(self, generations, pending):
        fetch = CountingFetch(generations)
        sleeps = []

        with pytest.raises(PollTimeoutError) as exc_info:
            poll_until_terminal(fetch, pending.id, interval_ms=1, max_attempts=3, sleep=sleeps.append)

        assert fetch.reads == 3
        assert len(sleeps) == 2
        assert exc_info.value.attempts == 3
        assert exc_info.value.last_status == GenerationStatus.PENDING.value

    def test_timeout_leaves_generation_untouched(self, generations, pending):
        with pytest.raises(PollTimeoutError):
            poll_until_terminal(generations.get, pending.id, max_attempts=2, sleep=lambda s: None)

        assert generations.get(pending.id).status == GenerationStatus.PENDING.value

    def test_returns_terminal_record(self, orchestrator, generations, pending):
        fetch = CountingFetch(
            generations,
            finish_after=2,
            on_finish=lambda gid: orchestrator.complete_generation(gid, make_articles()),
        )
        seen = []

        generation = poll_until_terminal(
            fetch, pending.id, on_update=lambda g: seen.append(g.status), sleep=lambda s: None
        )

        assert generation.status == GenerationStatus.COMPLETED.value
        assert fetch.reads == 2
        assert seen == [GenerationStatus.PENDING.value, GenerationStatus.COMPLETED.value]

    def test_sleep_interval_in_seconds(self, generations, pending):
        sleeps = []

        with pytest.raises(PollTimeoutError):
            poll_until_terminal(
                generations.get, pending.id, interval_ms=5000, max_attempts=2, sleep=sleeps.append
            )

        assert sleeps == [5.0]

    def test_missing_generation(self, generations):
        with pytest.raises(GenerationNotFoundError):
            poll_until_terminal(generations.get, uuid4(), sleep=lambda s: None)

    def test_budget_must_be_positive(self, generations, pending):
        with pytest.raises(ValueError):
            poll_until_terminal(generations.get, pending.id, max_attempts=0)


class TestWatchUntilTerminal:
    @pytest.mark.asyncio
    async def test_streams_until_terminal(self, orchestrator, generations, pending):
        fetch = CountingFetch(
            generations,
            finish_after=3,
            on_finish=lambda gid: orchestrator.fail_generation(gid, "boom"),
        )
        seen = []

        async def on_update(generation):
            seen.append(generation.status)

        generation = await watch_until_terminal(fetch, pending.id, on_update, interval_ms=1)

        assert generation.status == GenerationStatus.FAILED.value
        assert seen[-1] == GenerationStatus.FAILED.value
        assert len(seen) == 3

    @pytest.mark.asyncio
    async def test_times_out(self, generations, pending):
        fetch = CountingFetch(generations)

        async def on_update(generation):
            pass

        with pytest.raises(PollTimeoutError):
            await watch_until_terminal(fetch, pending.id, on_update, interval_ms=1, max_attempts=2)

        assert fetch.reads == 2


class TestGenerationWatcher:
    def test_stop_interrupts_sleep(self, generations, pending):
        seen = []
        watcher = GenerationWatcher(
            generations.get, pending.id, seen.append, interval_ms=60000, max_attempts=10
        )

        watcher.start()
        watcher.stop(timeout=5)

        assert watcher.wait(timeout=5) is True
        assert watcher.stopped is True
        assert watcher.running is False
        assert watcher.result is None
        assert watcher.error is None
        assert len(seen) <= 1
        assert generations.get(pending.id).status == GenerationStatus.PENDING.value

    def test_watcher_result(self, orchestrator, generations, pending):
        orchestrator.complete_generation(pending.id, make_articles())

        with GenerationWatcher(generations.get, pending.id, lambda g: None, interval_ms=1) as watcher:
            assert watcher.wait(timeout=5) is True

        assert watcher.result.status == GenerationStatus.COMPLETED.value

    def test_watcher_keeps_timeout_error(self, generations, pending):
        watcher = GenerationWatcher(
            generations.get, pending.id, lambda g: None, interval_ms=1, max_attempts=2
        ).start()

        assert watcher.wait(timeout=5) is True
        assert isinstance(watcher.error, PollTimeoutError)

    def test_start_once(self, generations, pending):
        watcher = GenerationWatcher(generations.get, pending.id, lambda g: None, interval_ms=1)
        watcher.start()
        try:
            with pytest.raises(RuntimeError):
                watcher.start()
        finally:
            watcher.stop()
