"""White-box tests for the idempotency ledger."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from media_portability.errors import ServerError
from media_portability.job_store import InMemoryJobStore
from media_portability.ledger import IdempotencyLedger

JOB = "job-0001"


@pytest.mark.asyncio
class TestIdempotencyLedger:
    """Test at-most-once creation per key."""

    async def test_second_call_returns_same_id_without_creating(self) -> None:
        """Test that a key is created once and then resolved from the ledger."""
        ledger = IdempotencyLedger(JOB)
        create_fn = AsyncMock(return_value="dest-1")

        first = await ledger.resolve_or_create(JOB, "photo-1", create_fn)
        second = await ledger.resolve_or_create(JOB, "photo-1", create_fn)

        assert first == second == "dest-1"
        create_fn.assert_awaited_once()
        assert ledger.get("photo-1") == "dest-1"
        assert "photo-1" in ledger
        assert len(ledger) == 1

    async def test_existing_entry_skips_creation(self) -> None:
        """Test that entries from an earlier attempt short-circuit creation."""
        ledger = IdempotencyLedger(JOB, entries={"photo-1": "dest-old"})
        create_fn = AsyncMock(return_value="dest-new")

        assert await ledger.resolve_or_create(JOB, "photo-1", create_fn) == "dest-old"
        create_fn.assert_not_awaited()

    async def test_failed_creation_is_not_recorded(self) -> None:
        """Test that a failure leaves no entry and a retry creates again."""
        ledger = IdempotencyLedger(JOB)
        create_fn = AsyncMock(side_effect=[ServerError("boom"), "dest-1"])

        with pytest.raises(ServerError):
            await ledger.resolve_or_create(JOB, "photo-1", create_fn)
        assert "photo-1" not in ledger

        assert await ledger.resolve_or_create(JOB, "photo-1", create_fn) == "dest-1"
        assert create_fn.await_count == 2

    async def test_concurrent_calls_for_same_key_create_once(self) -> None:
        """Test that concurrent callers for one key share a single creation."""
        ledger = IdempotencyLedger(JOB)
        calls = 0

        async def create() -> str:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return f"dest-{calls}"

        results = await asyncio.gather(
            *(ledger.resolve_or_create(JOB, "photo-1", create) for _ in range(5))
        )

        assert calls == 1
        assert set(results) == {"dest-1"}

    async def test_different_keys_do_not_wait_on_each_other(self) -> None:
        """Test that creations for different keys run in parallel."""
        ledger = IdempotencyLedger(JOB)
        started: list[str] = []
        both_started = asyncio.Event()

        def make_create(key: str):
            async def create() -> str:
                started.append(key)
                if len(started) == 2:
                    both_started.set()
                # Would time out if the two keys were serialized
                await asyncio.wait_for(both_started.wait(), timeout=1.0)
                return f"dest-{key}"

            return create

        results = await asyncio.gather(
            ledger.resolve_or_create(JOB, "a", make_create("a")),
            ledger.resolve_or_create(JOB, "b", make_create("b")),
        )

        assert results == ["dest-a", "dest-b"]

    async def test_rejects_other_job(self) -> None:
        """Test that a ledger only resolves keys of its own job."""
        ledger = IdempotencyLedger(JOB)

        with pytest.raises(ValueError, match="cannot resolve keys"):
            await ledger.resolve_or_create("job-other", "photo-1", AsyncMock())

    async def test_commits_to_job_store_and_restores(self) -> None:
        """Test that entries survive into a ledger restored for a retry."""
        store = InMemoryJobStore()
        ledger = await IdempotencyLedger.restore(JOB, store)
        await ledger.resolve_or_create(JOB, "album-1", AsyncMock(return_value="dest-a1"))

        assert await store.load_ledger(JOB) == {"album-1": "dest-a1"}

        retried = await IdempotencyLedger.restore(JOB, store)
        create_fn = AsyncMock(return_value="dest-dup")
        assert await retried.resolve_or_create(JOB, "album-1", create_fn) == "dest-a1"
        create_fn.assert_not_awaited()
        assert list(retried.entries()) == [("album-1", "dest-a1")]

    async def test_cancelled_caller_still_commits(self) -> None:
        """Test that cancellation lets an in-flight creation complete and commit."""
        store = InMemoryJobStore()
        ledger = await IdempotencyLedger.restore(JOB, store)
        release = asyncio.Event()

        async def create() -> str:
            await release.wait()
            return "dest-1"

        task = asyncio.create_task(ledger.resolve_or_create(JOB, "photo-1", create))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        release.set()
        await asyncio.sleep(0.01)

        assert ledger.get("photo-1") == "dest-1"
        assert await store.load_ledger(JOB) == {"photo-1": "dest-1"}

    async def test_failure_after_cancelled_caller_is_consumed(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a creation failing after its caller was cancelled is logged, not lost."""
        ledger = IdempotencyLedger(JOB)
        release = asyncio.Event()

        async def create() -> str:
            await release.wait()
            raise ServerError("upstream gone")

        task = asyncio.create_task(ledger.resolve_or_create(JOB, "photo-1", create))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        with caplog.at_level(logging.DEBUG, logger="media_portability.ledger"):
            release.set()
            await asyncio.sleep(0.01)

        assert "photo-1" not in ledger
        assert not ledger._pending
        assert "Creation of photo-1 failed" in caplog.text
        assert "upstream gone" in caplog.text
