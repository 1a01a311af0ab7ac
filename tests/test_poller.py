"""Tests for long-running operation polling."""
import asyncio
from typing import List

import pytest

from enhancer.core.dto import OperationStatus
from enhancer.core.poller import (
    CancellationToken,
    OperationPoller,
    PollState,
)
from enhancer.errors import OperationCancelled, RemoteError


class FakeOperation:
    """Refresh callable returning ``done`` after a fixed number of polls."""

    def __init__(self, polls_until_done: int, final: dict = None):
        self.polls_until_done = polls_until_done
        self.final = final or {"response": {}}
        self.refreshes = 0

    async def submit(self):
        return {"name": "operations/abc", "done": self.polls_until_done == 0, **(self.final if self.polls_until_done == 0 else {})}

    async def refresh(self, operation):
        self.refreshes += 1
        if self.refreshes >= self.polls_until_done:
            return {"name": operation["name"], "done": True, **self.final}
        return {"name": operation["name"], "done": False}


async def no_sleep(_seconds):
    return None


def run_poller(op: FakeOperation, **kwargs):
    ticks: List[OperationStatus] = []
    poller = OperationPoller(op.refresh, sleep=no_sleep, **kwargs)
    result = asyncio.run(poller.run(op.submit, ticks.append))
    return poller, result, ticks


class TestProgressSequence:
    """Tests for the emitted status sequence."""

    def test_sequence_for_three_polls(self):
        op = FakeOperation(polls_until_done=3)
        poller, result, ticks = run_poller(op)

        assert [t.progress for t in ticks] == [10, 30, 50, 55, 60, 95]
        assert ticks[0].message == "Initializing video generation..."
        assert ticks[1].message == "Your request is processing. This may take a few minutes."
        assert ticks[2].message == "AI is creating your video... (0s elapsed)"
        assert ticks[3].message == "AI is creating your video... (10s elapsed)"
        assert ticks[-1].message == "Finalizing video..."
        assert result["done"] is True
        assert poller.state == PollState.DONE
        assert poller.poll_count == 3

    def test_hundred_only_after_complete(self):
        """100% is reserved for complete(), called once the result is retrieved."""
        op = FakeOperation(polls_until_done=1)
        ticks: List[OperationStatus] = []
        poller = OperationPoller(op.refresh, sleep=no_sleep)

        asyncio.run(poller.run(op.submit, ticks.append))
        assert all(t.progress < 100 for t in ticks)

        poller.complete()
        assert ticks[-1] == OperationStatus("Video generation complete!", 100)

    def test_long_job_caps_below_hundred(self):
        op = FakeOperation(polls_until_done=20)
        _, _, ticks = run_poller(op)

        polling = [t.progress for t in ticks if t.message.startswith("AI is creating")]
        assert max(polling) == 99
        assert len(polling) == 20

    def test_progress_is_monotonic(self):
        """Finalizing never moves the bar backwards after a long poll."""
        op = FakeOperation(polls_until_done=15)
        _, _, ticks = run_poller(op)

        values = [t.progress for t in ticks]
        assert values == sorted(values)
        assert ticks[-1].message == "Finalizing video..."
        assert ticks[-1].progress == 99

    def test_already_done_on_submit(self):
        op = FakeOperation(polls_until_done=0)
        poller, _, ticks = run_poller(op)

        assert [t.progress for t in ticks] == [10, 30, 95]
        assert op.refreshes == 0
        assert poller.poll_count == 0

    def test_sleeps_between_polls(self):
        op = FakeOperation(polls_until_done=2)
        slept = []

        async def record_sleep(seconds):
            slept.append(seconds)

        poller = OperationPoller(op.refresh, interval=10.0, sleep=record_sleep)
        asyncio.run(poller.run(op.submit))

        assert slept == [10.0, 10.0]


class TestFailures:
    """Tests for operation and transport failures."""

    def test_operation_error_raises_remote_error(self):
        op = FakeOperation(polls_until_done=1, final={"error": {"code": 404, "message": "Requested entity was not found."}})
        poller = OperationPoller(op.refresh, sleep=no_sleep)

        with pytest.raises(RemoteError, match="Requested entity was not found") as exc:
            asyncio.run(poller.run(op.submit))

        assert exc.value.status == 404
        assert poller.state == PollState.FAILED

    def test_refresh_exception_is_wrapped(self):
        async def broken_refresh(_operation):
            raise ValueError("bad json")

        async def submit():
            return {"name": "operations/x", "done": False}

        poller = OperationPoller(broken_refresh, sleep=no_sleep)
        with pytest.raises(RemoteError, match="bad json"):
            asyncio.run(poller.run(submit))
        assert poller.state == PollState.FAILED

    def test_remote_error_propagates_unchanged(self):
        async def submit():
            raise RemoteError("Remote service error 403: denied", status=403)

        poller = OperationPoller(lambda op: None, sleep=no_sleep)
        with pytest.raises(RemoteError) as exc:
            asyncio.run(poller.run(submit))
        assert exc.value.status == 403


class TestCancellation:
    """Tests for CancellationToken handling."""

    def test_cancel_during_polling_stops_emission(self):
        token = CancellationToken()
        ticks: List[OperationStatus] = []

        async def cancelling_refresh(operation):
            token.cancel()
            return {"name": operation["name"], "done": False}

        async def submit():
            return {"name": "operations/x", "done": False}

        poller = OperationPoller(cancelling_refresh, sleep=no_sleep, cancel_token=token)
        with pytest.raises(OperationCancelled):
            asyncio.run(poller.run(submit, ticks.append))

        assert poller.state == PollState.CANCELLED
        assert [t.progress for t in ticks] == [10, 30, 50]

    def test_token_cancels_bound_task(self):
        async def scenario():
            token = CancellationToken()

            async def sleeper():
                await asyncio.sleep(60)

            task = asyncio.ensure_future(sleeper())
            token.bind(task)
            token.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return token

        token = asyncio.run(scenario())
        assert token.cancelled
        with pytest.raises(OperationCancelled):
            token.raise_if_cancelled()

    def test_complete_after_cancel_raises(self):
        token = CancellationToken()
        poller = OperationPoller(lambda op: None, cancel_token=token)
        token.cancel()

        with pytest.raises(OperationCancelled):
            poller.complete()
