"""
Long-running remote operation polling.

The video model answers a submit call with an operation handle
(``{"name": ..., "done": bool}``) that has to be re-fetched until ``done``.
OperationPoller drives that loop and reports progress along the way:

    SUBMITTED -> POLLING -> DONE | FAILED   (or CANCELLED)

Progress never decreases within one run, and 100 is reserved for
``complete()``, which the caller invokes once the result is actually in hand.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from enhancer.core.dto import OperationStatus
from enhancer.errors import EnhancerError, OperationCancelled, RemoteError

logger = logging.getLogger(__name__)

Operation = Dict[str, Any]
ProgressCallback = Callable[[OperationStatus], None]

INITIAL_PROGRESS = 10
SUBMITTED_PROGRESS = 30
POLL_BASE_PROGRESS = 50
POLL_STEP_PROGRESS = 5
POLL_MAX_PROGRESS = 99
FINALIZING_PROGRESS = 95
COMPLETE_PROGRESS = 100


class PollState(Enum):
    IDLE = "idle"
    SUBMITTED = "submitted"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class CancellationToken:
    """
    Cancellation flag threaded through one pipeline run.

    Optionally bound to the asyncio task doing the work so that ``cancel()``
    also interrupts a pending sleep or request.
    """

    def __init__(self):
        self._cancelled = False
        self._task: Optional[asyncio.Task] = None

    def bind(self, task: asyncio.Task) -> None:
        self._task = task

    def cancel(self) -> None:
        self._cancelled = True
        task = self._task
        if task is not None and not task.done():
            task.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelled("Operation was cancelled")


class OperationPoller:
    """Poll a remote operation handle to completion, emitting status ticks."""

    def __init__(
        self,
        refresh: Callable[[Operation], Awaitable[Operation]],
        *,
        interval: float = 10.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        cancel_token: Optional[CancellationToken] = None,
    ):
        self._refresh = refresh
        self._interval = interval
        self._sleep = sleep
        self._token = cancel_token or CancellationToken()
        self._on_progress: Optional[ProgressCallback] = None
        self._last_progress = 0
        self.state = PollState.IDLE
        self.poll_count = 0

    def _emit(self, message: str, progress: int) -> None:
        if self._token.cancelled:
            return
        progress = max(self._last_progress, progress)
        self._last_progress = progress
        if self._on_progress is not None:
            self._on_progress(OperationStatus(message, progress))

    def _checkpoint(self) -> None:
        if self._token.cancelled:
            self.state = PollState.CANCELLED
            self._token.raise_if_cancelled()

    async def run(
        self,
        submit: Callable[[], Awaitable[Operation]],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Operation:
        """
        Submit the job and poll it until the remote side reports completion.

        Args:
            submit: Coroutine factory performing the submit call
            on_progress: Receives an OperationStatus for every tick

        Returns:
            The completed operation handle

        Raises:
            RemoteError: submit/refresh failed or the operation finished with an error
            OperationCancelled: the cancellation token fired
        """
        self._on_progress = on_progress
        self._last_progress = 0
        self.poll_count = 0

        self._emit("Initializing video generation...", INITIAL_PROGRESS)
        try:
            operation = await submit()
            self._checkpoint()
            self.state = PollState.SUBMITTED
            logger.info(f"Operation submitted: {operation.get('name', '<unnamed>')}")
            self._emit("Your request is processing. This may take a few minutes.", SUBMITTED_PROGRESS)

            while not operation.get("done"):
                self.state = PollState.POLLING
                await self._sleep(self._interval)
                self._checkpoint()

                elapsed = int(self.poll_count * self._interval)
                progress = min(POLL_BASE_PROGRESS + self.poll_count * POLL_STEP_PROGRESS, POLL_MAX_PROGRESS)
                self._emit(f"AI is creating your video... ({elapsed}s elapsed)", progress)

                operation = await self._refresh(operation)
                self._checkpoint()
                self.poll_count += 1
                logger.debug(f"Poll #{self.poll_count}: done={bool(operation.get('done'))}")
        except asyncio.CancelledError:
            self.state = PollState.CANCELLED
            raise
        except OperationCancelled:
            self.state = PollState.CANCELLED
            raise
        except EnhancerError:
            self.state = PollState.FAILED
            raise
        except Exception as e:
            self.state = PollState.FAILED
            raise RemoteError(f"Failed to refresh operation status: {e}") from e

        error = operation.get("error")
        if error:
            self.state = PollState.FAILED
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise RemoteError(f"Video generation failed: {message}", status=_error_code(error))

        self.state = PollState.DONE
        logger.info(f"Operation finished after {self.poll_count} poll(s)")
        self._emit("Finalizing video...", FINALIZING_PROGRESS)
        return operation

    def complete(self) -> None:
        """Report 100%; only called after the result has been retrieved."""
        self._checkpoint()
        self._emit("Video generation complete!", COMPLETE_PROGRESS)


def _error_code(error: Any) -> Optional[int]:
    if isinstance(error, dict):
        code = error.get("code")
        if isinstance(code, int):
            return code
    return None
