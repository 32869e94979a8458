"""
Transfer scheduling.

Runs one asyncio task per transfer request and delivers its outcome to a
completion callback exactly once, on the caller-facing event loop.
"""
import asyncio
from typing import Any, Awaitable, Callable, Optional, Set

from .logging import get_logger

# Receives (result, error); exactly one of them is not None
Completion = Callable[[Any, Optional[BaseException]], None]

logger = get_logger('securetransfer.scheduler')


class TransferScheduler:
    """
    Task runner for transfer orchestration.

    All pipeline state lives on the loop the tasks run on. Completion
    callbacks are posted with ``call_soon_threadsafe`` to the callback
    loop, so they never run inside a pipeline step.

    There is no cancellation API: a submitted request runs to completion
    or failure.
    """

    def __init__(self, callback_loop: Optional[asyncio.AbstractEventLoop] = None):
        """
        Initialize scheduler.

        Args:
            callback_loop: Loop completions are delivered on
                (defaults to the loop running the task)
        """
        self._callback_loop = callback_loop
        self._active: Set[asyncio.Task] = set()

    @property
    def active_count(self) -> int:
        """Number of requests still running."""
        return len(self._active)

    def submit(
        self,
        coro: Awaitable[Any],
        completion: Optional[Completion] = None,
        name: Optional[str] = None
    ) -> asyncio.Task:
        """
        Start a request.

        Args:
            coro: Request coroutine
            completion: Optional callback(result, error)
            name: Task name for debugging

        Returns:
            The task running the request
        """
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        self._active.add(task)

        def on_done(finished: asyncio.Task) -> None:
            self._active.discard(finished)
            if finished.cancelled():
                error: Optional[BaseException] = asyncio.CancelledError()
                result = None
            else:
                error = finished.exception()
                result = None if error else finished.result()
            if completion is not None:
                self._deliver(completion, result, error)
            elif error is not None:
                logger.error(f"Transfer task failed without completion handler: {error}")

        task.add_done_callback(on_done)
        return task

    def _deliver(self, completion: Completion, result: Any, error: Optional[BaseException]) -> None:
        loop = self._callback_loop or asyncio.get_running_loop()

        def invoke() -> None:
            try:
                completion(result, error)
            except Exception as e:
                logger.error(f"Completion handler raised: {e}")

        loop.call_soon_threadsafe(invoke)

    async def drain(self) -> None:
        """Wait for every running request to finish."""
        while self._active:
            await asyncio.gather(*list(self._active), return_exceptions=True)
        # let already-posted completions run
        await asyncio.sleep(0)
