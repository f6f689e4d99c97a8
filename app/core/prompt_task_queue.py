"""In-process queue for prompt generation work.

Triggers submit coroutine functions here and return immediately; a small
pool of asyncio workers runs them in the background. A failed task is logged
and counted, it never stops the worker that ran it.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class _QueuedTask:
    label: str
    coro_fn: Callable[..., Awaitable[Any]]
    args: tuple
    kwargs: dict = field(default_factory=dict)
    queued_at: float = field(default_factory=time.time)


class PromptTaskQueue:
    """Background worker pool for generation workflows.

    Workers start lazily on first submit (or via start()) inside the running
    event loop. Call stop() on shutdown.
    """

    def __init__(self, worker_count: int | None = None):
        self.worker_count = worker_count or get_settings().PROMPT_WORKER_COUNT
        self._queue: asyncio.Queue[_QueuedTask] | None = None
        self._workers: list[asyncio.Task] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._processed_count = 0
        self._error_count = 0

    @property
    def running(self) -> bool:
        return bool(self._workers) and not all(w.done() for w in self._workers)

    @property
    def stats(self) -> dict[str, Any]:
        """Get queue statistics."""
        return {
            "running": self.running,
            "workers": len(self._workers),
            "pending": self._queue.qsize() if self._queue else 0,
            "processed_count": self._processed_count,
            "error_count": self._error_count,
        }

    def start(self) -> None:
        """Start workers in the running event loop. No-op if already running there."""
        loop = asyncio.get_running_loop()
        if self.running and self._loop is loop:
            return

        self._loop = loop
        self._queue = asyncio.Queue()
        self._workers = [
            loop.create_task(self._worker(i), name=f"prompt-worker-{i}")
            for i in range(self.worker_count)
        ]
        logger.info(f"Started prompt task queue with {self.worker_count} workers")

    def submit(self, coro_fn: Callable[..., Awaitable[Any]], *args: Any, label: str | None = None, **kwargs: Any) -> None:
        """
        Schedule `coro_fn(*args, **kwargs)` and return without waiting.

        Args:
            coro_fn: Async callable to run on a worker
            label: Name used in log lines (defaults to the function name)
        """
        self.start()
        task = _QueuedTask(
            label=label or getattr(coro_fn, "__name__", "task"),
            coro_fn=coro_fn,
            args=args,
            kwargs=kwargs,
        )
        self._queue.put_nowait(task)
        logger.debug(f"Queued {task.label} (pending: {self._queue.qsize()})")

    async def drain(self) -> None:
        """Wait until every submitted task has finished."""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self) -> None:
        """Cancel the workers. Pending tasks are dropped."""
        if not self._workers:
            return
        logger.info("Stopping prompt task queue...")
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self._queue = None
        self._loop = None
        logger.info("Prompt task queue stopped")

    async def _worker(self, index: int) -> None:
        while True:
            task = await self._queue.get()
            try:
                await self._run(task)
            finally:
                self._queue.task_done()

    async def _run(self, task: _QueuedTask) -> None:
        t0 = time.time()
        try:
            await task.coro_fn(*task.args, **task.kwargs)
            self._processed_count += 1
            logger.debug(
                f"Finished {task.label} in {int((time.time() - t0) * 1000)}ms "
                f"(waited {int((t0 - task.queued_at) * 1000)}ms)"
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._error_count += 1
            logger.exception(f"Background task {task.label} failed: {e}")


# Global queue instance (started by the app lifespan)
_task_queue: PromptTaskQueue | None = None


def get_task_queue() -> PromptTaskQueue:
    """Get or create the global task queue."""
    global _task_queue
    if _task_queue is None:
        _task_queue = PromptTaskQueue()
    return _task_queue
