import asyncio
import logging
from typing import Any, Coroutine


class TaskSpawner:
    """
    Spawns asyncio tasks behind a counting admission gate.

    At most `limit` spawned tasks are running at any instant: `spawn`
    waits for a free slot before creating the task, and each completed
    task gives its slot back. This bounds fan-out (open descriptors,
    executor queue depth), not per-key ordering.

    All tasks are tracked until completion. A task that raises is logged
    and counted as failed; it never cancels its siblings.
    """

    def __init__(
        self,
        limit: int,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be a positive integer")

        self._loop = loop
        self._limit = limit
        self._gate = asyncio.Semaphore(limit)
        self._tasks: set[asyncio.Task[Any]] = set()
        self._in_flight = 0
        self._peak_in_flight = 0
        self._completed = 0
        self._failed = 0
        self._logger = logging.getLogger("core.helpers.spawn")

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def remaining_tasks(self) -> int:
        """Number of tasks spawned and not yet completed."""
        return len(self._tasks)

    @property
    def in_flight(self) -> int:
        """Number of tasks currently past the admission gate."""
        return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        return self._peak_in_flight

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def failed(self) -> int:
        return self._failed

    def on_done(self, task: asyncio.Task[Any]) -> None:
        """
        Callback executed when a spawned task completes.

        Gives the admission slot back, logs the exception of a failed
        task and stops tracking it.
        """
        self._in_flight -= 1
        self._completed += 1
        self._gate.release()

        if task.cancelled():
            self._failed += 1
            self._logger.error(f"Task {task.get_name()} was cancelled")
        elif ex := task.exception():
            self._failed += 1
            self._logger.error(
                f"Error occurred in task {task.get_name()}: {str(ex)}",
                exc_info=ex
            )

        self._tasks.discard(task)

    async def spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[Any]:
        """
        Wait for an admission slot, then schedule `coro` as a tracked task.
        """
        try:
            await self._gate.acquire()
        except BaseException:
            coro.close()
            raise

        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(coro)
        self._in_flight += 1
        self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
        task.add_done_callback(self.on_done)
        self._tasks.add(task)
        return task

    async def drain(self) -> None:
        """Wait until every tracked task has completed."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))
