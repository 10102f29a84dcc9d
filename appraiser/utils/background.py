"""Fire-and-forget background work with bounded flushing."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[Any]]


async def run_with_deadline(
    awaitable: Awaitable[Any], timeout: float, label: str
) -> Optional[Any]:
    """Await something under a hard timeout.

    Args:
        awaitable: Coroutine or future to await
        timeout: Deadline in seconds
        label: Name used in log messages

    Returns:
        The awaited result, or None if it timed out or raised
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"{label} exceeded {timeout:.1f}s deadline; continuing without it")
    except Exception as e:
        logger.warning(f"{label} failed: {e}")
    return None


class BackgroundWriter:
    """Queue of jobs that run once, off the response path.

    ``submit`` never blocks. ``flush`` runs every queued job concurrently
    exactly once under a single deadline. Failures and timeouts are logged
    and never raised. Jobs that miss the deadline are cancelled, not retried.
    """

    def __init__(self, name: str = "background"):
        self.name = name
        self._pending: List[Tuple[str, Job]] = []
        self._tasks: List[asyncio.Task] = []

    @property
    def pending_count(self) -> int:
        """Number of jobs waiting for the next flush."""
        return len(self._pending)

    def submit(self, label: str, job: Job) -> None:
        """Queue a job for the next flush.

        Args:
            label: Name used in log messages
            job: Zero-argument callable returning an awaitable
        """
        self._pending.append((label, job))

    def schedule(self, timeout: float) -> Optional[asyncio.Task]:
        """Start a flush on the running loop without awaiting it.

        Returns:
            The flush task, or None when nothing is queued
        """
        if not self._pending:
            return None
        task = asyncio.get_running_loop().create_task(self.flush(timeout))
        self._tasks.append(task)
        task.add_done_callback(self._forget)
        return task

    def _forget(self, task: asyncio.Task) -> None:
        if task in self._tasks:
            self._tasks.remove(task)

    async def drain(self) -> None:
        """Wait for flushes started with ``schedule``."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def flush(self, timeout: float) -> int:
        """Run all queued jobs once.

        Args:
            timeout: Deadline in seconds for the whole batch

        Returns:
            Number of jobs that completed successfully
        """
        jobs, self._pending = self._pending, []
        if not jobs:
            return 0

        tasks = {
            asyncio.create_task(self._run(label, job)): label for label, job in jobs
        }
        done, pending = await asyncio.wait(tasks.keys(), timeout=timeout)

        for task in pending:
            task.cancel()
            logger.warning(
                f"[{self.name}] {tasks[task]} did not finish within {timeout:.1f}s; dropped"
            )
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        return sum(1 for task in done if task.result())

    async def _run(self, label: str, job: Job) -> bool:
        try:
            await job()
            return True
        except Exception as e:
            logger.warning(f"[{self.name}] {label} failed: {e}")
            return False
