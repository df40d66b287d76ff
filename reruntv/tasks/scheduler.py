"""
Task scheduler for periodic background tasks.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ScheduledTask:
    """A scheduled task configuration."""

    name: str
    func: Callable
    interval_seconds: float
    run_immediately: bool = False
    args: tuple = field(default_factory=tuple)
    kwargs: Dict[str, Any] = field(default_factory=dict)

    # State
    last_run: Optional[datetime] = None
    next_run: Optional[datetime] = None
    run_count: int = 0
    error_count: int = 0
    last_error: Optional[str] = None
    is_running: bool = False

    def calculate_next_run(self) -> datetime:
        """Calculate the next run time."""
        base = self.last_run or datetime.now()
        return base + timedelta(seconds=self.interval_seconds)


class TaskScheduler:
    """
    Task scheduler for periodic background tasks.

    Each task runs in its own asyncio task so it can be started, stopped
    and cancelled independently of the others. A failing run is logged
    and the task simply tries again on its next interval.
    """

    def __init__(self):
        self._tasks: Dict[str, ScheduledTask] = {}
        self._runners: Dict[str, asyncio.Task] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def add_task(
        self,
        name: str,
        func: Callable,
        interval_seconds: float,
        run_immediately: bool = False,
        *args,
        **kwargs,
    ) -> None:
        """
        Add a scheduled task.

        Args:
            name: Unique task name
            func: Sync or async function to execute
            interval_seconds: Run interval in seconds
            run_immediately: Run once immediately on start
            args: Function arguments
            kwargs: Function keyword arguments
        """
        if interval_seconds <= 0:
            raise ValueError(f"Task {name} needs a positive interval, got {interval_seconds}")

        task = ScheduledTask(
            name=name,
            func=func,
            interval_seconds=interval_seconds,
            run_immediately=run_immediately,
            args=args,
            kwargs=kwargs,
        )
        self._tasks[name] = task
        logger.info(f"Scheduled task added: {name} (every {interval_seconds}s)")

        if self._running:
            self._spawn(task)

    def remove_task(self, name: str) -> bool:
        """Remove a scheduled task, cancelling it if it is running."""
        if name not in self._tasks:
            return False
        runner = self._runners.pop(name, None)
        if runner:
            runner.cancel()
        del self._tasks[name]
        logger.info(f"Scheduled task removed: {name}")
        return True

    async def start(self) -> None:
        """Start all registered tasks."""
        if self._running:
            return

        self._running = True
        for task in self._tasks.values():
            self._spawn(task)
        logger.info(f"Task scheduler started with {len(self._tasks)} tasks")

    async def stop(self) -> None:
        """Stop all tasks and wait for them to finish cancelling."""
        if not self._running:
            return

        self._running = False
        runners = list(self._runners.values())
        self._runners.clear()

        for runner in runners:
            runner.cancel()
        for runner in runners:
            try:
                await runner
            except asyncio.CancelledError:
                pass

        logger.info("Task scheduler stopped")

    async def stop_task(self, name: str) -> bool:
        """Stop a single task without unregistering it."""
        runner = self._runners.pop(name, None)
        if not runner:
            return False
        runner.cancel()
        try:
            await runner
        except asyncio.CancelledError:
            pass
        logger.info(f"Scheduled task stopped: {name}")
        return True

    async def run_task(self, name: str) -> bool:
        """Manually trigger a scheduled task."""
        task = self._tasks.get(name)
        if not task:
            return False

        await self._execute_task(task)
        return True

    def get_tasks(self) -> List[Dict[str, Any]]:
        """Get all scheduled tasks."""
        return [
            {
                "name": t.name,
                "interval_seconds": t.interval_seconds,
                "last_run": t.last_run.isoformat() if t.last_run else None,
                "next_run": t.next_run.isoformat() if t.next_run else None,
                "run_count": t.run_count,
                "error_count": t.error_count,
                "last_error": t.last_error,
                "is_running": t.is_running,
                "active": t.name in self._runners,
            }
            for t in self._tasks.values()
        ]

    def _spawn(self, task: ScheduledTask) -> None:
        self._runners[task.name] = asyncio.create_task(
            self._task_loop(task), name=f"scheduled:{task.name}"
        )

    async def _task_loop(self, task: ScheduledTask) -> None:
        """Run one task forever on its interval."""
        if task.run_immediately:
            await self._execute_task(task)
        else:
            task.next_run = datetime.now() + timedelta(seconds=task.interval_seconds)

        while True:
            await asyncio.sleep(task.interval_seconds)
            await self._execute_task(task)

    async def _execute_task(self, task: ScheduledTask) -> None:
        """Execute a scheduled task."""
        task.is_running = True
        task.last_run = datetime.now()

        try:
            logger.debug(f"Running scheduled task: {task.name}")

            result = task.func(*task.args, **task.kwargs)
            if inspect.isawaitable(result):
                await result

            task.run_count += 1
            logger.debug(f"Scheduled task completed: {task.name}")

        except asyncio.CancelledError:
            raise
        except Exception as e:
            task.error_count += 1
            task.last_error = str(e)
            logger.error(f"Scheduled task failed: {task.name}: {e}")

        finally:
            task.is_running = False
            task.next_run = task.calculate_next_run()
