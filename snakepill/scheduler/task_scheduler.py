"""
Task scheduler for periodic background work.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog

from snakepill.core.exceptions import SchedulerError


logger = structlog.get_logger(__name__)


class ScheduledTask:
    """Represents a scheduled task."""

    def __init__(
        self,
        name: str,
        func: Callable[[], Awaitable[Any]],
        interval_seconds: int,
        enabled: bool = True,
        initial_delay: Optional[int] = None
    ):
        self.name = name
        self.func = func
        self.interval_seconds = interval_seconds
        self.enabled = enabled
        self.last_run: Optional[datetime] = None
        self.last_result: Any = None
        self.run_count = 0
        self.error_count = 0
        self.last_error: Optional[str] = None

        first_delay = interval_seconds if initial_delay is None else initial_delay
        self.next_run = datetime.utcnow() + timedelta(seconds=first_delay)

    def should_run(self, now: Optional[datetime] = None) -> bool:
        """Check if task should run now."""
        return self.enabled and (now or datetime.utcnow()) >= self.next_run

    def schedule_next_run(self):
        self.next_run = datetime.utcnow() + timedelta(seconds=self.interval_seconds)

    async def run(self) -> Any:
        """Execute the task; errors are recorded and re-raised."""
        try:
            logger.debug("Running scheduled task", task=self.name)

            start_time = datetime.utcnow()
            self.last_result = await self.func()
            duration = (datetime.utcnow() - start_time).total_seconds()

            self.last_run = start_time
            self.run_count += 1
            self.schedule_next_run()

            logger.debug(
                "Task completed",
                task=self.name,
                duration=duration,
                run_count=self.run_count
            )
            return self.last_result

        except Exception as e:
            self.error_count += 1
            self.last_error = str(e)
            self.schedule_next_run()  # Still schedule next run

            logger.error(
                "Task failed",
                task=self.name,
                error=str(e),
                error_count=self.error_count
            )
            raise

    def status(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "interval_seconds": self.interval_seconds,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "next_run": self.next_run.isoformat(),
            "run_count": self.run_count,
            "error_count": self.error_count,
            "last_error": self.last_error,
        }


class TaskScheduler:
    """Manages scheduled background tasks."""

    def __init__(self, loop_interval: float = 1.0):
        self.tasks: Dict[str, ScheduledTask] = {}
        self.running = False
        self.loop_interval = loop_interval
        self._loop_task: Optional[asyncio.Task] = None

    def register_task(
        self,
        name: str,
        func: Callable[[], Awaitable[Any]],
        interval_seconds: int,
        enabled: bool = True,
        initial_delay: Optional[int] = None
    ) -> ScheduledTask:
        """Register a new scheduled task."""
        if name in self.tasks:
            raise SchedulerError(f"Task already registered: {name}", {"task": name})

        task = ScheduledTask(
            name=name,
            func=func,
            interval_seconds=interval_seconds,
            enabled=enabled,
            initial_delay=initial_delay
        )
        self.tasks[name] = task
        logger.info("Registered task", task=name, interval_seconds=interval_seconds)
        return task

    def enable_task(self, name: str):
        if name in self.tasks:
            self.tasks[name].enabled = True
            logger.info("Enabled task", task=name)

    def disable_task(self, name: str):
        if name in self.tasks:
            self.tasks[name].enabled = False
            logger.info("Disabled task", task=name)

    async def run_pending_tasks(self):
        """Run all due tasks, one after another."""
        pending_tasks = [task for task in self.tasks.values() if task.should_run()]

        for task in pending_tasks:
            try:
                await task.run()
            except Exception:
                # Already logged and counted by the task; next tick retries
                continue

    async def start(self):
        """Run the scheduler loop until stopped."""
        logger.info("Starting task scheduler", tasks=list(self.tasks))
        self.running = True

        while self.running:
            try:
                await self.run_pending_tasks()
                await asyncio.sleep(self.loop_interval)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Task scheduler loop error", error=str(e))
                await asyncio.sleep(self.loop_interval)

        logger.info("Task scheduler stopped")

    def start_background(self) -> asyncio.Task:
        """Start the loop as a background task on the running event loop."""
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self.start())
        return self._loop_task

    async def stop(self):
        logger.info("Stopping task scheduler")
        self.running = False

        if self._loop_task and not self._loop_task.done():
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
        self._loop_task = None

    async def health_check(self) -> Dict[str, Any]:
        """Get health status of task scheduler."""
        total_tasks = len(self.tasks)
        tasks_with_errors = sum(1 for task in self.tasks.values() if task.error_count > 0)

        return {
            "healthy": self.running and tasks_with_errors <= total_tasks * 0.5,
            "running": self.running,
            "total_tasks": total_tasks,
            "enabled_tasks": sum(1 for task in self.tasks.values() if task.enabled),
            "tasks_with_errors": tasks_with_errors,
            "tasks": {name: task.status() for name, task in self.tasks.items()},
        }
