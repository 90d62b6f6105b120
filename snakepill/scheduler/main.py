"""
Main entry point for the standalone scheduler service.
Runs the eligibility check and online cleanup without the HTTP API.
"""

import asyncio
import signal
from typing import Optional

import structlog

from snakepill.core.config import Settings, get_settings
from snakepill.core.logging import setup_logging
from snakepill.services.container import ServiceContainer
from .jobs import register_default_tasks
from .task_scheduler import TaskScheduler


logger = structlog.get_logger(__name__)

HEALTH_CHECK_INTERVAL = 300


class SchedulerMain:
    """Main scheduler service coordinator."""

    def __init__(self, settings: Settings, services: Optional[ServiceContainer] = None):
        self.settings = settings
        self.services = services or ServiceContainer(settings)
        self.task_scheduler: Optional[TaskScheduler] = None
        self.running = False
        self.stopped = False
        self.tasks = []

    async def initialize(self):
        """Initialize scheduler components."""
        try:
            logger.info("Initializing scheduler service")

            await self.services.start()

            self.task_scheduler = TaskScheduler()
            register_default_tasks(self.task_scheduler, self.services)

            logger.info("Scheduler service initialized successfully")

        except Exception as e:
            logger.error("Failed to initialize scheduler", error=str(e))
            raise

    async def start(self):
        """Start the scheduler service and wait until it stops."""
        logger.info("Starting scheduler service")
        self.running = True

        self.tasks.append(asyncio.create_task(self.task_scheduler.start()))
        self.tasks.append(asyncio.create_task(self._periodic_health_check()))

        logger.info("Scheduler service started")
        await asyncio.gather(*self.tasks, return_exceptions=True)

    async def stop(self):
        """Stop the scheduler service."""
        if self.stopped:
            return

        logger.info("Stopping scheduler service")
        self.running = False
        self.stopped = True

        if self.task_scheduler:
            await self.task_scheduler.stop()

        for task in self.tasks:
            if not task.done():
                task.cancel()
        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)

        await self.services.close()
        logger.info("Scheduler service stopped")

    async def _periodic_health_check(self):
        while self.running:
            try:
                await asyncio.sleep(HEALTH_CHECK_INTERVAL)
                if not self.running:
                    break

                health = await self.task_scheduler.health_check()
                logger.info("Scheduler health check", task_scheduler=health)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Health check error", error=str(e))


async def main():
    """Main function to run the scheduler service."""
    settings = get_settings()
    setup_logging(settings)

    scheduler = SchedulerMain(settings)

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(
            signum,
            lambda s=signum: (
                logger.info("Received signal, shutting down", signal=s),
                asyncio.ensure_future(scheduler.stop()),
            )
        )

    try:
        await scheduler.initialize()
        await scheduler.start()
    except Exception as e:
        logger.error("Scheduler service failed", error=str(e))
        raise
    finally:
        await scheduler.stop()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
