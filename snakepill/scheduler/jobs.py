"""
Periodic jobs registered on the task scheduler.
"""

from typing import Any, Dict

import structlog

from snakepill.services.container import ServiceContainer
from .task_scheduler import TaskScheduler


logger = structlog.get_logger(__name__)

ELIGIBILITY_CHECK_TASK = "eligibility_check"
ONLINE_CLEANUP_TASK = "online_cleanup"

# Delay before the first eligibility pass after startup
ELIGIBILITY_INITIAL_DELAY = 5


def register_default_tasks(scheduler: TaskScheduler, services: ServiceContainer) -> TaskScheduler:
    """Register the eligibility check and online cleanup tasks."""
    settings = services.settings

    async def eligibility_check() -> Dict[str, Any]:
        result = await services.reconciler.check_all_eligibility()
        return result.to_dict()

    async def online_cleanup() -> int:
        return await services.store.cleanup_offline_players(settings.online_timeout_seconds)

    scheduler.register_task(
        ELIGIBILITY_CHECK_TASK,
        eligibility_check,
        interval_seconds=settings.eligibility_check_interval,
        initial_delay=ELIGIBILITY_INITIAL_DELAY
    )
    scheduler.register_task(
        ONLINE_CLEANUP_TASK,
        online_cleanup,
        interval_seconds=settings.online_cleanup_interval
    )
    return scheduler
