"""
Background scheduling for periodic eligibility checks and presence cleanup.
"""

from .task_scheduler import ScheduledTask, TaskScheduler
from .jobs import register_default_tasks

__all__ = ["ScheduledTask", "TaskScheduler", "register_default_tasks"]
