"""
RerunTV Background Task System

Interval scheduling for the channel's housekeeping work
(schedule persistence, library rescans).
"""

from reruntv.tasks.scheduler import ScheduledTask, TaskScheduler

__all__ = [
    "ScheduledTask",
    "TaskScheduler",
]
