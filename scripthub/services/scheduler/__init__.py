"""Delayed job runner module."""

from scripthub.services.scheduler.scheduler_service import SchedulerService, scheduler_service

__all__ = [
    "SchedulerService",
    "scheduler_service",
]
