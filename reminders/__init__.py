"""Deadline reminders: periodic scan of all tasks and email dispatch."""

from .scheduler import DeadlineScheduler, due_tasks

__all__ = ["DeadlineScheduler", "due_tasks"]
