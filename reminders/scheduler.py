"""
Deadline reminder scheduler.

A polling loop that, once per interval:
- fetches every user with their full task list,
- emails a reminder for each incomplete task whose deadline is inside the window,
- waits for the next interval or a stop signal.

Already-passed deadlines are inside the window too. Nothing records that a
reminder went out, so a due task is reminded again on every pass.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Iterator
from datetime import datetime, timedelta, timezone
from typing import Callable

from auth.database import UserDatabase
from auth.email_service import EmailService
from auth.models import Task, User

logger = logging.getLogger(__name__)


def due_tasks(
    users: Iterable[User], now: datetime, window: timedelta
) -> Iterator[tuple[User, Task]]:
    """Yield (user, task) for every incomplete task due within window of now."""
    for user in users:
        for task in user.tasks:
            if not task.complete and task.deadline - now < window:
                yield user, task


class DeadlineScheduler:
    """Background reminder loop with an explicit start/stop lifecycle."""

    def __init__(
        self,
        user_db: UserDatabase,
        email_service: EmailService,
        *,
        interval_seconds: float = 3600.0,
        window: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._user_db = user_db
        self._email_service = email_service
        self._interval_seconds = max(0.0, float(interval_seconds))
        self._window = window
        self._clock = clock
        self._stop = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def scan_once(self) -> int:
        """
        Run one pass over all users.

        Returns the number of reminders attempted. Raises if the users
        cannot be fetched; a failed send is logged and skipped.
        """
        users = await self._user_db.list_users()
        now = self._clock()
        attempted = 0

        for user, task in due_tasks(users, now, self._window):
            attempted += 1
            try:
                sent = await asyncio.to_thread(
                    self._email_service.send_deadline_reminder, user.email, task
                )
            except Exception:
                logger.exception("reminder send failed email=%s task_id=%s", user.email, task.id)
                continue
            if not sent:
                logger.warning("reminder not delivered email=%s task_id=%s", user.email, task.id)

        logger.info("deadline scan done: %s reminder(s) for %s user(s)", attempted, len(users))
        return attempted

    async def run(self) -> None:
        """
        Scan, then wait interval_seconds, until stop() is called.

        A failed scan is logged and retried after the same interval.
        Cancelling the coroutine also ends the loop.
        """
        while not self._stop.is_set():
            try:
                await self.scan_once()
            except Exception:
                logger.exception("deadline scan failed")

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval_seconds)
            except asyncio.TimeoutError:
                pass

    def start(self) -> asyncio.Task:
        """Start the loop as a background task on the running event loop."""
        if self.is_running:
            return self._task
        self._stop.clear()
        self._task = asyncio.create_task(self.run(), name="deadline-scheduler")
        logger.info("Deadline scheduler started (interval=%ss)", self._interval_seconds)
        return self._task

    async def stop(self) -> None:
        """Signal the loop to stop and wait for it to finish its current pass."""
        self._stop.set()
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                # Already cancelled by someone else; only our own cancellation propagates
                if not self._task.cancelled():
                    raise
            self._task = None
        logger.info("Deadline scheduler stopped")
