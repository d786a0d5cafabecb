"""
Overdue Sweep Scheduler

Runs the overdue sweep on a fixed interval in a background thread.

The sweeper is an object with an explicit lifecycle: the FastAPI
lifespan starts it and stops it on shutdown. Tests call ``run_once``
directly instead of waiting for the timer.

A sweep that fails (database not reachable yet, tables not created) is
logged and retried on the next tick; it never takes the process down.
"""

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from datetime import timedelta

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from library_api.database import SessionLocal
from library_api.services.borrowings import BorrowingService
from library_api.services.events import EventSink
from library_api.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)

JOB_ID = "overdue_sweep"


def run_overdue_sweep(
    session_factory: Callable[[], AbstractContextManager[Session]] = SessionLocal,
    clock: Clock = utcnow,
    events: EventSink | None = None,
) -> int:
    """
    One sweep with its own database session.

    Returns:
        Number of borrowings that became overdue
    """
    with session_factory() as db:
        return BorrowingService(db, clock=clock, events=events).mark_overdue()


class OverdueSweeper:
    """
    Periodic overdue sweep owned by the application lifecycle.

    Usage:
        sweeper = OverdueSweeper(run_overdue_sweep, interval_seconds=3600)
        sweeper.start()
        ...
        sweeper.stop()
    """

    def __init__(
        self,
        sweep: Callable[[], int] = run_overdue_sweep,
        interval_seconds: int = 3600,
        initial_delay_seconds: int = 5,
        clock: Clock = utcnow,
    ):
        self._sweep = sweep
        self.interval_seconds = interval_seconds
        self.initial_delay_seconds = initial_delay_seconds
        self._clock = clock
        self._scheduler: BackgroundScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def run_once(self) -> int:
        """Run a sweep now. Errors are logged and reported as 0 changes."""
        try:
            count = self._sweep()
        except SQLAlchemyError as exc:
            logger.warning(f"Overdue sweep skipped, database not ready: {exc}")
            return 0
        except Exception:
            logger.exception("Overdue sweep failed")
            return 0
        logger.debug(f"Overdue sweep finished: {count} borrowing(s) marked overdue")
        return count

    def start(self) -> None:
        """Schedule the sweep. Calling start on a running sweeper does nothing."""
        if self.running:
            return

        scheduler = BackgroundScheduler(timezone="UTC")
        scheduler.add_job(
            func=self.run_once,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,  # never overlap two sweeps
            coalesce=True,  # collapse missed runs into one
            next_run_time=self._clock() + timedelta(seconds=self.initial_delay_seconds),
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            f"Overdue sweep scheduled every {self.interval_seconds}s "
            f"(first run in {self.initial_delay_seconds}s)"
        )

    def stop(self) -> None:
        """Stop the schedule. Safe to call when not started."""
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Overdue sweep stopped")
        self._scheduler = None
