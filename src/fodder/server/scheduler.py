from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

PERSIST_JOB_ID = "persist-food-config"


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _build_trigger(seconds: int) -> IntervalTrigger:
    if int(seconds) <= 0:
        raise ValueError("Persist interval requires positive 'seconds'.")
    return IntervalTrigger(seconds=int(seconds), timezone="UTC")


class PersistScheduler:
    """Runs the session-persisting trigger on a fixed interval."""

    def __init__(self, persist: Callable[[], Any], interval_seconds: int) -> None:
        self.persist = persist
        self.interval_seconds = int(interval_seconds)
        self.scheduler = BackgroundScheduler(timezone="UTC")

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
        self.reschedule(self.interval_seconds)

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def reschedule(self, seconds: int) -> dict[str, Any]:
        trigger = _build_trigger(seconds)
        self.scheduler.add_job(
            func=self._fire,
            trigger=trigger,
            id=PERSIST_JOB_ID,
            replace_existing=True,
            misfire_grace_time=60,
            coalesce=True,
            max_instances=1,
        )
        self.interval_seconds = int(seconds)
        return self.describe()

    def describe(self) -> dict[str, Any]:
        job = self.scheduler.get_job(PERSIST_JOB_ID)
        return {
            "job_id": PERSIST_JOB_ID,
            "interval_seconds": self.interval_seconds,
            "next_run_at": _iso(job.next_run_time) if job else None,
        }

    def _fire(self) -> None:
        try:
            result = self.persist()
        except Exception as exc:
            logger.exception("Scheduled persist failed: %s", exc)
            return
        logger.info("Scheduled persist finished: %s", getattr(result, "action", result))
