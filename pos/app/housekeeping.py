"""Daily statistics rollup followed by order retention.

Once a day at ``run_hour`` (server local time) the housekeeper records
per-item totals of yesterday's served orders into ``daily_stats`` and then
deletes orders older than the retention window together with their items.
Statistics days are UTC calendar days, matching stored timestamps.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from .repos import Storage
from .routes_metrics import housekeeping_failures_total, housekeeping_runs_total

logger = logging.getLogger("pos.housekeeping")


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class HousekeepingResult:
    stats_day: date
    stats_recorded: int
    orders_deleted: int


class Housekeeper:
    """Run :meth:`run_once` every day at ``run_hour``."""

    def __init__(
        self,
        storage: Storage,
        retention_days: int = 30,
        run_hour: int = 2,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        if not 0 <= run_hour <= 23:
            raise ValueError(f"run_hour must be between 0 and 23, got {run_hour}")
        self.storage = storage
        self.retention_days = retention_days
        self.run_hour = run_hour
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    def next_run(self, now: datetime) -> datetime:
        """Return the next ``run_hour:00`` strictly after ``now``."""

        candidate = now.replace(hour=self.run_hour, minute=0, second=0, microsecond=0)
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate

    async def run_once(self, now: Optional[datetime] = None) -> HousekeepingResult:
        """Record yesterday's statistics, then prune expired orders."""

        now = now or self._clock()
        now_utc = now.astimezone(timezone.utc)
        stats_day = now_utc.date() - timedelta(days=1)
        recorded = await self.storage.generate_daily_stats(stats_day)
        cutoff = now_utc - timedelta(days=self.retention_days)
        deleted = await self.storage.delete_orders_before(cutoff)
        housekeeping_runs_total.inc()
        logger.info(
            "housekeeping: %d stats rows for %s, %d orders older than %s removed",
            recorded,
            stats_day.isoformat(),
            deleted,
            cutoff.isoformat(),
        )
        return HousekeepingResult(stats_day, recorded, deleted)

    async def _loop(self) -> None:
        while True:
            now = self._clock()
            delay = (self.next_run(now) - now).total_seconds()
            logger.debug("next housekeeping run in %.0fs", delay)
            await asyncio.sleep(delay)
            try:
                await self.run_once()
            except Exception:
                housekeeping_failures_total.inc()
                logger.exception("housekeeping run failed")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
