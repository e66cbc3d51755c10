"""
Duty scheduler: which workers are on shift right now.

All wall-clock reasoning happens in the fixed business timezone
(constants.business.BUSINESS_TZ), never the host's local time.

For each active worker with a phone:
1. Take the ISO weekday of the business-local instant.
2. No active shift that day means off duty. Exception: a worker with no
   schedule at all and notifications enabled is always eligible.
3. On duty if the current minute lies in any shift interval (both bounds
   inclusive).
4. An active break for that weekday containing the current minute
   (inclusive) overrides the shift.

Nothing is cached: schedules are re-read on every call.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from feelin_pay.models.worker import Weekday, Worker
from feelin_pay.platform.clock import to_business_local
from feelin_pay.repositories.worker_repository import WorkerRepository

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


def to_minutes(hhmm: str) -> int:
    """
    Convert "HH:MM" (24h) to minutes since midnight.

    Raises:
        ValueError: If the value is not a valid time of day
    """
    try:
        hours_text, minutes_text = hhmm.strip().split(":")
        hours, minutes = int(hours_text), int(minutes_text)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time of day: {hhmm!r}")
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Invalid time of day: {hhmm!r}")
    return hours * 60 + minutes


@dataclass(frozen=True)
class ShiftInterval:
    """A working interval in minutes since midnight, inclusive at both ends."""
    start_minute: int
    end_minute: int

    @classmethod
    def parse(cls, start: str, end: str) -> "ShiftInterval":
        return cls(to_minutes(start), to_minutes(end))

    def contains(self, minute: int) -> bool:
        return self.start_minute <= minute <= self.end_minute


@dataclass(frozen=True)
class BreakInterval(ShiftInterval):
    """A break inside a working day. Same inclusive bounds as a shift."""


@dataclass
class WeeklySchedule:
    """A worker's weekly shifts and breaks, keyed by ISO weekday."""
    shifts: Dict[Weekday, List[ShiftInterval]] = field(default_factory=dict)
    breaks: Dict[Weekday, BreakInterval] = field(default_factory=dict)

    def is_on_duty(self, weekday: Weekday, minute: int) -> bool:
        intervals = self.shifts.get(weekday)
        if not intervals:
            return False
        if not any(interval.contains(minute) for interval in intervals):
            return False
        pause = self.breaks.get(weekday)
        return not (pause is not None and pause.contains(minute))

    @classmethod
    def from_worker(cls, worker: Worker) -> "WeeklySchedule":
        """
        Build a schedule from a worker's active shift/break rows.

        Rows with unparseable times are skipped and logged.
        """
        schedule = cls()
        for shift in worker.shifts:
            if not shift.is_active:
                continue
            try:
                interval = ShiftInterval.parse(shift.start_time, shift.end_time)
            except ValueError as e:
                logger.warning(
                    "Skipping malformed shift",
                    extra={"worker_id": worker.id, "shift_id": shift.id, "error": str(e)},
                )
                continue
            schedule.shifts.setdefault(Weekday(shift.weekday), []).append(interval)

        for pause in worker.breaks:
            if not pause.is_active:
                continue
            try:
                interval = BreakInterval.parse(pause.start_time, pause.end_time)
            except ValueError as e:
                logger.warning(
                    "Skipping malformed break",
                    extra={"worker_id": worker.id, "break_id": pause.id, "error": str(e)},
                )
                continue
            schedule.breaks[Weekday(pause.weekday)] = interval
        return schedule


def has_any_schedule(worker: Worker) -> bool:
    """True if the worker has any shift row at all, active or not."""
    return bool(worker.shifts)


def is_worker_on_duty(worker: Worker, local_now: datetime) -> bool:
    """Decide one worker's duty state at a business-local instant."""
    if not worker.is_active or not (worker.phone or "").strip():
        return False

    if not has_any_schedule(worker):
        return bool(worker.notifications_enabled)

    weekday = Weekday(local_now.isoweekday())
    minute = local_now.hour * 60 + local_now.minute
    return WeeklySchedule.from_worker(worker).is_on_duty(weekday, minute)


def on_duty_phone_numbers(workers: Iterable[Worker], now: Optional[datetime] = None) -> List[str]:
    """Phones of on-duty workers, in the order the workers were given."""
    local_now = to_business_local(now)
    return [worker.phone.strip() for worker in workers if is_worker_on_duty(worker, local_now)]


class DutyScheduler:
    """Computes the on-duty phone list for an owner from the worker directory."""

    def __init__(self, db_session: Session):
        self.workers = WorkerRepository(db_session)

    def on_duty_phones(self, owner_id: str, now: Optional[datetime] = None) -> List[str]:
        workers = self.workers.list_active_with_schedules(owner_id)
        phones = on_duty_phone_numbers(workers, now)
        logger.info(
            "On-duty workers computed",
            extra={"owner_id": owner_id, "candidates": len(workers), "on_duty": len(phones)},
        )
        return phones
