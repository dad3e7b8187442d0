import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from . import config

logger = logging.getLogger(__name__)


class Every:
    """Fire on wall-clock boundaries divisible by `minutes` (every 5 minutes -> :00, :05, ...)."""

    def __init__(self, minutes):
        self.minutes = minutes

    def next_after(self, moment):
        floored = moment.replace(second=0, microsecond=0)
        since_midnight = floored.hour * 60 + floored.minute
        return floored + timedelta(minutes=self.minutes - since_midnight % self.minutes)

    def __repr__(self):
        return f"every {self.minutes} minutes"


class DailyAt:
    def __init__(self, hour, minute=0):
        self.hour = hour
        self.minute = minute

    def next_after(self, moment):
        candidate = moment.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)
        if candidate <= moment:
            candidate += timedelta(days=1)
        return candidate

    def __repr__(self):
        return f"daily at {self.hour:02d}:{self.minute:02d}"


class Scheduler:
    """Tracks when each named job is next due, in one fixed time zone.

    Missed ticks are not replayed: a job that is overdue runs once and is then
    rescheduled from the current time.
    """

    def __init__(self, schedules, tz=config.SCHEDULE_TIMEZONE):
        self.schedules = dict(schedules)
        self.tz = ZoneInfo(tz)
        self.next_runs = {}

    def now(self):
        return datetime.now(self.tz)

    def start(self, now=None):
        now = now or self.now()
        for name, schedule in self.schedules.items():
            self.next_runs[name] = schedule.next_after(now)
            logger.info(f"[Scheduler] {name} ({schedule!r}) next at {self.next_runs[name].isoformat()}")

    def due(self, now=None):
        now = now or self.now()
        ready = []
        for name, next_run in self.next_runs.items():
            if now >= next_run:
                ready.append(name)
                self.next_runs[name] = self.schedules[name].next_after(now)
        return ready
