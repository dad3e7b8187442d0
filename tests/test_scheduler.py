from datetime import datetime
from zoneinfo import ZoneInfo

from carpool.scheduler import DailyAt, Every, Scheduler
from carpool.sweeper import schedules

TZ = ZoneInfo("America/New_York")


def at(hour, minute, day=1):
    return datetime(2024, 5, day, hour, minute, tzinfo=TZ)


def test_every_fires_on_wall_clock_boundaries():
    assert Every(5).next_after(at(12, 3)) == at(12, 5)
    assert Every(5).next_after(at(12, 5)) == at(12, 10)
    assert Every(30).next_after(at(12, 29)) == at(12, 30)
    assert Every(60).next_after(at(23, 15)) == at(0, 0, day=2)


def test_daily_fires_once_per_local_day():
    assert DailyAt(2).next_after(at(1, 0)) == at(2, 0)
    assert DailyAt(2).next_after(at(2, 0)) == at(2, 0, day=2)
    assert DailyAt(2).next_after(at(14, 0)) == at(2, 0, day=2)


def test_scheduler_reports_due_jobs_once():
    scheduler = Scheduler({"fast": Every(5), "nightly": DailyAt(2)}, tz="America/New_York")
    scheduler.start(now=at(12, 1))

    assert scheduler.due(now=at(12, 4)) == []
    assert scheduler.due(now=at(12, 5)) == ["fast"]
    assert scheduler.due(now=at(12, 6)) == []
    # A long stall does not replay the missed ticks.
    assert scheduler.due(now=at(12, 40)) == ["fast"]
    assert scheduler.next_runs["fast"] == at(12, 45)
    assert scheduler.due(now=at(2, 0, day=2)) == ["fast", "nightly"]


def test_sweeps_have_their_cadences():
    cadence = {name: repr(schedule) for name, schedule in schedules().items()}
    assert cadence == {
        "rideReminder": "every 5 minutes",
        "cleanupOldRides": "daily at 02:00",
        "autoCompleteExpiredRides": "every 60 minutes",
        "sendCompletionReminders": "every 30 minutes",
    }
