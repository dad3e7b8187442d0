"""
Time-triggered sweeps over the rides collection.

Each job selects by status and ride_datetime, applies its effect and returns a
small summary dict. Jobs hold a redis lease for their duration so overlapping
ticks of the same job do not double-process rides.
"""

import logging
from datetime import timedelta

from fastapi.encoders import jsonable_encoder
from sqlalchemy import select

from . import templates
from .batch import ArchiveRide, SetFields
from .models import Ride, RideStatus
from .notifications import fan_out
from .scheduler import DailyAt, Every
from .schemas import DocumentEvent, RideSnapshot, snapshot

logger = logging.getLogger(__name__)

REMINDER_LEAD = timedelta(minutes=30)
REMINDER_WINDOW = timedelta(minutes=5)
ARCHIVE_AFTER = timedelta(days=30)
AUTO_COMPLETE_AFTER = timedelta(hours=2)
COMPLETION_REMINDER_AFTER = timedelta(hours=1)


def active_rides_between(ctx, start, end):
    """Active rides with start <= ride_datetime < end."""
    return ctx.db.execute(
        select(Ride).where(
            Ride.status == RideStatus.ACTIVE,
            Ride.ride_datetime >= start,
            Ride.ride_datetime < end,
        ).order_by(Ride.ride_datetime)
    ).scalars().all()


async def ride_reminder(ctx):
    now = ctx.clock()
    rides = active_rides_between(ctx, now + REMINDER_LEAD, now + REMINDER_LEAD + REMINDER_WINDOW)
    logger.info(f"[Sweeper] Found {len(rides)} rides starting soon")

    tasks = []
    for ride in rides:
        data = {"type": "ride_reminder", "rideID": ride.id, "screen": "RideDetails"}
        driver = ctx.get_user(ride.driver_id)
        if driver is not None:
            tasks.append(ctx.notifier.notify_push(
                driver.fcm_token,
                "⏰ Ride Starting Soon!",
                f"Your ride to {ride.destination} starts at {ride.time}. Get ready!",
                data,
            ))
        for rider in ctx.get_users(ride.riders):
            tasks.append(ctx.notifier.notify_push(
                rider.fcm_token,
                "⏰ Ride Reminder",
                f"Your ride to {ride.destination} starts at {ride.time}. Be ready!",
                data,
            ))
        tasks.append(ctx.post_system_message(ride.id, "⏰ Reminder: Ride starts in 30 minutes!"))

    await fan_out(*tasks)
    return {"ridesReminded": len(rides)}


async def stale_ride_archival(ctx):
    cutoff = ctx.clock() - ARCHIVE_AFTER
    rides = ctx.db.execute(
        select(Ride).where(
            Ride.ride_datetime < cutoff,
            Ride.status.in_(RideStatus.TERMINAL),
        ).order_by(Ride.ride_datetime)
    ).scalars().all()
    logger.info(f"[Sweeper] Found {len(rides)} old rides to archive")

    archived_at = ctx.clock()
    mutations = [
        ArchiveRide(
            ride.id,
            jsonable_encoder({c.name: getattr(ride, c.name) for c in Ride.__table__.columns}),
            archived_at,
        )
        for ride in rides
    ]
    result = ctx.batch_writer().commit(mutations)
    if result.failed:
        logger.error(
            f"[Sweeper] Archival stopped after {result.committed_count} rides; "
            f"the rest will be picked up on the next run"
        )

    # Only trees of rides whose archive chunk actually committed are removed.
    await fan_out(*[
        ctx.remove_ride_trees(mutation.doc_id)
        for mutation in result.committed
    ])
    logger.info(f"[Sweeper] Archived {result.committed_count} old rides")
    return {"archivedCount": result.committed_count, "chunkSizes": result.chunk_sizes}


async def auto_complete_expired(ctx):
    now = ctx.clock()
    rides = ctx.db.execute(
        select(Ride).where(
            Ride.status == RideStatus.ACTIVE,
            Ride.ride_datetime < now - AUTO_COMPLETE_AFTER,
        )
    ).scalars().all()

    if not rides:
        logger.info("[Sweeper] No expired rides found")
        return {"completedCount": 0}

    befores = {ride.id: snapshot(RideSnapshot, ride) for ride in rides}
    result = ctx.batch_writer().commit([
        SetFields(
            Ride, ride.id,
            status=RideStatus.COMPLETED, completed_at=now, auto_completed=True, updated_at=now,
        )
        for ride in rides
    ])

    # Re-emit the status flip so the ride state machine sends rating prompts.
    if ctx.events is not None:
        for mutation in result.committed:
            before = befores[mutation.doc_id]
            after = dict(before, status=RideStatus.COMPLETED, auto_completed=True,
                         completed_at=now.isoformat())
            ctx.events.emit(DocumentEvent(
                resource="rides", kind="update", document_id=mutation.doc_id,
                before=before, after=after,
            ))

    logger.info(f"[Sweeper] Successfully auto-completed {result.committed_count} expired rides")
    return {"completedCount": result.committed_count}


async def completion_reminder(ctx):
    now = ctx.clock()
    rides = active_rides_between(ctx, now - AUTO_COMPLETE_AFTER, now - COMPLETION_REMINDER_AFTER)

    if not rides:
        logger.info("[Sweeper] No rides needing completion reminders")
        return {"remindersSent": 0}

    tasks = []
    for ride in rides:
        driver = ctx.get_user(ride.driver_id)
        if driver is not None:
            tasks.append(ctx.notifier.notify_push(
                driver.fcm_token,
                "✅ Mark Ride as Complete?",
                f"Your ride to {ride.destination} should be finished. Please mark it as complete.",
                {"type": "completion_reminder", "rideID": ride.id, "screen": "ActivityPage"},
            ))
            tasks.append(ctx.notifier.notify_email(
                driver.email,
                "Ride Completion Reminder",
                templates.completion_reminder(driver.name, ride),
            ))
        for rider in ctx.get_users(ride.riders):
            tasks.append(ctx.notifier.notify_push(
                rider.fcm_token,
                "📝 Ride Complete?",
                f"Was your ride to {ride.destination} completed? You can rate your experience soon.",
                {"type": "ride_status_check", "rideID": ride.id, "screen": "ActivityPage"},
            ))

    await fan_out(*tasks)
    logger.info(f"[Sweeper] Sent completion reminders for {len(rides)} rides")
    return {"remindersSent": len(rides)}


class Job:
    def __init__(self, name, run, schedule, lease_ttl):
        self.name = name
        self.run = run
        self.schedule = schedule
        self.lease_ttl = lease_ttl


JOBS = {
    job.name: job
    for job in (
        Job("rideReminder", ride_reminder, Every(5), lease_ttl=4 * 60),
        Job("cleanupOldRides", stale_ride_archival, DailyAt(2, 0), lease_ttl=60 * 60),
        Job("autoCompleteExpiredRides", auto_complete_expired, Every(60), lease_ttl=50 * 60),
        Job("sendCompletionReminders", completion_reminder, Every(30), lease_ttl=25 * 60),
    )
}


def schedules():
    return {name: job.schedule for name, job in JOBS.items()}


async def run_job(ctx, name):
    """Run one sweep under its lease; store failures are logged and yield None."""
    job = JOBS[name]
    try:
        token = ctx.realtime.acquire_lease(job.name, job.lease_ttl)
    except Exception as e:
        logger.error(f"[Sweeper] Could not acquire lease for {job.name}: {e}")
        return None
    if token is None:
        logger.info(f"[Sweeper] {job.name} already running elsewhere, skipping")
        return {"skipped": True}

    logger.info(f"[Sweeper] Running {job.name}...")
    try:
        return await job.run(ctx)
    except Exception as e:
        logger.error(f"[Sweeper] Error in {job.name}: {e}")
        ctx.db.rollback()
        return None
    finally:
        try:
            ctx.realtime.release_lease(job.name, token)
        except Exception as e:
            logger.error(f"[Sweeper] Could not release lease for {job.name}: {e}")
