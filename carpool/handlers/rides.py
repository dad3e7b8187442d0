"""
Ride status transitions.

A transition is only acted on when the previous and new snapshots disagree on
status, so a redelivered update with the same before/after pair does nothing
new. `full` and `active` are otherwise treated alike by participants.
"""

import logging

from sqlalchemy import select

from .. import templates
from ..batch import SetFields
from ..models import Booking, BookingStatus, RideStatus
from ..notifications import fan_out
from ..schemas import BookingSnapshot, DocumentEvent, RideSnapshot, snapshot

logger = logging.getLogger(__name__)


def entered(before, after, status):
    return before.status != status and after.status == status


async def on_ride_update(ctx, event):
    before = RideSnapshot.model_validate(event.before)
    after = RideSnapshot.model_validate(event.after)

    handled = []
    if entered(before, after, RideStatus.FULL):
        await ride_full(ctx, after)
        handled.append(RideStatus.FULL)
    if entered(before, after, RideStatus.CANCELLED):
        await ride_cancelled(ctx, after)
        handled.append(RideStatus.CANCELLED)
    if entered(before, after, RideStatus.COMPLETED):
        await ride_completed(ctx, after)
        handled.append(RideStatus.COMPLETED)
    return handled


async def ride_full(ctx, ride):
    logger.info(f"[Rides] Ride {ride.id} is now full")

    driver = ctx.get_user(ride.driver_id)
    tasks = [ctx.post_system_message(ride.id, "This ride is now full! 🎊")]
    if driver is not None:
        tasks.append(ctx.notifier.notify_push(
            driver.fcm_token,
            "✅ Ride Full!",
            f"Your ride to {ride.destination} is now completely booked!",
            {"type": "ride_full", "rideID": ride.id, "screen": "RideDetails"},
        ))
    await fan_out(*tasks)


async def ride_cancelled(ctx, ride):
    """Tell every rider, then cancel the ride's active bookings in batches.

    Riders may be notified before the cascade commits; a crash in between is
    left to converge on a later run. Seats are not restored since the ride is
    terminal.
    """
    logger.info(f"[Rides] Ride {ride.id} was cancelled")

    tasks = []
    for rider in ctx.get_users(ride.riders):
        tasks.append(ctx.notifier.notify_push(
            rider.fcm_token,
            "🚫 Ride Cancelled",
            f"The ride to {ride.destination} on {ride.date} has been cancelled",
            {"type": "ride_cancelled", "rideID": ride.id, "screen": "MyBookings"},
        ))
        tasks.append(ctx.notifier.notify_email(
            rider.email,
            "Ride Cancellation Notice",
            templates.ride_cancelled(rider.name, ride.destination, ride.date),
        ))
    await fan_out(*tasks)

    bookings = ctx.db.execute(
        select(Booking).where(
            Booking.ride_id == ride.id,
            Booking.status == BookingStatus.ACTIVE,
        )
    ).scalars().all()
    befores = {booking.id: snapshot(BookingSnapshot, booking) for booking in bookings}

    now = ctx.clock()
    result = ctx.batch_writer().commit([
        SetFields(Booking, booking_id, status=BookingStatus.CANCELLED, cancelled_at=now)
        for booking_id in befores
    ])
    logger.info(
        f"[Rides] Cancelled {result.committed_count}/{len(befores)} bookings for ride {ride.id}"
    )

    # Re-emit each cascaded cancellation so the booking coordinator sees it.
    if ctx.events is not None:
        for mutation in result.committed:
            before = befores[mutation.doc_id]
            ctx.events.emit(DocumentEvent(
                resource="bookings", kind="update", document_id=mutation.doc_id,
                before=before, after=dict(before, status=BookingStatus.CANCELLED),
            ))
    return result


async def ride_completed(ctx, ride):
    logger.info(f"[Rides] Ride {ride.id} just completed - sending rating prompts")

    tasks = []
    driver = ctx.get_user(ride.driver_id)
    if driver is not None:
        tasks.append(ctx.notifier.notify_push(
            driver.fcm_token,
            "⭐ Rate Your Riders",
            f"Your ride to {ride.destination} is complete! How was your experience?",
            {"type": "rating_prompt", "rideID": ride.id, "userType": "driver", "screen": "ActivityPage"},
        ))
        tasks.append(ctx.notifier.notify_email(
            driver.email,
            "Rate Your Recent Ride",
            templates.rating_prompt(driver.name, ride, "driver"),
        ))

    for rider in ctx.get_users(ride.riders):
        tasks.append(ctx.notifier.notify_push(
            rider.fcm_token,
            "⭐ Rate Your Ride",
            f"Your ride to {ride.destination} is complete! How was it?",
            {"type": "rating_prompt", "rideID": ride.id, "userType": "rider", "screen": "ActivityPage"},
        ))
        tasks.append(ctx.notifier.notify_email(
            rider.email,
            "Rate Your Recent Ride",
            templates.rating_prompt(rider.name, ride, "rider"),
        ))

    await fan_out(*tasks)
    logger.info(f"[Rides] Sent rating prompts for ride {ride.id}")
