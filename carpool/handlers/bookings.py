import logging

from .. import templates
from ..models import BookingStatus
from ..notifications import fan_out
from ..schemas import BookingSnapshot

logger = logging.getLogger(__name__)


async def notify_driver_on_booking(ctx, event):
    booking = BookingSnapshot.model_validate(event.after)
    logger.info(f"[Bookings] New booking {booking.id} for ride {booking.ride_id}")

    driver = ctx.get_user(booking.driver_id)
    if driver is None:
        logger.error(f"[Bookings] Driver {booking.driver_id} not found")
        return None

    rider_name = booking.rider_name or "A rider"
    await fan_out(
        ctx.notifier.notify_push(
            driver.fcm_token,
            "🚗 New Booking!",
            f"{rider_name} booked {booking.seats_booked} seat(s) for your ride to {booking.destination}",
            {
                "type": "new_booking",
                "bookingID": booking.id,
                "rideID": booking.ride_id,
                "screen": "RideDetails",
            },
        ),
        ctx.notifier.notify_email(
            driver.email,
            "New Booking for Your Ride",
            templates.new_booking(
                driver.name, rider_name, booking.seats_booked,
                booking.destination, booking.date, booking.time,
            ),
        ),
        ctx.post_system_message(booking.ride_id, f"{rider_name} joined the ride! 🎉"),
    )
    return booking.id


async def notify_on_booking_cancellation(ctx, event):
    # Seats are given back by the rider's own cancellation flow, not here.
    before = BookingSnapshot.model_validate(event.before)
    after = BookingSnapshot.model_validate(event.after)
    if before.status == BookingStatus.CANCELLED or after.status != BookingStatus.CANCELLED:
        return None

    logger.info(f"[Bookings] Booking cancelled: {after.id}")

    driver = ctx.get_user(after.driver_id)
    if driver is None:
        logger.error(f"[Bookings] Driver {after.driver_id} not found")
        return None

    rider_name = after.rider_name or "A rider"
    await fan_out(
        ctx.notifier.notify_push(
            driver.fcm_token,
            "❌ Booking Cancelled",
            f"{rider_name} cancelled their booking for {after.destination}. "
            f"{after.seats_booked} seat(s) now available.",
            {"type": "booking_cancelled", "rideID": after.ride_id, "screen": "RideDetails"},
        ),
        ctx.post_system_message(
            after.ride_id,
            f"{rider_name} cancelled their booking. {after.seats_booked} seat(s) available.",
        ),
    )
    return after.id
