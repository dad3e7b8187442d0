import asyncio

from carpool.events import DocumentEvent
from carpool.handlers.bookings import notify_driver_on_booking, notify_on_booking_cancellation
from carpool.schemas import BookingSnapshot, snapshot


def created(booking):
    return DocumentEvent(
        resource="bookings", kind="create", document_id=booking.id,
        after=snapshot(BookingSnapshot, booking),
    )


def updated(booking, before_status, after_status):
    doc = snapshot(BookingSnapshot, booking)
    return DocumentEvent(
        resource="bookings", kind="update", document_id=booking.id,
        before=dict(doc, status=before_status), after=dict(doc, status=after_status),
    )


def test_new_booking_notifies_driver_on_every_channel(ctx, make_user, make_ride, make_booking,
                                                       redis_client, smtp):
    driver = make_user("Dev", role="driver", token="t-driver", email="dev@uni.edu")
    alice = make_user("Alice")
    ride = make_ride(driver, riders=[alice])
    booking = make_booking(ride, alice)

    assert asyncio.run(notify_driver_on_booking(ctx, created(booking))) == booking.id

    [push] = redis_client.pushes()
    assert push["token"] == "t-driver"
    assert push["data"]["type"] == "new_booking"
    assert push["data"]["screen"] == "RideDetails"
    assert push["data"]["bookingID"] == booking.id
    assert "Alice booked 1 seat(s)" in push["body"]

    [email] = smtp.sent
    assert email["To"] == "dev@uni.edu"
    assert "Central Station" in email.get_body(("html",)).get_content()

    [message] = ctx.realtime.chat_messages(ride.id)
    assert message["senderRole"] == "system"
    assert message["text"].startswith("Alice joined the ride!")


def test_new_booking_with_unknown_driver_does_nothing(ctx, make_user, make_ride, make_booking,
                                                      redis_client, smtp):
    driver = make_user("Dev", role="driver", token="t-driver")
    alice = make_user("Alice")
    ride = make_ride(driver, riders=[alice])
    booking = make_booking(ride, alice)
    event = created(booking)
    event.after["driver_id"] = "missing"

    assert asyncio.run(notify_driver_on_booking(ctx, event)) is None
    assert redis_client.published == []
    assert smtp.sent == []
    assert ctx.realtime.chat_messages(ride.id) == []


def test_cancelled_booking_tells_driver_seat_is_free(ctx, make_user, make_ride, make_booking,
                                                      redis_client, smtp):
    driver = make_user("Dev", role="driver", token="t-driver", email="dev@uni.edu")
    alice = make_user("Alice")
    ride = make_ride(driver, riders=[alice])
    booking = make_booking(ride, alice)

    asyncio.run(notify_on_booking_cancellation(ctx, updated(booking, "active", "cancelled")))

    [push] = redis_client.pushes()
    assert push["data"]["type"] == "booking_cancelled"
    assert "1 seat(s) now available" in push["body"]
    assert smtp.sent == []
    [message] = ctx.realtime.chat_messages(ride.id)
    assert "Alice cancelled their booking" in message["text"]


def test_booking_update_without_cancellation_is_ignored(ctx, make_user, make_ride, make_booking,
                                                        redis_client):
    driver = make_user("Dev", role="driver", token="t-driver")
    alice = make_user("Alice")
    ride = make_ride(driver, riders=[alice])
    booking = make_booking(ride, alice)

    assert asyncio.run(notify_on_booking_cancellation(ctx, updated(booking, "active", "active"))) is None
    assert asyncio.run(notify_on_booking_cancellation(ctx, updated(booking, "cancelled", "cancelled"))) is None
    assert redis_client.published == []
