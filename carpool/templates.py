"""
Static HTML bodies for transactional email.

Every interpolated value is escaped; templates never contain user markup.
"""

from html import escape

FOOTER = """
    <p style="color: #666; font-size: 12px; margin-top: 30px;">
      This is an automated message from University Carpooling App.
    </p>
"""

RATE_BUTTON = """
    <p style="margin-top: 30px;">
      <a href="https://your-app-link.com/activity"
         style="background-color: #4CAF50; color: white; padding: 12px 24px;
                text-decoration: none; border-radius: 5px; display: inline-block;">
        Rate Now
      </a>
    </p>
"""


def _e(value):
    return escape("" if value is None else str(value))


def new_booking(driver_name, rider_name, seats_booked, destination, date, time):
    return f"""
  <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2 style="color: #4CAF50;">🚗 New Booking Received!</h2>
    <p>Hi {_e(driver_name)},</p>
    <p><strong>{_e(rider_name)}</strong> has booked <strong>{_e(seats_booked)} seat(s)</strong> for your ride.</p>
    <div style="background-color: #f5f5f5; padding: 20px; border-radius: 10px; margin: 20px 0;">
      <h3 style="margin-top: 0;">Ride Details</h3>
      <p><strong>📍 Destination:</strong> {_e(destination)}</p>
      <p><strong>📅 Date:</strong> {_e(date)}</p>
      <p><strong>🕐 Time:</strong> {_e(time)}</p>
      <p><strong>💺 Seats Booked:</strong> {_e(seats_booked)}</p>
    </div>
    <p>You can view full booking details in the app.</p>
{FOOTER}
  </div>
"""


def ride_cancelled(rider_name, destination, date):
    return f"""
  <div style="font-family: Arial, sans-serif; max-width: 600px;">
    <h2 style="color: #f44336;">🚫 Ride Cancellation Notice</h2>
    <p>Hi {_e(rider_name)},</p>
    <p>We're sorry to inform you that the ride to <strong>{_e(destination)}</strong>
    scheduled for <strong>{_e(date)}</strong> has been cancelled by the driver.</p>
    <p>Your booking has been automatically cancelled and any applicable refund
    will be processed shortly.</p>
    <p>You can search for alternative rides in the app.</p>
{FOOTER}
  </div>
"""


def rating_prompt(name, ride, user_type):
    if user_type == "driver":
        ask = "Please take a moment to rate your riders."
        riders_line = f"<p><strong>👥 Riders:</strong> {len(ride.riders)}</p>"
    else:
        ask = "We hope you had a great experience. Please take a moment to rate your driver."
        riders_line = ""
    return f"""
  <div style="font-family: Arial, sans-serif; max-width: 600px;">
    <h2 style="color: #4CAF50;">⭐ How Was Your Ride?</h2>
    <p>Hi {_e(name)},</p>
    <p>Your ride to <strong>{_e(ride.destination)}</strong> on {_e(ride.date)} at {_e(ride.time)} has been completed!</p>
    <p>{ask}</p>
    <div style="background-color: #f5f5f5; padding: 20px; border-radius: 10px; margin: 20px 0;">
      <h3 style="margin-top: 0;">Ride Details</h3>
      <p><strong>📍 From:</strong> {_e(ride.pickup)}</p>
      <p><strong>📍 To:</strong> {_e(ride.destination)}</p>
      <p><strong>📅 Date:</strong> {_e(ride.date)}</p>
      <p><strong>🕐 Time:</strong> {_e(ride.time)}</p>
      {riders_line}
    </div>
    <p>Your feedback helps maintain a safe and reliable community!</p>
{RATE_BUTTON}
  </div>
"""


def completion_reminder(driver_name, ride):
    return f"""
  <h2>Mark Your Ride as Complete</h2>
  <p>Hi {_e(driver_name)},</p>
  <p>Your ride to <strong>{_e(ride.destination)}</strong> scheduled for {_e(ride.date)} at {_e(ride.time)} should be finished.</p>
  <p>Please log in to the app and mark this ride as complete so riders can rate their experience.</p>
  <p><strong>Ride Details:</strong></p>
  <ul>
    <li>From: {_e(ride.pickup)}</li>
    <li>To: {_e(ride.destination)}</li>
    <li>Date: {_e(ride.date)}</li>
    <li>Time: {_e(ride.time)}</li>
  </ul>
  <p>If it is not marked complete, it will be completed automatically.</p>
"""
