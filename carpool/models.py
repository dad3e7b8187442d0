import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, Text

from .database import Base


def utc_now():
    """Naive UTC timestamp, the form every DateTime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id():
    return uuid.uuid4().hex


class RideStatus:
    ACTIVE = "active"
    FULL = "full"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    TERMINAL = (COMPLETED, CANCELLED)


class BookingStatus:
    ACTIVE = "active"
    CANCELLED = "cancelled"


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), index=True, nullable=True)
    role = Column(String(20), default="rider")  # driver, rider
    fcm_token = Column(String(512), nullable=True)
    avg_rating = Column(Float, default=0.0, nullable=False)
    ratings_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)


class Ride(Base):
    __tablename__ = "rides"

    id = Column(String(64), primary_key=True, default=new_id)
    driver_id = Column(String(64), nullable=False)
    pickup = Column(String(500), nullable=False)
    destination = Column(String(500), nullable=False)
    date = Column(String(20))  # display copy, e.g. 2024-05-01
    time = Column(String(20))  # display copy, e.g. 08:30
    ride_datetime = Column(DateTime, index=True, nullable=False)
    status = Column(String(20), index=True, default=RideStatus.ACTIVE)  # active, full, completed, cancelled
    seats_available = Column(Integer, default=0, nullable=False)
    riders = Column(JSON, default=list, nullable=False)
    cost = Column(Float, default=0.0)
    auto_completed = Column(Boolean, default=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(64), primary_key=True, default=new_id)
    ride_id = Column(String(64), index=True, nullable=False)
    rider_id = Column(String(64), nullable=False)
    driver_id = Column(String(64), nullable=False)
    rider_name = Column(String(255))
    seats_booked = Column(Integer, default=1)
    destination = Column(String(500))
    date = Column(String(20))
    time = Column(String(20))
    cost = Column(Float, default=0.0)
    status = Column(String(20), index=True, default=BookingStatus.ACTIVE)  # active, cancelled
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now)


class Rating(Base):
    __tablename__ = "ratings"

    id = Column(String(64), primary_key=True, default=new_id)
    ride_id = Column(String(64), nullable=True)
    from_user_id = Column(String(64), nullable=True)
    to_user_id = Column(String(64), index=True, nullable=False)
    rating = Column(Integer, nullable=False)  # 1..5
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now)


class ArchivedRide(Base):
    __tablename__ = "archived_rides"

    id = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False)
    archived_at = Column(DateTime, default=utc_now)
