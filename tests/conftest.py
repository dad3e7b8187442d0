import json
import threading
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from carpool import config
from carpool.context import HandlerContext
from carpool.database import Base
from carpool.events import EventQueue
from carpool.models import Booking, Ride, User
from carpool.notifications import NotificationGateway
from carpool.realtime import RealtimeStore

NOW = datetime(2024, 5, 1, 12, 0, 0)


class FakeRedis:
    """In-memory stand-in for the handful of redis commands the service uses."""

    def __init__(self):
        self.lock = threading.Lock()
        self.values = {}
        self.lists = {}
        self.published = []

    def rpush(self, key, value):
        with self.lock:
            self.lists.setdefault(key, []).append(value)
            return len(self.lists[key])

    def lpush(self, key, value):
        with self.lock:
            self.lists.setdefault(key, []).insert(0, value)
            return len(self.lists[key])

    def brpop(self, key, timeout=0):
        with self.lock:
            items = self.lists.get(key)
            if not items:
                return None
            return key, items.pop()

    def lrange(self, key, start, end):
        with self.lock:
            items = self.lists.get(key, [])
            return list(items[start:] if end == -1 else items[start:end + 1])

    def delete(self, *keys):
        with self.lock:
            removed = 0
            for key in keys:
                removed += int(self.lists.pop(key, None) is not None)
                removed += int(self.values.pop(key, None) is not None)
            return removed

    def set(self, key, value, nx=False, ex=None):
        with self.lock:
            if nx and key in self.values:
                return None
            self.values[key] = value
            return True

    def get(self, key):
        with self.lock:
            return self.values.get(key)

    def eval(self, script, numkeys, *args):
        # Only the lease compare-and-delete script is ever evaluated.
        key, token = args[0], args[numkeys]
        with self.lock:
            if self.values.get(key) == token:
                del self.values[key]
                return 1
            return 0

    def publish(self, channel, message):
        with self.lock:
            self.published.append((channel, message))
            return 1

    def pushes(self):
        return [json.loads(message) for _, message in self.published]


class RecordingSMTP:
    def __init__(self):
        self.sent = []

    def __call__(self):
        return self

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def send_message(self, msg):
        self.sent.append(msg)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def redis_client():
    return FakeRedis()


@pytest.fixture
def smtp():
    return RecordingSMTP()


@pytest.fixture
def notifier(redis_client, smtp):
    return NotificationGateway(redis_client, smtp_factory=smtp)


@pytest.fixture
def ctx(db, notifier, redis_client):
    return HandlerContext(
        db, notifier, RealtimeStore(redis_client),
        events=EventQueue(redis_client), clock=lambda: NOW,
    )


@pytest.fixture
def make_user(db):
    def _make(name, role="rider", token=None, email=None, **fields):
        user = User(name=name, role=role, fcm_token=token, email=email, **fields)
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def make_ride(db):
    def _make(driver, riders=(), when=NOW, status="active", **fields):
        values = dict(
            driver_id=driver.id,
            pickup="North Campus",
            destination="Central Station",
            date=when.strftime("%Y-%m-%d"),
            time=when.strftime("%H:%M"),
            ride_datetime=when,
            status=status,
            seats_available=3,
            riders=[rider.id for rider in riders],
        )
        values.update(fields)
        ride = Ride(**values)
        db.add(ride)
        db.commit()
        return ride
    return _make


@pytest.fixture
def make_booking(db):
    def _make(ride, rider, status="active"):
        booking = Booking(
            ride_id=ride.id,
            rider_id=rider.id,
            driver_id=ride.driver_id,
            rider_name=rider.name,
            seats_booked=1,
            destination=ride.destination,
            date=ride.date,
            time=ride.time,
            status=status,
        )
        db.add(booking)
        db.commit()
        return booking
    return _make


def minutes(n):
    return timedelta(minutes=n)


def bearer_token(user_id, expires_in=timedelta(minutes=60)):
    """Mint the kind of token the external auth service hands to clients."""
    claims = {"sub": user_id, "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(claims, config.SECRET_KEY, algorithm=config.ALGORITHM)
