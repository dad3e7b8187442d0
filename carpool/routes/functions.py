import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..errors import CallableError
from ..models import Ride, RideStatus, User
from ..notifications import NotificationGateway, fan_out
from ..realtime import connect_redis
from ..schemas import CallableResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions", tags=["Functions"])

_notifier = None


def get_notifier():
    global _notifier
    if _notifier is None:
        _notifier = NotificationGateway(connect_redis())
    return _notifier


def callable_data(payload):
    """Unwrap the {"data": {...}} envelope; anything else is the caller's mistake."""
    if payload is None:
        return {}
    data = payload.get("data", {}) if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        raise CallableError("invalid-argument", "Request body must be {\"data\": {...}}")
    return data


@router.post("/sendRatingRequest", response_model=CallableResponse)
async def send_rating_request(
    payload: Any = Body(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: NotificationGateway = Depends(get_notifier),
):
    data = callable_data(payload)
    ride_id = data.get("rideID")
    if not ride_id:
        raise CallableError("invalid-argument", "Ride ID is required")

    ride = db.get(Ride, str(ride_id))
    if ride is None:
        raise CallableError("not-found", "Ride not found")
    if ride.status != RideStatus.COMPLETED:
        raise CallableError("failed-precondition", "Ride must be completed")

    try:
        tasks = []
        driver = db.get(User, ride.driver_id)
        if driver is not None:
            tasks.append(notifier.notify_push(
                driver.fcm_token,
                "⭐ Rate Your Riders",
                f"How was your ride to {ride.destination}? Please rate your experience.",
                {"type": "rating_prompt", "rideID": ride.id, "userType": "driver", "screen": "RateRiders"},
            ))
        for rider_id in ride.riders or []:
            rider = db.get(User, rider_id)
            if rider is None:
                continue
            tasks.append(notifier.notify_push(
                rider.fcm_token,
                "⭐ Rate Your Ride",
                f"How was your ride to {ride.destination}? Please rate your experience.",
                {"type": "rating_prompt", "rideID": ride.id, "userType": "rider", "screen": "RateDriver"},
            ))
        await fan_out(*tasks)
    except Exception as e:
        logger.error(f"[Functions] Error sending rating requests: {e}")
        raise CallableError("internal", str(e))

    logger.info(f"[Functions] User {current_user.id} requested ratings for ride {ride.id}")
    return {"result": {"success": True, "message": "Rating requests sent"}}


@router.post("/sendEmail", response_model=CallableResponse)
async def send_email(
    payload: Any = Body(None),
    current_user: User = Depends(get_current_user),
    notifier: NotificationGateway = Depends(get_notifier),
):
    data = callable_data(payload)
    to, subject, html = data.get("to"), data.get("subject"), data.get("html")
    if not all(isinstance(field, str) and field for field in (to, subject, html)):
        raise CallableError("invalid-argument", "Missing required fields")

    await notifier.notify_email(to, subject, html)
    return {"result": {"success": True, "message": "Email sent successfully"}}
