from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


# Document snapshots, as carried in DocumentEvent.before / DocumentEvent.after

class RideSnapshot(BaseModel):
    id: str
    driver_id: str
    pickup: Optional[str] = None
    destination: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    ride_datetime: Optional[datetime] = None
    status: str = "active"
    seats_available: int = 0
    riders: List[str] = Field(default_factory=list)
    cost: Optional[float] = None
    auto_completed: Optional[bool] = False
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingSnapshot(BaseModel):
    id: str
    ride_id: str
    rider_id: str
    driver_id: str
    rider_name: Optional[str] = None
    seats_booked: int = 1
    destination: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    cost: Optional[float] = None
    status: str = "active"

    class Config:
        from_attributes = True


class RatingSnapshot(BaseModel):
    id: str
    to_user_id: str
    rating: int = Field(..., ge=1, le=5)
    ride_id: Optional[str] = None
    from_user_id: Optional[str] = None

    class Config:
        from_attributes = True


def snapshot(schema, row):
    """Serialise an ORM row into the JSON-safe dict form events carry."""
    return schema.model_validate(row).model_dump(mode="json")


class DocumentEvent(BaseModel):
    resource: str  # users, rides, bookings, ratings
    kind: Literal["create", "update", "delete"]
    document_id: Optional[str] = None
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None


# Callable function envelopes

class CallableResponse(BaseModel):
    result: Dict[str, Any]
