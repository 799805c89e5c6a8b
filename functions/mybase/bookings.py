"""
Booking documents and the operator update endpoint's action table.

Status changes are applied as sent: the action table only maps an action
tag to a status and a timestamp field, and no transition is rejected.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from mybase.db import DbClient
from mybase.schemas import BookingCreatePayload, BookingUpdatePayload
from shared.firebase_constants import BOOKINGS_COLLECTION
from shared.json_utils import serialize_document
from shared.types import BookingAction, BookingStatus

logger = logging.getLogger(__name__)

# action -> (new status or None to keep the current one, timestamp field)
ACTION_UPDATES: dict[BookingAction, tuple[Optional[BookingStatus], str]] = {
    BookingAction.NOTIFY_ARRIVAL: (
        BookingStatus.ARRIVED_AT_PICKUP,
        "notifiedPassengerArrivalTimestamp",
    ),
    BookingAction.ACKNOWLEDGE_ARRIVAL: (
        None,
        "passengerAcknowledgedArrivalTimestamp",
    ),
    BookingAction.START_RIDE: (BookingStatus.IN_PROGRESS, "rideStartedAt"),
    BookingAction.COMPLETE_RIDE: (BookingStatus.COMPLETED, "completedAt"),
}


class BookingUpdateError(ValueError):
    """Raised when an update request names no usable action or status."""


def build_booking_update(
    payload: BookingUpdatePayload, now: Optional[datetime] = None
) -> dict:
    """Translates an update request into the fields to merge into the booking."""
    now = now or datetime.now(timezone.utc)
    update: dict = {}

    if payload.action:
        try:
            action = BookingAction(payload.action)
        except ValueError:
            raise BookingUpdateError(f"Invalid action: {payload.action}")
        status, timestamp_field = ACTION_UPDATES[action]
        if status:
            update["status"] = status.value
        update[timestamp_field] = now
    elif payload.status:
        try:
            status = BookingStatus(payload.status)
        except ValueError:
            raise BookingUpdateError(f"Invalid status: {payload.status}")
        update["status"] = status.value
        if payload.driver_id:
            update["driverId"] = payload.driver_id
        if payload.driver_name:
            update["driverName"] = payload.driver_name
    else:
        raise BookingUpdateError("Request must include an action or a status")

    update["updatedAt"] = now
    return update


def booking_to_wire(booking_id: str, data: dict) -> dict:
    return {"id": booking_id, **serialize_document(data)}


def create_booking(db: DbClient, payload: BookingCreatePayload) -> tuple[str, dict]:
    now = datetime.now(timezone.utc)
    data = payload.model_dump(by_alias=True, exclude_unset=True)
    data.update(
        {
            "status": BookingStatus.PENDING.value,
            "passengerCount": payload.passenger_count,
            "createdAt": now,
            "updatedAt": now,
        }
    )
    booking_id = db.add_document(BOOKINGS_COLLECTION, data)
    logger.info("Created booking %s for %s", booking_id, payload.passenger_name)
    return booking_id, data


def get_booking(db: DbClient, booking_id: str) -> Optional[dict]:
    return db.get_document(BOOKINGS_COLLECTION, booking_id)


def list_bookings(
    db: DbClient, status: Optional[BookingStatus] = None, limit: int = 100
) -> list[tuple[str, dict]]:
    filters = {"status": status.value} if status else None
    return db.list_documents(BOOKINGS_COLLECTION, filters=filters, limit=limit)


def update_booking(
    db: DbClient, booking_id: str, payload: BookingUpdatePayload
) -> Optional[dict]:
    """
    Applies an operator/driver update to a booking.

    Returns the updated booking, or None if no booking has this id.
    Raises BookingUpdateError for a malformed request.
    """
    update = build_booking_update(payload)
    updated = db.update_document(BOOKINGS_COLLECTION, booking_id, update)
    if updated is not None:
        logger.info(
            "Booking %s updated (action=%s, status=%s)",
            booking_id,
            payload.action,
            updated.get("status"),
        )
    return updated
