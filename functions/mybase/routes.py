"""
HTTP routes for the MyBase API.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError

from mybase import bookings, users
from mybase.db import DbClient
from mybase.dependencies import get_db_client
from mybase.errors import ApiError
from mybase.schemas import (
    AdminIdResponse,
    BookingCreatePayload,
    BookingCreateResponse,
    BookingListResponse,
    BookingResponse,
    BookingUpdatePayload,
    BookingUpdateResponse,
    FavoriteDriverAddResponse,
    FavoriteDriverPayload,
    FavoriteDriversResponse,
    FavoriteLocationPayload,
    FavoriteLocationResponse,
    FavoriteLocationsResponse,
    SavedRoutePayload,
    SavedRouteResponse,
    SavedRoutesResponse,
)
from shared.json_utils import convert_keys, serialize_document
from shared.types import BookingStatus

logger = logging.getLogger(__name__)

router = APIRouter()

MISSING_LOCATION_FIELDS = (
    "Missing required fields: userId, label, address, latitude, longitude"
)
MISSING_ROUTE_FIELDS = (
    "Missing required fields: userId, label, pickupLocation, dropoffLocation"
)
MISSING_BOOKING_FIELDS = (
    "Missing required fields: passengerName, pickupLocation, dropoffLocation, fareEstimate"
)
ROUTE_LOCATION_FIELDS = ("pickupLocation", "dropoffLocation")
EMPTY_JSON_VALUES = (None, False, "", 0)


async def json_body(request: Request) -> Any:
    """Parsed JSON body, or None when the body is empty or not JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


def _saved_route_error(exc: ValidationError) -> str:
    """
    Top-level problems win over location problems, and the pickup location
    is reported before the dropoff location.
    """
    invalid_locations = set()
    for error in exc.errors():
        loc = error["loc"]
        field = loc[0] if loc else None
        top_level_missing = len(loc) == 1 and (
            error["type"] == "missing" or error.get("input") in EMPTY_JSON_VALUES
        )
        if field in ROUTE_LOCATION_FIELDS and not top_level_missing:
            invalid_locations.add(field)
        else:
            return MISSING_ROUTE_FIELDS
    for field in ROUTE_LOCATION_FIELDS:
        if field in invalid_locations:
            return f"Invalid {field}: address, latitude, and longitude are required"
    return MISSING_ROUTE_FIELDS


def _with_ids(docs: list[tuple[str, dict]]) -> list[dict]:
    return [{"id": doc_id, **serialize_document(data)} for doc_id, data in docs]


@router.post(
    "/users/favorite-locations/add", response_model=FavoriteLocationResponse
)
def add_favorite_location(
    body: Any = Depends(json_body), db: DbClient = Depends(get_db_client)
):
    if not isinstance(body, dict):
        raise ApiError(400, MISSING_LOCATION_FIELDS)
    try:
        payload = FavoriteLocationPayload.model_validate(body)
    except ValidationError:
        raise ApiError(400, MISSING_LOCATION_FIELDS)

    try:
        doc_id, data = users.add_favorite_location(db, payload)
    except Exception as e:
        logger.exception("Failed to add favorite location")
        raise ApiError(500, "Failed to add favorite location", details=str(e))
    return FavoriteLocationResponse(id=doc_id, data=serialize_document(data))


@router.get(
    "/users/{user_id}/favorite-locations", response_model=FavoriteLocationsResponse
)
def list_favorite_locations(user_id: str, db: DbClient = Depends(get_db_client)):
    try:
        docs = users.list_favorite_locations(db, user_id)
    except Exception as e:
        logger.exception("Failed to list favorite locations for user %s", user_id)
        raise ApiError(500, "Failed to list favorite locations", details=str(e))
    return FavoriteLocationsResponse(favorite_locations=_with_ids(docs))


@router.post("/users/saved-routes/add", response_model=SavedRouteResponse)
def add_saved_route(
    body: Any = Depends(json_body), db: DbClient = Depends(get_db_client)
):
    if not isinstance(body, dict):
        raise ApiError(400, MISSING_ROUTE_FIELDS)
    try:
        payload = SavedRoutePayload.model_validate(body)
    except ValidationError as e:
        raise ApiError(400, _saved_route_error(e))

    try:
        doc_id = users.add_saved_route(db, payload)
    except Exception as e:
        logger.exception("Failed to add saved route")
        raise ApiError(500, "Failed to add saved route", details=str(e))
    return SavedRouteResponse(message="Saved route added successfully", id=doc_id)


@router.get("/users/{user_id}/saved-routes", response_model=SavedRoutesResponse)
def list_saved_routes(user_id: str, db: DbClient = Depends(get_db_client)):
    try:
        docs = users.list_saved_routes(db, user_id)
    except Exception as e:
        logger.exception("Failed to list saved routes for user %s", user_id)
        raise ApiError(500, "Failed to list saved routes", details=str(e))
    return SavedRoutesResponse(saved_routes=_with_ids(docs))


@router.post("/users/generate-admin-id", response_model=AdminIdResponse)
def generate_admin_id(db: DbClient = Depends(get_db_client)):
    try:
        admin_id = users.generate_admin_id(db)
    except Exception:
        logger.exception("Error generating admin ID")
        raise ApiError(500, "Internal server error")
    return AdminIdResponse(success=True, admin_id=admin_id)


@router.post(
    "/users/favorite-drivers/add", response_model=FavoriteDriverAddResponse
)
def add_favorite_driver(
    body: Any = Depends(json_body), db: DbClient = Depends(get_db_client)
):
    try:
        payload = FavoriteDriverPayload.model_validate(body or {})
    except ValidationError:
        raise ApiError(400, "Missing user or driver ID")

    try:
        doc_id = users.add_favorite_driver(db, payload)
    except Exception as e:
        logger.exception("Failed to add favorite driver")
        raise ApiError(500, "Failed to add favorite driver", details=str(e))
    return FavoriteDriverAddResponse(id=doc_id)


@router.get(
    "/users/{user_id}/favorite-drivers", response_model=FavoriteDriversResponse
)
def list_favorite_drivers(user_id: str, db: DbClient = Depends(get_db_client)):
    try:
        favorites = users.list_favorite_drivers(db, user_id)
    except Exception as e:
        logger.exception("Failed to list favorite drivers for user %s", user_id)
        raise ApiError(500, "Failed to list favorite drivers", details=str(e))
    return FavoriteDriversResponse(
        favorite_drivers=[
            convert_keys(asdict(favorite), "snake_to_camel") for favorite in favorites
        ]
    )


@router.post("/operator/bookings", response_model=BookingCreateResponse)
def create_booking(
    body: Any = Depends(json_body), db: DbClient = Depends(get_db_client)
):
    if not isinstance(body, dict):
        raise ApiError(400, MISSING_BOOKING_FIELDS)
    try:
        payload = BookingCreatePayload.model_validate(body)
    except ValidationError:
        raise ApiError(400, MISSING_BOOKING_FIELDS)

    try:
        booking_id, data = bookings.create_booking(db, payload)
    except Exception as e:
        logger.exception("Failed to create booking")
        raise ApiError(500, "Failed to create booking", details=str(e))
    return BookingCreateResponse(
        id=booking_id, booking=bookings.booking_to_wire(booking_id, data)
    )


@router.get("/operator/bookings", response_model=BookingListResponse)
def list_bookings(
    status: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: DbClient = Depends(get_db_client),
):
    status_filter = None
    if status:
        try:
            status_filter = BookingStatus(status)
        except ValueError:
            raise ApiError(400, f"Invalid status: {status}")
    try:
        docs = bookings.list_bookings(db, status=status_filter, limit=limit)
    except Exception as e:
        logger.exception("Failed to list bookings")
        raise ApiError(500, "Failed to list bookings", details=str(e))
    return BookingListResponse(
        bookings=[bookings.booking_to_wire(doc_id, data) for doc_id, data in docs]
    )


@router.get("/operator/bookings/{booking_id}", response_model=BookingResponse)
def get_booking(booking_id: str, db: DbClient = Depends(get_db_client)):
    try:
        booking = bookings.get_booking(db, booking_id)
    except Exception as e:
        logger.exception("Failed to fetch booking %s", booking_id)
        raise ApiError(500, "Failed to fetch booking", details=str(e))
    if booking is None:
        raise ApiError(404, "Booking not found")
    return BookingResponse(booking=bookings.booking_to_wire(booking_id, booking))


@router.post(
    "/operator/bookings/{booking_id}", response_model=BookingUpdateResponse
)
def update_booking(
    booking_id: str,
    body: Any = Depends(json_body),
    db: DbClient = Depends(get_db_client),
):
    """
    Applies `{action}` or `{status, driverId?, driverName?}` to a booking.
    """
    try:
        payload = BookingUpdatePayload.model_validate(body or {})
    except ValidationError:
        raise ApiError(400, "Request must include an action or a status")

    try:
        updated = bookings.update_booking(db, booking_id, payload)
    except bookings.BookingUpdateError as e:
        raise ApiError(400, str(e))
    except Exception as e:
        logger.exception("Failed to update booking %s", booking_id)
        raise ApiError(500, "Failed to update booking", details=str(e))

    if updated is None:
        raise ApiError(404, "Booking not found")
    return BookingUpdateResponse(
        message="Booking updated",
        booking=bookings.booking_to_wire(booking_id, updated),
    )
