"""
Pydantic schemas for the MyBase API.

Request payloads use camelCase on the wire and keep unknown client fields,
which are stored alongside the validated ones.
"""

from __future__ import annotations

from typing import Annotated, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StringConstraints
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(strict=True, min_length=1)]
# Finite JSON numbers only: numeric strings, booleans, NaN and Infinity are
# rejected. Integers keep their type.
Number = Union[StrictInt, Annotated[float, Field(strict=True, allow_inf_nan=False)]]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )


class FavoriteLocationPayload(CamelModel):
    user_id: NonEmptyStr
    label: NonEmptyStr
    address: NonEmptyStr
    latitude: Number
    longitude: Number


class LocationPoint(CamelModel):
    address: NonEmptyStr
    latitude: Number
    longitude: Number
    door_or_flat: Optional[str] = None


class SavedRoutePayload(CamelModel):
    user_id: NonEmptyStr
    label: NonEmptyStr
    pickup_location: LocationPoint
    dropoff_location: LocationPoint


class FavoriteDriverPayload(CamelModel):
    user_id: NonEmptyStr
    driver_id: NonEmptyStr
    driver_name: Optional[str] = None


class Coordinates(BaseModel):
    lat: Number
    lng: Number


class BookingCreatePayload(CamelModel):
    passenger_name: NonEmptyStr
    pickup_location: NonEmptyStr
    dropoff_location: NonEmptyStr
    fare_estimate: Number
    passenger_count: int = Field(default=1, ge=1)
    pickup_coords: Optional[Coordinates] = None
    dropoff_coords: Optional[Coordinates] = None
    passenger_id: Optional[str] = None
    passenger_avatar: Optional[str] = None
    passenger_phone: Optional[str] = None
    passenger_rating: Optional[float] = None
    distance_miles: Optional[float] = None
    estimated_time: Optional[str] = None
    notes: Optional[str] = None


class BookingUpdatePayload(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    action: Optional[str] = None
    status: Optional[str] = None
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None


class FavoriteLocationResponse(BaseModel):
    id: str
    data: dict


class FavoriteLocationsResponse(CamelModel):
    favorite_locations: list[dict]


class SavedRouteResponse(BaseModel):
    message: str
    id: str


class SavedRoutesResponse(CamelModel):
    saved_routes: list[dict]


class AdminIdResponse(CamelModel):
    success: bool
    admin_id: str


class FavoriteDriverAddResponse(BaseModel):
    id: str


class FavoriteDriverItem(CamelModel):
    id: str
    driver_id: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    vehicle_info: Optional[str] = None
    custom_id: Optional[str] = None


class FavoriteDriversResponse(CamelModel):
    favorite_drivers: list[FavoriteDriverItem]


class BookingResponse(BaseModel):
    booking: dict


class BookingCreateResponse(BaseModel):
    id: str
    booking: dict


class BookingUpdateResponse(BaseModel):
    message: str
    booking: dict


class BookingListResponse(BaseModel):
    bookings: list[dict]
