# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional


class BookingStatus(StrEnum):
    """Lifecycle label stored on a booking document."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    ACTIVE = "active"
    DRIVER_ASSIGNED = "driver_assigned"
    ARRIVED_AT_PICKUP = "arrived_at_pickup"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED_BY_DRIVER = "cancelled_by_driver"


# Statuses in which a driver is actively serving the ride.
ACTIVE_RIDE_STATUSES = (
    BookingStatus.DRIVER_ASSIGNED,
    BookingStatus.ARRIVED_AT_PICKUP,
    BookingStatus.IN_PROGRESS,
)


class UserRole(StrEnum):
    PASSENGER = "passenger"
    DRIVER = "driver"
    OPERATOR = "operator"
    ADMIN = "admin"


class BookingAction(StrEnum):
    """Actions accepted by the operator booking endpoint."""

    NOTIFY_ARRIVAL = "notify_arrival"
    ACKNOWLEDGE_ARRIVAL = "acknowledge_arrival"
    START_RIDE = "start_ride"
    COMPLETE_RIDE = "complete_ride"


class RideActionType(StrEnum):
    """Actions a driver can take on a ride from the available rides view."""

    ACCEPT = "accept"
    DECLINE = "decline"
    NOTIFY_ARRIVAL = "notify_arrival"
    START_RIDE = "start_ride"
    COMPLETE_RIDE = "complete_ride"
    CANCEL_ACTIVE = "cancel_active"


@dataclass
class LatLng:
    lat: float
    lng: float


@dataclass
class RideRequest:
    """A ride as the driver view tracks it locally."""

    id: str
    passenger_name: str
    pickup_location: str
    dropoff_location: str
    fare_estimate: float
    status: BookingStatus
    passenger_count: int = 1
    passenger_avatar: Optional[str] = None
    estimated_time: Optional[str] = None
    pickup_coords: Optional[LatLng] = None
    dropoff_coords: Optional[LatLng] = None
    distance_miles: Optional[float] = None
    passenger_phone: Optional[str] = None
    passenger_rating: Optional[float] = None
    notified_passenger_arrival_timestamp: Optional[str] = None
    passenger_acknowledged_arrival_timestamp: Optional[str] = None


@dataclass
class RideOffer:
    """An incoming offer shown to the driver in the offer modal."""

    id: str
    pickup_location: str
    dropoff_location: str
    fare_estimate: float
    passenger_count: int
    pickup_coords: Optional[LatLng] = None
    dropoff_coords: Optional[LatLng] = None
    passenger_name: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class DriverUser:
    id: str
    name: str
    role: UserRole = UserRole.DRIVER


@dataclass
class FavoriteDriver:
    id: str
    driver_id: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    vehicle_info: Optional[str] = None
    custom_id: Optional[str] = None
