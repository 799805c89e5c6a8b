"""
State of the driver's "available rides" view.

The view keeps a local list of ride requests, an online/offline toggle that
starts and stops a position watch, a cosmetic progress indicator while the
driver waits for offers, and the ride-action dispatch that posts status
changes to the operator booking endpoint. Every user-facing outcome is
recorded as a Toast.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

import requests
from dacite import Config, from_dict

from mybase.client import BookingsApiClient, BookingsApiError
from shared.constants import (
    DEFAULT_MAP_CENTER,
    MOCK_OFFER_ID,
    PROGRESS_MAX,
    PROGRESS_STEP,
    PROGRESS_TICK_SECONDS,
)
from shared.json_utils import convert_keys, timestamp_to_iso
from shared.types import (
    ACTIVE_RIDE_STATUSES,
    BookingAction,
    BookingStatus,
    DriverUser,
    LatLng,
    RideActionType,
    RideOffer,
    RideRequest,
)

logger = logging.getLogger(__name__)

GEOLOCATION_UNSUPPORTED = "Geolocation is not supported by this browser."
GEOLOCATION_ERROR_MESSAGES = {
    1: "Location permission denied by user.",
    2: "Location information unavailable.",
    3: "Location request timed out.",
}
DEFAULT_GEOLOCATION_ERROR = "Could not get your location."

ARRIVAL_TIMESTAMP_FIELDS = (
    ("notifiedPassengerArrivalTimestamp", "notified_passenger_arrival_timestamp"),
    (
        "passengerAcknowledgedArrivalTimestamp",
        "passenger_acknowledged_arrival_timestamp",
    ),
)


class GeolocationProvider(Protocol):
    """Source of continuous position updates (the browser's geolocation API)."""

    def watch_position(
        self,
        on_position: Callable[[float, float], None],
        on_error: Callable[[int], None],
    ) -> Any:
        ...

    def clear_watch(self, watch_id: Any) -> None:
        ...


@dataclass
class Toast:
    title: str
    description: str
    variant: str = "default"


@dataclass
class MapMarker:
    position: LatLng
    title: str
    label: Optional[str] = None


@dataclass(frozen=True)
class RideActionOutcome:
    status: Optional[BookingStatus]
    api_action: Optional[BookingAction]
    title: str
    message: str


# Declining is not listed: its outcome depends on whether the ride is still pending.
RIDE_ACTION_OUTCOMES: dict[RideActionType, RideActionOutcome] = {
    RideActionType.ACCEPT: RideActionOutcome(
        BookingStatus.DRIVER_ASSIGNED,
        None,
        "Ride Accepted",
        "Ride request from {name} accepted.",
    ),
    RideActionType.NOTIFY_ARRIVAL: RideActionOutcome(
        BookingStatus.ARRIVED_AT_PICKUP,
        BookingAction.NOTIFY_ARRIVAL,
        "Passenger Notified",
        "Passenger {name} has been notified of your arrival.",
    ),
    RideActionType.START_RIDE: RideActionOutcome(
        BookingStatus.IN_PROGRESS,
        BookingAction.START_RIDE,
        "Ride Started",
        "Ride with {name} is now in progress.",
    ),
    RideActionType.COMPLETE_RIDE: RideActionOutcome(
        BookingStatus.COMPLETED,
        BookingAction.COMPLETE_RIDE,
        "Ride Completed",
        "Ride with {name} marked as completed.",
    ),
    RideActionType.CANCEL_ACTIVE: RideActionOutcome(
        BookingStatus.CANCELLED_BY_DRIVER,
        None,
        "Ride Cancelled",
        "Active ride with {name} cancelled.",
    ),
}


def ride_from_booking(booking: dict) -> RideRequest:
    """Builds a local RideRequest from a booking as returned by the API."""
    data = dict(booking)
    for wire_field, _ in ARRIVAL_TIMESTAMP_FIELDS:
        if wire_field in data:
            data[wire_field] = timestamp_to_iso(data[wire_field])
    return from_dict(
        data_class=RideRequest,
        data=convert_keys(data, "camel_to_snake"),
        config=Config(check_types=False, cast=[BookingStatus]),
    )


def mock_ride_offer() -> RideOffer:
    return RideOffer(
        id=MOCK_OFFER_ID,
        pickup_location="6 Colne Street Paddock Huddersfield HD1 4RX",
        pickup_coords=LatLng(lat=53.6410, lng=-1.7950),
        dropoff_location="12 Lindley Moor Road Lindley Huddersfield HD3 3RT",
        dropoff_coords=LatLng(lat=53.6600, lng=-1.8200),
        fare_estimate=12.50,
        passenger_count=1,
        passenger_name="Sarah Connor",
        notes="Going to the hospital. Please be quick.",
    )


class DriverSession:
    def __init__(
        self,
        api: BookingsApiClient,
        driver: Optional[DriverUser] = None,
        rides: Optional[list[RideRequest]] = None,
        geolocation: Optional[GeolocationProvider] = None,
        is_online: bool = True,
    ):
        self.api = api
        self.driver = driver
        self.rides: list[RideRequest] = list(rides or [])
        self.geolocation = geolocation
        self.driver_location = LatLng(*DEFAULT_MAP_CENTER)
        self.geolocation_error: Optional[str] = None
        self.progress_value = 0
        self._progress_lock = threading.Lock()
        self.current_offer: Optional[RideOffer] = None
        self.is_offer_modal_open = False
        self.action_loading: dict[str, bool] = {}
        self.toasts: list[Toast] = []
        self.is_online = False
        self._watch_id: Any = None
        self.set_online(is_online)

    def toast(self, title: str, description: str, variant: str = "default") -> None:
        self.toasts.append(Toast(title=title, description=description, variant=variant))

    # Online status and location

    def set_online(self, online: bool) -> None:
        self.is_online = online
        if online and self.geolocation is not None:
            self.geolocation_error = None
            if self._watch_id is None:
                self._watch_id = self.geolocation.watch_position(
                    self.update_position, self.position_error
                )
        else:
            self._clear_watch()
            if online:
                self.geolocation_error = GEOLOCATION_UNSUPPORTED
                self.toast(
                    "Location Error",
                    "Geolocation is not supported or enabled in your browser.",
                    "destructive",
                )
        self._reset_progress()

    def _clear_watch(self) -> None:
        if self._watch_id is not None and self.geolocation is not None:
            self.geolocation.clear_watch(self._watch_id)
        self._watch_id = None

    def close(self) -> None:
        self._clear_watch()

    def update_position(self, lat: float, lng: float) -> None:
        self.driver_location = LatLng(lat=lat, lng=lng)
        if self.geolocation_error is not None:
            self.geolocation_error = None
            self._reset_progress()

    def position_error(self, code: int) -> None:
        message = GEOLOCATION_ERROR_MESSAGES.get(code, DEFAULT_GEOLOCATION_ERROR)
        logger.warning("Error watching position (code %s): %s", code, message)
        self.geolocation_error = message
        self._reset_progress()
        self.toast("Location Error", message, "destructive")

    def _reset_progress(self) -> None:
        with self._progress_lock:
            self.progress_value = 0

    def tick_progress(self) -> int:
        """Advances the waiting indicator one step, wrapping after it fills."""
        with self._progress_lock:
            if not self.is_online or self.geolocation_error:
                self.progress_value = 0
            elif self.progress_value >= PROGRESS_MAX:
                self.progress_value = 0
            else:
                self.progress_value += PROGRESS_STEP
            return self.progress_value

    # Offers

    def simulate_offer(self) -> RideOffer:
        self.current_offer = mock_ride_offer()
        self.is_offer_modal_open = True
        return self.current_offer

    def _close_offer(self) -> None:
        self.is_offer_modal_open = False
        self.current_offer = None

    def _offer_target(self, ride_id: str) -> Optional[RideRequest]:
        return next(
            (r for r in self.rides if r.id == ride_id or ride_id == MOCK_OFFER_ID),
            None,
        )

    def accept_offer(self, ride_id: str) -> None:
        accepted = self._offer_target(ride_id)
        if accepted:
            self.handle_ride_action(accepted.id, RideActionType.ACCEPT)
        else:
            self.toast(
                "Mock Ride Accepted",
                f"Accepted offer for ride ID {ride_id}. Real assignment logic pending.",
            )
        self._close_offer()

    def decline_offer(self, ride_id: str) -> None:
        declined = self._offer_target(ride_id)
        if declined and declined.status != BookingStatus.PENDING:
            self.handle_ride_action(declined.id, RideActionType.DECLINE)
        else:
            self.toast("Mock Ride Declined", f"Declined offer for ride ID {ride_id}.")
        self._close_offer()

    # Ride actions

    def find_ride(self, ride_id: str) -> Optional[RideRequest]:
        return next((r for r in self.rides if r.id == ride_id), None)

    def _remove_ride(self, ride_id: str) -> None:
        self.rides = [r for r in self.rides if r.id != ride_id]

    def _decline_outcome(
        self, ride_id: str, current: Optional[RideRequest]
    ) -> RideActionOutcome:
        if ride_id == MOCK_OFFER_ID or (
            current is not None and current.status == BookingStatus.PENDING
        ):
            return RideActionOutcome(
                None, None, "Offer Declined", "Ride offer for {name} declined."
            )
        return RideActionOutcome(
            BookingStatus.DECLINED,
            None,
            "Ride Declined",
            "Ride request for {name} declined.",
        )

    def handle_ride_action(self, ride_id: str, action: RideActionType) -> None:
        if not self.driver:
            self.toast("Error", "Driver not logged in.", "destructive")
            return
        self.action_loading[ride_id] = True

        current = self.find_ride(ride_id)
        if current is None and ride_id != MOCK_OFFER_ID:
            self.action_loading[ride_id] = False
            self.toast(
                "Error", f"Ride with ID {ride_id} not found locally.", "destructive"
            )
            return

        target = current
        if ride_id == MOCK_OFFER_ID and action == RideActionType.ACCEPT:
            target = next(
                (r for r in self.rides if r.status == BookingStatus.PENDING), None
            )
            if target is None:
                self.toast(
                    "No Pending Rides",
                    "No pending rides available to accept for this mock offer.",
                )
                self.action_loading[ride_id] = False
                return
            ride_id = target.id

        name = target.passenger_name if target else "the passenger"
        if action == RideActionType.DECLINE:
            outcome = self._decline_outcome(ride_id, current)
        else:
            outcome = RIDE_ACTION_OUTCOMES[action]

        # Local effects happen before the request is sent.
        if action == RideActionType.ACCEPT:
            target.status = outcome.status
        elif action == RideActionType.DECLINE and ride_id != MOCK_OFFER_ID:
            self._remove_ride(ride_id)
        elif action == RideActionType.CANCEL_ACTIVE:
            self._remove_ride(ride_id)

        title = outcome.title
        message = outcome.message.format(name=name)

        if (outcome.status or outcome.api_action) and ride_id != MOCK_OFFER_ID:
            payload: dict = {}
            if outcome.api_action:
                payload["action"] = outcome.api_action.value
            else:
                payload["status"] = outcome.status.value
                if action == RideActionType.ACCEPT:
                    payload["driverId"] = self.driver.id
                    payload["driverName"] = self.driver.name
            try:
                booking = self.api.update_booking(ride_id, payload)
            except (BookingsApiError, requests.RequestException, ValueError) as e:
                logger.error(
                    "Error handling ride action %s for ride %s: %s", action, ride_id, e
                )
                self.toast(
                    "Action Failed", f"Could not update ride: {e}", "destructive"
                )
            else:
                self._merge_booking(ride_id, booking)
                self.toast(title, message)
            finally:
                self.action_loading[ride_id] = False
        elif ride_id == MOCK_OFFER_ID and action in (
            RideActionType.ACCEPT,
            RideActionType.DECLINE,
        ):
            self.toast(title, message)
            self.action_loading[ride_id] = False
        else:
            # A pending offer declined locally: the ride is already gone.
            self.toast(title, message)
            self.action_loading.pop(ride_id, None)

    def _merge_booking(self, ride_id: str, booking: dict) -> None:
        ride = self.find_ride(ride_id)
        if ride is None:
            return
        if booking.get("status"):
            try:
                ride.status = BookingStatus(booking["status"])
            except ValueError:
                logger.warning(
                    "Ignoring unknown status %r for ride %s", booking["status"], ride_id
                )
        for wire_field, attr in ARRIVAL_TIMESTAMP_FIELDS:
            if booking.get(wire_field):
                setattr(ride, attr, timestamp_to_iso(booking[wire_field]))

    # Derived view data

    @property
    def active_ride(self) -> Optional[RideRequest]:
        return next(
            (r for r in self.rides if r.status in ACTIVE_RIDE_STATUSES), None
        )

    def map_center(self) -> LatLng:
        if self.is_online and self.driver_location:
            return self.driver_location
        ride = self.active_ride
        if ride is not None:
            if ride.status in (
                BookingStatus.DRIVER_ASSIGNED,
                BookingStatus.ARRIVED_AT_PICKUP,
            ) and ride.pickup_coords:
                return ride.pickup_coords
            if ride.status == BookingStatus.IN_PROGRESS and ride.dropoff_coords:
                return ride.dropoff_coords
        return LatLng(*DEFAULT_MAP_CENTER)

    def map_markers(self) -> list[MapMarker]:
        markers: list[MapMarker] = []
        if self.is_online and self.driver_location:
            markers.append(MapMarker(self.driver_location, "Your Current Location"))
        ride = self.active_ride
        if ride is None:
            return markers
        if ride.pickup_coords:
            markers.append(
                MapMarker(ride.pickup_coords, f"Pickup: {ride.pickup_location}", "P")
            )
        if ride.dropoff_coords:
            markers.append(
                MapMarker(ride.dropoff_coords, f"Dropoff: {ride.dropoff_location}", "D")
            )
        return markers

    def call_customer(self, phone_number: Optional[str]) -> None:
        if phone_number:
            self.toast(
                "Calling Customer", f"Initiating call to {phone_number}... (Demo)"
            )
        else:
            self.toast("Call Not Available", "Customer phone number not provided.")

    def navigate(self, location_name: str, coords: Optional[LatLng]) -> None:
        if coords:
            self.toast(
                "Navigation Started (Demo)",
                f"Navigating to {location_name} at {coords.lat:.4f}, {coords.lng:.4f}",
            )
        else:
            self.toast(
                "Navigation Error",
                f"Coordinates for {location_name} not available.",
                "destructive",
            )


class ProgressTicker:
    """Drives DriverSession.tick_progress on a timer thread."""

    def __init__(self, session: DriverSession, interval: float = PROGRESS_TICK_SECONDS):
        self.session = session
        self.interval = interval
        self._timer: Optional[threading.Timer] = None
        self._stopped = threading.Event()

    def start(self) -> None:
        self._stopped.clear()
        self._schedule()

    def _schedule(self) -> None:
        self._timer = threading.Timer(self.interval, self._run)
        self._timer.daemon = True
        self._timer.start()

    def _run(self) -> None:
        if self._stopped.is_set():
            return
        self.session.tick_progress()
        self._schedule()

    def stop(self) -> None:
        self._stopped.set()
        timer = self._timer
        if timer is not None:
            timer.cancel()
            if timer is not threading.current_thread():
                timer.join()
