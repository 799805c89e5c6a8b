import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from mybase.app import create_app
from mybase.bookings import BookingUpdateError, build_booking_update
from mybase.db import InMemoryDbClient
from mybase.dependencies import get_db_client
from mybase.schemas import BookingUpdatePayload
from shared.firebase_constants import BOOKINGS_COLLECTION

NEW_BOOKING = {
    "passengerName": "Alice Smith",
    "pickupLocation": "6 Colne Street Paddock Huddersfield HD1 4RX",
    "dropoffLocation": "12 Lindley Moor Road Lindley Huddersfield HD3 3RT",
    "fareEstimate": 7.5,
    "pickupCoords": {"lat": 53.641, "lng": -1.795},
    "passengerPhone": "555-0101",
}


class BuildBookingUpdateTests(unittest.TestCase):
    def setUp(self):
        self.now = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def test_action_table(self):
        cases = {
            "notify_arrival": ("arrived_at_pickup", "notifiedPassengerArrivalTimestamp"),
            "start_ride": ("in_progress", "rideStartedAt"),
            "complete_ride": ("completed", "completedAt"),
        }
        for action, (status, field) in cases.items():
            with self.subTest(action=action):
                update = build_booking_update(
                    BookingUpdatePayload(action=action), now=self.now
                )
                self.assertEqual(update["status"], status)
                self.assertEqual(update[field], self.now)
                self.assertEqual(update["updatedAt"], self.now)

    def test_acknowledge_arrival_keeps_status(self):
        update = build_booking_update(
            BookingUpdatePayload(action="acknowledge_arrival"), now=self.now
        )
        self.assertNotIn("status", update)
        self.assertEqual(update["passengerAcknowledgedArrivalTimestamp"], self.now)

    def test_status_with_driver(self):
        update = build_booking_update(
            BookingUpdatePayload.model_validate(
                {"status": "driver_assigned", "driverId": "d1", "driverName": "Dan"}
            ),
            now=self.now,
        )
        self.assertEqual(
            update,
            {
                "status": "driver_assigned",
                "driverId": "d1",
                "driverName": "Dan",
                "updatedAt": self.now,
            },
        )

    def test_action_takes_precedence_over_status(self):
        update = build_booking_update(
            BookingUpdatePayload(action="start_ride", status="cancelled_by_driver"),
            now=self.now,
        )
        self.assertEqual(update["status"], "in_progress")

    def test_invalid_requests(self):
        with self.assertRaisesRegex(BookingUpdateError, "Invalid action: teleport"):
            build_booking_update(BookingUpdatePayload(action="teleport"))
        with self.assertRaisesRegex(BookingUpdateError, "Invalid status: lost"):
            build_booking_update(BookingUpdatePayload(status="lost"))
        with self.assertRaises(BookingUpdateError):
            build_booking_update(BookingUpdatePayload())


class BookingApiTests(unittest.TestCase):
    def setUp(self):
        self.app = create_app()
        self.db = InMemoryDbClient()
        self.app.dependency_overrides[get_db_client] = lambda: self.db
        self.client = TestClient(self.app)

    def create_booking(self, **overrides):
        response = self.client.post(
            "/api/operator/bookings", json={**NEW_BOOKING, **overrides}
        )
        self.assertEqual(response.status_code, 200)
        return response.json()["id"]

    def test_create_booking_starts_pending(self):
        response = self.client.post("/api/operator/bookings", json=NEW_BOOKING)
        self.assertEqual(response.status_code, 200)
        booking = response.json()["booking"]
        self.assertEqual(booking["id"], response.json()["id"])
        self.assertEqual(booking["status"], "pending")
        self.assertEqual(booking["passengerCount"], 1)
        self.assertIn("_seconds", booking["createdAt"])

    def test_create_booking_rejects_missing_fields(self):
        body = {k: v for k, v in NEW_BOOKING.items() if k != "fareEstimate"}
        response = self.client.post("/api/operator/bookings", json=body)
        self.assertEqual(response.status_code, 400)
        self.assertIn("fareEstimate", response.json()["error"])

    def test_get_and_list_bookings(self):
        first = self.create_booking()
        second = self.create_booking(passengerName="Bob Johnson")
        self.client.post(
            f"/api/operator/bookings/{second}", json={"action": "start_ride"}
        )

        response = self.client.get(f"/api/operator/bookings/{first}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["booking"]["passengerName"], "Alice Smith")

        pending = self.client.get(
            "/api/operator/bookings", params={"status": "pending"}
        ).json()["bookings"]
        self.assertEqual([b["id"] for b in pending], [first])

        everything = self.client.get("/api/operator/bookings").json()["bookings"]
        self.assertEqual(len(everything), 2)

    def test_list_rejects_unknown_status(self):
        response = self.client.get("/api/operator/bookings", params={"status": "lost"})
        self.assertEqual(response.status_code, 400)

    def test_get_missing_booking(self):
        response = self.client.get("/api/operator/bookings/nope")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Booking not found"})

    def test_notify_arrival_sets_timestamp(self):
        booking_id = self.create_booking()
        response = self.client.post(
            f"/api/operator/bookings/{booking_id}", json={"action": "notify_arrival"}
        )
        self.assertEqual(response.status_code, 200)
        booking = response.json()["booking"]
        self.assertEqual(booking["status"], "arrived_at_pickup")
        self.assertIsInstance(
            booking["notifiedPassengerArrivalTimestamp"]["_seconds"], int
        )

        stored = self.db.get_document(BOOKINGS_COLLECTION, booking_id)
        self.assertIsInstance(stored["notifiedPassengerArrivalTimestamp"], datetime)

    def test_accept_with_status_and_driver(self):
        booking_id = self.create_booking()
        response = self.client.post(
            f"/api/operator/bookings/{booking_id}",
            json={"status": "driver_assigned", "driverId": "d1", "driverName": "Dan"},
        )
        self.assertEqual(response.status_code, 200)
        booking = response.json()["booking"]
        self.assertEqual(booking["status"], "driver_assigned")
        self.assertEqual(booking["driverId"], "d1")
        self.assertEqual(booking["driverName"], "Dan")

    def test_illegal_transitions_are_not_rejected(self):
        booking_id = self.create_booking()
        self.client.post(
            f"/api/operator/bookings/{booking_id}", json={"action": "complete_ride"}
        )
        response = self.client.post(
            f"/api/operator/bookings/{booking_id}", json={"status": "pending"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["booking"]["status"], "pending")

    def test_update_errors(self):
        booking_id = self.create_booking()
        response = self.client.post(
            f"/api/operator/bookings/{booking_id}", json={"action": "teleport"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid action: teleport")

        response = self.client.post(f"/api/operator/bookings/{booking_id}", json={})
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            "/api/operator/bookings/missing", json={"action": "start_ride"}
        )
        self.assertEqual(response.status_code, 404)

    def test_update_persistence_failure(self):
        failing = MagicMock()
        failing.update_document.side_effect = RuntimeError("deadline exceeded")
        self.app.dependency_overrides[get_db_client] = lambda: failing
        response = self.client.post(
            "/api/operator/bookings/abc", json={"action": "start_ride"}
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["details"], "deadline exceeded")

    def test_read_failures_return_500(self):
        failing = MagicMock()
        failing.get_document.side_effect = RuntimeError("deadline exceeded")
        failing.list_documents.side_effect = RuntimeError("deadline exceeded")
        self.app.dependency_overrides[get_db_client] = lambda: failing

        with self.assertLogs("mybase.routes", level="ERROR"):
            response = self.client.get("/api/operator/bookings/abc")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json(),
            {"error": "Failed to fetch booking", "details": "deadline exceeded"},
        )

        response = self.client.get("/api/operator/bookings")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "Failed to list bookings")


if __name__ == "__main__":
    unittest.main()
