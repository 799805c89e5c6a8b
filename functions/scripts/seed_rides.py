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

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mybase import bookings
from mybase.dependencies import get_db_client
from mybase.schemas import BookingCreatePayload
from shared.firebase_constants import USERS_COLLECTION
from shared.types import UserRole

# Seeds demo ride requests (and a demo driver profile) for local debugging.

DEMO_RIDES = [
    {
        "passengerName": "Alice Smith",
        "passengerAvatar": "https://placehold.co/40x40.png?text=AS",
        "pickupLocation": "6 Colne Street Paddock Huddersfield HD1 4RX",
        "dropoffLocation": "12 Lindley Moor Road Lindley Huddersfield HD3 3RT",
        "estimatedTime": "10 min",
        "fareEstimate": 7.50,
        "pickupCoords": {"lat": 53.6410, "lng": -1.7950},
        "dropoffCoords": {"lat": 53.6600, "lng": -1.8200},
        "distanceMiles": 2.5,
        "passengerCount": 1,
        "passengerPhone": "555-0101",
        "passengerRating": 4.5,
    },
    {
        "passengerName": "Bob Johnson",
        "passengerAvatar": "https://placehold.co/40x40.png?text=BJ",
        "pickupLocation": "Huddersfield Station",
        "dropoffLocation": "University of Huddersfield, Queensgate",
        "estimatedTime": "5 min",
        "fareEstimate": 5.00,
        "pickupCoords": {"lat": 53.6490, "lng": -1.7795},
        "dropoffCoords": {"lat": 53.6430, "lng": -1.7720},
        "distanceMiles": 1.2,
        "passengerCount": 2,
        "passengerPhone": "555-0102",
        "passengerRating": 4.8,
    },
]

DEMO_DRIVER = {
    "name": "Dan Driver",
    "role": UserRole.DRIVER.value,
    "avatarUrl": "https://placehold.co/40x40.png?text=DD",
    "vehicleMakeModel": "Toyota Prius",
    "vehicleRegistration": "HD21 ABC",
    "customId": "DR001",
}


def seed(args):
    db = get_db_client()

    if not args.skip_driver:
        db.set_document(USERS_COLLECTION, args.driver_id, DEMO_DRIVER, merge=True)
        print(f"✅ Seeded driver profile {args.driver_id}.")

    for ride in DEMO_RIDES:
        try:
            booking_id, _ = bookings.create_booking(
                db, BookingCreatePayload.model_validate(ride)
            )
            print(f"✅ Seeded booking {booking_id} for {ride['passengerName']}.")
        except Exception as e:
            print(f"❌ Failed to seed booking for {ride['passengerName']}: {e}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Seed demo bookings into the configured document store."
    )
    parser.add_argument(
        "--driver_id",
        default="demo-driver",
        help="Document id of the demo driver profile.",
    )
    parser.add_argument(
        "--skip_driver",
        action="store_true",
        help="Do not write the demo driver profile.",
    )

    args = parser.parse_args()
    seed(args)
