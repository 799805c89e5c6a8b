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

USERS_COLLECTION = "users"
FAVORITE_DRIVERS_COLLECTION = "favoriteDrivers"
FAVORITE_LOCATIONS_COLLECTION = "favoriteLocations"
SAVED_ROUTES_COLLECTION = "savedRoutes"
BOOKINGS_COLLECTION = "bookings"
COUNTERS_COLLECTION = "counters"

ADMIN_ID_COUNTER = "adminId"
COUNTER_FIELD = "currentId"


def favorite_drivers_path(user_id: str) -> str:
    """Path of the per-user favorite drivers subcollection."""
    return f"{USERS_COLLECTION}/{user_id}/{FAVORITE_DRIVERS_COLLECTION}"
