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

ADMIN_ID_PREFIX = "AD"
ADMIN_ID_MIN_DIGITS = 3

# Ride offer fabricated by "Simulate Incoming Offer".
MOCK_OFFER_ID = "mock-offer-123"

# Huddersfield town centre, used when no driver location is known.
DEFAULT_MAP_CENTER = (53.6450, -1.7830)

PROGRESS_STEP = 10
PROGRESS_MAX = 100
PROGRESS_TICK_SECONDS = 0.3
