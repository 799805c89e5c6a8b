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

import re
from datetime import datetime, timezone
from typing import Any, Optional

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def convert_keys(data: Any, direction: str) -> Any:
    """
    Recursively converts dict keys between camelCase (wire/Firestore) and
    snake_case (Python dataclasses).

    Args:
        data: A dict, list or scalar.
        direction: Either "camel_to_snake" or "snake_to_camel".
    """
    if direction == "camel_to_snake":
        convert = camel_to_snake
    elif direction == "snake_to_camel":
        convert = snake_to_camel
    else:
        raise ValueError(f"Unknown direction: {direction}")

    if isinstance(data, dict):
        return {
            convert(key) if isinstance(key, str) else key: convert_keys(value, direction)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [convert_keys(item, direction) for item in data]
    return data


def to_firestore_timestamp(value: datetime) -> dict:
    """Renders a datetime the way the Firestore admin SDK serializes a Timestamp."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    seconds = int(value.timestamp())
    return {"_seconds": seconds, "_nanoseconds": value.microsecond * 1000}


def serialize_document(data: Any) -> Any:
    """Makes a stored document JSON-safe, rendering datetimes as timestamps."""
    if isinstance(data, datetime):
        return to_firestore_timestamp(data)
    if isinstance(data, dict):
        return {key: serialize_document(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [serialize_document(item) for item in data]
    return data


def timestamp_to_iso(value: Any) -> Optional[str]:
    """
    Converts a serialized timestamp (`{"_seconds": ...}`), a datetime or an
    ISO string into an ISO-8601 string in UTC. Returns None for empty values.
    """
    if not value:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, dict) and "_seconds" in value:
        moment = datetime.fromtimestamp(value["_seconds"], tz=timezone.utc)
    else:
        raise ValueError(f"Unrecognized timestamp value: {value!r}")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
