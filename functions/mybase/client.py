"""
HTTP client for the operator booking endpoint, used by the driver view.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10


class BookingsApiError(Exception):
    """Raised when the bookings API answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class BookingsApiClient:
    """
    Thin wrapper around `POST {base_url}/api/operator/bookings/{id}`.

    `session` can be any object with a requests-style `post` method; tests
    pass FastAPI's TestClient.
    """

    def __init__(
        self,
        base_url: str = "",
        session: Any = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def booking_url(self, booking_id: str) -> str:
        return f"{self.base_url}/api/operator/bookings/{booking_id}"

    def update_booking(self, booking_id: str, payload: dict) -> dict:
        """Posts an update and returns the `booking` object from the response."""
        response = self.session.post(
            self.booking_url(booking_id), json=payload, timeout=self.timeout
        )
        if response.status_code >= 400:
            raise BookingsApiError(
                self._error_message(booking_id, response), response.status_code
            )
        return response.json().get("booking") or {}

    @staticmethod
    def _error_message(booking_id: str, response) -> str:
        text = response.text
        try:
            error_data = response.json()
        except ValueError:
            logger.warning(
                "Response for booking %s (status %s) is not valid JSON: %s",
                booking_id,
                response.status_code,
                text[:200],
            )
            return f"Status: {response.status_code}. Body: {text[:200]}"

        logger.error("API error for booking %s: %s", booking_id, error_data)
        message: Optional[str] = None
        if isinstance(error_data, dict):
            message = (
                error_data.get("message")
                or error_data.get("details")
                or error_data.get("error")
            )
        return message or str(error_data)
