"""
Per-user collections: favorite locations, saved routes, favorite drivers,
plus the sequential admin id counter.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from mybase.db import DbClient
from mybase.schemas import (
    FavoriteDriverPayload,
    FavoriteLocationPayload,
    SavedRoutePayload,
)
from shared.constants import ADMIN_ID_MIN_DIGITS, ADMIN_ID_PREFIX
from shared.firebase_constants import (
    ADMIN_ID_COUNTER,
    FAVORITE_LOCATIONS_COLLECTION,
    SAVED_ROUTES_COLLECTION,
    USERS_COLLECTION,
    favorite_drivers_path,
)
from shared.types import FavoriteDriver

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def add_favorite_location(
    db: DbClient, payload: FavoriteLocationPayload
) -> tuple[str, dict]:
    """Stores the location and returns its id with the document as persisted."""
    data = payload.model_dump(by_alias=True, exclude_unset=True)
    data["createdAt"] = _now()
    doc_id = db.add_document(FAVORITE_LOCATIONS_COLLECTION, data)
    stored = db.get_document(FAVORITE_LOCATIONS_COLLECTION, doc_id)
    logger.info("Added favorite location %s for user %s", doc_id, payload.user_id)
    return doc_id, stored if stored is not None else data


def add_saved_route(db: DbClient, payload: SavedRoutePayload) -> str:
    data = payload.model_dump(by_alias=True, exclude_unset=True)
    data["createdAt"] = _now()
    doc_id = db.add_document(SAVED_ROUTES_COLLECTION, data)
    logger.info("Added saved route %s for user %s", doc_id, payload.user_id)
    return doc_id


def list_favorite_locations(db: DbClient, user_id: str) -> list[tuple[str, dict]]:
    return db.list_documents(FAVORITE_LOCATIONS_COLLECTION, filters={"userId": user_id})


def list_saved_routes(db: DbClient, user_id: str) -> list[tuple[str, dict]]:
    return db.list_documents(SAVED_ROUTES_COLLECTION, filters={"userId": user_id})


def add_favorite_driver(db: DbClient, payload: FavoriteDriverPayload) -> str:
    return db.add_document(
        favorite_drivers_path(payload.user_id),
        {"driverId": payload.driver_id, "name": payload.driver_name or ""},
    )


def _vehicle_info(profile: dict) -> str:
    make_model = profile.get("vehicleMakeModel") or ""
    registration = profile.get("vehicleRegistration")
    return make_model + (f" - {registration}" if registration else "")


def _load_driver_profile(db: DbClient, driver_id: str) -> Optional[dict]:
    try:
        return db.get_document(USERS_COLLECTION, driver_id)
    except Exception:
        logger.exception("Failed to load profile for favorite driver %s", driver_id)
        return None


def list_favorite_drivers(db: DbClient, user_id: str) -> list[FavoriteDriver]:
    """
    Lists a user's favorite drivers, filling any missing name, avatar or
    vehicle details from the driver's own profile in the users collection.
    """
    favorites: list[FavoriteDriver] = []
    for doc_id, data in db.list_documents(favorite_drivers_path(user_id)):
        driver_id = (data or {}).get("driverId")
        if not driver_id:
            continue

        favorite = FavoriteDriver(
            id=doc_id,
            driver_id=driver_id,
            name=data.get("name"),
            avatar_url=data.get("avatarUrl"),
            vehicle_info=data.get("vehicleInfo"),
        )
        if not (favorite.name and favorite.avatar_url and favorite.vehicle_info):
            profile = _load_driver_profile(db, driver_id)
            if profile:
                favorite.name = favorite.name or profile.get("name")
                favorite.avatar_url = favorite.avatar_url or profile.get("avatarUrl")
                favorite.vehicle_info = favorite.vehicle_info or _vehicle_info(profile)
                favorite.custom_id = (
                    profile.get("customId") or profile.get("driverIdentifier") or ""
                )
        favorites.append(favorite)
    return favorites


def format_admin_id(sequence: int) -> str:
    return f"{ADMIN_ID_PREFIX}{sequence:0{ADMIN_ID_MIN_DIGITS}d}"


def generate_admin_id(db: DbClient) -> str:
    """Mints the next sequential admin id (AD001, AD002, ...)."""
    sequence = db.increment_counter(ADMIN_ID_COUNTER)
    admin_id = format_admin_id(sequence)
    logger.info("Generated admin id %s", admin_id)
    return admin_id
