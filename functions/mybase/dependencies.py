"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

import firebase_admin

from mybase.config import get_settings
from mybase.db import DbClient, FirestoreDbClient, InMemoryDbClient, PostgresDbClient

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None


def _init_firebase_app(project_id: str | None) -> None:
    try:
        firebase_admin.get_app()
    except ValueError:
        options = {"projectId": project_id} if project_id else None
        firebase_admin.initialize_app(options=options)


def get_db_client() -> DbClient:
    """
    Return a singleton document store client so state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _db_client = InMemoryDbClient()
    elif settings.use_firestore:
        _init_firebase_app(settings.google_cloud_project)
        _db_client = FirestoreDbClient()
    elif settings.database_url:
        _db_client = PostgresDbClient(settings.database_url)
    else:
        _db_client = InMemoryDbClient()
    logger.info("Using document store %s", _db_client.__class__.__name__)
    return _db_client
