"""
Document store abstraction: Firestore, a SQLAlchemy-backed document table
and an in-memory test implementation.

Collections are addressed by slash-separated paths, so a subcollection such
as `users/{uid}/favoriteDrivers` is just another collection name.
"""

from __future__ import annotations

import copy
import threading
import time
import uuid
from datetime import datetime
from typing import Dict, Optional, Protocol

from firebase_admin import firestore
from google.api_core import exceptions
from google.cloud.firestore_v1.base_query import FieldFilter
from sqlalchemy import JSON, Column, Float, String, create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shared.firebase_constants import COUNTERS_COLLECTION, COUNTER_FIELD


class DbClient(Protocol):
    """Interface for document store access."""

    def add_document(self, collection: str, data: dict) -> str:
        ...

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        ...

    def set_document(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = False
    ) -> None:
        ...

    def update_document(
        self, collection: str, doc_id: str, data: dict
    ) -> Optional[dict]:
        ...

    def list_documents(
        self,
        collection: str,
        filters: Optional[dict] = None,
        limit: int = 100,
    ) -> list[tuple[str, dict]]:
        ...

    def increment_counter(self, name: str, field: str = COUNTER_FIELD) -> int:
        ...


def _matches(data: dict, filters: Optional[dict]) -> bool:
    if not filters:
        return True
    return all(data.get(key) == value for key, value in filters.items())


class InMemoryDbClient:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {}
        self._counter_lock = threading.Lock()

    def add_document(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        return doc_id

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        doc = self.collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def set_document(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = False
    ) -> None:
        docs = self.collections.setdefault(collection, {})
        if merge and doc_id in docs:
            docs[doc_id].update(copy.deepcopy(data))
        else:
            docs[doc_id] = copy.deepcopy(data)

    def update_document(
        self, collection: str, doc_id: str, data: dict
    ) -> Optional[dict]:
        doc = self.collections.get(collection, {}).get(doc_id)
        if doc is None:
            return None
        doc.update(copy.deepcopy(data))
        return copy.deepcopy(doc)

    def list_documents(
        self,
        collection: str,
        filters: Optional[dict] = None,
        limit: int = 100,
    ) -> list[tuple[str, dict]]:
        items: list[tuple[str, dict]] = []
        for doc_id, data in self.collections.get(collection, {}).items():
            if not _matches(data, filters):
                continue
            items.append((doc_id, copy.deepcopy(data)))
            if len(items) >= limit:
                break
        return items

    def increment_counter(self, name: str, field: str = COUNTER_FIELD) -> int:
        with self._counter_lock:
            counter = self.collections.setdefault(COUNTERS_COLLECTION, {}).setdefault(
                name, {}
            )
            counter[field] = counter.get(field, 0) + 1
            return counter[field]

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.collections.clear()


class FirestoreDbClient:
    """Cloud Firestore implementation via the firebase_admin SDK."""

    def __init__(self, client=None):
        self.client = client or firestore.client()

    def add_document(self, collection: str, data: dict) -> str:
        _, doc_ref = self.client.collection(collection).add(data)
        return doc_ref.id

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        snapshot = self.client.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict()

    def set_document(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = False
    ) -> None:
        self.client.collection(collection).document(doc_id).set(data, merge=merge)

    def update_document(
        self, collection: str, doc_id: str, data: dict
    ) -> Optional[dict]:
        doc_ref = self.client.collection(collection).document(doc_id)
        try:
            doc_ref.update(data)
        except exceptions.NotFound:
            return None
        return doc_ref.get().to_dict()

    def list_documents(
        self,
        collection: str,
        filters: Optional[dict] = None,
        limit: int = 100,
    ) -> list[tuple[str, dict]]:
        query = self.client.collection(collection)
        for key, value in (filters or {}).items():
            query = query.where(filter=FieldFilter(key, "==", value))
        return [(doc.id, doc.to_dict()) for doc in query.limit(limit).stream()]

    def increment_counter(self, name: str, field: str = COUNTER_FIELD) -> int:
        transaction = self.client.transaction()
        counter_ref = self.client.collection(COUNTERS_COLLECTION).document(name)

        @firestore.transactional
        def _increment_transaction(transaction, doc_ref):
            snapshot = doc_ref.get(transaction=transaction)
            current = 0
            if snapshot.exists:
                current = (snapshot.to_dict() or {}).get(field, 0)
            next_value = current + 1
            transaction.set(doc_ref, {field: next_value}, merge=True)
            return next_value

        return _increment_transaction(transaction, counter_ref)


_DATETIME_TAG = "__datetime__"


def _encode(value):
    """JSON columns cannot hold datetimes, so they are stored tagged."""
    if isinstance(value, datetime):
        return {_DATETIME_TAG: value.isoformat()}
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    return value


def _decode(value):
    if isinstance(value, dict):
        if set(value) == {_DATETIME_TAG}:
            return datetime.fromisoformat(value[_DATETIME_TAG])
        return {key: _decode(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_decode(item) for item in value]
    return value


class PostgresDbClient:
    """
    SQLAlchemy-backed document table. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def add_document(self, collection: str, data: dict) -> str:
        now = time.time()
        doc_id = uuid.uuid4().hex
        with self.Session() as session:
            session.add(
                DocumentRow(
                    collection=collection,
                    doc_id=doc_id,
                    data=_encode(data),
                    created_at=now,
                    updated_at=now,
                )
            )
            session.commit()
        return doc_id

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            return _decode(row.data) if row else None

    def set_document(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = False
    ) -> None:
        now = time.time()
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            if row:
                row.data = {**row.data, **_encode(data)} if merge else _encode(data)
                row.updated_at = now
            else:
                session.add(
                    DocumentRow(
                        collection=collection,
                        doc_id=doc_id,
                        data=_encode(data),
                        created_at=now,
                        updated_at=now,
                    )
                )
            session.commit()

    def update_document(
        self, collection: str, doc_id: str, data: dict
    ) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            if not row:
                return None
            # Reassign so SQLAlchemy sees the JSON change.
            row.data = {**row.data, **_encode(data)}
            row.updated_at = time.time()
            session.commit()
            return _decode(row.data)

    def list_documents(
        self,
        collection: str,
        filters: Optional[dict] = None,
        limit: int = 100,
    ) -> list[tuple[str, dict]]:
        encoded_filters = _encode(filters) if filters else None
        with self.Session() as session:
            rows = session.execute(
                select(DocumentRow)
                .where(DocumentRow.collection == collection)
                .order_by(DocumentRow.created_at.asc())
            ).scalars()
            results: list[tuple[str, dict]] = []
            for row in rows:
                if not _matches(row.data, encoded_filters):
                    continue
                results.append((row.doc_id, _decode(row.data)))
                if len(results) >= limit:
                    break
            return results

    def increment_counter(self, name: str, field: str = COUNTER_FIELD) -> int:
        # A concurrent first insert of the counter row loses on the primary
        # key; the retry then finds the row and locks it.
        try:
            return self._increment_counter_once(name, field)
        except IntegrityError:
            return self._increment_counter_once(name, field)

    def _increment_counter_once(self, name: str, field: str) -> int:
        now = time.time()
        with self.Session() as session:
            row = session.execute(
                select(DocumentRow)
                .where(
                    DocumentRow.collection == COUNTERS_COLLECTION,
                    DocumentRow.doc_id == name,
                )
                .with_for_update()
            ).scalar_one_or_none()
            if row:
                next_value = row.data.get(field, 0) + 1
                row.data = {**row.data, field: next_value}
                row.updated_at = now
            else:
                next_value = 1
                session.add(
                    DocumentRow(
                        collection=COUNTERS_COLLECTION,
                        doc_id=name,
                        data={field: next_value},
                        created_at=now,
                        updated_at=now,
                    )
                )
            session.commit()
            return next_value


Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "documents"

    collection = Column(String, primary_key=True)
    doc_id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
    created_at = Column(Float, nullable=False, index=True)
    updated_at = Column(Float, nullable=False)
