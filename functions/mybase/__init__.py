"""
MyBase ride-hailing API package.

Provides a FastAPI application over a swappable document store (Firestore,
a SQLAlchemy document table, or in-memory) plus the driver-side session
model that talks to the booking endpoints.
"""
