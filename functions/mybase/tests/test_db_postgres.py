import unittest
from datetime import datetime, timezone

from mybase.db import PostgresDbClient


class PostgresDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the Postgres client logic.
    """

    def setUp(self):
        self.db = PostgresDbClient("sqlite+pysqlite:///:memory:")

    def test_add_and_get_document(self):
        created_at = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
        doc_id = self.db.add_document(
            "favoriteLocations", {"label": "Home", "createdAt": created_at}
        )
        loaded = self.db.get_document("favoriteLocations", doc_id)
        self.assertEqual(loaded, {"label": "Home", "createdAt": created_at})
        self.assertIsNone(self.db.get_document("favoriteLocations", "missing"))

    def test_set_document_merge(self):
        self.db.set_document("users", "u1", {"name": "Dan", "role": "driver"})
        self.db.set_document("users", "u1", {"customId": "DR001"}, merge=True)
        self.assertEqual(
            self.db.get_document("users", "u1"),
            {"name": "Dan", "role": "driver", "customId": "DR001"},
        )
        self.db.set_document("users", "u1", {"name": "Replaced"})
        self.assertEqual(self.db.get_document("users", "u1"), {"name": "Replaced"})

    def test_update_document(self):
        doc_id = self.db.add_document("bookings", {"status": "pending", "fare": 5})
        updated = self.db.update_document("bookings", doc_id, {"status": "completed"})
        self.assertEqual(updated, {"status": "completed", "fare": 5})
        self.assertEqual(self.db.get_document("bookings", doc_id)["status"], "completed")
        self.assertIsNone(self.db.update_document("bookings", "missing", {"a": 1}))

    def test_list_documents_filters_and_limit(self):
        for user_id in ("u1", "u2", "u1", "u1"):
            self.db.add_document("savedRoutes", {"userId": user_id})
        self.db.add_document("other", {"userId": "u1"})

        mine = self.db.list_documents("savedRoutes", filters={"userId": "u1"})
        self.assertEqual(len(mine), 3)
        self.assertTrue(all(data["userId"] == "u1" for _, data in mine))
        self.assertEqual(len(self.db.list_documents("savedRoutes", limit=2)), 2)

    def test_subcollection_paths_are_separate(self):
        self.db.add_document("users/u1/favoriteDrivers", {"driverId": "d1"})
        self.db.add_document("users/u2/favoriteDrivers", {"driverId": "d2"})
        docs = self.db.list_documents("users/u1/favoriteDrivers")
        self.assertEqual([data["driverId"] for _, data in docs], ["d1"])

    def test_increment_counter(self):
        self.assertEqual(self.db.increment_counter("adminId"), 1)
        self.assertEqual(self.db.increment_counter("adminId"), 2)
        self.assertEqual(self.db.increment_counter("other"), 1)
        self.assertEqual(self.db.get_document("counters", "adminId"), {"currentId": 2})


if __name__ == "__main__":
    unittest.main()
