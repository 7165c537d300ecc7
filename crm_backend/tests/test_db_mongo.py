import unittest
from unittest.mock import MagicMock, patch

from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from crm_backend.db import (
    COLLECTIONS,
    CONTACTS,
    DuplicateIdError,
    MongoEntityStore,
    StoreError,
    StoreUnavailableError,
)


class MongoEntityStoreTests(unittest.TestCase):
    def setUp(self):
        patcher = patch("crm_backend.db.MongoClient")
        self.mock_client_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.client = self.mock_client_cls.return_value
        self.db = self.client.get_default_database.return_value
        self.collection = self.db.__getitem__.return_value
        self.store = MongoEntityStore(
            "mongodb://localhost:27017", "vlncontacts", connect_timeout_ms=100
        )

    def test_connect_pings_and_indexes_ids(self):
        self.store.connect()
        self.mock_client_cls.assert_called_once_with(
            "mongodb://localhost:27017", serverSelectionTimeoutMS=100
        )
        self.client.admin.command.assert_called_once_with("ping")
        self.client.get_default_database.assert_called_once_with(default="vlncontacts")
        self.assertEqual(
            [c.args[0] for c in self.db.__getitem__.call_args_list], list(COLLECTIONS)
        )
        self.assertEqual(self.collection.create_index.call_count, len(COLLECTIONS))
        self.collection.create_index.assert_called_with("id", unique=True)

    def test_connect_failure_is_unavailable(self):
        self.client.admin.command.side_effect = ServerSelectionTimeoutError("no servers")
        with self.assertRaises(StoreUnavailableError):
            self.store.connect()

    def test_operations_require_connection(self):
        with self.assertRaises(StoreError):
            self.store.list(CONTACTS, "name")

    def test_insert_duplicate_key(self):
        self.store.connect()
        self.collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")
        with self.assertRaises(DuplicateIdError):
            self.store.insert(CONTACTS, {"id": "c1", "name": "Ravi"})

    def test_insert_returns_document_without_internal_id(self):
        self.store.connect()
        stored = self.store.insert(CONTACTS, {"id": "c1", "name": "Ravi"})
        self.assertNotIn("_id", stored)
        self.assertIn("createdAt", stored)

    def test_list_uses_native_sort(self):
        self.store.connect()
        cursor = self.collection.find.return_value
        cursor.sort.return_value = [{"id": "b1"}]
        result = self.store.list("backups", "timestamp", descending=True)
        self.assertEqual(result, [{"id": "b1"}])
        self.collection.find.assert_called_once_with({}, {"_id": 0})
        cursor.sort.assert_called_once_with("timestamp", DESCENDING)

    def test_replace_unknown_id(self):
        self.store.connect()
        self.collection.find_one.return_value = None
        self.assertIsNone(self.store.replace(CONTACTS, "nope", {"name": "X"}))
        self.collection.find_one_and_replace.assert_not_called()

    def test_replace_keeps_created_at(self):
        self.store.connect()
        self.collection.find_one.return_value = {"createdAt": "2024-01-01T00:00:00.000+00:00"}
        self.store.replace(CONTACTS, "c1", {"name": "New"})
        replacement = self.collection.find_one_and_replace.call_args.args[1]
        self.assertEqual(replacement["id"], "c1")
        self.assertEqual(replacement["createdAt"], "2024-01-01T00:00:00.000+00:00")
        self.assertEqual(replacement["name"], "New")

    def test_delete_reports_match(self):
        self.store.connect()
        self.collection.delete_one.return_value = MagicMock(deleted_count=0)
        self.assertFalse(self.store.delete(CONTACTS, "nope"))
        self.collection.delete_one.return_value = MagicMock(deleted_count=1)
        self.assertTrue(self.store.delete(CONTACTS, "c1"))


if __name__ == "__main__":
    unittest.main()
