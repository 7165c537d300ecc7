import importlib.util
import unittest
from pathlib import Path
from unittest.mock import patch

from crm_backend.db import BACKUPS, CONTACTS, PRODUCTS, InMemoryEntityStore, StoreError

SCRIPT_PATH = Path(__file__).resolve().parents[2] / "scripts" / "snapshot_backup.py"


def load_script():
    spec = importlib.util.spec_from_file_location("snapshot_backup", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class BrokenStore(InMemoryEntityStore):
    def list(self, collection, sort_field, *, descending=False):
        raise StoreError("connection reset")


class SnapshotScriptTests(unittest.TestCase):
    def setUp(self):
        self.script = load_script()
        self.store = InMemoryEntityStore()
        self.store.insert(CONTACTS, {"id": "c1", "name": "Ravi"})
        self.store.insert(CONTACTS, {"id": "c2", "name": "Anita"})
        self.store.insert(PRODUCTS, {"id": "p1", "productName": "Tea"})

    def run_script(self, store, *args):
        with patch.object(self.script, "get_entity_store", return_value=store), \
                patch.object(self.script, "close_entity_store") as close, \
                patch("sys.argv", ["snapshot_backup.py", *args]):
            code = self.script.main()
        close.assert_called_once()
        return code

    def test_dry_run_saves_nothing(self):
        self.assertEqual(self.run_script(self.store, "--dry-run"), 0)
        self.assertEqual(self.store.list(BACKUPS, "timestamp"), [])

    def test_stores_one_backup(self):
        self.assertEqual(self.run_script(self.store), 0)
        backups = self.store.list(BACKUPS, "timestamp")
        self.assertEqual(len(backups), 1)
        self.assertTrue(backups[0]["id"].startswith("backup_"))
        self.assertEqual(backups[0]["contactCount"], 2)
        self.assertEqual(backups[0]["productCount"], 1)

    def test_store_error_exits_nonzero(self):
        self.assertEqual(self.run_script(BrokenStore()), 1)


if __name__ == "__main__":
    unittest.main()
