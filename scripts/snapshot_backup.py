"""
Store a backup record holding the current contacts and products.

Uses the store configured through DATABASE_URL, the same way the API does.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from crm_backend.backups import build_snapshot
from crm_backend.db import StoreError
from crm_backend.dependencies import close_entity_store, get_entity_store
from crm_backend.ids import generate_id
from crm_backend.kinds import BACKUP


logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report record counts without saving a backup",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    store = get_entity_store()
    try:
        store.connect()
        snapshot = build_snapshot(store)
        logger.info(
            "Snapshot has %d contacts and %d products",
            snapshot.contactCount,
            snapshot.productCount,
        )
        if args.dry_run:
            return 0
        document = snapshot.to_document()
        document["id"] = generate_id(BACKUP.id_prefix)
        stored = store.insert(BACKUP.collection, document)
    except StoreError as exc:
        logger.error("Backup failed: %s", exc)
        return 1
    finally:
        close_entity_store()

    logger.info("Stored backup %s", stored["id"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
