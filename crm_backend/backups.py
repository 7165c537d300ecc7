"""
Server-side snapshots of the contact and product collections.

A backup is a disconnected copy: both collections are serialised to JSON
text at snapshot time, in the same order the list endpoints return them.
The two reads are not atomic with each other.
"""

from __future__ import annotations

import json

from crm_backend.db import EntityStore
from crm_backend.kinds import CONTACT, PRODUCT, EntityKind
from crm_backend.schemas import BackupCreate


def _read_all(store: EntityStore, kind: EntityKind) -> list[dict]:
    return store.list(kind.collection, kind.sort_field, descending=kind.descending)


def build_snapshot(store: EntityStore) -> BackupCreate:
    contacts = _read_all(store, CONTACT)
    products = _read_all(store, PRODUCT)
    return BackupCreate(
        contacts=json.dumps(contacts),
        products=json.dumps(products),
        contactCount=len(contacts),
        productCount=len(products),
    )
