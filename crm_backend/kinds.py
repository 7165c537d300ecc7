"""
Entity kinds: where each record kind is stored, how its ids are prefixed
and how its collection is ordered when listed.
"""

from __future__ import annotations

from dataclasses import dataclass

from crm_backend.db import BACKUPS, CONTACTS, MYLINKS, PRODUCTS


@dataclass(frozen=True)
class EntityKind:
    label: str
    collection: str
    id_prefix: str
    sort_field: str
    descending: bool = False


CONTACT = EntityKind("Contact", CONTACTS, "contact", "name")
PRODUCT = EntityKind("Product", PRODUCTS, "product", "productName")
BACKUP = EntityKind("Backup", BACKUPS, "backup", "timestamp", descending=True)
MYLINK = EntityKind("Link", MYLINKS, "link", "name")
