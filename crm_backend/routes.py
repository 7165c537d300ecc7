"""
HTTP routes for the catalog API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from crm_backend.db import EntityStore, StoreError
from crm_backend.dependencies import get_entity_store
from crm_backend.ids import generate_id
from crm_backend.kinds import BACKUP, CONTACT, MYLINK, PRODUCT, EntityKind
from crm_backend.schemas import (
    BackupCreate,
    ContactBase,
    ContactCreate,
    DocumentModel,
    HealthResponse,
    MessageResponse,
    MyLinkBase,
    MyLinkCreate,
    ProductBase,
    ProductCreate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _list_documents(kind: EntityKind, store: EntityStore) -> list[dict]:
    try:
        return store.list(kind.collection, kind.sort_field, descending=kind.descending)
    except StoreError as exc:
        logger.exception("Listing %s failed", kind.collection)
        raise HTTPException(status_code=500, detail=str(exc))


def _create_document(
    kind: EntityKind, payload: DocumentModel, store: EntityStore
) -> dict:
    document = payload.to_document()
    document["id"] = document.get("id") or generate_id(kind.id_prefix)
    try:
        stored = store.insert(kind.collection, document)
    except StoreError as exc:
        logger.warning("Rejected %s %s: %s", kind.label, document["id"], exc)
        raise HTTPException(status_code=400, detail=str(exc))
    logger.info("Created %s %s", kind.label, stored["id"])
    return stored


def _replace_document(
    kind: EntityKind, external_id: str, payload: DocumentModel, store: EntityStore
) -> dict:
    document = payload.to_document()
    document.pop("id", None)
    try:
        stored = store.replace(kind.collection, external_id, document)
    except StoreError as exc:
        logger.warning("Update of %s %s failed: %s", kind.label, external_id, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    if stored is None:
        raise HTTPException(status_code=404, detail=f"{kind.label} not found")
    logger.info("Updated %s %s", kind.label, external_id)
    return stored


def _delete_document(
    kind: EntityKind, external_id: str, store: EntityStore
) -> MessageResponse:
    try:
        deleted = store.delete(kind.collection, external_id)
    except StoreError as exc:
        logger.exception("Delete of %s %s failed", kind.label, external_id)
        raise HTTPException(status_code=500, detail=str(exc))
    if not deleted:
        raise HTTPException(status_code=404, detail=f"{kind.label} not found")
    logger.info("Deleted %s %s", kind.label, external_id)
    return MessageResponse(message=f"{kind.label} deleted successfully")


@router.get("/health", response_model=HealthResponse)
def health(store: EntityStore = Depends(get_entity_store)):
    return HealthResponse(status="ok", store=store.__class__.__name__)


# Contacts


@router.get("/contacts")
def list_contacts(store: EntityStore = Depends(get_entity_store)):
    return _list_documents(CONTACT, store)


@router.post("/contacts", status_code=201)
def create_contact(
    payload: ContactCreate, store: EntityStore = Depends(get_entity_store)
):
    return _create_document(CONTACT, payload, store)


@router.put("/contacts/{external_id}")
def update_contact(
    external_id: str,
    payload: ContactBase,
    store: EntityStore = Depends(get_entity_store),
):
    """
    Replace the contact wholesale. Purpose-specific required fields are only
    checked on create, so an update may change ``purpose`` without them.
    """
    return _replace_document(CONTACT, external_id, payload, store)


@router.delete("/contacts/{external_id}", response_model=MessageResponse)
def delete_contact(external_id: str, store: EntityStore = Depends(get_entity_store)):
    return _delete_document(CONTACT, external_id, store)


# Products


@router.get("/products")
def list_products(store: EntityStore = Depends(get_entity_store)):
    return _list_documents(PRODUCT, store)


@router.post("/products", status_code=201)
def create_product(
    payload: ProductCreate, store: EntityStore = Depends(get_entity_store)
):
    return _create_document(PRODUCT, payload, store)


@router.put("/products/{external_id}")
def update_product(
    external_id: str,
    payload: ProductBase,
    store: EntityStore = Depends(get_entity_store),
):
    return _replace_document(PRODUCT, external_id, payload, store)


@router.delete("/products/{external_id}", response_model=MessageResponse)
def delete_product(external_id: str, store: EntityStore = Depends(get_entity_store)):
    return _delete_document(PRODUCT, external_id, store)


# Backups are write-once snapshots: no update or delete.


@router.get("/backups")
def list_backups(store: EntityStore = Depends(get_entity_store)):
    return _list_documents(BACKUP, store)


@router.post("/backups", status_code=201)
def create_backup(
    payload: BackupCreate, store: EntityStore = Depends(get_entity_store)
):
    return _create_document(BACKUP, payload, store)


# MyLinks


@router.get("/mylinks")
def list_links(store: EntityStore = Depends(get_entity_store)):
    return _list_documents(MYLINK, store)


@router.post("/mylinks", status_code=201)
def create_link(payload: MyLinkCreate, store: EntityStore = Depends(get_entity_store)):
    return _create_document(MYLINK, payload, store)


@router.put("/mylinks/{external_id}")
def update_link(
    external_id: str,
    payload: MyLinkBase,
    store: EntityStore = Depends(get_entity_store),
):
    return _replace_document(MYLINK, external_id, payload, store)


@router.delete("/mylinks/{external_id}", response_model=MessageResponse)
def delete_link(external_id: str, store: EntityStore = Depends(get_entity_store)):
    return _delete_document(MYLINK, external_id, store)
