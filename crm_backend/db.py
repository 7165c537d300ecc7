"""
Document store abstraction for MongoDB, SQLAlchemy and an in-memory test
implementation.

Every store keeps one collection per entity kind. Documents are plain
dicts keyed by the application-assigned ``id``; store-internal identifiers
never leave this module.
"""

from __future__ import annotations

import copy
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Protocol

from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo import errors as mongo_errors
from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
    delete,
    select,
    text,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

CONTACTS = "contacts"
PRODUCTS = "products"
BACKUPS = "backups"
MYLINKS = "mylinks"
COLLECTIONS = (CONTACTS, PRODUCTS, BACKUPS, MYLINKS)


class StoreError(Exception):
    """A store operation failed. The message is safe to return to clients."""


class DuplicateIdError(StoreError):
    """A document with the same ``id`` already exists in the collection."""


class StoreUnavailableError(StoreError):
    """The store could not be reached when connecting."""


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, so strings sort by time."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def utc_now() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def sort_documents(
    documents: Iterable[dict], sort_field: str, *, descending: bool = False
) -> list[dict]:
    """
    Sort like MongoDB does for a single field: documents missing the field
    (or holding null) come first ascending and last descending.
    """

    def key(doc: dict) -> tuple[bool, Any]:
        value = doc.get(sort_field)
        return (value is not None, value if value is not None else "")

    return sorted(documents, key=key, reverse=descending)


def _stamp_new(document: dict) -> dict:
    now = utc_now()
    stamped = dict(document)
    stamped.setdefault("timestamp", now)
    stamped["createdAt"] = now
    stamped["updatedAt"] = now
    return stamped


def _stamp_replacement(external_id: str, document: dict, existing: dict) -> dict:
    replacement = dict(document)
    replacement["id"] = external_id
    if existing.get("timestamp") is not None:
        replacement.setdefault("timestamp", existing["timestamp"])
    replacement["createdAt"] = existing.get("createdAt")
    replacement["updatedAt"] = utc_now()
    return replacement


class EntityStore(Protocol):
    """Interface for document access."""

    def connect(self) -> None:
        ...

    def close(self) -> None:
        ...

    def insert(self, collection: str, document: dict) -> dict:
        ...

    def list(
        self, collection: str, sort_field: str, *, descending: bool = False
    ) -> list[dict]:
        ...

    def replace(
        self, collection: str, external_id: str, document: dict
    ) -> Optional[dict]:
        ...

    def delete(self, collection: str, external_id: str) -> bool:
        ...


class InMemoryEntityStore:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {
            name: {} for name in COLLECTIONS
        }
        self._lock = threading.RLock()

    def connect(self) -> None:
        return None

    def close(self) -> None:
        return None

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            for documents in self.collections.values():
                documents.clear()

    def _collection(self, name: str) -> Dict[str, dict]:
        return self.collections.setdefault(name, {})

    def insert(self, collection: str, document: dict) -> dict:
        with self._lock:
            documents = self._collection(collection)
            external_id = document["id"]
            if external_id in documents:
                raise DuplicateIdError(
                    f"Duplicate id '{external_id}' in collection '{collection}'"
                )
            stored = _stamp_new(copy.deepcopy(document))
            documents[external_id] = stored
            return copy.deepcopy(stored)

    def list(
        self, collection: str, sort_field: str, *, descending: bool = False
    ) -> list[dict]:
        with self._lock:
            documents = [copy.deepcopy(d) for d in self._collection(collection).values()]
        return sort_documents(documents, sort_field, descending=descending)

    def replace(
        self, collection: str, external_id: str, document: dict
    ) -> Optional[dict]:
        with self._lock:
            documents = self._collection(collection)
            existing = documents.get(external_id)
            if existing is None:
                return None
            stored = _stamp_replacement(
                external_id, copy.deepcopy(document), existing
            )
            documents[external_id] = stored
            return copy.deepcopy(stored)

    def delete(self, collection: str, external_id: str) -> bool:
        with self._lock:
            return self._collection(collection).pop(external_id, None) is not None


Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "entity_documents"
    __table_args__ = (
        UniqueConstraint("collection", "external_id", name="uq_collection_external_id"),
    )

    pk = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String, nullable=False, index=True)
    external_id = Column(String, nullable=False)
    data = Column(JSON, nullable=False)


class SqlEntityStore:
    """
    SQLAlchemy-backed implementation storing each document as a JSON row.
    Accepts any SQLAlchemy URL (e.g., Postgres, or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlEntityStore")
        engine_kwargs: dict[str, Any] = {"future": True, "pool_pre_ping": True}
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # One shared connection, otherwise each thread sees an empty database.
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            engine_kwargs["pool_recycle"] = 1800
        self.engine = create_engine(database_url, **engine_kwargs)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )

    def connect(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        logger.info("Connected to SQL store %s", self.engine.url.render_as_string())

    def close(self) -> None:
        self.engine.dispose()

    def _get_row(
        self, session: Session, collection: str, external_id: str
    ) -> Optional[DocumentRow]:
        stmt = select(DocumentRow).where(
            DocumentRow.collection == collection,
            DocumentRow.external_id == external_id,
        )
        return session.execute(stmt).scalar_one_or_none()

    def insert(self, collection: str, document: dict) -> dict:
        stored = _stamp_new(document)
        try:
            with self.Session() as session:
                session.add(
                    DocumentRow(
                        collection=collection,
                        external_id=stored["id"],
                        data=stored,
                    )
                )
                session.commit()
        except IntegrityError as exc:
            raise DuplicateIdError(
                f"Duplicate id '{stored['id']}' in collection '{collection}'"
            ) from exc
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
        return stored

    def list(
        self, collection: str, sort_field: str, *, descending: bool = False
    ) -> list[dict]:
        try:
            with self.Session() as session:
                stmt = (
                    select(DocumentRow.data)
                    .where(DocumentRow.collection == collection)
                    .order_by(DocumentRow.pk.asc())
                )
                documents = [dict(data) for data in session.execute(stmt).scalars()]
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
        return sort_documents(documents, sort_field, descending=descending)

    def replace(
        self, collection: str, external_id: str, document: dict
    ) -> Optional[dict]:
        try:
            with self.Session() as session:
                row = self._get_row(session, collection, external_id)
                if row is None:
                    return None
                stored = _stamp_replacement(external_id, document, row.data)
                row.data = stored
                session.commit()
                return stored
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc

    def delete(self, collection: str, external_id: str) -> bool:
        try:
            with self.Session() as session:
                result = session.execute(
                    delete(DocumentRow).where(
                        DocumentRow.collection == collection,
                        DocumentRow.external_id == external_id,
                    )
                )
                session.commit()
                return (result.rowcount or 0) > 0
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc


class MongoEntityStore:
    """
    pymongo-backed implementation: one MongoDB collection per entity kind,
    each with a unique index on ``id``.
    """

    def __init__(
        self,
        database_url: str,
        database_name: str,
        *,
        connect_timeout_ms: int = 5000,
    ):
        if not database_url:
            raise ValueError("DATABASE_URL is required for MongoEntityStore")
        self.database_url = database_url
        self.database_name = database_name
        self.connect_timeout_ms = connect_timeout_ms
        self.client: Optional[MongoClient] = None
        self.db = None

    def connect(self) -> None:
        try:
            self.client = MongoClient(
                self.database_url,
                serverSelectionTimeoutMS=self.connect_timeout_ms,
            )
            self.client.admin.command("ping")
            self.db = self.client.get_default_database(default=self.database_name)
            for name in COLLECTIONS:
                self.db[name].create_index("id", unique=True)
        except mongo_errors.PyMongoError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        logger.info("Connected to MongoDB database %s", self.db.name)

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None

    def _collection(self, name: str):
        if self.db is None:
            raise StoreError("MongoDB store is not connected")
        return self.db[name]

    def insert(self, collection: str, document: dict) -> dict:
        stored = _stamp_new(document)
        try:
            # insert_one adds _id to the dict it is given.
            self._collection(collection).insert_one(dict(stored))
        except mongo_errors.DuplicateKeyError as exc:
            raise DuplicateIdError(
                f"Duplicate id '{stored['id']}' in collection '{collection}'"
            ) from exc
        except mongo_errors.PyMongoError as exc:
            raise StoreError(str(exc)) from exc
        return stored

    def list(
        self, collection: str, sort_field: str, *, descending: bool = False
    ) -> list[dict]:
        direction = DESCENDING if descending else ASCENDING
        try:
            cursor = (
                self._collection(collection)
                .find({}, {"_id": 0})
                .sort(sort_field, direction)
            )
            return list(cursor)
        except mongo_errors.PyMongoError as exc:
            raise StoreError(str(exc)) from exc

    def replace(
        self, collection: str, external_id: str, document: dict
    ) -> Optional[dict]:
        coll = self._collection(collection)
        try:
            existing = coll.find_one(
                {"id": external_id}, {"_id": 0, "createdAt": 1, "timestamp": 1}
            )
            if existing is None:
                return None
            stored = _stamp_replacement(external_id, document, existing)
            updated = coll.find_one_and_replace(
                {"id": external_id},
                stored,
                projection={"_id": 0},
                return_document=ReturnDocument.AFTER,
            )
        except mongo_errors.PyMongoError as exc:
            raise StoreError(str(exc)) from exc
        return updated

    def delete(self, collection: str, external_id: str) -> bool:
        try:
            result = self._collection(collection).delete_one({"id": external_id})
        except mongo_errors.PyMongoError as exc:
            raise StoreError(str(exc)) from exc
        return result.deleted_count > 0
