"""
Record Store for Bihari Delicacies

Durable CRUD over schema-free records grouped into named collections:
- JSON files (one array per collection) for the default flat-file mode
- MongoDB when a server is configured and reachable at startup
- SQLAlchemy (SQLite/PostgreSQL) when DATABASE_URL is set

Design Decisions:
1. Records are plain dicts: collections have no common schema
2. Integer ids are max(existing) + 1, never reused from holes
3. Reads fail soft: a missing or corrupt collection reads as empty
4. Callers depend on RecordStore only, never on a concrete backend
"""

import json
import os
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from loguru import logger

Record = dict[str, Any]
Criteria = Union[Mapping[str, Any], Callable[[Record], bool]]


def next_record_id(records: list[Record]) -> int:
    """
    Next integer id for a collection.

    Non-integer ids count as 0, so an empty or id-less collection starts at 1.
    """
    ids = [
        r.get("id") for r in records
        if isinstance(r.get("id"), int) and not isinstance(r.get("id"), bool)
    ]
    return max(ids, default=0) + 1


def matches(record: Record, criteria: Criteria) -> bool:
    """Check a record against a predicate or a mapping of field equalities."""
    if callable(criteria):
        return bool(criteria(record))
    return all(
        key in record and record[key] == value
        for key, value in criteria.items()
    )


def with_id(record_id: Any, record: Mapping[str, Any]) -> Record:
    """Build a stored record: assigned id first, client-supplied id dropped."""
    return {"id": record_id, **{k: v for k, v in record.items() if k != "id"}}


class RecordStore(ABC):
    """
    Persistence interface shared by every backend.

    Usage:
        store = JsonFileRecordStore("./data")

        created = store.insert("products", {"name": "Khaja", "price": 350})
        same = store.find_one("products", {"id": created["id"]})
    """

    backend_name: str = "abstract"

    @abstractmethod
    def read_all(self, collection: str) -> list[Record]:
        """Return every record, or [] if the collection is missing or unreadable."""

    @abstractmethod
    def write_all(self, collection: str, records: list[Record]) -> None:
        """Replace the whole collection."""

    @abstractmethod
    def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        """Assign an id, append and persist. Returns the stored record."""

    @abstractmethod
    def exists(self, collection: str) -> bool:
        """Whether the collection has ever been written."""

    def find(self, collection: str, criteria: Criteria) -> list[Record]:
        """All records matching criteria."""
        return [r for r in self.read_all(collection) if matches(r, criteria)]

    def find_one(self, collection: str, criteria: Criteria) -> Optional[Record]:
        """First record matching criteria, or None."""
        for record in self.read_all(collection):
            if matches(record, criteria):
                return record
        return None

    def upsert(
        self,
        collection: str,
        key: Mapping[str, Any],
        changes: Mapping[str, Any],
        on_insert: Optional[Mapping[str, Any]] = None,
    ) -> Record:
        """
        Merge changes into the first record matching key, or add a new one.

        A new record is key + changes + on_insert and gets no generated id.
        """
        records = self.read_all(collection)
        for index, record in enumerate(records):
            if matches(record, key):
                records[index] = {**record, **changes}
                self.write_all(collection, records)
                return records[index]

        created = {**key, **changes, **(on_insert or {})}
        records.append(created)
        self.write_all(collection, records)
        return created

    def close(self) -> None:
        """Release backend resources."""


class JsonFileRecordStore(RecordStore):
    """
    Flat-file backend: <data_dir>/<collection>.json holds a JSON array.

    Every mutation rewrites the whole file. Read-modify-write cycles on one
    collection are serialized with a per-collection lock, so concurrent
    inserts in the same process do not lose updates. Writes go to a sibling
    temp file that is then renamed over the collection, so readers see the
    old or the new array and never a truncated file.
    """

    backend_name = "json"

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.RLock] = defaultdict(threading.RLock)
        self._locks_guard = threading.Lock()

        logger.info(f"JsonFileRecordStore initialized: {self.data_dir}")

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def _lock(self, collection: str) -> threading.RLock:
        with self._locks_guard:
            return self._locks[collection]

    def read_all(self, collection: str) -> list[Record]:
        path = self._path(collection)
        if not path.exists():
            return []
        try:
            content = path.read_text(encoding="utf-8")
            data = json.loads(content or "[]")
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable collection {collection}, treating as empty: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Collection {collection} is not a JSON array, treating as empty")
            return []
        return data

    def write_all(self, collection: str, records: list[Record]) -> None:
        path = self._path(collection)
        tmp_path = path.with_name(f"{path.name}.tmp")
        with self._lock(collection):
            tmp_path.write_text(
                json.dumps(records, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            os.replace(tmp_path, path)

    def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        with self._lock(collection):
            records = self.read_all(collection)
            created = with_id(next_record_id(records), record)
            records.append(created)
            self.write_all(collection, records)

        logger.debug(f"Inserted {collection}#{created['id']}")
        return created

    def upsert(self, collection, key, changes, on_insert=None) -> Record:
        with self._lock(collection):
            return super().upsert(collection, key, changes, on_insert)

    def exists(self, collection: str) -> bool:
        return self._path(collection).exists()


class MongoRecordStore(RecordStore):
    """
    MongoDB backend.

    Document ids are ObjectIds exposed as the string field "id". Inserts into
    collections with a declared schema (see documents.py) are validated.
    Records written through write_all keep their ids as _id, so seeded
    integer ids and the references between them survive.
    """

    backend_name = "mongo"

    def __init__(self, database, client=None):
        self.db = database
        self.client = client

    @staticmethod
    def _to_record(doc: Optional[Mapping[str, Any]]) -> Optional[Record]:
        if doc is None:
            return None
        d = dict(doc)
        if "_id" in d:
            doc_id = d.pop("_id")
            if not (isinstance(doc_id, int) and not isinstance(doc_id, bool)):
                doc_id = str(doc_id)
            d = with_id(doc_id, d)
        return d

    @staticmethod
    def _to_filter(criteria: Mapping[str, Any]) -> dict[str, Any]:
        from bson import ObjectId
        from bson.errors import InvalidId

        query = {k: v for k, v in criteria.items() if k != "id"}
        if "id" in criteria:
            try:
                query["_id"] = ObjectId(str(criteria["id"]))
            except InvalidId:
                query["_id"] = criteria["id"]
        return query

    @classmethod
    def _to_doc(cls, record: Mapping[str, Any]) -> dict[str, Any]:
        doc = {k: v for k, v in record.items() if k != "id"}
        if record.get("id") is not None:
            doc["_id"] = cls._to_filter({"id": record["id"]})["_id"]
        return doc

    def _validate(self, collection: str, record: Mapping[str, Any]) -> Record:
        from pydantic import ValidationError as PydanticValidationError
        from ..exceptions import ValidationError
        from .documents import COLLECTION_SCHEMAS

        schema = COLLECTION_SCHEMAS.get(collection)
        if schema is None:
            return dict(record)
        try:
            return schema.model_validate(dict(record)).model_dump()
        except PydanticValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise ValidationError(
                f"Invalid {collection} record: {', '.join(fields)}",
                detail=str(e),
            )

    def read_all(self, collection: str) -> list[Record]:
        try:
            return [self._to_record(doc) for doc in self.db[collection].find()]
        except Exception as e:
            logger.warning(f"Failed to read {collection} from MongoDB: {e}")
            return []

    def write_all(self, collection: str, records: list[Record]) -> None:
        docs = [self._to_doc(r) for r in records]
        self.db[collection].delete_many({})
        if docs:
            self.db[collection].insert_many(docs)

    def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        doc = self._validate(collection, {k: v for k, v in record.items() if k != "id"})
        result = self.db[collection].insert_one(doc)
        return with_id(str(result.inserted_id), {k: v for k, v in doc.items() if k != "_id"})

    def find_one(self, collection: str, criteria: Criteria) -> Optional[Record]:
        if callable(criteria):
            return super().find_one(collection, criteria)
        return self._to_record(self.db[collection].find_one(self._to_filter(criteria)))

    def find(self, collection: str, criteria: Criteria) -> list[Record]:
        if callable(criteria):
            return super().find(collection, criteria)
        return [self._to_record(d) for d in self.db[collection].find(self._to_filter(criteria))]

    def upsert(self, collection, key, changes, on_insert=None) -> Record:
        from pymongo import ReturnDocument

        update = {"$set": dict(changes)}
        if on_insert:
            update["$setOnInsert"] = dict(on_insert)
        doc = self.db[collection].find_one_and_update(
            self._to_filter(key),
            update,
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return self._to_record(doc)

    def exists(self, collection: str) -> bool:
        return collection in self.db.list_collection_names()

    def close(self) -> None:
        if self.client is not None:
            self.client.close()


class SqlRecordStore(RecordStore):
    """
    SQLAlchemy backend storing each record as a JSON document row.

    Usage:
        store = SqlRecordStore("sqlite:///./data/app.db")
    """

    backend_name = "sql"

    def __init__(self, database_url: str):
        from sqlalchemy import create_engine
        from sqlalchemy.orm import sessionmaker
        from .models import Base

        # Strip async drivers for sync engine
        self.database_url = database_url.replace("+aiosqlite", "").replace("+asyncpg", "")
        self.engine = create_engine(self.database_url, echo=False)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)
        self._write_lock = threading.RLock()

        logger.info(f"SqlRecordStore initialized: {self.database_url[:50]}...")

    def get_session(self):
        return self.SessionLocal()

    @staticmethod
    def _mark_collection(session, collection: str) -> None:
        from .models import CollectionModel

        if session.get(CollectionModel, collection) is None:
            session.add(CollectionModel(name=collection))

    @staticmethod
    def _int_id(record: Mapping[str, Any]) -> Optional[int]:
        value = record.get("id")
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return None

    def read_all(self, collection: str) -> list[Record]:
        from .models import RecordModel

        try:
            with self.get_session() as session:
                rows = session.query(RecordModel).filter(
                    RecordModel.collection == collection,
                ).order_by(RecordModel.pk.asc()).all()
                return [dict(row.data) for row in rows]
        except Exception as e:
            logger.warning(f"Failed to read {collection} from SQL store: {e}")
            return []

    def write_all(self, collection: str, records: list[Record]) -> None:
        from .models import RecordModel

        with self._write_lock, self.get_session() as session:
            session.query(RecordModel).filter(
                RecordModel.collection == collection,
            ).delete()
            for record in records:
                session.add(RecordModel(
                    collection=collection,
                    record_id=self._int_id(record),
                    data=dict(record),
                ))
            self._mark_collection(session, collection)
            session.commit()

    def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        from .models import RecordModel

        with self._write_lock, self.get_session() as session:
            rows = session.query(RecordModel.data).filter(
                RecordModel.collection == collection,
            ).all()
            created = with_id(next_record_id([row.data for row in rows]), record)
            session.add(RecordModel(
                collection=collection,
                record_id=created["id"],
                data=created,
            ))
            self._mark_collection(session, collection)
            session.commit()

        return created

    def upsert(self, collection, key, changes, on_insert=None) -> Record:
        with self._write_lock:
            return super().upsert(collection, key, changes, on_insert)

    def exists(self, collection: str) -> bool:
        from .models import CollectionModel

        with self.get_session() as session:
            return session.get(CollectionModel, collection) is not None

    def close(self) -> None:
        self.engine.dispose()


def connect_mongo(uri: str, db_name: str, timeout_ms: int = 5000) -> Optional[MongoRecordStore]:
    """
    Probe a MongoDB server and wrap it in a record store.

    Returns None when the server cannot be reached so the caller can fall
    back to another backend.
    """
    from pymongo import MongoClient
    from pymongo.errors import PyMongoError

    try:
        client = MongoClient(
            uri,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms * 2,
        )
        client.admin.command("ping")
    except PyMongoError as e:
        logger.warning(f"MongoDB connection failed, will use fallback storage: {e}")
        return None

    logger.info(f"MongoDB connected: database={db_name}")
    return MongoRecordStore(client[db_name], client=client)


def create_record_store(settings) -> RecordStore:
    """
    Pick the backend once at startup.

    MongoDB wins when configured and reachable, then DATABASE_URL, then
    flat JSON files in the data directory.
    """
    if settings.mongodb_uri:
        store = connect_mongo(
            settings.mongodb_uri,
            settings.mongodb_db,
            timeout_ms=settings.mongodb_timeout_ms,
        )
        if store is not None:
            return store
    else:
        logger.info("No MongoDB URI provided, using fallback storage")

    if settings.database_url:
        return SqlRecordStore(settings.database_url)

    return JsonFileRecordStore(settings.data_dir)
