"""
MongoDB access layer.

A Store wraps one pymongo database and is built once per application, then
handed to whatever needs it. Collections (plural, lowercase):
- users
- properties
- bookings
"""
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple

from bson import ObjectId
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.errors import AutoReconnect, DuplicateKeyError, PyMongoError

from config import Settings
from errors import PersistenceError, ValidationError
from logger import get_logger

USERS = "users"
PROPERTIES = "properties"
BOOKINGS = "bookings"

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: Any, field: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise ValidationError(f"{field} must be a valid identifier")
    return ObjectId(value)


def stringify_ids(doc: Any) -> Any:
    """Return a copy of a document with every ObjectId rendered as a string."""
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, dict):
        return {k: stringify_ids(v) for k, v in doc.items()}
    if isinstance(doc, list):
        return [stringify_ids(v) for v in doc]
    return doc


class Store:
    def __init__(self, db, client: Optional[MongoClient] = None, retries: int = 3, retry_delay: float = 0.1):
        self.db = db
        self.client = client
        if retries < 1:
            raise ValueError("retries must be at least 1")
        self.retries = retries
        self.retry_delay = retry_delay

    @classmethod
    def from_settings(cls, settings: Settings) -> "Store":
        client = MongoClient(settings.database_url, serverSelectionTimeoutMS=5000)
        return cls(
            client[settings.database_name],
            client=client,
            retries=settings.store_retries,
            retry_delay=settings.store_retry_delay,
        )

    def _call(self, operation: str, collection: str, fn, *args, **kwargs):
        for attempt in range(1, self.retries + 1):
            try:
                return fn(*args, **kwargs)
            except DuplicateKeyError as e:
                raise ValidationError(f"Duplicate key in {collection}") from e
            except AutoReconnect as e:
                if attempt == self.retries:
                    logger.error("store_unavailable", operation=operation, collection=collection, attempts=attempt, error=str(e))
                    raise PersistenceError(f"Database unavailable during {operation} on {collection}") from e
                logger.warning("store_retry", operation=operation, collection=collection, attempt=attempt, error=str(e))
                time.sleep(self.retry_delay * attempt)
            except PyMongoError as e:
                logger.error("store_failure", operation=operation, collection=collection, error=str(e))
                raise PersistenceError(f"Database error during {operation} on {collection}") from e

    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        doc = dict(record)
        result = self._call("insert", collection, self.db[collection].insert_one, doc)
        doc["_id"] = result.inserted_id
        return doc

    def find_one(self, collection: str, filter: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._call("find_one", collection, self.db[collection].find_one, filter)

    def find_all(
        self,
        collection: str,
        filter: Optional[Dict[str, Any]] = None,
        sort: Optional[List[Tuple[str, int]]] = None,
    ) -> Iterator[Dict[str, Any]]:
        collection_ref = self.db[collection]
        cursor = self._call(
            "find_all", collection, lambda: collection_ref.find(filter or {}).sort(sort or [("_id", ASCENDING)])
        )
        try:
            for doc in cursor:
                yield doc
        except PyMongoError as e:
            logger.error("store_failure", operation="find_all", collection=collection, error=str(e))
            raise PersistenceError(f"Database error during find_all on {collection}") from e

    def update_one(self, collection: str, filter: Dict[str, Any], changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Apply $set changes to the first match and return it as updated, or None."""
        return self._call(
            "update_one",
            collection,
            self.db[collection].find_one_and_update,
            filter,
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )

    def ensure_indexes(self) -> None:
        self._call("create_index", USERS, self.db[USERS].create_index, [("email", ASCENDING)], unique=True)

    def ping(self) -> bool:
        self._call("ping", "admin", self.db.command, "ping")
        return True

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
