"""
Property listings: add, list, fetch one.
"""
from typing import Any, Dict, List

from database import PROPERTIES, USERS, Store, stringify_ids, to_object_id, utcnow
from errors import NotFoundError
from logger import get_logger
from schemas import PropertyCreate

logger = get_logger(__name__)


def add_property(store: Store, payload: PropertyCreate) -> Dict[str, Any]:
    owner_id = to_object_id(payload.owner_id, "ownerId")
    if not store.find_one(USERS, {"_id": owner_id}):
        raise NotFoundError("Owner not found")

    doc = {
        "ownerId": owner_id,
        "title": payload.title,
        "description": payload.description,
        "rent": float(payload.rent),
        "location": payload.location,
        "bedrooms": int(payload.bedrooms),
        "images": list(payload.images),
        "available": payload.available,
        "createdAt": utcnow(),
    }
    saved = store.insert(PROPERTIES, doc)
    logger.info("property_added", property_id=str(saved["_id"]), owner_id=str(owner_id))
    return stringify_ids(saved)


def list_properties(store: Store) -> List[Dict[str, Any]]:
    return [stringify_ids(d) for d in store.find_all(PROPERTIES)]


def get_property(store: Store, property_id: str) -> Dict[str, Any]:
    doc = store.find_one(PROPERTIES, {"_id": to_object_id(property_id, "propertyId")})
    if not doc:
        raise NotFoundError("Property not found")
    return stringify_ids(doc)
