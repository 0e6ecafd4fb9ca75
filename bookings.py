"""
Booking requests and their status lifecycle.

A booking starts as pending and can be confirmed or rejected once; both of
those are terminal.
"""
from typing import Any, Dict, Iterator, Optional

from database import BOOKINGS, PROPERTIES, USERS, Store, stringify_ids, to_object_id, utcnow
from errors import InvalidTransitionError, NotFoundError, ValidationError
from logger import get_logger
from schemas import BookingStatus
from users import public_user

logger = get_logger(__name__)

TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.REJECTED},
    BookingStatus.CONFIRMED: set(),
    BookingStatus.REJECTED: set(),
}


def allowed_sources(target: BookingStatus):
    return [source.value for source, targets in TRANSITIONS.items() if target in targets]


class BookingManager:
    def __init__(self, store: Store):
        self.store = store

    def create(self, renter_id: str, property_id: str, message: Optional[str] = None) -> Dict[str, Any]:
        renter_oid = to_object_id(renter_id, "renterId")
        property_oid = to_object_id(property_id, "propertyId")

        if not self.store.find_one(USERS, {"_id": renter_oid}):
            raise NotFoundError("Renter not found")
        if not self.store.find_one(PROPERTIES, {"_id": property_oid}):
            raise NotFoundError("Property not found")

        doc = {
            "renterId": renter_oid,
            "propertyId": property_oid,
            "status": BookingStatus.PENDING.value,
            "message": message,
            "createdAt": utcnow(),
        }
        saved = self.store.insert(BOOKINGS, doc)
        logger.info(
            "booking_created",
            booking_id=str(saved["_id"]),
            renter_id=str(renter_oid),
            property_id=str(property_oid),
        )
        return stringify_ids(saved)

    def list(self) -> Iterator[Dict[str, Any]]:
        """Yield bookings in insertion order with renter and property embedded (None when dangling)."""
        users: Dict[Any, Optional[Dict[str, Any]]] = {}
        props: Dict[Any, Optional[Dict[str, Any]]] = {}
        for booking in self.store.find_all(BOOKINGS):
            yield self._resolve(booking, users, props)

    def get(self, booking_id: str) -> Dict[str, Any]:
        booking = self.store.find_one(BOOKINGS, {"_id": to_object_id(booking_id, "bookingId")})
        if not booking:
            raise NotFoundError("Booking not found")
        return self._resolve(booking, {}, {})

    def transition(self, booking_id: str, new_status: str) -> Dict[str, Any]:
        try:
            target = BookingStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown booking status: {new_status}")
        if not allowed_sources(target):
            raise ValidationError(f"Booking status can only be changed to confirmed or rejected, not {target.value}")
        oid = to_object_id(booking_id, "bookingId")

        # conditional write: only one of two racing transitions can match
        updated = self.store.update_one(
            BOOKINGS,
            {"_id": oid, "status": {"$in": allowed_sources(target)}},
            {"status": target.value, "updatedAt": utcnow()},
        )
        if updated is None:
            current = self.store.find_one(BOOKINGS, {"_id": oid})
            if current is None:
                raise NotFoundError("Booking not found")
            raise InvalidTransitionError(
                f"Cannot change booking status from {current.get('status')} to {target.value}"
            )

        logger.info("booking_status_changed", booking_id=str(oid), status=target.value)
        return stringify_ids(updated)

    def _resolve(self, booking, users, props) -> Dict[str, Any]:
        renter_id = booking.get("renterId")
        property_id = booking.get("propertyId")
        if renter_id not in users:
            users[renter_id] = self.store.find_one(USERS, {"_id": renter_id})
        if property_id not in props:
            props[property_id] = self.store.find_one(PROPERTIES, {"_id": property_id})

        resolved = stringify_ids(booking)
        renter = users[renter_id]
        prop = props[property_id]
        resolved["renterId"] = public_user(renter) if renter else None
        resolved["propertyId"] = stringify_ids(prop) if prop else None
        return resolved
