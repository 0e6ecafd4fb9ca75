"""
HouseHunt Schemas (MongoDB via Pydantic)
Each stored entity = one collection:
- User -> users
- Property -> properties
- Booking -> bookings

Python attributes are snake_case; request bodies and stored documents use
camelCase (owner_id <-> ownerId).
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, EmailStr
from pydantic.alias_generators import to_camel
from typing import List, Optional, Literal

Role = Literal["renter", "owner", "admin"]


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: Role = "renter"


class LoginRequest(CamelModel):
    email: str
    password: str


class PropertyCreate(CamelModel):
    owner_id: str
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    rent: float = Field(..., ge=0)
    location: str = Field(..., min_length=1, max_length=200)
    bedrooms: int = Field(0, ge=0)
    images: List[str] = Field(default_factory=list)
    available: bool = True


class BookingRequest(CamelModel):
    renter_id: str = Field(..., min_length=1)
    property_id: str = Field(..., min_length=1)
    message: Optional[str] = Field(None, max_length=2000)


class StatusUpdate(CamelModel):
    status: BookingStatus
