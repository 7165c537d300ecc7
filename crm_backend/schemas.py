"""
Pydantic schemas for the catalog API.

Each entity kind has a base model used for updates (types and
enumerations only) and a create model that also enforces required
fields. Contact requirements depend on ``purpose``; see
``CONTACT_REQUIRED_FIELDS``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from crm_backend.db import format_timestamp

Number = Union[int, float]


class Purpose(str, Enum):
    GENERAL = "general"
    DISTRIBUTOR = "distributor"
    INFLUENCER = "influencer"
    POLITICAL = "political"
    CELEBRITY = "celebrity"
    SERVICE_PROVIDER = "serviceProvider"
    CUSTOMER = "customer"
    TEA_STALL = "teaStall"
    SHOPS = "shops"


class PriceUnit(str, Enum):
    UNIT = "unit"
    KG = "kg"
    LITRE = "litre"


TEA_STALL_FIELDS = (
    "phone",
    "teaStallCode",
    "teaStallName",
    "teaStallOwnerName",
    "teaStallMobileNumber",
)
SHOP_FIELDS = (
    "shopName",
    "shopOwnerName",
    "shopContactNumber",
    "shopCategory",
    "shopAddress",
)

# Required fields per contact variant. Tea stalls are identified by the
# stall, not a person, so they are the only variant without ``name``.
CONTACT_REQUIRED_FIELDS: dict[Purpose, tuple[str, ...]] = {
    purpose: ("name",) for purpose in Purpose
}
CONTACT_REQUIRED_FIELDS[Purpose.TEA_STALL] = TEA_STALL_FIELDS
CONTACT_REQUIRED_FIELDS[Purpose.SHOPS] = ("name",) + SHOP_FIELDS


def is_missing(value: object) -> bool:
    """Absent, null and empty strings all count as missing."""
    return value is None or (isinstance(value, str) and value == "")


def missing_fields(model: BaseModel, fields: tuple[str, ...]) -> list[str]:
    return [name for name in fields if is_missing(getattr(model, name, None))]


class DocumentModel(BaseModel):
    """Fields shared by every stored record."""

    model_config = ConfigDict(
        extra="ignore", coerce_numbers_to_str=True, use_enum_values=True
    )

    id: Optional[str] = None
    timestamp: Optional[datetime] = None

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: Optional[datetime]) -> Optional[str]:
        return format_timestamp(value) if value is not None else None

    def to_document(self) -> dict:
        """Stored form: unset optional fields are left out, defaults kept."""
        return self.model_dump(mode="json", exclude_none=True)


class ContactBase(DocumentModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None
    location: Optional[str] = None
    nativeLanguage: Optional[str] = None
    purpose: Purpose = Purpose.GENERAL
    remarks: Optional[str] = None
    notes: Optional[str] = None

    x_twitter: Optional[str] = None
    xTwitterProfileName: Optional[str] = None
    xTwitterFollowers: Optional[Number] = None
    facebook: Optional[str] = None
    facebookProfileName: Optional[str] = None
    facebookFollowers: Optional[Number] = None
    youtube: Optional[str] = None
    youtubeChannelName: Optional[str] = None
    youtubeFollowers: Optional[Number] = None
    instagram: Optional[str] = None
    instagramProfileName: Optional[str] = None
    instagramFollowers: Optional[Number] = None

    # Political contacts
    paMobileNumber: Optional[str] = None
    constituency: Optional[str] = None
    politicalPartyName: Optional[str] = None
    managerMobileNumber: Optional[str] = None

    # Service providers
    profession: Optional[str] = None
    serviceType: Optional[str] = None
    serviceContactPerson: Optional[str] = None
    lastInteractionDate: Optional[str] = None
    contractDetails: Optional[str] = None

    # Tea stalls
    teaStallCode: Optional[str] = None
    teaStallName: Optional[str] = None
    teaStallOwnerName: Optional[str] = None
    teaStallMobileNumber: Optional[str] = None
    teaStallArea: Optional[str] = None
    teaStallMandal: Optional[str] = None
    teaStallTeaPowderPrice: Optional[Number] = None
    teaStallOtherSellingItems: Optional[str] = None

    # Shops
    shopName: Optional[str] = None
    shopOwnerName: Optional[str] = None
    shopContactNumber: Optional[str] = None
    shopCategory: Optional[str] = None
    shopAddress: Optional[str] = None
    shopVillage: Optional[str] = None
    shopMandal: Optional[str] = None


class ContactCreate(ContactBase):
    @model_validator(mode="after")
    def _check_purpose_fields(self) -> "ContactCreate":
        purpose = Purpose(self.purpose)
        missing = missing_fields(self, CONTACT_REQUIRED_FIELDS[purpose])
        if missing:
            raise ValueError(
                f"{', '.join(missing)} required when purpose is '{purpose.value}'"
            )
        return self


class ProductBase(DocumentModel):
    productName: Optional[str] = None
    category: Optional[str] = None
    supplierName: Optional[str] = None
    supplierAddress: Optional[str] = None
    supplierContactNumber: Optional[str] = None
    supplierLocation: Optional[str] = None
    wholesalePrice: Optional[Number] = None
    wholesalePriceUnit: PriceUnit = PriceUnit.UNIT
    retailPrice: Optional[Number] = None
    retailPriceUnit: PriceUnit = PriceUnit.UNIT


class ProductCreate(ProductBase):
    productName: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    supplierName: str = Field(..., min_length=1)
    wholesalePrice: Number
    retailPrice: Number


class BackupCreate(DocumentModel):
    contacts: str = Field(..., min_length=1, description="JSON array of contacts")
    products: str = Field(..., min_length=1, description="JSON array of products")
    contactCount: Number = 0
    productCount: Number = 0


class MyLinkBase(DocumentModel):
    name: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class MyLinkCreate(MyLinkBase):
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    store: str
