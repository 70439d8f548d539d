from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

CustomerType = Literal["business", "individual"]


class Address(BaseModel):
    """Free-form postal record used for billing and shipping blocks."""

    attention: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pin_code: Optional[str] = None
    country_region: Optional[str] = "India"
    phone: Optional[str] = None
    fax_number: Optional[str] = None

    def lines(self) -> List[str]:
        """Return the printable, non-empty lines of the address."""
        locality = " ".join(
            part for part in (self.city, self.state, self.pin_code) if part
        ).strip()
        parts = [
            self.attention,
            self.address_line1,
            self.address_line2,
            locality,
            self.country_region,
            f"Ph: {self.phone}" if self.phone else None,
            f"Fax: {self.fax_number}" if self.fax_number else None,
        ]
        return [part for part in parts if part]


class AddressPatch(BaseModel):
    attention: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pin_code: Optional[str] = None
    country_region: Optional[str] = None
    phone: Optional[str] = None
    fax_number: Optional[str] = None


class Receiver(BaseModel):
    """A billed/shipped-to party. Receivers without an ``id`` are transient."""

    id: Optional[str] = None
    customer_type: CustomerType = "business"
    display_name: str = ""
    salutation: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    email: Optional[str] = None
    work_phone: Optional[str] = None
    mobile: Optional[str] = None
    gstin: Optional[str] = None
    billing_address: Address = Field(default_factory=Address)
    shipping_address: Address = Field(default_factory=Address)

    @property
    def is_persisted(self) -> bool:
        return bool(self.id)

    @classmethod
    def from_record(cls, record: dict, record_id: Optional[str] = None) -> "Receiver":
        """Build a receiver from a stored document, filling legacy gaps."""
        data = dict(record)
        data["customer_type"] = data.get("customer_type") or "business"
        data["display_name"] = data.get("display_name") or "N/A"
        data["billing_address"] = data.get("billing_address") or Address().model_dump()
        data["shipping_address"] = data.get("shipping_address") or Address().model_dump()
        if record_id is not None:
            data["id"] = record_id
        return cls.model_validate(data)


class ReceiverCreate(BaseModel):
    customer_type: CustomerType = "business"
    display_name: str = Field(..., min_length=1)
    salutation: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    email: Optional[str] = None
    work_phone: Optional[str] = None
    mobile: Optional[str] = None
    gstin: Optional[str] = None
    billing_address: Address = Field(default_factory=Address)
    shipping_address: Optional[Address] = Field(
        None, description="Defaults to the billing address when omitted"
    )

    @model_validator(mode="after")
    def _normalize(self) -> "ReceiverCreate":
        self.display_name = self.display_name.strip()
        if not self.display_name:
            raise ValueError("display_name cannot be blank")
        if self.shipping_address is None:
            self.shipping_address = self.billing_address.model_copy()
        return self


class ReceiverPatch(BaseModel):
    customer_type: Optional[CustomerType] = None
    display_name: Optional[str] = Field(None, min_length=1)
    salutation: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    email: Optional[str] = None
    work_phone: Optional[str] = None
    mobile: Optional[str] = None
    gstin: Optional[str] = None
    billing_address: Optional[AddressPatch] = None
    shipping_address: Optional[AddressPatch] = None


class ReceiverListRequest(BaseModel):
    query: Optional[str] = Field(None, description="Display name or GSTIN fragment")


class ReceiverListResponse(BaseModel):
    total: int
    items: List[Receiver]


class ReceiverLookupRequest(BaseModel):
    receiver_id: str


class ReceiverUpdateRequest(BaseModel):
    receiver_id: str
    patch: ReceiverPatch
