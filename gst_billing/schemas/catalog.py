from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


def variant_label(name: str, weight: Optional[float], weight_unit: str) -> str:
    """Name with its pack size, e.g. ``Wild Forest Honey (500g)``."""
    if weight:
        return f"{name} ({weight:g}{weight_unit})"
    return name


class ItemVariant(BaseModel):
    """A catalog entry. ``price`` is the rate exclusive of GST."""

    id: str
    name: str
    weight: Optional[float] = None
    weight_unit: str = "pieces"
    price: Decimal
    mrp: Optional[Decimal] = None  # advisory, never used for tax
    hsn_code: Optional[str] = None
    gst_rate: Optional[Decimal] = None

    @property
    def display_name(self) -> str:
        return variant_label(self.name, self.weight, self.weight_unit)


class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    weight: Optional[float] = Field(None, gt=0)
    weight_unit: str = "pieces"
    price: Decimal = Field(..., ge=0, description="Rate exclusive of GST")
    mrp: Optional[Decimal] = Field(None, ge=0)
    hsn_code: Optional[str] = None
    gst_rate: Optional[Decimal] = Field(None, ge=0, le=100)

    @field_validator("name")
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name cannot be blank")
        return value


class ItemPatch(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    weight: Optional[float] = Field(None, gt=0)
    weight_unit: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    mrp: Optional[Decimal] = Field(None, ge=0)
    hsn_code: Optional[str] = None
    gst_rate: Optional[Decimal] = Field(None, ge=0, le=100)

    @field_validator("name", "price", "weight_unit")
    def _required_not_null(cls, value):
        # omitted fields are left unchanged; explicit null is rejected
        if value is None:
            raise ValueError("cannot be null")
        return value


class ItemListRequest(BaseModel):
    query: Optional[str] = Field(None, description="Case-insensitive name fragment")


class ItemListResponse(BaseModel):
    total: int
    items: List[ItemVariant]


class ItemLookupRequest(BaseModel):
    item_id: str


class ItemUpdateRequest(BaseModel):
    item_id: str
    patch: ItemPatch


class ItemGroupsResponse(BaseModel):
    groups: Dict[str, List[ItemVariant]]
