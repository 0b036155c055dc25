"""
Cargo Schemas

Pydantic models for the cargo API requests and responses.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
import re

from app.services.shipment_scenarios import ShipmentScenario


# ==================== Order Listing ====================


class ParcelResponse(BaseModel):
    desi: float
    width: Optional[float] = None
    height: Optional[float] = None
    depth: Optional[float] = None
    weight: Optional[float] = None
    count: int = 1


class ComputedParcels(BaseModel):
    parcels: List[ParcelResponse] = []
    total_desi: float = Field(..., description="Sum of parcel desi, 2 decimals")
    is_missing_info: bool


class CargoOrderResponse(BaseModel):
    """Order as shown on the cargo screen."""
    id: int
    order_number: str
    platform: Optional[str] = None
    status: Optional[str] = None
    order_date: Optional[datetime] = None
    customer_name: Optional[str] = None
    product_code: str
    product_name: str
    product_count: Optional[int] = None
    cargo_tracking_number: Optional[str] = None
    cargo_provider: Optional[str] = None
    is_printed: bool
    printed_at: Optional[str] = None
    computed: ComputedParcels


class CargoOrderListResponse(BaseModel):
    orders: List[CargoOrderResponse]
    total: int
    page: int
    page_size: int


# ==================== Label Batch ====================


class LabelBatchRequest(BaseModel):
    order_ids: List[int] = Field(..., description="Orders to print labels for")
    force: bool = Field(False, description="Reprint orders that already have labels")


class LabelResponse(BaseModel):
    order_id: int
    order_number: str
    marketplace: str
    customer_name: str
    barcode_value: str
    has_tracking_number: bool
    desi: str
    product_code: str
    product_name: str


class LabelBatchResponse(BaseModel):
    """Either a conflict (already printed orders) or the rendered document."""
    success: bool
    conflict: bool = False
    conflicting_orders: List[str] = []
    document: Optional[str] = None
    labels: List[LabelResponse] = []
    shipped_orders: List[str] = []
    failed_orders: List[Dict[str, Any]] = []


# ==================== Carrier Queries ====================


class TrackRequest(BaseModel):
    order_id: int


class TrackResponse(BaseModel):
    order_id: int
    result: str = Field(..., description="Carrier status document as returned")


class ReturnsRequest(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def validate_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class ReturnsResponse(BaseModel):
    start_date: date
    end_date: date
    result: str


# ==================== Manual Shipment ====================


class ManualShipmentRequest(BaseModel):
    """Single shipment entered by hand."""
    name: str = Field(..., min_length=1, max_length=200)
    address: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    district: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=20)
    order_id: str = Field(..., min_length=1, max_length=100, description="Reference sent as the carrier tracking key")
    amount: Optional[str] = Field(None, description="Collection amount, required for cash/card on delivery")
    scenario: str = ShipmentScenario.MARKETPLACE_SALE.value

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        digits = re.sub(r'\D', '', v)
        if len(digits) < 10 or len(digits) > 12:
            raise ValueError("Phone number must be 10-12 digits")
        return digits


class ManualShipmentResponse(BaseModel):
    tracking_number: str
    message: str


# ==================== Connections ====================


class CargoConnectionUpdate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: Optional[str] = Field(None, max_length=200, description="Omit to keep the stored password")


class CargoConnectionResponse(BaseModel):
    """Connection settings; the password is never returned."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    provider: str
    username: str
    is_active: bool
    has_password: bool = False
    updated_at: Optional[datetime] = None
