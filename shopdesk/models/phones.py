# shopdesk/models/phones.py

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from shopdesk.enums import PhoneStatus


class PhoneIn(BaseModel):
    model: str = Field(..., min_length=1)
    imei: str = Field(..., min_length=1)
    color: Optional[str] = None
    storage: Optional[str] = None
    ram: Optional[str] = None
    condition: Optional[str] = None
    purchase_price: Decimal = Field(..., ge=0)
    sale_price: Optional[Decimal] = Field(None, ge=0)
    purchase_date: Optional[date] = None
    supplier_id: Optional[int] = None
    notes: Optional[str] = None


class PhoneUpdate(BaseModel):
    """Fields left out of the request body are not changed."""

    model: Optional[str] = Field(None, min_length=1)
    imei: Optional[str] = Field(None, min_length=1)
    color: Optional[str] = None
    storage: Optional[str] = None
    ram: Optional[str] = None
    condition: Optional[str] = None
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    sale_price: Optional[Decimal] = Field(None, ge=0)
    purchase_date: Optional[date] = None
    supplier_id: Optional[int] = None
    notes: Optional[str] = None


class PhoneOut(BaseModel):
    id: int
    model: str
    imei: str
    color: Optional[str] = None
    storage: Optional[str] = None
    ram: Optional[str] = None
    condition: Optional[str] = None
    purchase_price: Decimal
    sale_price: Optional[Decimal] = None
    purchase_date: Optional[date] = None
    sale_date: Optional[date] = None
    register_date: datetime
    status: PhoneStatus
    notes: Optional[str] = None
    supplier_id: Optional[int] = None
    supplier_name: Optional[str] = None

    class Config:
        from_attributes = True
