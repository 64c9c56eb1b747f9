# shopdesk/models/repairs.py

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from shopdesk.enums import RepairStatus


class RepairCreate(BaseModel):
    customer_id: int
    device_model: str = Field(..., min_length=1)
    device_color: Optional[str] = None
    serial_number: Optional[str] = None
    problem_description: str = Field(..., min_length=1)
    technician_notes: Optional[str] = None
    estimated_cost: Optional[Decimal] = Field(None, ge=0)
    technician_id: Optional[int] = None


class RepairUpdate(BaseModel):
    """Fields left out of the request body are not changed."""

    device_model: Optional[str] = Field(None, min_length=1)
    device_color: Optional[str] = None
    serial_number: Optional[str] = None
    problem_description: Optional[str] = Field(None, min_length=1)
    technician_notes: Optional[str] = None
    status: Optional[RepairStatus] = None
    estimated_cost: Optional[Decimal] = Field(None, ge=0)
    technician_id: Optional[int] = None


class RepairFinalize(BaseModel):
    final_cost: Decimal = Field(..., ge=0)
    labor_fee: Decimal = Field(Decimal("0"), ge=0)
    technician_id: int


class RepairPartIn(BaseModel):
    product_id: int
    quantity_used: int = Field(1, ge=1)


class RepairPartOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    quantity_used: int

    class Config:
        from_attributes = True


class RepairOut(BaseModel):
    id: int
    customer_id: int
    customer_name: str
    device_model: str
    device_color: Optional[str] = None
    serial_number: Optional[str] = None
    problem_description: str
    technician_notes: Optional[str] = None
    status: RepairStatus
    estimated_cost: Optional[Decimal] = None
    final_cost: Optional[Decimal] = None
    labor_fee: Optional[Decimal] = None
    technician_id: Optional[int] = None
    technician_name: Optional[str] = None
    date_received: datetime
    date_completed: Optional[datetime] = None
    parts: List[RepairPartOut] = []

    class Config:
        from_attributes = True
