# shopdesk/models/customers.py

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CustomerIn(BaseModel):
    full_name: str = Field(..., min_length=1)
    phone_number: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class CustomerOut(BaseModel):
    id: int
    full_name: str
    phone_number: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    date_added: datetime
    current_balance: Decimal = Decimal("0")

    class Config:
        from_attributes = True
