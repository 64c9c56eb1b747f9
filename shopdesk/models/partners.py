# shopdesk/models/partners.py

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class PartnerIn(BaseModel):
    partner_name: str = Field(..., min_length=1)
    partner_type: str = "Supplier"
    contact_person: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class PartnerOut(BaseModel):
    id: int
    partner_name: str
    partner_type: str
    contact_person: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    date_added: datetime
    current_balance: Decimal = Decimal("0")

    class Config:
        from_attributes = True
