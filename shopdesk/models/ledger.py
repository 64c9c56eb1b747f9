# shopdesk/models/ledger.py

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class LedgerEntryIn(BaseModel):
    description: str = Field(..., min_length=1)
    debit: Decimal = Field(Decimal("0"), ge=0)
    credit: Decimal = Field(Decimal("0"), ge=0)
    transaction_date: Optional[datetime] = None

    @model_validator(mode="after")
    def _one_sided_amount(self):
        if self.debit == 0 and self.credit == 0:
            raise ValueError("either debit or credit must be greater than zero")
        return self


class LedgerEntryOut(BaseModel):
    id: int
    transaction_date: datetime
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal

    class Config:
        from_attributes = True


class PartnerLedgerEntryOut(LedgerEntryOut):
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
