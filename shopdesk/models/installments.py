# shopdesk/models/installments.py

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from shopdesk.enums import CheckStatus, InstallmentPaymentStatus, InstallmentSaleStatus


class InstallmentCheckIn(BaseModel):
    check_number: str = Field(..., min_length=1)
    bank_name: str = Field(..., min_length=1)
    due_date: date
    amount: Decimal = Field(..., gt=0)
    status: CheckStatus = CheckStatus.WITH_CUSTOMER


class InstallmentSaleCreate(BaseModel):
    customer_id: int
    phone_id: int
    actual_sale_price: Decimal = Field(..., ge=0)
    down_payment: Decimal = Field(Decimal("0"), ge=0)
    number_of_installments: int = Field(..., ge=1)
    installment_amount: Decimal = Field(..., gt=0)
    installments_start_date: date
    checks: List[InstallmentCheckIn] = []
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _down_payment_within_price(self):
        if self.down_payment > self.actual_sale_price:
            raise ValueError("down_payment cannot exceed actual_sale_price")
        return self


class InstallmentSaleCreated(BaseModel):
    sale_id: int


class InstallmentTransactionIn(BaseModel):
    amount_paid: Decimal = Field(..., gt=0)
    payment_date: Optional[date] = None
    notes: Optional[str] = None


class InstallmentTransactionOut(BaseModel):
    id: int
    payment_id: int
    amount_paid: Decimal
    payment_date: date
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class InstallmentPaymentOut(BaseModel):
    id: int
    installment_number: int
    due_date: date
    amount_due: Decimal
    amount_paid: Decimal
    payment_date: Optional[date] = None
    status: InstallmentPaymentStatus
    transactions: List[InstallmentTransactionOut] = []


class InstallmentCheckOut(BaseModel):
    id: int
    check_number: str
    bank_name: str
    due_date: date
    amount: Decimal
    status: CheckStatus

    class Config:
        from_attributes = True


class CheckStatusUpdate(BaseModel):
    status: CheckStatus


class InstallmentSaleSummary(BaseModel):
    id: int
    customer_id: int
    customer_name: str
    phone_id: int
    phone_model: str
    imei: str
    actual_sale_price: Decimal
    down_payment: Decimal
    number_of_installments: int
    installment_amount: Decimal
    installments_start_date: date
    total_installment_price: Decimal  # installments + down payment
    remaining_amount: Decimal
    next_due_date: Optional[date] = None
    overall_status: InstallmentSaleStatus


class InstallmentSaleOut(InstallmentSaleSummary):
    notes: Optional[str] = None
    payments: List[InstallmentPaymentOut]
    checks: List[InstallmentCheckOut]
