# shopdesk/models/sales_orders.py

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from shopdesk.enums import ItemType, PaymentMethod
from shopdesk.models.settings import BusinessDetails


class SalesOrderItemIn(BaseModel):
    item_type: ItemType
    item_id: int
    description: str = ""
    quantity: int = Field(1, ge=1)
    unit_price: Decimal = Field(..., ge=0)
    discount_per_item: Decimal = Field(Decimal("0"), ge=0)


class SalesOrderCreate(BaseModel):
    customer_id: Optional[int] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    discount: Decimal = Field(Decimal("0"), ge=0)
    tax: Decimal = Field(Decimal("0"), ge=0, description="Tax percentage, e.g. 9 for 9%")
    notes: Optional[str] = None
    items: List[SalesOrderItemIn]


class SalesOrderCreated(BaseModel):
    order_id: int


class SalesOrderSummary(BaseModel):
    id: int
    transaction_date: date
    grand_total: Decimal
    customer_name: str
    description: str


class InvoiceCustomer(BaseModel):
    id: int
    full_name: str
    phone_number: Optional[str] = None


class InvoiceMetadata(BaseModel):
    invoice_number: str
    transaction_date: date


class InvoiceLineItem(BaseModel):
    id: int
    item_type: ItemType
    item_id: int
    description: str
    quantity: int
    unit_price: Decimal
    discount_per_item: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class InvoiceFinancialSummary(BaseModel):
    subtotal: Decimal
    items_discount: Decimal
    global_discount: Decimal
    taxable_amount: Decimal
    tax_percentage: Decimal
    tax_amount: Decimal
    grand_total: Decimal


class InvoiceOut(BaseModel):
    business_details: BusinessDetails
    customer_details: Optional[InvoiceCustomer] = None
    invoice_metadata: InvoiceMetadata
    payment_method: PaymentMethod
    line_items: List[InvoiceLineItem]
    financial_summary: InvoiceFinancialSummary
    notes: Optional[str] = None
