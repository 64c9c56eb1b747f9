# shopdesk/models/products.py

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1)
    purchase_price: Decimal = Field(Decimal("0"), ge=0)
    selling_price: Decimal = Field(Decimal("0"), ge=0)
    stock_quantity: int = Field(0, ge=0)
    supplier_id: Optional[int] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    supplier_id: Optional[int] = None


class ProductOut(BaseModel):
    id: int
    name: str
    purchase_price: Decimal
    selling_price: Decimal
    stock_quantity: int
    supplier_id: Optional[int] = None
    supplier_name: Optional[str] = None
    date_added: datetime

    class Config:
        from_attributes = True


class SellableItem(BaseModel):
    id: int
    type: str
    name: str
    price: Decimal
    stock: int


class SellableItemsOut(BaseModel):
    phones: List[SellableItem]
    inventory: List[SellableItem]
