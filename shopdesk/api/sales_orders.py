# shopdesk/api/sales_orders.py

from typing import List

from fastapi import APIRouter, HTTPException

from shopdesk.db.engine import get_engine
from shopdesk.models.sales_orders import (
    InvoiceOut,
    SalesOrderCreate,
    SalesOrderCreated,
    SalesOrderSummary,
)
from shopdesk.services import errors
from shopdesk.services.sales_orders import (
    create_sales_order,
    get_sales_order_for_invoice,
    list_sales_orders,
)
from shopdesk.services.settings import load_business_details

router = APIRouter(prefix="/sales-orders", tags=["sales-orders"])


@router.post("/", response_model=SalesOrderCreated, status_code=201)
def create_order(payload: SalesOrderCreate) -> SalesOrderCreated:
    """
    Check out a cart. Either every stock movement and row is committed, or none is.
    """
    engine = get_engine()

    try:
        with engine.begin() as conn:
            order_id = create_sales_order(conn, payload)
    except errors.ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except errors.AvailabilityError as exc:
        raise HTTPException(
            status_code=409,
            detail={
                "message": str(exc),
                "item_type": exc.item_type.value,
                "item_id": exc.item_id,
            },
        )

    return SalesOrderCreated(order_id=order_id)


@router.get("/", response_model=List[SalesOrderSummary])
def list_orders() -> List[SalesOrderSummary]:
    """
    Return all sales orders, most recent first.
    """
    engine = get_engine()

    with engine.connect() as conn:
        return list_sales_orders(conn)


@router.get("/{order_id}", response_model=InvoiceOut)
def get_order_invoice(order_id: int) -> InvoiceOut:
    """
    Printable invoice for one order.
    """
    engine = get_engine()

    with engine.connect() as conn:
        business = load_business_details(conn)
        invoice = get_sales_order_for_invoice(conn, order_id, business)

    if invoice is None:
        raise HTTPException(status_code=404, detail="Invoice not found")

    return invoice
