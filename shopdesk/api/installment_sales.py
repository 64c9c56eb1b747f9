# shopdesk/api/installment_sales.py

from typing import List

from fastapi import APIRouter, HTTPException

from shopdesk.db.engine import get_engine
from shopdesk.models.installments import (
    CheckStatusUpdate,
    InstallmentCheckOut,
    InstallmentSaleCreate,
    InstallmentSaleCreated,
    InstallmentSaleOut,
    InstallmentSaleSummary,
    InstallmentTransactionIn,
    InstallmentTransactionOut,
)
from shopdesk.services import errors
from shopdesk.services.installments import (
    create_installment_sale,
    get_installment_sale,
    list_installment_sales,
    record_installment_payment,
    update_check_status,
)

router = APIRouter(prefix="/installment-sales", tags=["installment-sales"])


@router.post("/", response_model=InstallmentSaleCreated, status_code=201)
def create_sale(payload: InstallmentSaleCreate) -> InstallmentSaleCreated:
    engine = get_engine()

    try:
        with engine.begin() as conn:
            sale_id = create_installment_sale(conn, payload)
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

    return InstallmentSaleCreated(sale_id=sale_id)


@router.get("/", response_model=List[InstallmentSaleSummary])
def list_sales() -> List[InstallmentSaleSummary]:
    """
    Return all installment sales, most recent first, with remaining balance
    and next due date.
    """
    engine = get_engine()

    with engine.connect() as conn:
        return list_installment_sales(conn)


@router.get("/{sale_id}", response_model=InstallmentSaleOut)
def get_sale(sale_id: int) -> InstallmentSaleOut:
    engine = get_engine()

    with engine.connect() as conn:
        sale = get_installment_sale(conn, sale_id)

    if sale is None:
        raise HTTPException(status_code=404, detail="Installment sale not found")

    return sale


@router.post(
    "/payments/{payment_id}/transactions",
    response_model=InstallmentTransactionOut,
    status_code=201,
)
def pay_installment(payment_id: int, payload: InstallmentTransactionIn) -> InstallmentTransactionOut:
    """
    Record money received against one installment (full or partial).
    """
    engine = get_engine()

    try:
        with engine.begin() as conn:
            return record_installment_payment(conn, payment_id, payload)
    except errors.NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except errors.ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.put("/checks/{check_id}", response_model=InstallmentCheckOut)
def set_check_status(check_id: int, payload: CheckStatusUpdate) -> InstallmentCheckOut:
    engine = get_engine()

    try:
        with engine.begin() as conn:
            return update_check_status(conn, check_id, payload.status)
    except errors.NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
