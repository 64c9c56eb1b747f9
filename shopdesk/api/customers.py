# shopdesk/api/customers.py

from typing import List

from fastapi import APIRouter, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from shopdesk.db.engine import get_engine
from shopdesk.db.schema import customer_ledger, customers
from shopdesk.models.customers import CustomerIn, CustomerOut
from shopdesk.models.ledger import LedgerEntryIn, LedgerEntryOut
from shopdesk.services.ledger import add_customer_ledger_entry, latest_balance_column

router = APIRouter(prefix="/customers", tags=["customers"])

DUPLICATE_PHONE = "This phone number is already registered to another customer"


def _customer_select():
    return select(
        customers.c.id,
        customers.c.full_name,
        customers.c.phone_number,
        customers.c.address,
        customers.c.notes,
        customers.c.date_added,
        latest_balance_column(
            customer_ledger, customer_ledger.c.customer_id, customers.c.id
        ).label("current_balance"),
    )


def _fetch_customer(conn, customer_id: int):
    return conn.execute(
        _customer_select().where(customers.c.id == customer_id)
    ).mappings().first()


@router.post("/", response_model=CustomerOut, status_code=201)
def create_customer(payload: CustomerIn) -> CustomerOut:
    engine = get_engine()

    try:
        with engine.begin() as conn:
            result = conn.execute(customers.insert().values(**payload.model_dump()))
            row = _fetch_customer(conn, result.inserted_primary_key[0])
    except IntegrityError:
        raise HTTPException(status_code=409, detail=DUPLICATE_PHONE)

    return CustomerOut.model_validate(dict(row))


@router.get("/", response_model=List[CustomerOut])
def list_customers() -> List[CustomerOut]:
    """
    Return all customers with their current receivable balance.
    """
    engine = get_engine()

    with engine.connect() as conn:
        rows = conn.execute(
            _customer_select().order_by(customers.c.full_name)
        ).mappings().all()

    return [CustomerOut.model_validate(dict(row)) for row in rows]


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: int) -> CustomerOut:
    """
    Return a single customer by ID.
    """
    engine = get_engine()

    with engine.connect() as conn:
        row = _fetch_customer(conn, customer_id)

    if row is None:
        raise HTTPException(status_code=404, detail="Customer not found")

    return CustomerOut.model_validate(dict(row))


@router.put("/{customer_id}", response_model=CustomerOut)
def update_customer(customer_id: int, payload: CustomerIn) -> CustomerOut:
    engine = get_engine()

    try:
        with engine.begin() as conn:
            result = conn.execute(
                customers.update()
                .where(customers.c.id == customer_id)
                .values(**payload.model_dump())
            )
            if result.rowcount == 0:
                raise HTTPException(status_code=404, detail="Customer not found")
            row = _fetch_customer(conn, customer_id)
    except IntegrityError:
        raise HTTPException(status_code=409, detail=DUPLICATE_PHONE)

    return CustomerOut.model_validate(dict(row))


@router.get("/{customer_id}/ledger", response_model=List[LedgerEntryOut])
def get_customer_ledger(customer_id: int) -> List[LedgerEntryOut]:
    engine = get_engine()

    with engine.connect() as conn:
        if _fetch_customer(conn, customer_id) is None:
            raise HTTPException(status_code=404, detail="Customer not found")

        rows = conn.execute(
            select(customer_ledger)
            .where(customer_ledger.c.customer_id == customer_id)
            .order_by(customer_ledger.c.transaction_date, customer_ledger.c.id)
        ).mappings().all()

    return [LedgerEntryOut.model_validate(dict(row)) for row in rows]


@router.post("/{customer_id}/ledger", response_model=LedgerEntryOut, status_code=201)
def add_customer_ledger(customer_id: int, payload: LedgerEntryIn) -> LedgerEntryOut:
    """
    Post a manual entry, e.g. a payment received (credit) or an opening debt (debit).
    """
    engine = get_engine()

    with engine.begin() as conn:
        if _fetch_customer(conn, customer_id) is None:
            raise HTTPException(status_code=404, detail="Customer not found")

        entry = add_customer_ledger_entry(
            conn,
            customer_id,
            payload.description,
            debit=payload.debit,
            credit=payload.credit,
            transaction_date=payload.transaction_date,
        )

    return LedgerEntryOut.model_validate(entry)


@router.delete("/{customer_id}", status_code=204)
def delete_customer(customer_id: int) -> Response:
    """
    Delete a customer and their ledger. Past sales orders keep their totals
    and show the buyer as a guest. Customers with installment sales or
    repairs on file cannot be deleted.
    """
    engine = get_engine()

    try:
        with engine.begin() as conn:
            result = conn.execute(customers.delete().where(customers.c.id == customer_id))
            if result.rowcount == 0:
                raise HTTPException(status_code=404, detail="Customer not found")
    except IntegrityError:
        raise HTTPException(
            status_code=409,
            detail="Customer has installment sales or repairs on file",
        )

    return Response(status_code=204)
