# shopdesk/api/partners.py

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Response
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from shopdesk.db.engine import get_engine
from shopdesk.db.schema import partner_ledger, partners
from shopdesk.models.ledger import LedgerEntryIn, PartnerLedgerEntryOut
from shopdesk.models.partners import PartnerIn, PartnerOut
from shopdesk.services.ledger import add_partner_ledger_entry, latest_balance_column

router = APIRouter(prefix="/partners", tags=["partners"])


def _partner_select():
    return select(
        partners,
        latest_balance_column(
            partner_ledger, partner_ledger.c.partner_id, partners.c.id
        ).label("current_balance"),
    )


def _fetch_partner(conn, partner_id: int):
    return conn.execute(
        _partner_select().where(partners.c.id == partner_id)
    ).mappings().first()


@router.post("/", response_model=PartnerOut, status_code=201)
def create_partner(payload: PartnerIn) -> PartnerOut:
    engine = get_engine()

    try:
        with engine.begin() as conn:
            result = conn.execute(partners.insert().values(**payload.model_dump()))
            row = _fetch_partner(conn, result.inserted_primary_key[0])
    except IntegrityError:
        raise HTTPException(
            status_code=409,
            detail="This phone number is already registered to another partner",
        )

    return PartnerOut.model_validate(dict(row))


@router.get("/", response_model=List[PartnerOut])
def list_partners(
    partner_type: Optional[str] = Query(
        default=None,
        description="Only partners of this type, e.g. Supplier",
    ),
) -> List[PartnerOut]:
    """
    Return partners with their current payable balance, ordered by name.
    """
    engine = get_engine()

    stmt = _partner_select().order_by(partners.c.partner_name)
    if partner_type is not None:
        stmt = stmt.where(partners.c.partner_type == partner_type)

    with engine.connect() as conn:
        rows = conn.execute(stmt).mappings().all()

    return [PartnerOut.model_validate(dict(row)) for row in rows]


@router.get("/{partner_id}", response_model=PartnerOut)
def get_partner(partner_id: int) -> PartnerOut:
    engine = get_engine()

    with engine.connect() as conn:
        row = _fetch_partner(conn, partner_id)

    if row is None:
        raise HTTPException(status_code=404, detail="Partner not found")

    return PartnerOut.model_validate(dict(row))


@router.put("/{partner_id}", response_model=PartnerOut)
def update_partner(partner_id: int, payload: PartnerIn) -> PartnerOut:
    engine = get_engine()

    try:
        with engine.begin() as conn:
            result = conn.execute(
                partners.update()
                .where(partners.c.id == partner_id)
                .values(**payload.model_dump())
            )
            if result.rowcount == 0:
                raise HTTPException(status_code=404, detail="Partner not found")
            row = _fetch_partner(conn, partner_id)
    except IntegrityError:
        raise HTTPException(
            status_code=409,
            detail="This phone number is already registered to another partner",
        )

    return PartnerOut.model_validate(dict(row))


@router.get("/{partner_id}/ledger", response_model=List[PartnerLedgerEntryOut])
def get_partner_ledger(partner_id: int) -> List[PartnerLedgerEntryOut]:
    engine = get_engine()

    with engine.connect() as conn:
        if _fetch_partner(conn, partner_id) is None:
            raise HTTPException(status_code=404, detail="Partner not found")

        rows = conn.execute(
            select(partner_ledger)
            .where(partner_ledger.c.partner_id == partner_id)
            .order_by(partner_ledger.c.transaction_date, partner_ledger.c.id)
        ).mappings().all()

    return [PartnerLedgerEntryOut.model_validate(dict(row)) for row in rows]


@router.post("/{partner_id}/ledger", response_model=PartnerLedgerEntryOut, status_code=201)
def add_partner_ledger(partner_id: int, payload: LedgerEntryIn) -> PartnerLedgerEntryOut:
    """
    Post a manual entry, e.g. a payment to the supplier (debit).
    """
    engine = get_engine()

    with engine.begin() as conn:
        if _fetch_partner(conn, partner_id) is None:
            raise HTTPException(status_code=404, detail="Partner not found")

        entry = add_partner_ledger_entry(
            conn,
            partner_id,
            payload.description,
            debit=payload.debit,
            credit=payload.credit,
            transaction_date=payload.transaction_date,
            reference_type="manual",
        )

    return PartnerLedgerEntryOut.model_validate(entry)


@router.delete("/{partner_id}", status_code=204)
def delete_partner(partner_id: int) -> Response:
    """
    Delete a partner and their ledger. Products, phones and repairs that
    reference the partner are kept with the reference cleared.
    """
    engine = get_engine()

    with engine.begin() as conn:
        result = conn.execute(partners.delete().where(partners.c.id == partner_id))
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Partner not found")

    return Response(status_code=204)
