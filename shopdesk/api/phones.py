# shopdesk/api/phones.py

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Response
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from shopdesk.db.engine import get_engine
from shopdesk.db.schema import partners, phones
from shopdesk.enums import PhoneStatus
from shopdesk.models.phones import PhoneIn, PhoneOut, PhoneUpdate
from shopdesk.services import errors
from shopdesk.services.stock import delete_phone, register_phone, update_phone

router = APIRouter(prefix="/phones", tags=["phones"])

DUPLICATE_IMEI = "This IMEI is already registered to another phone"


def _phone_select():
    return (
        select(phones, partners.c.partner_name.label("supplier_name"))
        .select_from(phones.outerjoin(partners))
    )


def _fetch_phone(conn, phone_id: int):
    return conn.execute(
        _phone_select().where(phones.c.id == phone_id)
    ).mappings().first()


@router.post("/", response_model=PhoneOut, status_code=201)
def create_phone(payload: PhoneIn) -> PhoneOut:
    engine = get_engine()

    try:
        with engine.begin() as conn:
            phone_id = register_phone(conn, payload)
            row = _fetch_phone(conn, phone_id)
    except errors.ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except errors.NotFoundError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except IntegrityError:
        # a concurrent registration won the UNIQUE(imei) race
        raise HTTPException(status_code=409, detail=DUPLICATE_IMEI)

    return PhoneOut.model_validate(dict(row))


@router.get("/", response_model=List[PhoneOut])
def list_phones(
    status: Optional[PhoneStatus] = Query(default=None, description="in_stock | sold | sold_installment"),
    supplier_id: Optional[int] = Query(default=None),
) -> List[PhoneOut]:
    """
    Return phones, most recently registered first.
    """
    engine = get_engine()

    stmt = _phone_select().order_by(phones.c.register_date.desc(), phones.c.id.desc())
    if status is not None:
        stmt = stmt.where(phones.c.status == status)
    if supplier_id is not None:
        stmt = stmt.where(phones.c.supplier_id == supplier_id)

    with engine.connect() as conn:
        rows = conn.execute(stmt).mappings().all()

    return [PhoneOut.model_validate(dict(row)) for row in rows]


@router.get("/{phone_id}", response_model=PhoneOut)
def get_phone(phone_id: int) -> PhoneOut:
    engine = get_engine()

    with engine.connect() as conn:
        row = _fetch_phone(conn, phone_id)

    if row is None:
        raise HTTPException(status_code=404, detail="Phone not found")

    return PhoneOut.model_validate(dict(row))


@router.put("/{phone_id}", response_model=PhoneOut)
def edit_phone(phone_id: int, payload: PhoneUpdate) -> PhoneOut:
    """
    Partial update. A new purchase price or supplier is re-posted to the
    supplier ledgers.
    """
    engine = get_engine()

    try:
        with engine.begin() as conn:
            if _fetch_phone(conn, phone_id) is None:
                raise HTTPException(status_code=404, detail="Phone not found")
            update_phone(conn, phone_id, payload)
            row = _fetch_phone(conn, phone_id)
    except errors.ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except (errors.NotFoundError, errors.ValidationError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except IntegrityError:
        raise HTTPException(status_code=409, detail=DUPLICATE_IMEI)

    return PhoneOut.model_validate(dict(row))


@router.delete("/{phone_id}", status_code=204)
def remove_phone(phone_id: int) -> Response:
    engine = get_engine()

    try:
        with engine.begin() as conn:
            delete_phone(conn, phone_id)
    except errors.NotFoundError:
        raise HTTPException(status_code=404, detail="Phone not found")
    except errors.ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    return Response(status_code=204)
