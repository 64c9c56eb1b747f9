# shopdesk/api/repairs.py

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Response

from shopdesk.db.engine import get_engine
from shopdesk.enums import RepairStatus
from shopdesk.models.repairs import (
    RepairCreate,
    RepairFinalize,
    RepairOut,
    RepairPartIn,
    RepairUpdate,
)
from shopdesk.services import errors
from shopdesk.services.repairs import (
    add_repair_part,
    create_repair,
    finalize_repair,
    get_repair,
    list_repairs,
    remove_repair_part,
    update_repair,
)

router = APIRouter(prefix="/repairs", tags=["repairs"])


def _raise_for(exc: errors.ShopError):
    if isinstance(exc, errors.NotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, errors.ConflictError):
        raise HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, errors.AvailabilityError):
        raise HTTPException(
            status_code=409,
            detail={
                "message": str(exc),
                "item_type": exc.item_type.value,
                "item_id": exc.item_id,
            },
        )
    raise HTTPException(status_code=400, detail=str(exc))


@router.post("/", response_model=RepairOut, status_code=201)
def receive_repair(payload: RepairCreate) -> RepairOut:
    engine = get_engine()

    try:
        with engine.begin() as conn:
            repair_id = create_repair(conn, payload)
            return get_repair(conn, repair_id)
    except errors.ShopError as exc:
        _raise_for(exc)


@router.get("/", response_model=List[RepairOut])
def list_all_repairs(
    status: Optional[RepairStatus] = Query(default=None),
) -> List[RepairOut]:
    """
    Return repairs, most recently received first.
    """
    engine = get_engine()

    with engine.connect() as conn:
        return list_repairs(conn, status)


@router.get("/{repair_id}", response_model=RepairOut)
def get_one_repair(repair_id: int) -> RepairOut:
    engine = get_engine()

    with engine.connect() as conn:
        repair = get_repair(conn, repair_id)

    if repair is None:
        raise HTTPException(status_code=404, detail="Repair not found")

    return repair


@router.put("/{repair_id}", response_model=RepairOut)
def edit_repair(repair_id: int, payload: RepairUpdate) -> RepairOut:
    engine = get_engine()

    try:
        with engine.begin() as conn:
            update_repair(conn, repair_id, payload)
            return get_repair(conn, repair_id)
    except errors.ShopError as exc:
        _raise_for(exc)


@router.post("/{repair_id}/parts", response_model=RepairOut, status_code=201)
def fit_part(repair_id: int, payload: RepairPartIn) -> RepairOut:
    """
    Use a part from inventory on this repair; stock is decremented.
    """
    engine = get_engine()

    try:
        with engine.begin() as conn:
            add_repair_part(conn, repair_id, payload)
            return get_repair(conn, repair_id)
    except errors.ShopError as exc:
        _raise_for(exc)


@router.delete("/{repair_id}/parts/{part_id}", status_code=204)
def unfit_part(repair_id: int, part_id: int) -> Response:
    engine = get_engine()

    try:
        with engine.begin() as conn:
            remove_repair_part(conn, repair_id, part_id)
    except errors.ShopError as exc:
        _raise_for(exc)

    return Response(status_code=204)


@router.post("/{repair_id}/finalize", response_model=RepairOut)
def finalize(repair_id: int, payload: RepairFinalize) -> RepairOut:
    """
    Deliver the device: bill the customer final_cost and credit the
    technician's ledger with labor_fee.
    """
    engine = get_engine()

    try:
        with engine.begin() as conn:
            finalize_repair(conn, repair_id, payload)
            return get_repair(conn, repair_id)
    except errors.ShopError as exc:
        _raise_for(exc)
