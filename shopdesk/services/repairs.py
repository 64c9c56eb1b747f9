# shopdesk/services/repairs.py
"""
Repair center: devices received from customers, parts fitted from
inventory, and finalization.

Finalizing a repair closes it (status 'delivered'), bills the customer the
final cost and credits the technician partner the labor fee, all in the
caller's transaction.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.engine import Connection

from shopdesk import config
from shopdesk.db.schema import customers, partners, products, repair_parts, repairs
from shopdesk.enums import ItemType, RepairStatus
from shopdesk.models.repairs import (
    RepairCreate,
    RepairFinalize,
    RepairOut,
    RepairPartIn,
    RepairPartOut,
    RepairUpdate,
)
from shopdesk.services.errors import (
    AvailabilityError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from shopdesk.services.ledger import add_customer_ledger_entry, add_partner_ledger_entry
from shopdesk.services.money import to_money

logger = logging.getLogger(__name__)

# statuses that end a repair without delivering it
CLOSING_STATUSES = (RepairStatus.NOT_REPAIRED, RepairStatus.RETURNED)


def _require_customer(conn: Connection, customer_id: int) -> None:
    found = conn.execute(
        select(customers.c.id).where(customers.c.id == customer_id)
    ).first()
    if found is None:
        raise ValidationError(f"Customer {customer_id} not found.")


def _require_technician(conn: Connection, technician_id: int) -> None:
    found = conn.execute(
        select(partners.c.id).where(partners.c.id == technician_id)
    ).first()
    if found is None:
        raise ValidationError(f"Technician {technician_id} not found.")


def _open_repair(conn: Connection, repair_id: int):
    """The repair row, provided it has not been delivered yet."""
    repair = conn.execute(
        select(repairs).where(repairs.c.id == repair_id)
    ).mappings().first()
    if repair is None:
        raise NotFoundError(f"Repair {repair_id} not found.")
    if repair["status"] is RepairStatus.DELIVERED:
        raise ConflictError(f"Repair {repair_id} has already been delivered.")
    return repair


def create_repair(conn: Connection, payload: RepairCreate) -> int:
    _require_customer(conn, payload.customer_id)
    if payload.technician_id is not None:
        _require_technician(conn, payload.technician_id)

    values = payload.model_dump()
    if values["estimated_cost"] is not None:
        values["estimated_cost"] = to_money(values["estimated_cost"])

    repair_id = conn.execute(
        repairs.insert().values(
            status=RepairStatus.RECEIVED,
            date_received=config.local_now().replace(tzinfo=None),
            **values,
        )
    ).inserted_primary_key[0]
    logger.info("Repair %s received: %s", repair_id, payload.device_model)
    return repair_id


def update_repair(conn: Connection, repair_id: int, payload: RepairUpdate) -> None:
    """
    Edit an open repair. Delivery only happens through finalize_repair();
    moving to 'not_repaired' or 'returned' stamps the completion date.
    """
    _open_repair(conn, repair_id)

    values = payload.model_dump(exclude_unset=True)
    for field in ("device_model", "problem_description", "status"):
        if field in values and values[field] is None:
            raise ValidationError(f"{field} cannot be cleared.")
    if values.get("status") is RepairStatus.DELIVERED:
        raise ValidationError("Repairs are delivered by finalizing them.")
    if values.get("technician_id") is not None:
        _require_technician(conn, values["technician_id"])
    if values.get("estimated_cost") is not None:
        values["estimated_cost"] = to_money(values["estimated_cost"])
    if values.get("status") in CLOSING_STATUSES:
        values["date_completed"] = config.local_now().replace(tzinfo=None)
    if not values:
        return

    conn.execute(repairs.update().where(repairs.c.id == repair_id).values(**values))
    logger.info("Repair %s updated: %s", repair_id, ", ".join(sorted(values)))


def add_repair_part(conn: Connection, repair_id: int, payload: RepairPartIn) -> int:
    """Fit a part from inventory; stock is taken with the same guard as a sale."""
    _open_repair(conn, repair_id)

    result = conn.execute(
        update(products)
        .where(products.c.id == payload.product_id)
        .where(products.c.stock_quantity >= payload.quantity_used)
        .values(stock_quantity=products.c.stock_quantity - payload.quantity_used)
    )
    if result.rowcount != 1:
        raise AvailabilityError(
            ItemType.INVENTORY, payload.product_id,
            f"Insufficient stock for product {payload.product_id}.",
        )

    part_id = conn.execute(
        repair_parts.insert().values(
            repair_id=repair_id,
            product_id=payload.product_id,
            quantity_used=payload.quantity_used,
        )
    ).inserted_primary_key[0]
    logger.info(
        "Repair %s: fitted %d x product %s", repair_id, payload.quantity_used, payload.product_id
    )
    return part_id


def remove_repair_part(conn: Connection, repair_id: int, part_id: int) -> None:
    """Take a part back off an open repair and return it to stock."""
    _open_repair(conn, repair_id)

    part = conn.execute(
        select(repair_parts)
        .where(repair_parts.c.id == part_id)
        .where(repair_parts.c.repair_id == repair_id)
    ).mappings().first()
    if part is None:
        raise NotFoundError(f"Part {part_id} is not on repair {repair_id}.")

    conn.execute(
        update(products)
        .where(products.c.id == part["product_id"])
        .values(stock_quantity=products.c.stock_quantity + part["quantity_used"])
    )
    conn.execute(repair_parts.delete().where(repair_parts.c.id == part_id))
    logger.info("Repair %s: part %s returned to stock", repair_id, part_id)


def finalize_repair(conn: Connection, repair_id: int, payload: RepairFinalize) -> None:
    repair = _open_repair(conn, repair_id)
    _require_technician(conn, payload.technician_id)

    final_cost = to_money(payload.final_cost)
    labor_fee = to_money(payload.labor_fee)

    conn.execute(
        repairs.update()
        .where(repairs.c.id == repair_id)
        .values(
            status=RepairStatus.DELIVERED,
            final_cost=final_cost,
            labor_fee=labor_fee,
            technician_id=payload.technician_id,
            date_completed=config.local_now().replace(tzinfo=None),
        )
    )

    if final_cost > 0:
        add_customer_ledger_entry(
            conn,
            repair["customer_id"],
            f"Repair #{repair_id}: {repair['device_model']}",
            debit=final_cost,
        )
    if labor_fee > 0:
        add_partner_ledger_entry(
            conn,
            payload.technician_id,
            f"Labor fee for repair #{repair_id}: {repair['device_model']}",
            credit=labor_fee,
            reference_type="repair_fee",
            reference_id=repair_id,
        )

    logger.info(
        "Repair %s delivered: final cost %s, labor fee %s to partner %s",
        repair_id, final_cost, labor_fee, payload.technician_id,
    )


def _repair_select():
    return (
        select(
            repairs,
            customers.c.full_name.label("customer_name"),
            partners.c.partner_name.label("technician_name"),
        )
        .select_from(repairs.join(customers).outerjoin(partners))
    )


def _parts_of(conn: Connection, repair_id: int) -> List[RepairPartOut]:
    rows = conn.execute(
        select(
            repair_parts.c.id,
            repair_parts.c.product_id,
            products.c.name.label("product_name"),
            repair_parts.c.quantity_used,
        )
        .select_from(repair_parts.join(products))
        .where(repair_parts.c.repair_id == repair_id)
        .order_by(repair_parts.c.id)
    ).mappings().all()
    return [RepairPartOut.model_validate(dict(row)) for row in rows]


def get_repair(conn: Connection, repair_id: int) -> Optional[RepairOut]:
    row = conn.execute(
        _repair_select().where(repairs.c.id == repair_id)
    ).mappings().first()
    if row is None:
        return None
    return RepairOut(**dict(row), parts=_parts_of(conn, repair_id))


def list_repairs(conn: Connection, status: Optional[RepairStatus] = None) -> List[RepairOut]:
    """Repairs, most recently received first. Parts are only loaded by get_repair()."""
    stmt = _repair_select().order_by(repairs.c.date_received.desc(), repairs.c.id.desc())
    if status is not None:
        stmt = stmt.where(repairs.c.status == status)
    rows = conn.execute(stmt).mappings().all()
    return [RepairOut.model_validate(dict(row)) for row in rows]
