# shopdesk/services/stock.py
"""
Goods receipt and catalogue maintenance for products and phones bought from
a supplier.

A receipt with a supplier and a positive purchase value credits that
partner's ledger in the same transaction as the stock row. Editing the
purchase terms of a phone reverses the old credit and posts the new one;
deleting unsold stock debits the supplier as a return.
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from shopdesk import config
from shopdesk.db.schema import (
    installment_sales,
    partners,
    phones,
    products,
    repair_parts,
    sales_order_items,
)
from shopdesk.enums import ItemType, PhoneStatus
from shopdesk.models.phones import PhoneIn, PhoneUpdate
from shopdesk.models.products import ProductIn, ProductUpdate
from shopdesk.services.errors import ConflictError, NotFoundError, ValidationError
from shopdesk.services.ledger import add_partner_ledger_entry
from shopdesk.services.money import to_money

logger = logging.getLogger(__name__)

REQUIRED_PHONE_FIELDS = ("model", "imei", "purchase_price")
REQUIRED_PRODUCT_FIELDS = ("name", "purchase_price", "selling_price", "stock_quantity")


def _require_supplier(conn: Connection, supplier_id: int) -> None:
    found = conn.execute(
        select(partners.c.id).where(partners.c.id == supplier_id)
    ).first()
    if found is None:
        raise NotFoundError(f"Supplier {supplier_id} not found.")


def _changes(payload, required) -> dict:
    values = payload.model_dump(exclude_unset=True)
    for field in required:
        if field in values and values[field] is None:
            raise ValidationError(f"{field} cannot be cleared.")
    for field in ("purchase_price", "selling_price", "sale_price"):
        if values.get(field) is not None:
            values[field] = to_money(values[field])
    return values


def receive_product(conn: Connection, payload: ProductIn) -> int:
    if payload.supplier_id is not None:
        _require_supplier(conn, payload.supplier_id)

    result = conn.execute(
        products.insert().values(
            name=payload.name,
            purchase_price=to_money(payload.purchase_price),
            selling_price=to_money(payload.selling_price),
            stock_quantity=payload.stock_quantity,
            supplier_id=payload.supplier_id,
        )
    )
    product_id = result.inserted_primary_key[0]
    logger.info("Product %s received (%d unit(s))", product_id, payload.stock_quantity)

    if payload.supplier_id and payload.purchase_price > 0 and payload.stock_quantity > 0:
        add_partner_ledger_entry(
            conn,
            payload.supplier_id,
            f"Goods received: {payload.stock_quantity} x {payload.name} "
            f"(product #{product_id}) at {to_money(payload.purchase_price)}",
            credit=payload.purchase_price * payload.stock_quantity,
            reference_type="product_purchase",
            reference_id=product_id,
        )

    return product_id


def update_product(conn: Connection, product_id: int, payload: ProductUpdate) -> None:
    """Edit catalogue fields. Supplier ledgers are not touched."""
    values = _changes(payload, REQUIRED_PRODUCT_FIELDS)
    if values.get("supplier_id") is not None:
        _require_supplier(conn, values["supplier_id"])
    if not values:
        return

    result = conn.execute(
        products.update().where(products.c.id == product_id).values(**values)
    )
    if result.rowcount == 0:
        raise NotFoundError(f"Product {product_id} not found.")
    logger.info("Product %s updated: %s", product_id, ", ".join(sorted(values)))


def delete_product(conn: Connection, product_id: int) -> None:
    """
    Remove a product that was never sold or fitted in a repair. Remaining
    stock bought from a supplier is returned: the supplier is debited
    purchase_price * stock_quantity.
    """
    product = conn.execute(
        select(products).where(products.c.id == product_id)
    ).mappings().first()
    if product is None:
        raise NotFoundError(f"Product {product_id} not found.")

    times_sold = conn.execute(
        select(func.count())
        .select_from(sales_order_items)
        .where(sales_order_items.c.item_type == ItemType.INVENTORY)
        .where(sales_order_items.c.item_id == product_id)
    ).scalar_one()
    times_fitted = conn.execute(
        select(func.count())
        .select_from(repair_parts)
        .where(repair_parts.c.product_id == product_id)
    ).scalar_one()
    if times_sold or times_fitted:
        raise ConflictError(
            f"Product {product_id} appears on sales orders or repairs and cannot be deleted."
        )

    returned_value = product["purchase_price"] * product["stock_quantity"]
    if product["supplier_id"] and returned_value > 0:
        add_partner_ledger_entry(
            conn,
            product["supplier_id"],
            f"Returned on delete: {product['stock_quantity']} x {product['name']} "
            f"(product #{product_id})",
            debit=returned_value,
            reference_type="product_return_on_delete",
            reference_id=product_id,
        )

    conn.execute(products.delete().where(products.c.id == product_id))
    logger.info("Product %s deleted", product_id)


def imei_taken(conn: Connection, imei: str, exclude_id: Optional[int] = None) -> bool:
    stmt = select(phones.c.id).where(phones.c.imei == imei)
    if exclude_id is not None:
        stmt = stmt.where(phones.c.id != exclude_id)
    return conn.execute(stmt).first() is not None


def register_phone(conn: Connection, payload: PhoneIn) -> int:
    if imei_taken(conn, payload.imei):
        raise ConflictError(f"IMEI {payload.imei} is already registered.")

    if payload.supplier_id is not None:
        _require_supplier(conn, payload.supplier_id)

    result = conn.execute(
        phones.insert().values(
            model=payload.model,
            imei=payload.imei,
            color=payload.color,
            storage=payload.storage,
            ram=payload.ram,
            condition=payload.condition,
            purchase_price=to_money(payload.purchase_price),
            sale_price=to_money(payload.sale_price) if payload.sale_price is not None else None,
            purchase_date=payload.purchase_date,
            register_date=config.local_now().replace(tzinfo=None),
            status=PhoneStatus.IN_STOCK,
            notes=payload.notes,
            supplier_id=payload.supplier_id,
        )
    )
    phone_id = result.inserted_primary_key[0]
    logger.info("Phone %s registered (IMEI %s)", phone_id, payload.imei)

    if payload.supplier_id and payload.purchase_price > 0:
        add_partner_ledger_entry(
            conn,
            payload.supplier_id,
            f"Phone received: {payload.model} (IMEI {payload.imei}, phone #{phone_id})",
            credit=payload.purchase_price,
            reference_type="phone_purchase",
            reference_id=phone_id,
        )

    return phone_id


def update_phone(conn: Connection, phone_id: int, payload: PhoneUpdate) -> None:
    """
    Edit a phone's details. Status and sale date only change through sales.

    When the purchase price or supplier changes, the old supplier is debited
    the old price and the new supplier credited the new one.
    """
    phone = conn.execute(
        select(phones).where(phones.c.id == phone_id)
    ).mappings().first()
    if phone is None:
        raise NotFoundError(f"Phone {phone_id} not found.")

    values = _changes(payload, REQUIRED_PHONE_FIELDS)
    if "imei" in values and imei_taken(conn, values["imei"], exclude_id=phone_id):
        raise ConflictError(f"IMEI {values['imei']} is already registered.")
    if values.get("supplier_id") is not None:
        _require_supplier(conn, values["supplier_id"])
    if not values:
        return

    conn.execute(phones.update().where(phones.c.id == phone_id).values(**values))
    logger.info("Phone %s updated: %s", phone_id, ", ".join(sorted(values)))

    old_supplier, old_price = phone["supplier_id"], phone["purchase_price"]
    new_supplier = values.get("supplier_id", old_supplier)
    new_price = values.get("purchase_price", old_price)
    if new_supplier == old_supplier and new_price == old_price:
        return

    model = values.get("model", phone["model"])
    if old_supplier and old_price > 0:
        add_partner_ledger_entry(
            conn,
            old_supplier,
            f"Purchase reversed on edit: {phone['model']} (phone #{phone_id})",
            debit=old_price,
            reference_type="phone_purchase_reversal_on_edit",
            reference_id=phone_id,
        )
    if new_supplier and new_price > 0:
        add_partner_ledger_entry(
            conn,
            new_supplier,
            f"Purchase restated on edit: {model} (phone #{phone_id})",
            credit=new_price,
            reference_type="phone_purchase_edit",
            reference_id=phone_id,
        )


def delete_phone(conn: Connection, phone_id: int) -> None:
    """
    Remove an unsold phone. A phone bought from a supplier is returned: the
    supplier is debited its purchase price.
    """
    phone = conn.execute(
        select(phones).where(phones.c.id == phone_id)
    ).mappings().first()
    if phone is None:
        raise NotFoundError(f"Phone {phone_id} not found.")

    on_installment = conn.execute(
        select(installment_sales.c.id).where(installment_sales.c.phone_id == phone_id)
    ).first()
    on_order = conn.execute(
        select(sales_order_items.c.id)
        .where(sales_order_items.c.item_type == ItemType.PHONE)
        .where(sales_order_items.c.item_id == phone_id)
    ).first()
    if phone["status"] is not PhoneStatus.IN_STOCK or on_installment or on_order:
        raise ConflictError(f"Phone {phone_id} has been sold and cannot be deleted.")

    if phone["supplier_id"] and phone["purchase_price"] > 0:
        add_partner_ledger_entry(
            conn,
            phone["supplier_id"],
            f"Returned on delete: {phone['model']} (IMEI {phone['imei']}, phone #{phone_id})",
            debit=phone["purchase_price"],
            reference_type="phone_delete",
            reference_id=phone_id,
        )

    conn.execute(phones.delete().where(phones.c.id == phone_id))
    logger.info("Phone %s deleted", phone_id)
