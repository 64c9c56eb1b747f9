# shopdesk/services/sales_orders.py
"""
Multi-line sales orders: checkout, invoice assembly and the order list.

create_sales_order() must run inside a single transaction (engine.begin());
when it raises, the caller's transaction rolls back every stock mutation and
every row it inserted.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.engine import Connection

from shopdesk import config
from shopdesk.db.schema import (
    customers,
    phones,
    products,
    sales_order_items,
    sales_orders,
)
from shopdesk.enums import ItemType, PaymentMethod, PhoneStatus
from shopdesk.models.sales_orders import (
    InvoiceCustomer,
    InvoiceFinancialSummary,
    InvoiceLineItem,
    InvoiceMetadata,
    InvoiceOut,
    SalesOrderCreate,
    SalesOrderItemIn,
    SalesOrderSummary,
)
from shopdesk.models.settings import BusinessDetails
from shopdesk.services.errors import AvailabilityError, ShopError, ValidationError
from shopdesk.services.ledger import add_customer_ledger_entry
from shopdesk.services.money import to_money

logger = logging.getLogger(__name__)

GUEST_NAME = "Guest"
MAX_SUMMARY_ITEMS = 3


def compute_totals(payload: SalesOrderCreate) -> Dict[str, Decimal]:
    """
    Order arithmetic, computed once at checkout from the submitted cart.

        taxable     = subtotal - items_discount - discount
        tax_amount  = taxable * tax / 100   (0 when taxable <= 0)
        grand_total = taxable + tax_amount

    tax is rounded to the stored precision first, so the invoice rebuilt
    from the order row reproduces the same figures.
    """
    tax = stored_tax_rate(payload.tax)
    subtotal = sum((it.unit_price * it.quantity for it in payload.items), Decimal("0"))
    items_discount = sum((it.discount_per_item for it in payload.items), Decimal("0"))
    taxable_amount = subtotal - items_discount - payload.discount
    if taxable_amount > 0:
        tax_amount = taxable_amount * tax / Decimal("100")
    else:
        tax_amount = Decimal("0")
    grand_total = taxable_amount + tax_amount

    return {
        "subtotal": to_money(subtotal),
        "items_discount": to_money(items_discount),
        "taxable_amount": to_money(taxable_amount),
        "tax_amount": to_money(tax_amount),
        "grand_total": to_money(grand_total),
    }


def stored_tax_rate(tax: Decimal) -> Decimal:
    # sales_orders.tax is Numeric(9, 2)
    return to_money(tax)


def line_total(item: SalesOrderItemIn) -> Decimal:
    return to_money(item.quantity * item.unit_price - item.discount_per_item)


def _sell_phone(conn: Connection, item: SalesOrderItemIn, sale_date: date) -> None:
    # Guarded UPDATE: only flips a phone that is still in stock, so two
    # checkouts racing on the same unit cannot both succeed.
    result = conn.execute(
        update(phones)
        .where(phones.c.id == item.item_id)
        .where(phones.c.status == PhoneStatus.IN_STOCK)
        .values(status=PhoneStatus.SOLD, sale_date=sale_date)
    )
    if result.rowcount != 1:
        raise AvailabilityError(
            item.item_type, item.item_id,
            f"Phone {item.item_id} is not available for sale.",
        )


def _sell_product(conn: Connection, item: SalesOrderItemIn) -> None:
    result = conn.execute(
        update(products)
        .where(products.c.id == item.item_id)
        .where(products.c.stock_quantity >= item.quantity)
        .values(stock_quantity=products.c.stock_quantity - item.quantity)
    )
    if result.rowcount != 1:
        raise AvailabilityError(
            item.item_type, item.item_id,
            f"Insufficient stock for product {item.item_id}.",
        )


def _take_from_stock(conn: Connection, item: SalesOrderItemIn, sale_date: date) -> None:
    if item.item_type is ItemType.PHONE:
        _sell_phone(conn, item, sale_date)
    elif item.item_type is ItemType.INVENTORY:
        _sell_product(conn, item)
    else:
        raise ValidationError(f"Unsupported item type: {item.item_type!r}")


def create_sales_order(
    conn: Connection,
    payload: SalesOrderCreate,
    transaction_date: Optional[date] = None,
) -> int:
    """
    Record a checkout: order row, line items, stock movements and, for credit
    sales to a known customer, one receivable entry of the grand total.

    Raises ValidationError for an empty cart, a phone line with a quantity
    other than 1 or an unknown customer, and AvailabilityError naming the
    first line that cannot be fulfilled.
    """
    if not payload.items:
        raise ValidationError("Cart is empty.")

    for item in payload.items:
        if item.item_type is ItemType.PHONE and item.quantity != 1:
            raise ValidationError(
                f"Phone {item.item_id} is a single unit; quantity must be 1, got {item.quantity}."
            )

    transaction_date = transaction_date or config.local_today()

    try:
        if payload.customer_id is not None:
            exists = conn.execute(
                select(customers.c.id).where(customers.c.id == payload.customer_id)
            ).first()
            if exists is None:
                raise ValidationError(f"Customer {payload.customer_id} not found.")

        totals = compute_totals(payload)

        result = conn.execute(
            sales_orders.insert().values(
                customer_id=payload.customer_id,
                payment_method=payload.payment_method,
                discount=to_money(payload.discount),
                tax=stored_tax_rate(payload.tax),
                subtotal=totals["subtotal"],
                grand_total=totals["grand_total"],
                transaction_date=transaction_date,
                notes=payload.notes,
            )
        )
        order_id = result.inserted_primary_key[0]
        logger.info("Sales order %s created (%d item(s))", order_id, len(payload.items))

        for item in payload.items:
            _take_from_stock(conn, item, transaction_date)
            conn.execute(
                sales_order_items.insert().values(
                    order_id=order_id,
                    item_type=item.item_type,
                    item_id=item.item_id,
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=to_money(item.unit_price),
                    discount_per_item=to_money(item.discount_per_item),
                    total_price=line_total(item),
                )
            )

        if (
            payload.customer_id is not None
            and payload.payment_method is PaymentMethod.CREDIT
            and totals["grand_total"] > 0
        ):
            add_customer_ledger_entry(
                conn,
                payload.customer_id,
                f"Credit sale invoice #{order_id}",
                debit=totals["grand_total"],
                credit=0,
            )
    except ShopError as exc:
        logger.warning("Sales order rejected, rolling back: %s", exc)
        raise
    except Exception:
        logger.exception("Sales order failed, rolling back")
        raise

    return order_id


def get_sales_order_for_invoice(
    conn: Connection,
    order_id: int,
    business: BusinessDetails,
) -> Optional[InvoiceOut]:
    """
    Rebuild a printable invoice from stored rows. Returns None for an unknown id.

    Only presentation figures are recomputed; grand_total is the stored value.
    """
    order = conn.execute(
        select(
            sales_orders,
            customers.c.full_name,
            customers.c.phone_number,
        )
        .select_from(sales_orders.outerjoin(customers))
        .where(sales_orders.c.id == order_id)
    ).mappings().first()

    if order is None:
        logger.debug("Sales order %s not found", order_id)
        return None

    item_rows = conn.execute(
        select(sales_order_items)
        .where(sales_order_items.c.order_id == order_id)
        .order_by(sales_order_items.c.id)
    ).mappings().all()

    line_items = [InvoiceLineItem.model_validate(dict(row)) for row in item_rows]

    subtotal = to_money(order["subtotal"])
    global_discount = to_money(order["discount"])
    grand_total = to_money(order["grand_total"])
    items_discount = to_money(sum((li.discount_per_item for li in line_items), Decimal("0")))
    taxable_amount = subtotal - items_discount - global_discount

    customer_details = None
    if order["customer_id"] is not None:
        customer_details = InvoiceCustomer(
            id=order["customer_id"],
            full_name=order["full_name"],
            phone_number=order["phone_number"],
        )

    return InvoiceOut(
        business_details=business,
        customer_details=customer_details,
        invoice_metadata=InvoiceMetadata(
            invoice_number=str(order["id"]),
            transaction_date=order["transaction_date"],
        ),
        payment_method=order["payment_method"],
        line_items=line_items,
        financial_summary=InvoiceFinancialSummary(
            subtotal=subtotal,
            items_discount=items_discount,
            global_discount=global_discount,
            taxable_amount=taxable_amount,
            tax_percentage=order["tax"],
            tax_amount=grand_total - taxable_amount,
            grand_total=grand_total,
        ),
        notes=order["notes"],
    )


def summarize_descriptions(descriptions: List[str]) -> str:
    names = [d.strip() for d in descriptions if d and d.strip()]
    if not names:
        return "—"
    if len(names) > MAX_SUMMARY_ITEMS:
        return ", ".join(names[:MAX_SUMMARY_ITEMS]) + ", …"
    return ", ".join(names)


def list_sales_orders(conn: Connection) -> List[SalesOrderSummary]:
    """All orders, newest first, with the buyer's name ('Guest' if none)."""
    rows = conn.execute(
        select(
            sales_orders.c.id,
            sales_orders.c.transaction_date,
            sales_orders.c.grand_total,
            func.coalesce(customers.c.full_name, GUEST_NAME).label("customer_name"),
        )
        .select_from(sales_orders.outerjoin(customers))
        .order_by(sales_orders.c.id.desc())
    ).mappings().all()

    descriptions: Dict[int, List[str]] = {}
    item_rows = conn.execute(
        select(sales_order_items.c.order_id, sales_order_items.c.description)
        .order_by(sales_order_items.c.order_id, sales_order_items.c.id)
    ).all()
    for item in item_rows:
        descriptions.setdefault(item.order_id, []).append(item.description)

    return [
        SalesOrderSummary(
            id=row["id"],
            transaction_date=row["transaction_date"],
            grand_total=to_money(row["grand_total"]),
            customer_name=row["customer_name"],
            description=summarize_descriptions(descriptions.get(row["id"], [])),
        )
        for row in rows
    ]
