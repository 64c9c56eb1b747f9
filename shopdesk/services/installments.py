# shopdesk/services/installments.py
"""
Installment sales: a phone sold against a down payment and a monthly
schedule of installments, optionally secured by post-dated checks.

The customer's ledger is debited the financed amount (price - down payment)
when the sale is made and credited as each installment payment comes in.
Installment status (unpaid / partial / paid) is stored per payment; the
sale's overall status is derived from the schedule on every read.
"""

import calendar
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.engine import Connection

from shopdesk import config
from shopdesk.db.schema import (
    customers,
    installment_checks,
    installment_payments,
    installment_sales,
    installment_transactions,
    phones,
)
from shopdesk.enums import (
    CheckStatus,
    InstallmentPaymentStatus,
    InstallmentSaleStatus,
    ItemType,
    PhoneStatus,
)
from shopdesk.models.installments import (
    InstallmentCheckOut,
    InstallmentPaymentOut,
    InstallmentSaleCreate,
    InstallmentSaleOut,
    InstallmentSaleSummary,
    InstallmentTransactionIn,
    InstallmentTransactionOut,
)
from shopdesk.services.errors import (
    AvailabilityError,
    NotFoundError,
    ShopError,
    ValidationError,
)
from shopdesk.services.ledger import add_customer_ledger_entry
from shopdesk.services.money import to_money

logger = logging.getLogger(__name__)


def add_months(start: date, months: int) -> date:
    """Same day of month, `months` later; clamped to the month's last day (Jan 31 + 1 -> Feb 28/29)."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def build_schedule(start: date, count: int, amount: Decimal) -> List[Tuple[int, date, Decimal]]:
    return [(n + 1, add_months(start, n), to_money(amount)) for n in range(count)]


def payment_status_for(amount_due: Decimal, amount_paid: Decimal) -> InstallmentPaymentStatus:
    if amount_paid >= amount_due:
        return InstallmentPaymentStatus.PAID
    if amount_paid > 0:
        return InstallmentPaymentStatus.PARTIAL
    return InstallmentPaymentStatus.UNPAID


def overall_status(payments: List[InstallmentPaymentOut], today: date) -> InstallmentSaleStatus:
    if all(p.status is InstallmentPaymentStatus.PAID for p in payments):
        return InstallmentSaleStatus.COMPLETED
    if any(p.status is not InstallmentPaymentStatus.PAID and p.due_date < today for p in payments):
        return InstallmentSaleStatus.OVERDUE
    return InstallmentSaleStatus.IN_PROGRESS


def create_installment_sale(conn: Connection, payload: InstallmentSaleCreate) -> int:
    """
    Record an installment sale: the phone leaves stock, the schedule and
    checks are stored and the customer is debited the financed amount.
    Must run inside one transaction (engine.begin()).
    """
    try:
        exists = conn.execute(
            select(customers.c.id).where(customers.c.id == payload.customer_id)
        ).first()
        if exists is None:
            raise ValidationError(f"Customer {payload.customer_id} not found.")

        result = conn.execute(
            update(phones)
            .where(phones.c.id == payload.phone_id)
            .where(phones.c.status == PhoneStatus.IN_STOCK)
            .values(
                status=PhoneStatus.SOLD_INSTALLMENT,
                sale_date=payload.installments_start_date,
            )
        )
        if result.rowcount != 1:
            raise AvailabilityError(
                ItemType.PHONE, payload.phone_id,
                f"Phone {payload.phone_id} is not available for sale.",
            )

        price = to_money(payload.actual_sale_price)
        down_payment = to_money(payload.down_payment)

        sale_id = conn.execute(
            installment_sales.insert().values(
                customer_id=payload.customer_id,
                phone_id=payload.phone_id,
                actual_sale_price=price,
                down_payment=down_payment,
                number_of_installments=payload.number_of_installments,
                installment_amount=to_money(payload.installment_amount),
                installments_start_date=payload.installments_start_date,
                notes=payload.notes,
            )
        ).inserted_primary_key[0]

        schedule = build_schedule(
            payload.installments_start_date,
            payload.number_of_installments,
            payload.installment_amount,
        )
        conn.execute(
            installment_payments.insert(),
            [
                {
                    "sale_id": sale_id,
                    "installment_number": number,
                    "due_date": due_date,
                    "amount_due": amount,
                    "status": InstallmentPaymentStatus.UNPAID,
                }
                for number, due_date, amount in schedule
            ],
        )

        if payload.checks:
            conn.execute(
                installment_checks.insert(),
                [
                    {
                        "sale_id": sale_id,
                        "check_number": check.check_number,
                        "bank_name": check.bank_name,
                        "due_date": check.due_date,
                        "amount": to_money(check.amount),
                        "status": check.status,
                    }
                    for check in payload.checks
                ],
            )

        financed = price - down_payment
        if financed > 0:
            add_customer_ledger_entry(
                conn,
                payload.customer_id,
                f"Installment sale #{sale_id}: phone #{payload.phone_id}, "
                f"{payload.number_of_installments} installment(s)",
                debit=financed,
            )
        elif down_payment > 0:
            add_customer_ledger_entry(
                conn,
                payload.customer_id,
                f"Installment sale #{sale_id}: paid in full up front",
                debit=down_payment,
                credit=down_payment,
            )
    except ShopError as exc:
        logger.warning("Installment sale rejected, rolling back: %s", exc)
        raise

    logger.info(
        "Installment sale %s created (%d installment(s) from %s)",
        sale_id, payload.number_of_installments, payload.installments_start_date,
    )
    return sale_id


def _paid_so_far(conn: Connection, payment_id: int) -> Decimal:
    value = conn.execute(
        select(func.coalesce(func.sum(installment_transactions.c.amount_paid), 0))
        .where(installment_transactions.c.payment_id == payment_id)
    ).scalar_one()
    return to_money(value)


def record_installment_payment(
    conn: Connection,
    payment_id: int,
    payload: InstallmentTransactionIn,
) -> InstallmentTransactionOut:
    """
    Take money against one installment and credit the customer's ledger.
    An installment cannot be paid beyond its amount due.
    """
    payment = conn.execute(
        select(installment_payments, installment_sales.c.customer_id)
        .select_from(installment_payments.join(installment_sales))
        .where(installment_payments.c.id == payment_id)
    ).mappings().first()
    if payment is None:
        raise NotFoundError(f"Installment payment {payment_id} not found.")

    amount = to_money(payload.amount_paid)
    already_paid = _paid_so_far(conn, payment_id)
    outstanding = payment["amount_due"] - already_paid
    if amount > outstanding:
        raise ValidationError(
            f"Installment {payment['installment_number']} has {to_money(outstanding)} outstanding; "
            f"cannot take {amount}."
        )

    payment_date = payload.payment_date or config.local_today()
    transaction_id = conn.execute(
        installment_transactions.insert().values(
            payment_id=payment_id,
            amount_paid=amount,
            payment_date=payment_date,
            notes=payload.notes,
        )
    ).inserted_primary_key[0]

    status = payment_status_for(payment["amount_due"], already_paid + amount)
    conn.execute(
        installment_payments.update()
        .where(installment_payments.c.id == payment_id)
        .values(
            status=status,
            payment_date=payment_date if status is InstallmentPaymentStatus.PAID else None,
        )
    )

    add_customer_ledger_entry(
        conn,
        payment["customer_id"],
        f"Installment {payment['installment_number']} of sale #{payment['sale_id']} received",
        credit=amount,
    )
    logger.info(
        "Installment payment %s: took %s, now %s", payment_id, amount, status.value
    )

    return InstallmentTransactionOut(
        id=transaction_id,
        payment_id=payment_id,
        amount_paid=amount,
        payment_date=payment_date,
        notes=payload.notes,
    )


def update_check_status(conn: Connection, check_id: int, status: CheckStatus) -> InstallmentCheckOut:
    result = conn.execute(
        installment_checks.update()
        .where(installment_checks.c.id == check_id)
        .values(status=status)
    )
    if result.rowcount == 0:
        raise NotFoundError(f"Check {check_id} not found.")

    row = conn.execute(
        select(installment_checks).where(installment_checks.c.id == check_id)
    ).mappings().one()
    return InstallmentCheckOut.model_validate(dict(row))


def _sale_select():
    return (
        select(
            installment_sales,
            customers.c.full_name.label("customer_name"),
            phones.c.model.label("phone_model"),
            phones.c.imei,
        )
        .select_from(installment_sales.join(customers).join(phones))
    )


def _payments_by_sale(conn: Connection, sale_ids: List[int]) -> Dict[int, List[InstallmentPaymentOut]]:
    payment_rows = conn.execute(
        select(installment_payments)
        .where(installment_payments.c.sale_id.in_(sale_ids))
        .order_by(installment_payments.c.sale_id, installment_payments.c.installment_number)
    ).mappings().all()

    transactions: Dict[int, List[InstallmentTransactionOut]] = {}
    transaction_rows = conn.execute(
        select(installment_transactions)
        .join(installment_payments)
        .where(installment_payments.c.sale_id.in_(sale_ids))
        .order_by(installment_transactions.c.payment_date, installment_transactions.c.id)
    ).mappings().all()
    for row in transaction_rows:
        transactions.setdefault(row["payment_id"], []).append(
            InstallmentTransactionOut.model_validate(dict(row))
        )

    by_sale: Dict[int, List[InstallmentPaymentOut]] = {}
    for row in payment_rows:
        paid = transactions.get(row["id"], [])
        by_sale.setdefault(row["sale_id"], []).append(
            InstallmentPaymentOut(
                id=row["id"],
                installment_number=row["installment_number"],
                due_date=row["due_date"],
                amount_due=row["amount_due"],
                amount_paid=to_money(sum((t.amount_paid for t in paid), Decimal("0"))),
                payment_date=row["payment_date"],
                status=row["status"],
                transactions=paid,
            )
        )
    return by_sale


def _summary_fields(sale, payments: List[InstallmentPaymentOut], today: date) -> dict:
    scheduled = sale["installment_amount"] * sale["number_of_installments"]
    paid = sum((p.amount_paid for p in payments), Decimal("0"))
    upcoming = [p.due_date for p in payments if p.status is not InstallmentPaymentStatus.PAID]
    return {
        "id": sale["id"],
        "customer_id": sale["customer_id"],
        "customer_name": sale["customer_name"],
        "phone_id": sale["phone_id"],
        "phone_model": sale["phone_model"],
        "imei": sale["imei"],
        "actual_sale_price": sale["actual_sale_price"],
        "down_payment": sale["down_payment"],
        "number_of_installments": sale["number_of_installments"],
        "installment_amount": sale["installment_amount"],
        "installments_start_date": sale["installments_start_date"],
        "total_installment_price": to_money(scheduled + sale["down_payment"]),
        "remaining_amount": to_money(max(scheduled - paid, Decimal("0"))),
        "next_due_date": min(upcoming) if upcoming else None,
        "overall_status": overall_status(payments, today),
    }


def list_installment_sales(conn: Connection, today: Optional[date] = None) -> List[InstallmentSaleSummary]:
    """All installment sales, newest first, with progress figures."""
    today = today or config.local_today()
    rows = conn.execute(
        _sale_select().order_by(installment_sales.c.id.desc())
    ).mappings().all()
    if not rows:
        return []

    payments = _payments_by_sale(conn, [row["id"] for row in rows])
    return [
        InstallmentSaleSummary(**_summary_fields(row, payments.get(row["id"], []), today))
        for row in rows
    ]


def get_installment_sale(
    conn: Connection,
    sale_id: int,
    today: Optional[date] = None,
) -> Optional[InstallmentSaleOut]:
    today = today or config.local_today()
    sale = conn.execute(
        _sale_select().where(installment_sales.c.id == sale_id)
    ).mappings().first()
    if sale is None:
        return None

    payments = _payments_by_sale(conn, [sale_id]).get(sale_id, [])
    check_rows = conn.execute(
        select(installment_checks)
        .where(installment_checks.c.sale_id == sale_id)
        .order_by(installment_checks.c.due_date, installment_checks.c.id)
    ).mappings().all()

    return InstallmentSaleOut(
        **_summary_fields(sale, payments, today),
        notes=sale["notes"],
        payments=payments,
        checks=[InstallmentCheckOut.model_validate(dict(row)) for row in check_rows],
    )
