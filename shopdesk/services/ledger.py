# shopdesk/services/ledger.py
"""
Running-balance ledgers for customers (accounts receivable) and partners
(accounts payable).

Entries are append-only. Each row stores the balance after it was posted,
so the current balance of an account is simply the balance of its latest
entry (highest id), or zero when there are none.

Customer balance grows with debits (what the customer owes us).
Partner balance grows with credits (what we owe the partner).
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from shopdesk import config
from shopdesk.db.schema import customer_ledger, partner_ledger
from shopdesk.services.money import to_money

logger = logging.getLogger(__name__)


def _latest_balance_stmt(ledger, owner_col, owner_id):
    return (
        select(ledger.c.balance)
        .where(owner_col == owner_id)
        .order_by(ledger.c.id.desc())
        .limit(1)
    )


def latest_balance_column(ledger, owner_col, owner_id_col):
    """
    Correlated scalar subquery yielding the current balance of each owner row,
    for use in list queries (COALESCE'd to 0).
    """
    subq = (
        select(ledger.c.balance)
        .where(owner_col == owner_id_col)
        .order_by(ledger.c.id.desc())
        .limit(1)
        .scalar_subquery()
    )
    return func.coalesce(subq, 0)


def customer_balance(conn: Connection, customer_id: int) -> Decimal:
    value = conn.execute(
        _latest_balance_stmt(customer_ledger, customer_ledger.c.customer_id, customer_id)
    ).scalar()
    return to_money(value)


def partner_balance(conn: Connection, partner_id: int) -> Decimal:
    value = conn.execute(
        _latest_balance_stmt(partner_ledger, partner_ledger.c.partner_id, partner_id)
    ).scalar()
    return to_money(value)


def add_customer_ledger_entry(
    conn: Connection,
    customer_id: int,
    description: str,
    debit=0,
    credit=0,
    transaction_date: Optional[datetime] = None,
) -> dict:
    debit = to_money(debit)
    credit = to_money(credit)
    new_balance = customer_balance(conn, customer_id) + debit - credit

    result = conn.execute(
        customer_ledger.insert().values(
            customer_id=customer_id,
            transaction_date=transaction_date or config.local_now().replace(tzinfo=None),
            description=description,
            debit=debit,
            credit=credit,
            balance=new_balance,
        )
    )
    entry_id = result.inserted_primary_key[0]
    logger.info(
        "Customer %s ledger entry %s posted, balance now %s",
        customer_id, entry_id, new_balance,
    )

    row = conn.execute(
        select(customer_ledger).where(customer_ledger.c.id == entry_id)
    ).mappings().one()
    return dict(row)


def add_partner_ledger_entry(
    conn: Connection,
    partner_id: int,
    description: str,
    debit=0,
    credit=0,
    transaction_date: Optional[datetime] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[int] = None,
) -> dict:
    debit = to_money(debit)
    credit = to_money(credit)
    new_balance = partner_balance(conn, partner_id) + credit - debit

    result = conn.execute(
        partner_ledger.insert().values(
            partner_id=partner_id,
            transaction_date=transaction_date or config.local_now().replace(tzinfo=None),
            description=description,
            debit=debit,
            credit=credit,
            balance=new_balance,
            reference_type=reference_type,
            reference_id=reference_id,
        )
    )
    entry_id = result.inserted_primary_key[0]
    logger.info(
        "Partner %s ledger entry %s posted (%s), balance now %s",
        partner_id, entry_id, reference_type or "manual", new_balance,
    )

    row = conn.execute(
        select(partner_ledger).where(partner_ledger.c.id == entry_id)
    ).mappings().one()
    return dict(row)
