# isp_billing/services/ledger.py - Opening balances and the per-customer ledger
import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from isp_billing.core.exceptions import NotFound
from isp_billing.models.accounting import OpeningBalance
from isp_billing.models.customer import Customer
from isp_billing.models.payment import Invoice, Payment
from isp_billing.services.base import atomic

logger = logging.getLogger(__name__)


def _require_customer(db: Session, customer_id: int) -> Customer:
    customer = db.get(Customer, customer_id)
    if customer is None:
        raise NotFound("Customer", customer_id)
    return customer


def get_opening_balance(db: Session, customer_id: int) -> Optional[OpeningBalance]:
    return db.execute(
        select(OpeningBalance).where(OpeningBalance.customer_id == customer_id)
    ).scalar_one_or_none()


def set_opening_balance(db: Session, customer_id: int, amount: int, as_of_date: date,
                        notes: Optional[str] = None) -> OpeningBalance:
    """Create or replace the customer's single opening balance"""
    with atomic(db, f"Set opening balance for customer {customer_id}"):
        _require_customer(db, customer_id)
        balance = get_opening_balance(db, customer_id)
        if balance is None:
            balance = OpeningBalance(customer_id=customer_id)
            db.add(balance)
        balance.amount = amount
        balance.as_of_date = as_of_date.isoformat()
        balance.notes = notes
    logger.info(f"Opening balance for customer {customer_id} set to {amount} as of {as_of_date}")
    return balance


def customer_ledger(db: Session, customer_id: int) -> dict:
    """
    Running statement for one customer, built from invoices and payments only.

    The opening balance (when non-zero) comes first, then invoices and
    payments interleaved by creation and receipt time. Void invoices are left
    out.
    """
    _require_customer(db, customer_id)
    opening = get_opening_balance(db, customer_id)
    balance = opening.amount if opening else 0
    rows = []
    if opening and opening.amount != 0:
        rows.append({
            "date": opening.as_of_date,
            "type": "opening_balance",
            "description": "Opening Balance",
            "debit": max(opening.amount, 0),
            "credit": max(-opening.amount, 0),
            "balance": balance,
            "reference_id": None,
        })

    invoices = db.execute(
        select(Invoice)
        .where(Invoice.customer_id == customer_id, Invoice.status != "void")
        .order_by(Invoice.created_at, Invoice.id)
    ).scalars().all()
    payments = db.execute(
        select(Payment)
        .where(Payment.customer_id == customer_id)
        .order_by(Payment.received_at, Payment.id)
    ).scalars().all()

    events = [(inv.created_at, 0, inv) for inv in invoices] + [(pay.received_at, 1, pay) for pay in payments]
    # Stable sort: on equal timestamps an invoice precedes the payment against it
    events.sort(key=lambda item: (item[0], item[1]))

    for _, kind, record in events:
        if kind == 0:
            balance += record.total_amount
            rows.append({
                "date": record.issue_date,
                "type": "invoice",
                "description": f"Invoice #{record.id} - {record.period_start} to {record.period_end}",
                "debit": record.total_amount,
                "credit": 0,
                "balance": balance,
                "reference_id": record.id,
            })
        else:
            balance -= record.amount
            rows.append({
                "date": record.received_at.date().isoformat(),
                "type": "payment",
                "description": f"Payment - {record.method} ({record.collected_by})",
                "debit": 0,
                "credit": record.amount,
                "balance": balance,
                "reference_id": record.id,
            })

    return {"customer_id": customer_id, "entries": rows, "balance": balance}
