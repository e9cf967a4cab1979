# isp_billing/services/reports.py - Financial reports derived from the journal and invoices
"""
Read-side reports.

Every function here is a pure projection over stored history (journal lines,
invoices, payments). Nothing is cached and nothing is written, so a report
can always be recomputed and audited against its source rows.
"""
import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from isp_billing.models.accounting import Account, JournalEntry, JournalLine
from isp_billing.models.customer import Customer
from isp_billing.models.payment import Invoice, Payment, OPEN_STATUSES
from isp_billing.services.base import utc_today

logger = logging.getLogger(__name__)

AGING_BUCKETS = ("current", "days30", "days60", "days90", "over90")


def _account_sums(db: Session, start: Optional[str] = None,
                  end: Optional[str] = None) -> Dict[int, Tuple[int, int]]:
    """{account_id: (sum debit, sum credit)} over all lines, optionally by entry date"""
    query = (
        select(
            JournalLine.account_id,
            func.coalesce(func.sum(JournalLine.debit), 0),
            func.coalesce(func.sum(JournalLine.credit), 0),
        )
        .join(JournalEntry, JournalEntry.id == JournalLine.entry_id)
        .group_by(JournalLine.account_id)
    )
    if start:
        query = query.where(JournalEntry.entry_date >= start)
    if end:
        query = query.where(JournalEntry.entry_date <= end)
    return {account_id: (int(debit), int(credit)) for account_id, debit, credit in db.execute(query)}


def _active_accounts(db: Session, *types: str):
    query = select(Account).where(Account.is_active.is_(True)).order_by(Account.code)
    if types:
        query = query.where(Account.type.in_(types))
    return db.execute(query).scalars().all()


def trial_balance(db: Session) -> dict:
    sums = _account_sums(db)
    rows = []
    for account in _active_accounts(db):
        debit, credit = sums.get(account.id, (0, 0))
        if debit == 0 and credit == 0:
            continue
        rows.append({
            "id": account.id, "code": account.code, "name": account.name,
            "type": account.type, "debit": debit, "credit": credit,
        })
    return {
        "accounts": rows,
        "total_debit": sum(row["debit"] for row in rows),
        "total_credit": sum(row["credit"] for row in rows),
    }


def _net(account: Account, debit: int, credit: int) -> int:
    """Balance in the account's normal direction"""
    if account.type in ("asset", "expense"):
        return debit - credit
    return credit - debit


def profit_and_loss(db: Session, start_date: Optional[date] = None,
                    end_date: Optional[date] = None) -> dict:
    today = utc_today()
    start = (start_date or date(today.year, 1, 1)).isoformat()
    end = (end_date or today).isoformat()
    sums = _account_sums(db, start, end)

    sections = {"revenue": [], "expense": []}
    for account in _active_accounts(db, "revenue", "expense"):
        amount = _net(account, *sums.get(account.id, (0, 0)))
        if amount != 0:
            sections[account.type].append(
                {"id": account.id, "code": account.code, "name": account.name, "amount": amount}
            )

    total_revenue = sum(row["amount"] for row in sections["revenue"])
    total_expenses = sum(row["amount"] for row in sections["expense"])
    return {
        "start_date": start,
        "end_date": end,
        "revenue": sections["revenue"],
        "expenses": sections["expense"],
        "total_revenue": total_revenue,
        "total_expenses": total_expenses,
        "net_income": total_revenue - total_expenses,
    }


def balance_sheet(db: Session) -> dict:
    """
    Position at the end of all recorded history.

    Revenue and expense are never closed into retained earnings by a posting,
    so their running difference is reported as a "Current Earnings" equity
    line; with it the sheet balances for any set of balanced entries.
    """
    sums = _account_sums(db)
    sections = {"asset": [], "liability": [], "equity": []}
    earnings = 0
    for account in _active_accounts(db):
        amount = _net(account, *sums.get(account.id, (0, 0)))
        if account.type == "revenue":
            earnings += amount
        elif account.type == "expense":
            earnings -= amount
        elif amount != 0:
            sections[account.type].append(
                {"id": account.id, "code": account.code, "name": account.name, "balance": amount}
            )
    if earnings != 0:
        sections["equity"].append({"id": None, "code": None, "name": "Current Earnings", "balance": earnings})

    return {
        "assets": sections["asset"],
        "liabilities": sections["liability"],
        "equity": sections["equity"],
        "total_assets": sum(row["balance"] for row in sections["asset"]),
        "total_liabilities": sum(row["balance"] for row in sections["liability"]),
        "total_equity": sum(row["balance"] for row in sections["equity"]),
    }


def aging_bucket(days_overdue: int) -> str:
    if days_overdue <= 0:
        return "current"
    if days_overdue <= 30:
        return "days30"
    if days_overdue <= 60:
        return "days60"
    if days_overdue <= 90:
        return "days90"
    return "over90"


def aging_report(db: Session, today: Optional[date] = None) -> dict:
    today = today or utc_today()
    invoices = db.execute(
        select(Invoice, Customer.name)
        .join(Customer, Customer.id == Invoice.customer_id)
        .where(Invoice.status.in_(OPEN_STATUSES))
        .order_by(Invoice.customer_id, Invoice.id)
    ).all()

    per_customer: Dict[int, dict] = {}
    totals = defaultdict(int)
    for invoice, name in invoices:
        outstanding = invoice.total_amount - invoice.paid_amount
        if outstanding <= 0:
            continue
        days_overdue = max(0, (today - date.fromisoformat(invoice.due_date)).days)
        bucket = aging_bucket(days_overdue)
        row = per_customer.setdefault(invoice.customer_id, {
            "customer_id": invoice.customer_id,
            "customer_name": name,
            **{key: 0 for key in AGING_BUCKETS},
            "total": 0,
        })
        row[bucket] += outstanding
        row["total"] += outstanding
        totals[bucket] += outstanding
        totals["total"] += outstanding

    return {
        "as_of": today.isoformat(),
        "customers": list(per_customer.values()),
        "totals": {key: totals[key] for key in AGING_BUCKETS + ("total",)},
    }


def billing_stats(db: Session, today: Optional[date] = None) -> dict:
    today = today or utc_today()
    open_total, open_paid = db.execute(
        select(
            func.coalesce(func.sum(Invoice.total_amount), 0),
            func.coalesce(func.sum(Invoice.paid_amount), 0),
        ).where(Invoice.status.in_(OPEN_STATUSES))
    ).one()
    total_collected = db.execute(select(func.coalesce(func.sum(Payment.amount), 0))).scalar_one()
    overdue_count = db.execute(
        select(func.count(Invoice.id)).where(Invoice.status == "overdue")
    ).scalar_one()

    month_start = datetime(today.year, today.month, 1)
    next_month = datetime(today.year + (today.month == 12), today.month % 12 + 1, 1)
    collected_this_month = db.execute(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.received_at >= month_start, Payment.received_at < next_month
        )
    ).scalar_one()

    return {
        "total_due": int(open_total) - int(open_paid),
        "total_collected": int(total_collected),
        "overdue_count": int(overdue_count),
        "collected_this_month": int(collected_this_month),
    }
