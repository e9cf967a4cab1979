# isp_billing/services/expenses.py - Operating expenses and their journal postings
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from isp_billing.core.exceptions import InvalidInput, NotFound
from isp_billing.models.expense import Expense, EXPENSE_CATEGORIES
from isp_billing.models.vendor import Vendor
from isp_billing.services.base import atomic
from isp_billing.services.posting import JournalPostingEngine

logger = logging.getLogger(__name__)


def create_expense(db: Session, category: str, description: str, amount: int, expense_date: date,
                   payment_method: str = "cash", reference: Optional[str] = None,
                   vendor_id: Optional[int] = None) -> Expense:
    """Record an expense and post it; without a seeded chart neither is written"""
    if amount <= 0:
        raise InvalidInput("Expense amount must be greater than zero")
    if category not in EXPENSE_CATEGORIES:
        category = "other"

    with atomic(db, "Create expense"):
        if vendor_id is not None and db.get(Vendor, vendor_id) is None:
            raise NotFound("Vendor", vendor_id)
        expense = Expense(
            category=category,
            description=description.strip(),
            amount=amount,
            expense_date=expense_date.isoformat(),
            payment_method=payment_method,
            reference=reference,
            vendor_id=vendor_id,
        )
        db.add(expense)
        db.flush()
        JournalPostingEngine(db).post_expense(expense)

    logger.info(f"Expense {expense.id} recorded: {category} {amount}")
    return expense


def get_expense(db: Session, expense_id: int) -> Expense:
    expense = db.get(Expense, expense_id)
    if expense is None:
        raise NotFound("Expense", expense_id)
    return expense


def list_expenses(db: Session, category: Optional[str] = None, start_date: Optional[date] = None,
                  end_date: Optional[date] = None) -> List[Expense]:
    query = select(Expense).order_by(Expense.expense_date.desc(), Expense.id.desc())
    if category:
        query = query.where(Expense.category == category)
    if start_date:
        query = query.where(Expense.expense_date >= start_date.isoformat())
    if end_date:
        query = query.where(Expense.expense_date <= end_date.isoformat())
    return list(db.execute(query).scalars().all())
