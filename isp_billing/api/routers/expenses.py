# isp_billing/api/routers/expenses.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from isp_billing.core.db import get_db
from isp_billing.schemas.expense import ExpenseCategory, ExpenseCreate, ExpenseOut
from isp_billing.services import expenses

router = APIRouter()


@router.get("", response_model=List[ExpenseOut])
def list_expenses(
    category: Optional[ExpenseCategory] = Query(default=None),
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
):
    return expenses.list_expenses(db, category=category, start_date=start_date, end_date=end_date)


@router.post("", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
def create_expense(data: ExpenseCreate, db: Session = Depends(get_db)):
    """Record an expense together with its journal entry"""
    return expenses.create_expense(db, **data.model_dump())


@router.get("/{expense_id}", response_model=ExpenseOut)
def get_expense(expense_id: int, db: Session = Depends(get_db)):
    return expenses.get_expense(db, expense_id)
