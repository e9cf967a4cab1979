# isp_billing/api/routers/reports.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from isp_billing.core.db import get_db
from isp_billing.core.exceptions import InvalidInput
from isp_billing.schemas.reports import AgingReport, BalanceSheet, ProfitAndLoss, TrialBalance
from isp_billing.services import reports

router = APIRouter()


@router.get("/trial-balance", response_model=TrialBalance)
def trial_balance(db: Session = Depends(get_db)):
    return reports.trial_balance(db)


@router.get("/profit-loss", response_model=ProfitAndLoss)
def profit_and_loss(
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
):
    """Revenue and expenses between two entry dates, both inclusive"""
    if start_date and end_date and end_date < start_date:
        raise InvalidInput("endDate cannot be before startDate")
    return reports.profit_and_loss(db, start_date, end_date)


@router.get("/balance-sheet", response_model=BalanceSheet)
def balance_sheet(db: Session = Depends(get_db)):
    return reports.balance_sheet(db)


@router.get("/aging", response_model=AgingReport)
def aging(as_of: Optional[date] = Query(default=None, alias="asOf"), db: Session = Depends(get_db)):
    return reports.aging_report(db, today=as_of)
