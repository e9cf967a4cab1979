# isp_billing/api/routers/billing.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from isp_billing.core.db import get_db
from isp_billing.schemas.invoice import (
    GenerateInvoicesRequest, GenerateInvoicesResult, MarkOverdueRequest, MarkOverdueResult, BillingStats
)
from isp_billing.services import billing, reports

router = APIRouter()


@router.post("/generate", response_model=GenerateInvoicesResult)
def generate_invoices(data: GenerateInvoicesRequest, db: Session = Depends(get_db)):
    """Generate invoices for every active customer for one billing period"""
    result = billing.generate_invoices(
        db,
        period_start=data.period_start,
        period_end=data.period_end,
        billing_cycle=data.billing_cycle,
        due_days=data.due_days,
    )
    return {
        "generated": len(result.generated),
        "skipped": len(result.skipped),
        "details": {"generated": result.generated, "skipped": result.skipped},
    }


@router.post("/mark-overdue", response_model=MarkOverdueResult)
def mark_overdue(data: MarkOverdueRequest = MarkOverdueRequest(), db: Session = Depends(get_db)):
    marked, suspended = billing.mark_overdue(db, suspend_accounts=data.suspend_accounts)
    return {"marked_overdue": marked, "suspended": suspended}


@router.get("/stats", response_model=BillingStats)
def billing_stats(db: Session = Depends(get_db)):
    return reports.billing_stats(db)
