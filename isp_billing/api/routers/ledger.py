# isp_billing/api/routers/ledger.py - Opening balances and customer statements
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from isp_billing.core.db import get_db
from isp_billing.schemas.accounting import OpeningBalanceIn, OpeningBalanceOut
from isp_billing.schemas.reports import CustomerLedger
from isp_billing.services import ledger

opening_balances_router = APIRouter()
customer_ledger_router = APIRouter()


@opening_balances_router.get("/{customer_id}", response_model=OpeningBalanceOut)
def get_opening_balance(customer_id: int, db: Session = Depends(get_db)):
    balance = ledger.get_opening_balance(db, customer_id)
    return balance or {"customer_id": customer_id, "amount": 0}


@opening_balances_router.post("", response_model=OpeningBalanceOut, status_code=status.HTTP_201_CREATED)
def set_opening_balance(data: OpeningBalanceIn, db: Session = Depends(get_db)):
    return ledger.set_opening_balance(
        db, data.customer_id, data.amount, data.as_of_date, notes=data.notes
    )


@customer_ledger_router.get("/{customer_id}", response_model=CustomerLedger)
def get_customer_ledger(customer_id: int, db: Session = Depends(get_db)):
    return ledger.customer_ledger(db, customer_id)
