# isp_billing/api/routers/accounts.py
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from isp_billing.core.db import get_db
from isp_billing.schemas.accounting import AccountCreate, AccountOut, AccountUpdate, SeedResult
from isp_billing.services import chart_of_accounts as chart

router = APIRouter()


@router.post("/seed", response_model=SeedResult)
def seed_accounts(db: Session = Depends(get_db)):
    """Create the default ISP chart of accounts unless one already exists"""
    created, count = chart.seed_chart(db)
    message = "Chart of accounts seeded" if created else "Chart of accounts already seeded"
    return {"message": message, "count": count}


@router.get("", response_model=List[AccountOut])
def list_accounts(active_only: bool = Query(default=False, alias="activeOnly"), db: Session = Depends(get_db)):
    return chart.list_accounts(db, active_only=active_only)


@router.post("", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
def create_account(data: AccountCreate, db: Session = Depends(get_db)):
    return chart.create_account(db, **data.model_dump())


@router.get("/{account_id}", response_model=AccountOut)
def get_account(account_id: int, db: Session = Depends(get_db)):
    return chart.get_account(db, account_id)


@router.patch("/{account_id}", response_model=AccountOut)
def update_account(account_id: int, data: AccountUpdate, db: Session = Depends(get_db)):
    return chart.update_account(db, account_id, **data.model_dump(exclude_unset=True))
