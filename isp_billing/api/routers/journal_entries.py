# isp_billing/api/routers/journal_entries.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from isp_billing.core.db import get_db
from isp_billing.schemas.accounting import (
    JournalEntryCreate, JournalEntryOut, JournalReverseRequest, JournalSource
)
from isp_billing.services import posting
from isp_billing.services.posting import JournalPostingEngine, PostingLine

router = APIRouter()


@router.get("", response_model=List[JournalEntryOut])
def list_entries(
    source_type: Optional[JournalSource] = Query(default=None, alias="sourceType"),
    source_id: Optional[int] = Query(default=None, alias="sourceId"),
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
):
    return JournalPostingEngine(db).list_entries(source_type, source_id, start_date, end_date)


@router.post("", response_model=JournalEntryOut, status_code=status.HTTP_201_CREATED)
def create_entry(data: JournalEntryCreate, db: Session = Depends(get_db)):
    """Post a balanced manual entry; unbalanced submissions write nothing"""
    lines = [PostingLine(**line.model_dump()) for line in data.lines]
    return posting.create_manual_entry(
        db,
        entry_date=data.entry.entry_date,
        memo=data.entry.memo,
        lines=lines,
        source_type=data.entry.source_type,
        source_id=data.entry.source_id,
    )


@router.get("/{entry_id}", response_model=JournalEntryOut)
def get_entry(entry_id: int, db: Session = Depends(get_db)):
    return JournalPostingEngine(db).get_entry(entry_id)


@router.post("/{entry_id}/reverse", response_model=JournalEntryOut, status_code=status.HTTP_201_CREATED)
def reverse_entry(entry_id: int, data: Optional[JournalReverseRequest] = None, db: Session = Depends(get_db)):
    data = data or JournalReverseRequest()
    return posting.reverse_entry_by_id(db, entry_id, entry_date=data.entry_date, memo=data.memo)


@router.post("/auto-post/invoice/{invoice_id}", response_model=JournalEntryOut, status_code=status.HTTP_201_CREATED)
def auto_post_invoice(invoice_id: int, db: Session = Depends(get_db)):
    return posting.post_invoice_by_id(db, invoice_id)


@router.post("/auto-post/payment/{payment_id}", response_model=JournalEntryOut, status_code=status.HTTP_201_CREATED)
def auto_post_payment(payment_id: int, db: Session = Depends(get_db)):
    return posting.post_payment_by_id(db, payment_id)


@router.post("/auto-post/expense/{expense_id}", response_model=JournalEntryOut, status_code=status.HTTP_201_CREATED)
def auto_post_expense(expense_id: int, db: Session = Depends(get_db)):
    return posting.post_expense_by_id(db, expense_id)
