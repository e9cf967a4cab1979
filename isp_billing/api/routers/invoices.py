# isp_billing/api/routers/invoices.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from isp_billing.core.db import get_db
from isp_billing.schemas.invoice import InvoiceAdjustment, InvoiceDetail, InvoiceOut, InvoiceStatus
from isp_billing.services import billing

router = APIRouter()


@router.get("", response_model=List[InvoiceOut])
def list_invoices(
    status: Optional[InvoiceStatus] = Query(default=None),
    customer_id: Optional[int] = Query(default=None, alias="customerId"),
    db: Session = Depends(get_db),
):
    return billing.list_invoices(db, status=status, customer_id=customer_id)


@router.get("/{invoice_id}", response_model=InvoiceDetail)
def get_invoice(invoice_id: int, db: Session = Depends(get_db)):
    """Invoice with the payments applied to it"""
    return billing.get_invoice(db, invoice_id)


@router.patch("/{invoice_id}/adjustment", response_model=InvoiceOut)
def adjust_invoice(invoice_id: int, data: InvoiceAdjustment, db: Session = Depends(get_db)):
    return billing.adjust_invoice(
        db, invoice_id, discount_amount=data.discount_amount, penalty_amount=data.penalty_amount
    )


@router.post("/{invoice_id}/void", response_model=InvoiceOut)
def void_invoice(invoice_id: int, db: Session = Depends(get_db)):
    return billing.void_invoice(db, invoice_id)
