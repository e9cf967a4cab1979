# isp_billing/api/routers/payments.py
from typing import Callable, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from isp_billing.api.deps.services import get_notifier, get_session_factory
from isp_billing.core.db import get_db
from isp_billing.schemas.invoice import PaymentRecorded
from isp_billing.schemas.payment import PaymentCreate, PaymentOut
from isp_billing.services import payments
from isp_billing.services.notifications import WhatsAppNotifier, send_receipt_in_background

router = APIRouter()


@router.post("", response_model=PaymentRecorded, status_code=status.HTTP_201_CREATED)
def record_payment(
    data: PaymentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: WhatsAppNotifier = Depends(get_notifier),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """Record a payment against an invoice; the receipt is sent once the payment is committed"""
    payment, invoice = payments.record_payment(
        db,
        invoice_id=data.invoice_id,
        customer_id=data.customer_id,
        amount=data.amount,
        method=data.method,
        collected_by=data.collected_by,
        reference=data.reference,
        notes=data.notes,
    )
    if notifier.enabled:
        background_tasks.add_task(send_receipt_in_background, notifier, session_factory, payment.id)
    return {"payment": payment, "invoice": invoice, "whatsapp_queued": notifier.enabled}


@router.get("", response_model=List[PaymentOut])
def list_payments(
    invoice_id: Optional[int] = Query(default=None, alias="invoiceId"),
    customer_id: Optional[int] = Query(default=None, alias="customerId"),
    db: Session = Depends(get_db),
):
    return payments.list_payments(db, invoice_id=invoice_id, customer_id=customer_id)


@router.patch("/{payment_id}/whatsapp-sent", response_model=PaymentOut)
def resend_receipt(
    payment_id: int,
    db: Session = Depends(get_db),
    notifier: WhatsAppNotifier = Depends(get_notifier),
):
    """Re-send the receipt and flag the payment as notified"""
    payments.get_payment(db, payment_id)
    notifier.send_payment_receipt(db, payment_id)
    return payments.mark_whatsapp_sent(db, payment_id)
