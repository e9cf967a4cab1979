# isp_billing/services/payments.py - Recording receipts against invoices
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from isp_billing.core.config import settings
from isp_billing.core.exceptions import InvalidInput, NotFound
from isp_billing.models.payment import Invoice, Payment, PAYMENT_METHODS
from isp_billing.services.base import atomic
from isp_billing.services.billing import reconcile_status
from isp_billing.services.posting import JournalPostingEngine

logger = logging.getLogger(__name__)


def record_payment(
    db: Session,
    invoice_id: int,
    customer_id: int,
    amount: int,
    method: str,
    collected_by: str,
    reference: Optional[str] = None,
    notes: Optional[str] = None,
    auto_post: Optional[bool] = None,
) -> Tuple[Payment, Invoice]:
    """
    Apply a receipt to one invoice.

    The invoice row is locked for the read-modify-write of paid_amount and
    status; the version counter catches any writer that slipped past the lock.
    Payment, invoice update, customer reactivation and the optional journal
    posting commit or fail together.
    """
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidInput("Payment amount must be a positive whole number")
    if method not in PAYMENT_METHODS:
        raise InvalidInput(f"Payment method must be one of {', '.join(PAYMENT_METHODS)}")
    collected_by = (collected_by or "").strip()
    if not collected_by:
        raise InvalidInput("collectedBy is required")
    auto_post = settings.AUTO_POST_JOURNALS if auto_post is None else auto_post

    with atomic(db, f"Record payment on invoice {invoice_id}"):
        invoice = db.execute(
            select(Invoice).where(Invoice.id == invoice_id).with_for_update()
        ).scalar_one_or_none()
        if invoice is None:
            raise NotFound("Invoice", invoice_id)
        if invoice.customer_id != customer_id:
            raise InvalidInput(f"Invoice {invoice_id} does not belong to customer {customer_id}")
        if invoice.status in ("void", "draft"):
            raise InvalidInput(f"Cannot record a payment against a {invoice.status} invoice")

        payment = Payment(
            invoice=invoice,
            customer_id=customer_id,
            amount=amount,
            method=method,
            collected_by=collected_by,
            reference=reference,
            notes=notes,
        )
        db.add(payment)

        invoice.paid_amount += amount
        if invoice.paid_amount >= invoice.total_amount:
            reconcile_status(db, invoice)
        else:
            invoice.status = "partial"
        db.flush()

        if auto_post:
            JournalPostingEngine(db).post_payment(payment)

    logger.info(
        f"Payment {payment.id} of {amount} via {method} recorded on invoice {invoice.id}; "
        f"paid {invoice.paid_amount}/{invoice.total_amount} ({invoice.status})"
    )
    return payment, invoice


def get_payment(db: Session, payment_id: int) -> Payment:
    payment = db.get(Payment, payment_id)
    if payment is None:
        raise NotFound("Payment", payment_id)
    return payment


def list_payments(db: Session, invoice_id: Optional[int] = None,
                  customer_id: Optional[int] = None) -> List[Payment]:
    query = select(Payment).order_by(Payment.received_at.desc(), Payment.id.desc())
    if invoice_id is not None:
        query = query.where(Payment.invoice_id == invoice_id)
    if customer_id is not None:
        query = query.where(Payment.customer_id == customer_id)
    return list(db.execute(query).scalars().all())


def mark_whatsapp_sent(db: Session, payment_id: int) -> Payment:
    with atomic(db, f"Flag payment {payment_id} notified"):
        payment = get_payment(db, payment_id)
        payment.whatsapp_sent = True
    return payment
