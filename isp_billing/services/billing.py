# isp_billing/services/billing.py - Invoice generation, overdue marking and adjustments
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from isp_billing.core.config import settings
from isp_billing.core.exceptions import BillingError, InvalidInput, NotFound, PersistenceError
from isp_billing.models.customer import Customer, ServicePlan
from isp_billing.models.payment import Invoice, BILLING_CYCLES
from isp_billing.services import customer_status  # noqa: F401  registers event handlers
from isp_billing.services.base import atomic, utc_today
from isp_billing.services.customer_status import suspend_customer
from isp_billing.services.events import InvoiceFullyPaid, event_bus
from isp_billing.services.posting import JournalPostingEngine

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    generated: List[Invoice] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def compute_base_amount(price: int, period_start: date, period_end: date,
                        created_at: datetime) -> Tuple[int, bool, int]:
    """
    Base charge for one customer over one period.

    Returns (amount, is_pro_rata, active_days). A customer created after the
    period began is billed for the days from creation to period end only.
    """
    start = datetime.combine(period_start, datetime.min.time())
    end = datetime.combine(period_end, datetime.min.time())
    if not (start < created_at <= end):
        return price, False, 0

    total_days = (period_end - period_start).days + 1
    active_days = math.ceil((end - created_at).total_seconds() / 86400)
    active_days = min(max(active_days, 1), total_days)
    # Half-up rounding in integer arithmetic
    amount = (2 * price * active_days + total_days) // (2 * total_days)
    return amount, True, active_days


def compute_total(base_amount: int, discount_amount: int, penalty_amount: int) -> int:
    return max(0, base_amount - discount_amount + penalty_amount)


def _already_billed(db: Session, customer_id: int, period_start: str, period_end: str) -> bool:
    return db.execute(
        select(Invoice.id).where(
            Invoice.customer_id == customer_id,
            Invoice.period_start == period_start,
            Invoice.period_end == period_end,
            Invoice.status != "void",
        )
    ).first() is not None


def generate_invoices(
    db: Session,
    period_start: date,
    period_end: date,
    billing_cycle: Optional[str] = None,
    due_days: Optional[int] = None,
    today: Optional[date] = None,
    auto_post: Optional[bool] = None,
) -> GenerationResult:
    """
    Bill every active customer with a plan for one period.

    Each customer is handled in its own transaction; a failure for one
    customer is reported in ``skipped`` and the run continues.
    """
    if period_end < period_start:
        raise InvalidInput("periodEnd cannot be before periodStart")
    if due_days is not None and due_days <= 0:
        raise InvalidInput("dueDays must be greater than zero")

    cycle = billing_cycle if billing_cycle in BILLING_CYCLES else settings.BILLING_DEFAULT_CYCLE
    due_days = due_days or settings.BILLING_DEFAULT_DUE_DAYS
    today = today or utc_today()
    auto_post = settings.AUTO_POST_JOURNALS if auto_post is None else auto_post
    start_str, end_str = period_start.isoformat(), period_end.isoformat()

    candidates = db.execute(
        select(Customer.id, Customer.name)
        .where(Customer.status == "active", Customer.plan_id.is_not(None))
        .order_by(Customer.id)
    ).all()

    result = GenerationResult()
    for customer_id, name in candidates:
        try:
            with atomic(db, f"Generate invoice for customer {customer_id}"):
                customer = db.execute(
                    select(Customer).where(Customer.id == customer_id).with_for_update()
                ).scalar_one()
                if _already_billed(db, customer_id, start_str, end_str):
                    result.skipped.append(f"{name} - already billed")
                    continue
                plan = db.get(ServicePlan, customer.plan_id) if customer.plan_id else None
                if plan is None:
                    result.skipped.append(f"{name} - plan not found")
                    continue

                base, is_pro_rata, active_days = compute_base_amount(
                    plan.price, period_start, period_end, customer.created_at
                )
                invoice = Invoice(
                    customer_id=customer.id,
                    plan_id=plan.id,
                    billing_cycle=cycle,
                    period_start=start_str,
                    period_end=end_str,
                    issue_date=today.isoformat(),
                    due_date=(today + timedelta(days=due_days)).isoformat(),
                    base_amount=base,
                    discount_amount=0,
                    penalty_amount=0,
                    total_amount=base,
                    paid_amount=0,
                    status="issued",
                    is_pro_rata=is_pro_rata,
                    notes=f"Pro-rata billing for {active_days} days" if is_pro_rata else None,
                )
                db.add(invoice)
                db.flush()
                if auto_post and invoice.total_amount > 0:
                    JournalPostingEngine(db).post_invoice(invoice)
            result.generated.append(invoice)
        except PersistenceError as e:
            if isinstance(e.__cause__, IntegrityError):
                result.skipped.append(f"{name} - already billed")
            else:
                result.skipped.append(f"{name} - {e.message}")
        except BillingError as e:
            result.skipped.append(f"{name} - {e.message}")
        except Exception as e:
            logger.error(f"Invoice generation failed for customer {customer_id}: {e}", exc_info=True)
            result.skipped.append(f"{name} - {e}")

    logger.info(
        f"Billing run {start_str}..{end_str}: {len(result.generated)} generated, "
        f"{len(result.skipped)} skipped"
    )
    return result


def mark_overdue(db: Session, suspend_accounts: bool = False,
                 today: Optional[date] = None) -> Tuple[int, int]:
    """
    Flip issued and partial invoices past their due date to overdue.

    Returns (marked_overdue, suspended). Each invoice and its customer's
    suspension commit together.
    """
    today_str = (today or utc_today()).isoformat()
    invoice_ids = db.execute(
        select(Invoice.id)
        .where(Invoice.status.in_(("issued", "partial")), Invoice.due_date < today_str)
        .order_by(Invoice.id)
    ).scalars().all()

    marked = 0
    suspended = 0
    for invoice_id in invoice_ids:
        with atomic(db, f"Mark invoice {invoice_id} overdue"):
            invoice = db.execute(
                select(Invoice).where(Invoice.id == invoice_id).with_for_update()
            ).scalar_one_or_none()
            # A payment may have landed between the scan and the lock
            if invoice is None or invoice.status not in ("issued", "partial") or invoice.due_date >= today_str:
                continue
            invoice.status = "overdue"
            marked += 1
            if suspend_accounts and suspend_customer(db, invoice.customer_id):
                suspended += 1

    logger.info(f"Marked {marked} invoice(s) overdue, suspended {suspended} customer(s)")
    return marked, suspended


def _lock_invoice(db: Session, invoice_id: int) -> Invoice:
    invoice = db.execute(
        select(Invoice).where(Invoice.id == invoice_id).with_for_update()
    ).scalar_one_or_none()
    if invoice is None:
        raise NotFound("Invoice", invoice_id)
    return invoice


def reconcile_status(db: Session, invoice: Invoice) -> None:
    """Bring status back in line with paid versus total after either one moved"""
    if invoice.status in ("draft", "void"):
        return
    was_paid = invoice.status == "paid"
    if invoice.paid_amount >= invoice.total_amount:
        invoice.status = "paid"
        if not was_paid:
            event_bus.publish(db, InvoiceFullyPaid(
                invoice_id=invoice.id,
                customer_id=invoice.customer_id,
                paid_amount=invoice.paid_amount,
                total_amount=invoice.total_amount,
            ))
    elif invoice.paid_amount > 0 and invoice.status in ("paid", "issued"):
        invoice.status = "partial"
    elif invoice.paid_amount == 0 and was_paid:
        invoice.status = "issued"


def _repost_invoice(db: Session, invoice: Invoice) -> None:
    """Replace a posted invoice entry with one that matches the adjusted amounts"""
    engine = JournalPostingEngine(db)
    entry = engine.live_entry("invoice", invoice.id)
    if entry is None:
        return
    engine.reverse_entry(entry.id, memo=f"Adjustment of Invoice #{invoice.id}")
    if invoice.base_amount or invoice.discount_amount or invoice.penalty_amount:
        engine.post_invoice(invoice)


def adjust_invoice(db: Session, invoice_id: int, discount_amount: Optional[int] = None,
                   penalty_amount: Optional[int] = None) -> Invoice:
    if (discount_amount is not None and discount_amount < 0) or (penalty_amount is not None and penalty_amount < 0):
        raise InvalidInput("Discount and penalty cannot be negative")

    with atomic(db, f"Adjust invoice {invoice_id}"):
        invoice = _lock_invoice(db, invoice_id)
        if invoice.status == "void":
            raise InvalidInput(f"Invoice {invoice_id} is void and cannot be adjusted")
        before = (invoice.discount_amount, invoice.penalty_amount)
        if discount_amount is not None:
            invoice.discount_amount = discount_amount
        if penalty_amount is not None:
            invoice.penalty_amount = penalty_amount
        invoice.total_amount = compute_total(
            invoice.base_amount, invoice.discount_amount, invoice.penalty_amount
        )
        reconcile_status(db, invoice)
        if (invoice.discount_amount, invoice.penalty_amount) != before:
            _repost_invoice(db, invoice)

    logger.info(
        f"Invoice {invoice.id} adjusted: discount={invoice.discount_amount} "
        f"penalty={invoice.penalty_amount} total={invoice.total_amount} status={invoice.status}"
    )
    return invoice


def void_invoice(db: Session, invoice_id: int) -> Invoice:
    with atomic(db, f"Void invoice {invoice_id}"):
        invoice = _lock_invoice(db, invoice_id)
        if invoice.status == "void":
            return invoice
        if invoice.status == "paid":
            raise InvalidInput(f"Invoice {invoice_id} is paid and cannot be voided")
        if invoice.paid_amount > 0:
            raise InvalidInput(
                f"Invoice {invoice_id} has {invoice.paid_amount} paid against it and cannot be voided",
                paidAmount=invoice.paid_amount,
            )
        invoice.status = "void"
        engine = JournalPostingEngine(db)
        entry = engine.live_entry("invoice", invoice.id)
        if entry is not None:
            engine.reverse_entry(entry.id, memo=f"Void of Invoice #{invoice.id}")
    logger.info(f"Invoice {invoice_id} voided")
    return invoice


def get_invoice(db: Session, invoice_id: int) -> Invoice:
    invoice = db.execute(
        select(Invoice).options(selectinload(Invoice.payments)).where(Invoice.id == invoice_id)
    ).scalar_one_or_none()
    if invoice is None:
        raise NotFound("Invoice", invoice_id)
    return invoice


def list_invoices(db: Session, status: Optional[str] = None,
                  customer_id: Optional[int] = None) -> List[Invoice]:
    query = select(Invoice).order_by(Invoice.created_at.desc(), Invoice.id.desc())
    if status:
        query = query.where(Invoice.status == status)
    if customer_id is not None:
        query = query.where(Invoice.customer_id == customer_id)
    return list(db.execute(query).scalars().all())
