# isp_billing/services/customer_status.py - Customer status rules driven by billing events
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from isp_billing.models.customer import Customer
from isp_billing.services.events import InvoiceFullyPaid, event_bus

logger = logging.getLogger(__name__)


def reactivate_suspended_customer(db: Session, event: InvoiceFullyPaid) -> None:
    """A fully paid invoice lifts a suspension; other statuses are left alone"""
    customer = db.execute(
        select(Customer).where(Customer.id == event.customer_id).with_for_update()
    ).scalar_one_or_none()
    if customer and customer.status == "suspended":
        customer.status = "active"
        logger.info(f"Customer {customer.id} reactivated after invoice {event.invoice_id} was paid")


def suspend_customer(db: Session, customer_id: int) -> bool:
    """Suspend an active customer. Returns True when the status actually changed."""
    customer = db.execute(
        select(Customer).where(Customer.id == customer_id).with_for_update()
    ).scalar_one_or_none()
    if customer is None or customer.status in ("suspended", "terminated"):
        return False
    customer.status = "suspended"
    logger.info(f"Customer {customer.id} suspended for overdue billing")
    return True


event_bus.subscribe(InvoiceFullyPaid, reactivate_suspended_customer)
