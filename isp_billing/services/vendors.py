# isp_billing/services/vendors.py - Vendors, the bills they send and paying them
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from isp_billing.core.exceptions import InvalidInput, NotFound
from isp_billing.models.expense import EXPENSE_CATEGORIES
from isp_billing.models.payment import PAYMENT_METHODS
from isp_billing.models.vendor import Vendor, VendorBill
from isp_billing.services.base import atomic, utc_today
from isp_billing.services.posting import JournalPostingEngine

logger = logging.getLogger(__name__)

VENDOR_FIELDS = ("name", "contact", "address", "tax_id", "is_active")


def list_vendors(db: Session, active_only: bool = False) -> List[Vendor]:
    query = select(Vendor).order_by(Vendor.name, Vendor.id)
    if active_only:
        query = query.where(Vendor.is_active.is_(True))
    return list(db.execute(query).scalars().all())


def get_vendor(db: Session, vendor_id: int) -> Vendor:
    vendor = db.get(Vendor, vendor_id)
    if vendor is None:
        raise NotFound("Vendor", vendor_id)
    return vendor


def create_vendor(db: Session, name: str, contact: Optional[str] = None, address: Optional[str] = None,
                  tax_id: Optional[str] = None, is_active: bool = True) -> Vendor:
    if not name or not name.strip():
        raise InvalidInput("Vendor name is required")
    with atomic(db, "Create vendor"):
        vendor = Vendor(name=name.strip(), contact=contact, address=address, tax_id=tax_id, is_active=is_active)
        db.add(vendor)
    logger.info(f"Created vendor {vendor.id} {vendor.name}")
    return vendor


def update_vendor(db: Session, vendor_id: int, **changes) -> Vendor:
    with atomic(db, f"Update vendor {vendor_id}"):
        vendor = get_vendor(db, vendor_id)
        for key in VENDOR_FIELDS:
            if changes.get(key) is not None:
                setattr(vendor, key, changes[key])
    return vendor


def create_bill(
    db: Session,
    vendor_id: int,
    total_amount: int,
    bill_date: date,
    due_date: date,
    category: str = "other",
    bill_number: Optional[str] = None,
    description: Optional[str] = None,
) -> VendorBill:
    """
    Record a received bill and post it to Accounts Payable.

    Without a seeded chart neither the bill nor its entry is written.
    """
    if not isinstance(total_amount, int) or total_amount <= 0:
        raise InvalidInput("Bill amount must be a positive whole number")
    if due_date < bill_date:
        raise InvalidInput("dueDate cannot be before billDate")
    if category not in EXPENSE_CATEGORIES:
        category = "other"

    with atomic(db, f"Record bill from vendor {vendor_id}"):
        vendor = get_vendor(db, vendor_id)
        if not vendor.is_active:
            raise InvalidInput(f"Vendor {vendor_id} is inactive")
        bill = VendorBill(
            vendor=vendor,
            bill_number=bill_number,
            bill_date=bill_date.isoformat(),
            due_date=due_date.isoformat(),
            total_amount=total_amount,
            paid_amount=0,
            status="received",
            description=description,
            category=category,
        )
        db.add(bill)
        db.flush()
        JournalPostingEngine(db).post_vendor_bill(bill)

    logger.info(f"Vendor bill {bill.id} of {total_amount} recorded for {vendor.name}")
    return bill


def get_bill(db: Session, bill_id: int) -> VendorBill:
    bill = db.execute(
        select(VendorBill).options(selectinload(VendorBill.vendor)).where(VendorBill.id == bill_id)
    ).scalar_one_or_none()
    if bill is None:
        raise NotFound("Vendor bill", bill_id)
    return bill


def list_bills(db: Session, vendor_id: Optional[int] = None, status: Optional[str] = None) -> List[VendorBill]:
    query = (
        select(VendorBill)
        .options(selectinload(VendorBill.vendor))
        .order_by(VendorBill.created_at.desc(), VendorBill.id.desc())
    )
    if vendor_id is not None:
        query = query.where(VendorBill.vendor_id == vendor_id)
    if status:
        query = query.where(VendorBill.status == status)
    return list(db.execute(query).scalars().all())


def update_bill(db: Session, bill_id: int, bill_number: Optional[str] = None,
                description: Optional[str] = None, due_date: Optional[date] = None) -> VendorBill:
    """Reference fields only; amounts are posted and change through the journal"""
    with atomic(db, f"Update vendor bill {bill_id}"):
        bill = get_bill(db, bill_id)
        if due_date is not None:
            if due_date.isoformat() < bill.bill_date:
                raise InvalidInput("dueDate cannot be before billDate")
            bill.due_date = due_date.isoformat()
        if bill_number is not None:
            bill.bill_number = bill_number
        if description is not None:
            bill.description = description
    return bill


def pay_bill(db: Session, bill_id: int, amount: int, payment_method: str = "cash",
             paid_on: Optional[date] = None) -> VendorBill:
    """
    Pay all or part of a vendor bill.

    The bill moves to partial or paid by the same rule as invoices, and the
    payment is posted Dr Accounts Payable / Cr the cash-equivalent for the
    method in the same transaction. Paying more than is outstanding is
    rejected; a vendor prepayment is not a bill payment.
    """
    if not isinstance(amount, int) or amount <= 0:
        raise InvalidInput("Payment amount must be a positive whole number")
    if payment_method not in PAYMENT_METHODS:
        raise InvalidInput(f"Payment method must be one of {', '.join(PAYMENT_METHODS)}")
    paid_on = paid_on or utc_today()

    with atomic(db, f"Pay vendor bill {bill_id}"):
        bill = db.execute(
            select(VendorBill).where(VendorBill.id == bill_id).with_for_update()
        ).scalar_one_or_none()
        if bill is None:
            raise NotFound("Vendor bill", bill_id)
        if bill.status == "draft":
            raise InvalidInput(f"Vendor bill {bill_id} is a draft and cannot be paid")
        if amount > bill.outstanding:
            raise InvalidInput(
                f"Payment of {amount} exceeds the {bill.outstanding} outstanding on vendor bill {bill_id}",
                outstanding=bill.outstanding,
            )
        bill.paid_amount += amount
        bill.status = "paid" if bill.paid_amount >= bill.total_amount else "partial"
        db.flush()
        JournalPostingEngine(db).post_vendor_payment(bill, amount, payment_method, paid_on.isoformat())

    logger.info(
        f"Paid {amount} via {payment_method} on vendor bill {bill.id}; "
        f"paid {bill.paid_amount}/{bill.total_amount} ({bill.status})"
    )
    return bill
