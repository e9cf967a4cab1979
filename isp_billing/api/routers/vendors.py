# isp_billing/api/routers/vendors.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from isp_billing.core.db import get_db
from isp_billing.schemas.vendor import (
    VendorBillCreate, VendorBillOut, VendorBillPayment, VendorBillStatus, VendorBillUpdate,
    VendorCreate, VendorOut, VendorUpdate,
)
from isp_billing.services import vendors

vendors_router = APIRouter()
vendor_bills_router = APIRouter()


@vendors_router.get("", response_model=List[VendorOut])
def list_vendors(active_only: bool = Query(default=False, alias="activeOnly"), db: Session = Depends(get_db)):
    return vendors.list_vendors(db, active_only=active_only)


@vendors_router.get("/{vendor_id}", response_model=VendorOut)
def get_vendor(vendor_id: int, db: Session = Depends(get_db)):
    return vendors.get_vendor(db, vendor_id)


@vendors_router.post("", response_model=VendorOut, status_code=status.HTTP_201_CREATED)
def create_vendor(data: VendorCreate, db: Session = Depends(get_db)):
    return vendors.create_vendor(db, **data.model_dump())


@vendors_router.patch("/{vendor_id}", response_model=VendorOut)
def update_vendor(vendor_id: int, data: VendorUpdate, db: Session = Depends(get_db)):
    return vendors.update_vendor(db, vendor_id, **data.model_dump(exclude_unset=True))


@vendor_bills_router.get("", response_model=List[VendorBillOut])
def list_bills(
    vendor_id: Optional[int] = Query(default=None, alias="vendorId"),
    status_filter: Optional[VendorBillStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
):
    return vendors.list_bills(db, vendor_id=vendor_id, status=status_filter)


@vendor_bills_router.get("/{bill_id}", response_model=VendorBillOut)
def get_bill(bill_id: int, db: Session = Depends(get_db)):
    return vendors.get_bill(db, bill_id)


@vendor_bills_router.post("", response_model=VendorBillOut, status_code=status.HTTP_201_CREATED)
def create_bill(data: VendorBillCreate, db: Session = Depends(get_db)):
    """Record a vendor bill and post it to Accounts Payable"""
    return vendors.create_bill(db, **data.model_dump())


@vendor_bills_router.patch("/{bill_id}", response_model=VendorBillOut)
def update_bill(bill_id: int, data: VendorBillUpdate, db: Session = Depends(get_db)):
    return vendors.update_bill(db, bill_id, **data.model_dump(exclude_unset=True))


@vendor_bills_router.post("/{bill_id}/pay", response_model=VendorBillOut)
def pay_bill(bill_id: int, data: VendorBillPayment, db: Session = Depends(get_db)):
    """Pay all or part of a bill; the payment is posted Dr Accounts Payable / Cr cash"""
    return vendors.pay_bill(db, bill_id, **data.model_dump())
