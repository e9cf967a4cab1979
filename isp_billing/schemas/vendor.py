# isp_billing/schemas/vendor.py
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import Field, model_validator

from isp_billing.schemas.base import CamelModel
from isp_billing.schemas.expense import ExpenseCategory
from isp_billing.schemas.payment import PaymentMethod

VendorBillStatus = Literal["draft", "received", "paid", "partial", "overdue"]


class VendorCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=128)
    contact: Optional[str] = Field(default=None, max_length=32)
    address: Optional[str] = Field(default=None, max_length=255)
    tax_id: Optional[str] = Field(default=None, max_length=32)
    is_active: bool = True


class VendorUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    contact: Optional[str] = Field(default=None, max_length=32)
    address: Optional[str] = Field(default=None, max_length=255)
    tax_id: Optional[str] = Field(default=None, max_length=32)
    is_active: Optional[bool] = None


class VendorOut(CamelModel):
    id: int
    name: str
    contact: Optional[str]
    address: Optional[str]
    tax_id: Optional[str]
    is_active: bool
    created_at: datetime


class VendorBillCreate(CamelModel):
    vendor_id: int
    total_amount: int = Field(..., gt=0)
    bill_date: date
    due_date: date
    category: ExpenseCategory = "other"
    bill_number: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def check_due_date(self):
        if self.due_date < self.bill_date:
            raise ValueError("dueDate must not be before billDate")
        return self


class VendorBillUpdate(CamelModel):
    bill_number: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = Field(default=None, max_length=255)
    due_date: Optional[date] = None


class VendorBillPayment(CamelModel):
    amount: int = Field(..., gt=0)
    payment_method: PaymentMethod = "cash"
    paid_on: Optional[date] = None


class VendorBillOut(CamelModel):
    id: int
    vendor_id: int
    bill_number: Optional[str]
    bill_date: str
    due_date: str
    total_amount: int
    paid_amount: int
    outstanding: int
    status: VendorBillStatus
    category: ExpenseCategory
    description: Optional[str]
    created_at: datetime
    vendor: Optional[VendorOut] = None
