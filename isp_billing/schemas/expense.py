# isp_billing/schemas/expense.py
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import Field

from isp_billing.schemas.base import CamelModel
from isp_billing.schemas.payment import PaymentMethod

ExpenseCategory = Literal[
    "bandwidth", "infrastructure", "salary", "commission",
    "maintenance", "office", "utilities", "other",
]


class ExpenseCreate(CamelModel):
    category: ExpenseCategory = "other"
    description: str = Field(..., min_length=1, max_length=255)
    amount: int = Field(..., gt=0)
    expense_date: date
    payment_method: PaymentMethod = "cash"
    reference: Optional[str] = Field(default=None, max_length=64)
    vendor_id: Optional[int] = None


class ExpenseOut(CamelModel):
    id: int
    category: ExpenseCategory
    description: str
    amount: int
    expense_date: str
    payment_method: PaymentMethod
    reference: Optional[str]
    vendor_id: Optional[int]
    created_at: datetime
