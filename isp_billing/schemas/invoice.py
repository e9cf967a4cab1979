# isp_billing/schemas/invoice.py
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import Field, model_validator

from isp_billing.schemas.base import CamelModel
from isp_billing.schemas.payment import PaymentOut

InvoiceStatus = Literal["draft", "issued", "paid", "partial", "overdue", "void"]


class GenerateInvoicesRequest(CamelModel):
    period_start: date
    period_end: date
    # Unknown cycles fall back to the configured default rather than failing
    billing_cycle: Optional[str] = None
    due_days: Optional[int] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def check_period(self):
        if self.period_end < self.period_start:
            raise ValueError("periodEnd must not be before periodStart")
        return self


class MarkOverdueRequest(CamelModel):
    suspend_accounts: bool = False


class MarkOverdueResult(CamelModel):
    marked_overdue: int
    suspended: int


class InvoiceAdjustment(CamelModel):
    discount_amount: Optional[int] = Field(default=None, ge=0)
    penalty_amount: Optional[int] = Field(default=None, ge=0)


class InvoiceOut(CamelModel):
    id: int
    customer_id: int
    plan_id: Optional[int]
    billing_cycle: str
    period_start: str
    period_end: str
    issue_date: str
    due_date: str
    base_amount: int
    discount_amount: int
    penalty_amount: int
    total_amount: int
    paid_amount: int
    outstanding: int
    status: InvoiceStatus
    is_pro_rata: bool
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime


class InvoiceDetail(InvoiceOut):
    payments: List[PaymentOut] = []


class GenerateDetails(CamelModel):
    generated: List[InvoiceOut]
    skipped: List[str]


class GenerateInvoicesResult(CamelModel):
    generated: int
    skipped: int
    details: GenerateDetails


class BillingStats(CamelModel):
    total_due: int
    total_collected: int
    overdue_count: int
    collected_this_month: int


class PaymentRecorded(CamelModel):
    payment: PaymentOut
    invoice: InvoiceOut
    # The receipt goes out after the response; this only says whether one was queued
    whatsapp_queued: bool
