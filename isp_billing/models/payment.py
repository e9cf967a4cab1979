# isp_billing/models/payment.py - Invoices and the payments applied to them
from __future__ import annotations
from datetime import datetime
from sqlalchemy import (
    String, Integer, Boolean, DateTime, ForeignKey, CheckConstraint, Index, text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from isp_billing.models.base import Base, utcnow

INVOICE_STATUSES = ("draft", "issued", "paid", "partial", "overdue", "void")
OPEN_STATUSES = ("issued", "partial", "overdue")
BILLING_CYCLES = ("monthly", "weekly")
PAYMENT_METHODS = ("cash", "bank", "mobile_money", "online")


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plan_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("service_plans.id", ondelete="SET NULL"))
    billing_cycle: Mapped[str] = mapped_column(String(16), nullable=False, default="monthly")
    # Calendar dates are stored as YYYY-MM-DD strings; period equality is string equality
    period_start: Mapped[str] = mapped_column(String(10), nullable=False)
    period_end: Mapped[str] = mapped_column(String(10), nullable=False)
    issue_date: Mapped[str] = mapped_column(String(10), nullable=False)
    due_date: Mapped[str] = mapped_column(String(10), nullable=False)
    base_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    discount_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    penalty_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    paid_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="issued")
    is_pro_rata: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(String(255))
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    customer: Mapped["Customer"] = relationship("Customer", back_populates="invoices")
    payments: Mapped[list["Payment"]] = relationship(
        "Payment", back_populates="invoice", cascade="all, delete-orphan", order_by="Payment.received_at"
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft','issued','paid','partial','overdue','void')", name="ck_invoice_status"
        ),
        CheckConstraint("billing_cycle IN ('monthly','weekly')", name="ck_invoice_billing_cycle"),
        CheckConstraint(
            "base_amount >= 0 AND discount_amount >= 0 AND penalty_amount >= 0 "
            "AND total_amount >= 0 AND paid_amount >= 0",
            name="ck_invoice_amounts_positive",
        ),
        Index(
            "uq_invoices_customer_period_open",
            "customer_id", "period_start", "period_end",
            unique=True,
            postgresql_where=text("status <> 'void'"),
            sqlite_where=text("status <> 'void'"),
        ),
        Index("ix_invoices_status_due", "status", "due_date"),
    )

    @property
    def outstanding(self) -> int:
        if self.status == "void":
            return 0
        return max(0, self.total_amount - self.paid_amount)


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    customer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    method: Mapped[str] = mapped_column(String(16), nullable=False, default="cash")
    collected_by: Mapped[str] = mapped_column(String(64), nullable=False)
    reference: Mapped[str | None] = mapped_column(String(64))
    notes: Mapped[str | None] = mapped_column(String(255))
    whatsapp_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    received_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="payments")
    customer: Mapped["Customer"] = relationship("Customer", back_populates="payments")

    __table_args__ = (
        CheckConstraint("method IN ('cash','bank','mobile_money','online')", name="ck_payment_method"),
        CheckConstraint("amount > 0", name="ck_payment_amount_positive"),
    )
