# isp_billing/models/expense.py
from __future__ import annotations
from datetime import datetime
from sqlalchemy import String, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from isp_billing.models.base import Base, utcnow

EXPENSE_CATEGORIES = (
    "bandwidth", "infrastructure", "salary", "commission",
    "maintenance", "office", "utilities", "other",
)


class Expense(Base):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String(24), nullable=False, default="other")
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    expense_date: Mapped[str] = mapped_column(String(10), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(16), nullable=False, default="cash")
    reference: Mapped[str | None] = mapped_column(String(64))
    vendor_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("vendors.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_expense_amount_positive"),
        CheckConstraint(
            "category IN ('bandwidth','infrastructure','salary','commission',"
            "'maintenance','office','utilities','other')",
            name="ck_expense_category",
        ),
    )
