# isp_billing/models/vendor.py - Suppliers and the bills they send
from __future__ import annotations
from datetime import datetime
from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from isp_billing.models.base import Base, utcnow

VENDOR_BILL_STATUSES = ("draft", "received", "paid", "partial", "overdue")


class Vendor(Base):
    __tablename__ = "vendors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    contact: Mapped[str | None] = mapped_column(String(32))
    address: Mapped[str | None] = mapped_column(String(255))
    tax_id: Mapped[str | None] = mapped_column(String(32))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    bills: Mapped[list["VendorBill"]] = relationship("VendorBill", back_populates="vendor")


class VendorBill(Base):
    __tablename__ = "vendor_bills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    vendor_id: Mapped[int] = mapped_column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    bill_number: Mapped[str | None] = mapped_column(String(64))
    bill_date: Mapped[str] = mapped_column(String(10), nullable=False)
    due_date: Mapped[str] = mapped_column(String(10), nullable=False)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    paid_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="received")
    description: Mapped[str | None] = mapped_column(String(255))
    category: Mapped[str] = mapped_column(String(24), nullable=False, default="other")
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    vendor: Mapped["Vendor"] = relationship("Vendor", back_populates="bills")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft','received','paid','partial','overdue')", name="ck_vendor_bill_status"
        ),
        CheckConstraint("total_amount > 0 AND paid_amount >= 0", name="ck_vendor_bill_amounts"),
        CheckConstraint(
            "category IN ('bandwidth','infrastructure','salary','commission',"
            "'maintenance','office','utilities','other')",
            name="ck_vendor_bill_category",
        ),
    )

    @property
    def outstanding(self) -> int:
        return max(0, self.total_amount - self.paid_amount)
