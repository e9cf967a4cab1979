# isp_billing/models/customer.py - Customer directory tables read by billing
from __future__ import annotations
from datetime import datetime
from sqlalchemy import String, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from isp_billing.models.base import Base, utcnow

CUSTOMER_STATUSES = ("register", "active", "suspended", "terminated")


class ServicePlan(Base):
    __tablename__ = "service_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    speed: Mapped[str | None] = mapped_column(String(32))
    price: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_service_plans_price_positive"),
    )


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    contact: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    address: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="register")
    plan_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("service_plans.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    plan: Mapped["ServicePlan"] = relationship("ServicePlan")
    invoices: Mapped[list["Invoice"]] = relationship(
        "Invoice", back_populates="customer", cascade="all, delete-orphan", passive_deletes=True
    )
    payments: Mapped[list["Payment"]] = relationship(
        "Payment", back_populates="customer", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('register','active','suspended','terminated')",
            name="ck_customers_status",
        ),
    )
