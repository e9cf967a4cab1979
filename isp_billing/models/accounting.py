# isp_billing/models/accounting.py - Chart of accounts, journal and opening balances
from __future__ import annotations
from datetime import datetime
from sqlalchemy import (
    String, Integer, Boolean, DateTime, ForeignKey, CheckConstraint, Index, event
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, object_session
from isp_billing.models.base import Base, utcnow

ACCOUNT_TYPES = ("asset", "liability", "equity", "revenue", "expense")
JOURNAL_SOURCES = (
    "invoice", "payment", "expense", "vendor_bill", "vendor_payment",
    "adjustment", "opening_balance", "manual",
)


class Account(Base):
    __tablename__ = "chart_of_accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("chart_of_accounts.id"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    description: Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (
        CheckConstraint(
            "type IN ('asset','liability','equity','revenue','expense')", name="ck_account_type"
        ),
    )


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entry_date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    memo: Mapped[str] = mapped_column(String(255), nullable=False)
    source_type: Mapped[str] = mapped_column(String(24), nullable=False, default="manual")
    source_id: Mapped[int | None] = mapped_column(Integer)
    reverses_entry_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("journal_entries.id"), unique=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    lines: Mapped[list["JournalLine"]] = relationship(
        "JournalLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalLine.id",
    )

    __table_args__ = (
        CheckConstraint(
            "source_type IN ('invoice','payment','expense','vendor_bill','vendor_payment',"
            "'adjustment','opening_balance','manual')",
            name="ck_journal_source_type",
        ),
        Index("ix_journal_entries_source", "source_type", "source_id"),
    )

    @property
    def total_debit(self) -> int:
        return sum(line.debit for line in self.lines)

    @property
    def total_credit(self) -> int:
        return sum(line.credit for line in self.lines)


class JournalLine(Base):
    __tablename__ = "journal_lines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entry_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    account_id: Mapped[int] = mapped_column(Integer, ForeignKey("chart_of_accounts.id"), nullable=False, index=True)
    debit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    credit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    customer_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("customers.id", ondelete="SET NULL"))
    vendor_id: Mapped[int | None] = mapped_column(Integer)
    description: Mapped[str | None] = mapped_column(String(255))

    entry: Mapped["JournalEntry"] = relationship("JournalEntry", back_populates="lines")
    account: Mapped["Account"] = relationship("Account")

    __table_args__ = (
        CheckConstraint("debit >= 0 AND credit >= 0", name="ck_journal_line_non_negative"),
    )


class OpeningBalance(Base):
    __tablename__ = "opening_balances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customers.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    # Signed: positive means the customer owes, negative means credit on account
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    as_of_date: Mapped[str] = mapped_column(String(10), nullable=False)
    notes: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class JournalImmutableError(Exception):
    """Raised when code tries to UPDATE or DELETE a posted journal row"""


def _refuse_delete(mapper, connection, target):
    raise JournalImmutableError(
        f"{type(target).__name__} #{target.id} is immutable; post an offsetting entry instead"
    )


def _refuse_update(mapper, connection, target):
    session = object_session(target)
    # before_update also fires for rows whose collections changed but whose columns did not
    if session is not None and not session.is_modified(target, include_collections=False):
        return
    _refuse_delete(mapper, connection, target)


for _model in (JournalEntry, JournalLine):
    event.listen(_model, "before_update", _refuse_update)
    event.listen(_model, "before_delete", _refuse_delete)
