# isp_billing/services/posting.py - Double-entry journal posting
"""
Journal posting engine.

Every write to the journal goes through ``JournalPostingEngine``: manual
entries, the automatic postings for invoices, payments, expenses and vendor
bills, and reversals. The engine only flushes; the caller owns the
transaction, so an auto-post runs inside the same unit of work as the
business write it records.

Posted entries are never edited. A wrong entry is corrected by posting its
reversal (debits and credits swapped) and then a fresh entry.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from isp_billing.core.exceptions import InvalidInput, NotFound, UnbalancedEntry
from isp_billing.models.accounting import Account, JournalEntry, JournalLine, JOURNAL_SOURCES
from isp_billing.models.expense import Expense
from isp_billing.models.payment import Invoice, Payment
from isp_billing.models.vendor import VendorBill
from isp_billing.services.base import atomic, utc_today
from isp_billing.services.chart_of_accounts import AccountRoles, require_accounts

logger = logging.getLogger(__name__)


@dataclass
class PostingLine:
    account_id: int
    debit: int = 0
    credit: int = 0
    customer_id: Optional[int] = None
    vendor_id: Optional[int] = None
    description: Optional[str] = None


def validate_lines(lines: List[PostingLine]) -> None:
    """Reject malformed or unbalanced lines before anything touches the database"""
    if len(lines) < 2:
        raise InvalidInput("A journal entry needs at least two lines")
    for index, line in enumerate(lines, start=1):
        if line.debit < 0 or line.credit < 0:
            raise InvalidInput(f"Line {index}: amounts cannot be negative")
        if (line.debit > 0) == (line.credit > 0):
            raise InvalidInput(f"Line {index}: exactly one of debit or credit must be non-zero")
    total_debit = sum(line.debit for line in lines)
    total_credit = sum(line.credit for line in lines)
    if total_debit != total_credit:
        raise UnbalancedEntry(total_debit, total_credit)


class JournalPostingEngine:
    def __init__(self, db: Session, roles: Optional[AccountRoles] = None):
        self.db = db
        self.roles = roles or AccountRoles.from_settings()

    # ------------------------------------------------------------------
    # Generic entry
    # ------------------------------------------------------------------

    def create_entry(
        self,
        entry_date: str,
        memo: str,
        lines: List[PostingLine],
        source_type: str = "manual",
        source_id: Optional[int] = None,
        reverses_entry_id: Optional[int] = None,
    ) -> JournalEntry:
        if source_type not in JOURNAL_SOURCES:
            raise InvalidInput(f"Unknown source type '{source_type}'")
        if not memo or not memo.strip():
            raise InvalidInput("Memo is required")
        validate_lines(lines)

        account_ids = {line.account_id for line in lines}
        found = set(self.db.execute(select(Account.id).where(Account.id.in_(account_ids))).scalars())
        missing = account_ids - found
        if missing:
            raise NotFound("Account", min(missing))

        entry = JournalEntry(
            entry_date=entry_date,
            memo=memo.strip(),
            source_type=source_type,
            source_id=source_id,
            reverses_entry_id=reverses_entry_id,
            lines=[
                JournalLine(
                    account_id=line.account_id,
                    debit=line.debit,
                    credit=line.credit,
                    customer_id=line.customer_id,
                    vendor_id=line.vendor_id,
                    description=line.description,
                )
                for line in lines
            ],
        )
        self.db.add(entry)
        self.db.flush()
        logger.info(
            f"Posted journal entry {entry.id} ({source_type}"
            f"{f' #{source_id}' if source_id is not None else ''}) for {entry.total_debit}"
        )
        return entry

    # ------------------------------------------------------------------
    # Automatic postings
    # ------------------------------------------------------------------

    def live_entry(self, source_type: str, source_id: int) -> Optional[JournalEntry]:
        """The entry posted for a source that has not been reversed, if any"""
        reversed_ids = select(JournalEntry.reverses_entry_id).where(JournalEntry.reverses_entry_id.is_not(None))
        return self.db.execute(
            select(JournalEntry)
            .where(
                JournalEntry.source_type == source_type,
                JournalEntry.source_id == source_id,
                JournalEntry.id.not_in(reversed_ids),
            )
            .order_by(JournalEntry.id.desc())
        ).scalars().first()

    def _guard_double_post(self, source_type: str, source_id: int) -> None:
        """A source may be posted again only after its earlier entry was reversed"""
        live = self.live_entry(source_type, source_id)
        if live is not None:
            raise InvalidInput(
                f"{source_type.capitalize()} {source_id} is already posted (journal entry {live.id})",
                entryId=live.id,
            )

    def _optional_account(self, role: str) -> Optional[Account]:
        code = self.roles.role_codes.get(role)
        if not code:
            return None
        return self.db.execute(
            select(Account).where(Account.code == code, Account.is_active.is_(True))
        ).scalar_one_or_none()

    def post_invoice(self, invoice: Invoice) -> JournalEntry:
        """
        Dr Receivable (total), Dr Discount Allowed (discount)
        Cr Service Revenue (base), Cr Late Fee Revenue (penalty)
        """
        if invoice.status == "void":
            raise InvalidInput(f"Invoice {invoice.id} is void")
        self._guard_double_post("invoice", invoice.id)

        receivable_code = self.roles.code_for("receivable")
        revenue_code = self.roles.code_for("service_revenue")
        accounts = require_accounts(self.db, [receivable_code, revenue_code])
        discount_account = self._optional_account("discount_allowed")
        late_fee_account = self._optional_account("late_fee_revenue")

        customer = invoice.customer
        debits = [PostingLine(accounts[receivable_code].id, debit=invoice.total_amount,
                           customer_id=invoice.customer_id, description=f"Invoice #{invoice.id}")]
        credits = []
        if invoice.discount_amount and discount_account is not None:
            debits.append(PostingLine(discount_account.id, debit=invoice.discount_amount,
                                   customer_id=invoice.customer_id, description="Discount allowed"))
        if invoice.penalty_amount and late_fee_account is not None:
            credits.append(PostingLine(late_fee_account.id, credit=invoice.penalty_amount,
                                    customer_id=invoice.customer_id, description="Late fee"))

        # Clamped totals and missing adjustment accounts leave a gap; revenue absorbs it
        revenue = sum(line.debit for line in debits) - sum(line.credit for line in credits)
        if revenue < 0:
            debits.append(PostingLine(accounts[revenue_code].id, debit=-revenue,
                                   customer_id=invoice.customer_id, description="Revenue adjustment"))
        else:
            credits.insert(0, PostingLine(accounts[revenue_code].id, credit=revenue,
                                       customer_id=invoice.customer_id,
                                       description=f"Service {invoice.period_start} to {invoice.period_end}"))
        lines = _drop_zero_legs(debits + credits)
        if not lines:
            raise InvalidInput(f"Invoice {invoice.id} has nothing to post")

        return self.create_entry(
            entry_date=invoice.issue_date,
            memo=f"Invoice #{invoice.id} - {customer.name if customer else invoice.customer_id}",
            lines=lines,
            source_type="invoice",
            source_id=invoice.id,
        )

    def post_payment(self, payment: Payment) -> JournalEntry:
        """Dr cash-equivalent for the method, Cr Receivable"""
        self._guard_double_post("payment", payment.id)

        cash_code = self.roles.cash_code_for(payment.method)
        receivable_code = self.roles.code_for("receivable")
        accounts = require_accounts(self.db, [cash_code, receivable_code])

        customer = payment.customer
        lines = [
            PostingLine(accounts[cash_code].id, debit=payment.amount, customer_id=payment.customer_id,
                     description=f"Payment received - {payment.method}"),
            PostingLine(accounts[receivable_code].id, credit=payment.amount, customer_id=payment.customer_id,
                     description=f"Payment applied to Invoice #{payment.invoice_id}"),
        ]
        return self.create_entry(
            entry_date=payment.received_at.date().isoformat(),
            memo=f"Payment #{payment.id} - {customer.name if customer else payment.customer_id}",
            lines=lines,
            source_type="payment",
            source_id=payment.id,
        )

    def post_expense(self, expense: Expense) -> JournalEntry:
        """Dr the category's expense account, Cr the cash-equivalent it was paid from"""
        self._guard_double_post("expense", expense.id)

        expense_code = self.roles.expense_code_for(expense.category)
        cash_code = self.roles.cash_code_for(expense.payment_method)
        accounts = require_accounts(self.db, [expense_code, cash_code])

        lines = [
            PostingLine(accounts[expense_code].id, debit=expense.amount, vendor_id=expense.vendor_id,
                     description=expense.description),
            PostingLine(accounts[cash_code].id, credit=expense.amount, vendor_id=expense.vendor_id,
                     description=f"Paid via {expense.payment_method}"),
        ]
        return self.create_entry(
            entry_date=expense.expense_date,
            memo=f"Expense: {expense.description}",
            lines=lines,
            source_type="expense",
            source_id=expense.id,
        )

    def post_vendor_bill(self, bill: VendorBill) -> JournalEntry:
        """Dr the category's expense account, Cr Payable"""
        self._guard_double_post("vendor_bill", bill.id)

        expense_code = self.roles.expense_code_for(bill.category)
        payable_code = self.roles.code_for("payable")
        accounts = require_accounts(self.db, [expense_code, payable_code])

        vendor = bill.vendor
        reference = bill.bill_number or f"#{bill.id}"
        lines = [
            PostingLine(accounts[expense_code].id, debit=bill.total_amount, vendor_id=bill.vendor_id,
                        description=bill.description or f"Bill {reference}"),
            PostingLine(accounts[payable_code].id, credit=bill.total_amount, vendor_id=bill.vendor_id,
                        description=f"Payable to {vendor.name}"),
        ]
        return self.create_entry(
            entry_date=bill.bill_date,
            memo=f"Vendor bill {reference} - {vendor.name}",
            lines=lines,
            source_type="vendor_bill",
            source_id=bill.id,
        )

    def post_vendor_payment(self, bill: VendorBill, amount: int, method: str,
                            paid_on: str) -> JournalEntry:
        """Dr Payable, Cr the cash-equivalent the vendor was paid from; one entry per payment"""
        payable_code = self.roles.code_for("payable")
        cash_code = self.roles.cash_code_for(method)
        accounts = require_accounts(self.db, [payable_code, cash_code])

        vendor = bill.vendor
        lines = [
            PostingLine(accounts[payable_code].id, debit=amount, vendor_id=bill.vendor_id,
                        description=f"Payment to {vendor.name}"),
            PostingLine(accounts[cash_code].id, credit=amount, vendor_id=bill.vendor_id,
                        description=f"Vendor payment - {method}"),
        ]
        return self.create_entry(
            entry_date=paid_on,
            memo=f"Vendor bill payment - {vendor.name}",
            lines=lines,
            source_type="vendor_payment",
            source_id=bill.id,
        )

    def reverse_entry(self, entry_id: int, entry_date: Optional[str] = None,
                      memo: Optional[str] = None) -> JournalEntry:
        original = self.get_entry(entry_id)
        if original.reverses_entry_id is not None:
            raise InvalidInput(f"Journal entry {entry_id} is itself a reversal")
        already = self.db.execute(
            select(JournalEntry.id).where(JournalEntry.reverses_entry_id == entry_id)
        ).scalar_one_or_none()
        if already is not None:
            raise InvalidInput(f"Journal entry {entry_id} was already reversed by entry {already}",
                               entryId=already)

        lines = [
            PostingLine(
                account_id=line.account_id,
                debit=line.credit,
                credit=line.debit,
                customer_id=line.customer_id,
                vendor_id=line.vendor_id,
                description=line.description,
            )
            for line in original.lines
        ]
        return self.create_entry(
            entry_date=entry_date or utc_today().isoformat(),
            memo=memo or f"Reversal of entry #{original.id}: {original.memo}",
            lines=lines,
            source_type="adjustment",
            source_id=original.source_id,
            reverses_entry_id=original.id,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_entry(self, entry_id: int) -> JournalEntry:
        entry = self.db.execute(
            select(JournalEntry)
            .options(selectinload(JournalEntry.lines).selectinload(JournalLine.account))
            .where(JournalEntry.id == entry_id)
        ).scalar_one_or_none()
        if entry is None:
            raise NotFound("Journal entry", entry_id)
        return entry

    def list_entries(self, source_type: Optional[str] = None, source_id: Optional[int] = None,
                     start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[JournalEntry]:
        query = (
            select(JournalEntry)
            .options(selectinload(JournalEntry.lines).selectinload(JournalLine.account))
            .order_by(JournalEntry.entry_date.desc(), JournalEntry.id.desc())
        )
        if source_type:
            query = query.where(JournalEntry.source_type == source_type)
        if source_id is not None:
            query = query.where(JournalEntry.source_id == source_id)
        if start_date:
            query = query.where(JournalEntry.entry_date >= start_date.isoformat())
        if end_date:
            query = query.where(JournalEntry.entry_date <= end_date.isoformat())
        return list(self.db.execute(query).scalars().all())


def _drop_zero_legs(lines: Iterable[PostingLine]) -> List[PostingLine]:
    return [line for line in lines if line.debit or line.credit]


# ----------------------------------------------------------------------
# Transactional entry points used by the routers
# ----------------------------------------------------------------------

def create_manual_entry(db: Session, entry_date: date, memo: str, lines: List[PostingLine],
                        source_type: str = "manual", source_id: Optional[int] = None) -> JournalEntry:
    engine = JournalPostingEngine(db)
    # Validate before opening the unit of work so a rejected entry writes nothing
    validate_lines(lines)
    with atomic(db, "Create journal entry"):
        entry = engine.create_entry(entry_date.isoformat(), memo, lines, source_type, source_id)
    return engine.get_entry(entry.id)


def post_invoice_by_id(db: Session, invoice_id: int) -> JournalEntry:
    engine = JournalPostingEngine(db)
    with atomic(db, "Post invoice"):
        invoice = db.get(Invoice, invoice_id)
        if invoice is None:
            raise NotFound("Invoice", invoice_id)
        entry = engine.post_invoice(invoice)
    return engine.get_entry(entry.id)


def post_payment_by_id(db: Session, payment_id: int) -> JournalEntry:
    engine = JournalPostingEngine(db)
    with atomic(db, "Post payment"):
        payment = db.get(Payment, payment_id)
        if payment is None:
            raise NotFound("Payment", payment_id)
        entry = engine.post_payment(payment)
    return engine.get_entry(entry.id)


def post_expense_by_id(db: Session, expense_id: int) -> JournalEntry:
    engine = JournalPostingEngine(db)
    with atomic(db, "Post expense"):
        expense = db.get(Expense, expense_id)
        if expense is None:
            raise NotFound("Expense", expense_id)
        entry = engine.post_expense(expense)
    return engine.get_entry(entry.id)


def reverse_entry_by_id(db: Session, entry_id: int, entry_date: Optional[date] = None,
                        memo: Optional[str] = None) -> JournalEntry:
    engine = JournalPostingEngine(db)
    with atomic(db, "Reverse journal entry"):
        entry = engine.reverse_entry(entry_id, entry_date.isoformat() if entry_date else None, memo)
    return engine.get_entry(entry.id)
