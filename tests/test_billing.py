"""Invoice generation, overdue marking, adjustments and voiding"""
from datetime import date, datetime

import pytest
from sqlalchemy import func, select

from isp_billing.core.exceptions import InvalidInput, NotFound
from isp_billing.models import Customer, Invoice
from isp_billing.services import billing, ledger, payments, posting, reports
from isp_billing.services.billing import compute_base_amount, compute_total
from isp_billing.services.posting import JournalPostingEngine

from tests.conftest import TODAY

MARCH_START, MARCH_END = date(2026, 3, 1), date(2026, 3, 31)


def _receivable_balance(db):
    return sum(row["balance"] for row in reports.balance_sheet(db)["assets"] if row["code"] == "1100")


class TestProRata:
    def test_mid_period_activation_is_billed_for_active_days(self):
        amount, is_pro_rata, days = compute_base_amount(
            3000, date(2026, 1, 1), date(2026, 1, 31), datetime(2026, 1, 11)
        )
        assert (amount, is_pro_rata, days) == (1935, True, 20)

    def test_customer_created_before_period_pays_full_price(self):
        assert compute_base_amount(3000, MARCH_START, MARCH_END, datetime(2025, 12, 5)) == (3000, False, 0)

    def test_creation_at_period_start_is_not_pro_rata(self):
        assert compute_base_amount(3000, MARCH_START, MARCH_END, datetime(2026, 3, 1))[1] is False

    def test_creation_after_period_end_is_not_pro_rata(self):
        assert compute_base_amount(3000, MARCH_START, MARCH_END, datetime(2026, 4, 2))[1] is False

    def test_partial_day_rounds_up(self):
        amount, _, days = compute_base_amount(3100, MARCH_START, MARCH_END, datetime(2026, 3, 21, 15, 30))
        assert days == 10
        assert amount == 1000


@pytest.mark.parametrize("base,discount,penalty,expected", [
    (1000, 0, 0, 1000),
    (1000, 200, 50, 850),
    (1000, 1500, 100, 0),
])
def test_total_is_clamped_at_zero(base, discount, penalty, expected):
    assert compute_total(base, discount, penalty) == expected


class TestGenerateInvoices:
    def test_bills_active_customers_only(self, db, make_customer, make_plan):
        plan = make_plan(price=2500)
        active = make_customer(plan=plan)
        make_customer(status="suspended")
        make_customer(status="register")

        result = billing.generate_invoices(db, MARCH_START, MARCH_END, today=TODAY)

        assert len(result.generated) == 1
        invoice = result.generated[0]
        assert invoice.customer_id == active.id
        assert invoice.base_amount == invoice.total_amount == 2500
        assert invoice.status == "issued"
        assert invoice.issue_date == "2026-03-15"
        assert invoice.due_date == "2026-03-25"
        assert invoice.period_start == "2026-03-01"
        assert invoice.billing_cycle == "monthly"
        assert invoice.is_pro_rata is False

    def test_pro_rata_invoice_carries_note(self, db, make_customer, make_plan):
        make_customer(plan=make_plan(price=3000), created_at=datetime(2026, 3, 11))
        invoice = billing.generate_invoices(db, MARCH_START, MARCH_END, today=TODAY).generated[0]
        assert invoice.is_pro_rata is True
        assert invoice.base_amount == 1935
        assert invoice.notes == "Pro-rata billing for 20 days"

    def test_second_run_for_same_period_generates_nothing(self, db, make_customer):
        customer = make_customer(name="Ali Raza")
        billing.generate_invoices(db, MARCH_START, MARCH_END, today=TODAY)

        second = billing.generate_invoices(db, MARCH_START, MARCH_END, today=TODAY)

        assert second.generated == []
        assert second.skipped == ["Ali Raza - already billed"]
        count = db.execute(
            select(func.count(Invoice.id)).where(Invoice.customer_id == customer.id)
        ).scalar_one()
        assert count == 1

    def test_voided_invoice_frees_the_period(self, db, make_customer):
        make_customer()
        first = billing.generate_invoices(db, MARCH_START, MARCH_END, today=TODAY).generated[0]
        billing.void_invoice(db, first.id)

        again = billing.generate_invoices(db, MARCH_START, MARCH_END, today=TODAY)
        assert len(again.generated) == 1
        assert again.generated[0].id != first.id

    def test_custom_due_days_and_unknown_cycle(self, db, make_customer):
        make_customer()
        invoice = billing.generate_invoices(
            db, MARCH_START, MARCH_END, billing_cycle="fortnightly", due_days=3, today=TODAY
        ).generated[0]
        assert invoice.due_date == "2026-03-18"
        assert invoice.billing_cycle == "monthly"

    def test_weekly_cycle_is_kept(self, db, make_customer):
        make_customer()
        invoice = billing.generate_invoices(
            db, date(2026, 3, 2), date(2026, 3, 8), billing_cycle="weekly", today=TODAY
        ).generated[0]
        assert invoice.billing_cycle == "weekly"

    def test_reversed_period_is_rejected(self, db):
        with pytest.raises(InvalidInput):
            billing.generate_invoices(db, MARCH_END, MARCH_START, today=TODAY)

    def test_non_positive_due_days_is_rejected(self, db):
        with pytest.raises(InvalidInput):
            billing.generate_invoices(db, MARCH_START, MARCH_END, due_days=0, today=TODAY)

    def test_auto_post_records_invoice_journal(self, db, make_customer, seeded):
        make_customer()
        invoice = billing.generate_invoices(
            db, MARCH_START, MARCH_END, today=TODAY, auto_post=True
        ).generated[0]
        entries = JournalPostingEngine(db).list_entries(source_type="invoice", source_id=invoice.id)
        assert len(entries) == 1
        assert entries[0].total_debit == invoice.total_amount

    def test_auto_post_without_chart_skips_customer(self, db, make_customer):
        make_customer(name="No Chart")
        result = billing.generate_invoices(db, MARCH_START, MARCH_END, today=TODAY, auto_post=True)
        assert result.generated == []
        assert result.skipped[0].startswith("No Chart - Chart of accounts not seeded")
        assert db.execute(select(func.count(Invoice.id))).scalar_one() == 0

    def test_unexpected_error_skips_only_that_customer(self, db, make_customer, make_plan, monkeypatch):
        real_compute = billing.compute_base_amount

        def compute(price, *args):
            if price == 13:
                raise TypeError("bad plan data")
            return real_compute(price, *args)

        monkeypatch.setattr(billing, "compute_base_amount", compute)
        make_customer(name="Broken", plan=make_plan(price=13))
        healthy = make_customer(name="Healthy")

        result = billing.generate_invoices(db, MARCH_START, MARCH_END, today=TODAY)

        assert result.skipped == ["Broken - bad plan data"]
        assert [i.customer_id for i in result.generated] == [healthy.id]


class TestMarkOverdue:
    def test_past_due_open_invoices_become_overdue(self, db, make_invoice):
        late = make_invoice(due_date="2026-03-14")
        partial = make_invoice(due_date="2026-03-01", paid_amount=200, status="partial")
        due_today = make_invoice(due_date="2026-03-15")
        paid = make_invoice(due_date="2026-03-01", paid_amount=1000, status="paid")

        marked, suspended = billing.mark_overdue(db, today=TODAY)

        assert (marked, suspended) == (2, 0)
        assert late.status == "overdue"
        assert partial.status == "overdue"
        assert due_today.status == "issued"
        assert paid.status == "paid"

    def test_suspension_counts_only_changed_customers(self, db, make_customer, make_invoice):
        active = make_customer()
        already = make_customer(status="suspended")
        make_invoice(customer=active, due_date="2026-03-01")
        make_invoice(customer=active, due_date="2026-03-02", period_start="2026-01-01", period_end="2026-01-31")
        make_invoice(customer=already, due_date="2026-03-01")

        marked, suspended = billing.mark_overdue(db, suspend_accounts=True, today=TODAY)

        assert marked == 3
        assert suspended == 1
        assert db.get(Customer, active.id).status == "suspended"

    def test_without_flag_customers_keep_status(self, db, make_customer, make_invoice):
        customer = make_customer()
        make_invoice(customer=customer, due_date="2026-03-01")
        billing.mark_overdue(db, today=TODAY)
        assert db.get(Customer, customer.id).status == "active"


class TestAdjustment:
    def test_discount_and_penalty_recompute_total(self, db, make_invoice):
        invoice = make_invoice(base_amount=1000)
        adjusted = billing.adjust_invoice(db, invoice.id, discount_amount=200, penalty_amount=50)
        assert adjusted.total_amount == 850
        assert adjusted.status == "issued"

    def test_omitted_fields_are_kept(self, db, make_invoice):
        invoice = make_invoice(base_amount=1000, discount_amount=100)
        adjusted = billing.adjust_invoice(db, invoice.id, penalty_amount=30)
        assert adjusted.discount_amount == 100
        assert adjusted.total_amount == 930

    def test_discount_covering_balance_marks_paid_and_reactivates(self, db, make_customer, make_invoice):
        customer = make_customer(status="suspended")
        invoice = make_invoice(customer=customer, paid_amount=800, status="overdue")

        adjusted = billing.adjust_invoice(db, invoice.id, discount_amount=200)

        assert adjusted.status == "paid"
        assert db.get(Customer, customer.id).status == "active"

    def test_penalty_reopens_paid_invoice_as_partial(self, db, make_invoice):
        invoice = make_invoice(paid_amount=1000, status="paid")
        adjusted = billing.adjust_invoice(db, invoice.id, penalty_amount=100)
        assert adjusted.total_amount == 1100
        assert adjusted.status == "partial"

    def test_oversized_discount_clamps_to_zero(self, db, make_invoice):
        adjusted = billing.adjust_invoice(db, make_invoice().id, discount_amount=5000)
        assert adjusted.total_amount == 0
        assert adjusted.status == "paid"

    def test_void_invoice_cannot_be_adjusted(self, db, make_invoice):
        invoice = make_invoice(status="void")
        with pytest.raises(InvalidInput):
            billing.adjust_invoice(db, invoice.id, discount_amount=10)

    def test_negative_amount_is_rejected(self, db, make_invoice):
        with pytest.raises(InvalidInput):
            billing.adjust_invoice(db, make_invoice().id, discount_amount=-1)

    def test_missing_invoice(self, db):
        with pytest.raises(NotFound):
            billing.adjust_invoice(db, 404, discount_amount=10)

    def test_posted_invoice_is_reposted_at_the_new_total(self, db, seeded, make_invoice):
        invoice = make_invoice(base_amount=1000)
        first = posting.post_invoice_by_id(db, invoice.id)

        billing.adjust_invoice(db, invoice.id, discount_amount=300)

        engine = JournalPostingEngine(db)
        current = engine.live_entry("invoice", invoice.id)
        assert current.id != first.id
        assert [e.reverses_entry_id for e in engine.list_entries(source_type="adjustment")] == [first.id]
        assert _receivable_balance(db) == 700
        assert reports.aging_report(db, today=TODAY)["totals"]["total"] == 700
        trial = reports.trial_balance(db)
        assert trial["total_debit"] == trial["total_credit"]

    def test_unchanged_amounts_leave_the_journal_alone(self, db, seeded, make_invoice):
        invoice = make_invoice(base_amount=1000, discount_amount=100)
        entry = posting.post_invoice_by_id(db, invoice.id)
        billing.adjust_invoice(db, invoice.id, discount_amount=100)
        assert JournalPostingEngine(db).live_entry("invoice", invoice.id).id == entry.id

    def test_unposted_invoice_adjustment_posts_nothing(self, db, seeded, make_invoice):
        billing.adjust_invoice(db, make_invoice().id, penalty_amount=50)
        assert JournalPostingEngine(db).list_entries() == []


class TestVoid:
    def test_open_invoice_is_voided_and_idempotent(self, db, make_invoice):
        invoice = make_invoice()
        assert billing.void_invoice(db, invoice.id).status == "void"
        assert billing.void_invoice(db, invoice.id).status == "void"
        assert invoice.outstanding == 0

    def test_paid_invoice_cannot_be_voided(self, db, make_invoice):
        with pytest.raises(InvalidInput):
            billing.void_invoice(db, make_invoice(paid_amount=1000, status="paid").id)

    def test_partly_paid_invoice_cannot_be_voided(self, db, make_invoice):
        invoice = make_invoice(base_amount=1000)
        payments.record_payment(db, invoice.id, invoice.customer_id, 600, "cash", "Desk")

        with pytest.raises(InvalidInput):
            billing.void_invoice(db, invoice.id)

        assert db.get(Invoice, invoice.id).status == "partial"
        assert ledger.customer_ledger(db, invoice.customer_id)["balance"] == 400
        assert reports.aging_report(db, today=TODAY)["totals"]["total"] == 400

    def test_voiding_posted_invoice_reverses_its_entry(self, db, seeded, make_invoice):
        invoice = make_invoice(base_amount=1000)
        entry = posting.post_invoice_by_id(db, invoice.id)

        billing.void_invoice(db, invoice.id)
        billing.void_invoice(db, invoice.id)

        engine = JournalPostingEngine(db)
        assert engine.live_entry("invoice", invoice.id) is None
        reversals = engine.list_entries(source_type="adjustment", source_id=invoice.id)
        assert [r.reverses_entry_id for r in reversals] == [entry.id]
        assert _receivable_balance(db) == 0


def test_list_invoices_filters(db, make_customer, make_invoice):
    customer = make_customer()
    make_invoice(customer=customer)
    make_invoice(status="overdue")
    assert len(billing.list_invoices(db)) == 2
    assert len(billing.list_invoices(db, status="overdue")) == 1
    assert [i.customer_id for i in billing.list_invoices(db, customer_id=customer.id)] == [customer.id]
