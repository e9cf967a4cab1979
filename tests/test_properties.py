"""Property-based checks of the money and ledger invariants.

The database fixture is shared by every example of one test, so each example
creates its own customer or entry and asserts totals that hold globally.
"""
from datetime import date, datetime, timedelta

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from isp_billing.core.exceptions import InvalidInput
from isp_billing.services import expenses, payments, posting, reports
from isp_billing.services.billing import compute_base_amount, compute_total
from isp_billing.services.posting import PostingLine

DB_SETTINGS = settings(
    max_examples=40,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)

amounts = st.integers(min_value=0, max_value=10_000_000)
positive_amounts = st.integers(min_value=1, max_value=1_000_000)


@given(base=amounts, discount=amounts, penalty=amounts)
def test_total_is_never_negative(base, discount, penalty):
    total = compute_total(base, discount, penalty)
    assert total == max(0, base - discount + penalty)
    assert total >= 0


@st.composite
def periods_with_signup(draw):
    start = draw(st.dates(min_value=date(2020, 1, 1), max_value=date(2030, 12, 1)))
    length = draw(st.integers(min_value=0, max_value=400))
    end = start + timedelta(days=length)
    offset = draw(st.integers(min_value=-5 * 86400, max_value=(length + 5) * 86400))
    created_at = datetime.combine(start, datetime.min.time()) + timedelta(seconds=offset)
    return start, end, created_at


@given(price=amounts, period=periods_with_signup())
def test_pro_rata_stays_within_the_plan_price(price, period):
    start, end, created_at = period
    amount, is_pro_rata, active_days = compute_base_amount(price, start, end, created_at)

    assert 0 <= amount <= price
    if is_pro_rata:
        assert 1 <= active_days <= (end - start).days + 1
    else:
        assert amount == price
        assert active_days == 0


@st.composite
def balanced_lines(draw, account_ids):
    """Debits on the first half of the legs, matching credits on the rest"""
    debits = draw(st.lists(positive_amounts, min_size=1, max_size=4))
    total = sum(debits)
    cuts = sorted(draw(st.lists(st.integers(min_value=1, max_value=max(1, total - 1)),
                                max_size=min(3, total - 1), unique=True)))
    credits = [b - a for a, b in zip([0] + cuts, cuts + [total])]
    lines = [PostingLine(account_id=draw(st.sampled_from(account_ids)), debit=d) for d in debits]
    lines += [PostingLine(account_id=draw(st.sampled_from(account_ids)), credit=c) for c in credits]
    return lines


def test_trial_balance_stays_balanced_under_manual_entries(db, seeded):
    account_ids = [seeded(code).id for code in ("1000", "1010", "1100", "2000", "3000", "4000", "5000")]

    @DB_SETTINGS
    @given(lines=balanced_lines(account_ids), day=st.integers(min_value=0, max_value=365))
    def check(lines, day):
        posting.create_manual_entry(db, date(2026, 1, 1) + timedelta(days=day), "Fuzzed", lines)
        trial = reports.trial_balance(db)
        assert trial["total_debit"] == trial["total_credit"]

    check()


@given(lines=st.lists(
    st.builds(PostingLine, account_id=st.just(1), debit=positive_amounts, credit=positive_amounts),
    min_size=2, max_size=4,
))
def test_lines_with_both_sides_are_rejected(lines):
    with pytest.raises(InvalidInput):
        posting.validate_lines(lines)


def test_payment_sequences_keep_status_consistent(db, make_customer, make_invoice):
    @DB_SETTINGS
    @given(total=positive_amounts, parts=st.lists(positive_amounts, min_size=1, max_size=6))
    def check(total, parts):
        invoice = make_invoice(customer=make_customer(), base_amount=total)
        for part in parts:
            _, invoice = payments.record_payment(db, invoice.id, invoice.customer_id, part, "cash", "Fuzz")
            assert invoice.paid_amount <= sum(parts)
            if invoice.paid_amount >= invoice.total_amount:
                assert invoice.status == "paid"
                assert invoice.outstanding == 0
            else:
                assert invoice.status == "partial"
                assert invoice.outstanding == invoice.total_amount - invoice.paid_amount
        assert invoice.paid_amount == sum(parts)

    check()


def test_balance_sheet_identity_under_auto_posting(db, seeded, make_customer, make_invoice):
    @DB_SETTINGS
    @given(
        base=positive_amounts,
        discount=st.integers(min_value=0, max_value=1_000),
        penalty=st.integers(min_value=0, max_value=1_000),
        paid=st.integers(min_value=0, max_value=1_000_000),
        spent=st.integers(min_value=0, max_value=1_000_000),
        method=st.sampled_from(["cash", "bank", "mobile_money", "online"]),
    )
    def check(base, discount, penalty, paid, spent, method):
        invoice = make_invoice(customer=make_customer(), base_amount=base,
                               discount_amount=discount, penalty_amount=penalty)
        if invoice.total_amount > 0:
            posting.post_invoice_by_id(db, invoice.id)
        if paid:
            payments.record_payment(db, invoice.id, invoice.customer_id, paid, method, "Fuzz", auto_post=True)
        if spent:
            expenses.create_expense(db, "bandwidth", "Upstream", spent, date(2026, 2, 10), payment_method=method)

        sheet = reports.balance_sheet(db)
        assert sheet["total_assets"] == sheet["total_liabilities"] + sheet["total_equity"]
        trial = reports.trial_balance(db)
        assert trial["total_debit"] == trial["total_credit"]

    check()
