"""
Pytest fixtures for the billing core test suite.

Provides:
- An in-memory SQLite database per test, with foreign keys enforced
- A session bound to it and a FastAPI TestClient sharing that session
- Factories for plans, customers, invoices and a seeded chart of accounts
"""
from datetime import date, datetime
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from isp_billing.api.deps.services import get_notifier, get_session_factory
from isp_billing.core.db import enable_sqlite_foreign_keys, get_db
from isp_billing.main import app
from isp_billing.models import Base, Customer, Invoice, ServicePlan
from isp_billing.services.chart_of_accounts import get_account_by_code, seed_chart
from isp_billing.services.notifications import WhatsAppNotifier

TODAY = date(2026, 3, 15)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def notifier():
    """Disabled unless a test swaps in one with a mock transport"""
    return WhatsAppNotifier(enabled=False)


@pytest.fixture
def client(db, session_factory, notifier):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seeded(db):
    """Default chart of accounts; returns a code -> Account lookup"""
    seed_chart(db)
    return lambda code: get_account_by_code(db, code)


_names = count(1)


@pytest.fixture
def make_plan(db):
    def _make(price=1000, name=None):
        plan = ServicePlan(name=name or f"Plan {next(_names)}", speed="10 Mbps", price=price)
        db.add(plan)
        db.commit()
        return plan
    return _make


@pytest.fixture
def make_customer(db, make_plan):
    def _make(status="active", plan=None, created_at=datetime(2025, 6, 1), name=None, contact="03001234567"):
        plan = plan or make_plan()
        customer = Customer(
            name=name or f"Customer {next(_names)}",
            contact=contact,
            status=status,
            plan_id=plan.id,
            created_at=created_at,
        )
        db.add(customer)
        db.commit()
        return customer
    return _make


@pytest.fixture
def make_invoice(db, make_customer):
    def _make(customer=None, base_amount=1000, discount_amount=0, penalty_amount=0, paid_amount=0,
              status="issued", period_start="2026-02-01", period_end="2026-02-28",
              issue_date="2026-02-01", due_date="2026-02-11"):
        customer = customer or make_customer()
        invoice = Invoice(
            customer_id=customer.id,
            plan_id=customer.plan_id,
            billing_cycle="monthly",
            period_start=period_start,
            period_end=period_end,
            issue_date=issue_date,
            due_date=due_date,
            base_amount=base_amount,
            discount_amount=discount_amount,
            penalty_amount=penalty_amount,
            total_amount=max(0, base_amount - discount_amount + penalty_amount),
            paid_amount=paid_amount,
            status=status,
            is_pro_rata=False,
        )
        db.add(invoice)
        db.commit()
        return invoice
    return _make
