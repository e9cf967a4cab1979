"""HTTP contract: camelCase bodies, status codes and error mapping"""
import httpx
import pytest

from isp_billing.api.deps.services import get_notifier
from isp_billing.main import app
from isp_billing.models import Payment
from isp_billing.services.notifications import WhatsAppNotifier


def test_seed_accounts_is_idempotent(client):
    first = client.post("/api/accounts/seed")
    assert first.status_code == 200
    assert first.json() == {"message": "Chart of accounts seeded", "count": 24}

    second = client.post("/api/accounts/seed").json()
    assert second == {"message": "Chart of accounts already seeded", "count": 24}

    accounts = client.get("/api/accounts").json()
    assert accounts[0] == {
        "id": accounts[0]["id"], "code": "1000", "name": "Cash", "type": "asset",
        "parentId": None, "isActive": True, "description": "Cash on hand",
    }


def test_account_create_update_and_conflict(client, seeded):
    created = client.post("/api/accounts", json={"code": "4040", "name": "Router Sales", "type": "revenue"})
    assert created.status_code == 201
    account_id = created.json()["id"]

    patched = client.patch(f"/api/accounts/{account_id}", json={"isActive": False})
    assert patched.json()["isActive"] is False

    duplicate = client.post("/api/accounts", json={"code": "4040", "name": "Again", "type": "revenue"})
    assert duplicate.status_code == 400
    assert duplicate.json()["code"] == "INVALID_INPUT"

    assert client.get("/api/accounts/99999").status_code == 404


def test_generate_and_idempotent_rerun(client, make_customer):
    make_customer(name="Kashif")
    body = {"periodStart": "2026-03-01", "periodEnd": "2026-03-31"}

    first = client.post("/api/billing/generate", json=body).json()
    assert first["generated"] == 1
    assert first["skipped"] == 0
    invoice = first["details"]["generated"][0]
    assert invoice["periodStart"] == "2026-03-01"
    assert invoice["status"] == "issued"
    assert invoice["isProRata"] is False

    second = client.post("/api/billing/generate", json=body).json()
    assert second == {"generated": 0, "skipped": 1, "details": {"generated": [], "skipped": ["Kashif - already billed"]}}


def test_generate_validation(client):
    reversed_period = client.post("/api/billing/generate", json={"periodStart": "2026-03-31", "periodEnd": "2026-03-01"})
    assert reversed_period.status_code == 422
    bad_due = client.post("/api/billing/generate",
                          json={"periodStart": "2026-03-01", "periodEnd": "2026-03-31", "dueDays": 0})
    assert bad_due.status_code == 422


def test_mark_overdue_without_body(client, make_invoice):
    make_invoice(due_date="2020-01-01")
    response = client.post("/api/billing/mark-overdue")
    assert response.status_code == 200
    assert response.json() == {"markedOverdue": 1, "suspended": 0}


def test_mark_overdue_with_suspension(client, make_customer, make_invoice):
    customer = make_customer()
    make_invoice(customer=customer, due_date="2020-01-01")
    response = client.post("/api/billing/mark-overdue", json={"suspendAccounts": True})
    assert response.json() == {"markedOverdue": 1, "suspended": 1}


def test_record_payment_contract(client, make_invoice):
    invoice = make_invoice(base_amount=1000)
    response = client.post("/api/payments", json={
        "invoiceId": invoice.id, "customerId": invoice.customer_id,
        "amount": 600, "method": "cash", "collectedBy": "Usman",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["payment"]["amount"] == 600
    assert body["payment"]["collectedBy"] == "Usman"
    assert body["payment"]["whatsappSent"] is False
    assert body["invoice"]["paidAmount"] == 600
    assert body["invoice"]["status"] == "partial"
    assert body["invoice"]["outstanding"] == 400
    assert body["whatsappQueued"] is False

    listed = client.get("/api/payments", params={"invoiceId": invoice.id}).json()
    assert [p["amount"] for p in listed] == [600]

    detail = client.get(f"/api/invoices/{invoice.id}").json()
    assert [p["amount"] for p in detail["payments"]] == [600]


@pytest.mark.parametrize("overrides,status", [
    ({"amount": 0}, 422),
    ({"method": "cheque"}, 422),
    ({"collectedBy": "  "}, 422),
    ({"invoiceId": 999}, 404),
    ({"customerId": 999}, 400),
])
def test_record_payment_errors(client, make_invoice, overrides, status):
    invoice = make_invoice()
    body = {"invoiceId": invoice.id, "customerId": invoice.customer_id, "amount": 100,
            "method": "cash", "collectedBy": "Desk", **overrides}
    assert client.post("/api/payments", json=body).status_code == status


def test_payment_receipt_is_sent_after_commit(client, db, make_customer, make_invoice):
    requests = []

    def bridge(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"ok": True})

    notifier = WhatsAppNotifier(base_url="http://bridge", enabled=True, transport=httpx.MockTransport(bridge))
    app.dependency_overrides[get_notifier] = lambda: notifier
    customer = make_customer(name="Ayesha", contact="03211234567")
    invoice = make_invoice(customer=customer)

    response = client.post("/api/payments", json={
        "invoiceId": invoice.id, "customerId": customer.id, "amount": 1000,
        "method": "mobile_money", "collectedBy": "Agent 4",
    })

    assert response.json()["whatsappQueued"] is True
    assert len(requests) == 1
    assert requests[0].url.path == "/send"
    assert b"Ayesha" in requests[0].content
    db.expire_all()
    assert db.get(Payment, response.json()["payment"]["id"]).whatsapp_sent is True


def test_bridge_failure_keeps_the_payment(client, db, make_invoice):
    notifier = WhatsAppNotifier(
        base_url="http://bridge", enabled=True,
        transport=httpx.MockTransport(lambda request: httpx.Response(502)),
    )
    app.dependency_overrides[get_notifier] = lambda: notifier
    invoice = make_invoice()

    response = client.post("/api/payments", json={
        "invoiceId": invoice.id, "customerId": invoice.customer_id, "amount": 1000,
        "method": "cash", "collectedBy": "Desk",
    })

    assert response.status_code == 201
    db.expire_all()
    payment = db.get(Payment, response.json()["payment"]["id"])
    assert payment.whatsapp_sent is False
    assert payment.invoice.status == "paid"


def test_whatsapp_sent_flag(client, make_invoice):
    invoice = make_invoice()
    payment = client.post("/api/payments", json={
        "invoiceId": invoice.id, "customerId": invoice.customer_id, "amount": 100,
        "method": "cash", "collectedBy": "Desk",
    }).json()["payment"]
    flagged = client.patch(f"/api/payments/{payment['id']}/whatsapp-sent")
    assert flagged.status_code == 200
    assert flagged.json()["whatsappSent"] is True
    assert client.patch("/api/payments/999/whatsapp-sent").status_code == 404


def test_adjust_and_void_invoice(client, make_invoice):
    invoice = make_invoice(base_amount=1000)
    adjusted = client.patch(f"/api/invoices/{invoice.id}/adjustment", json={"discountAmount": 100, "penaltyAmount": 40})
    assert adjusted.status_code == 200
    assert adjusted.json()["totalAmount"] == 940

    assert client.patch(f"/api/invoices/{invoice.id}/adjustment", json={"discountAmount": -1}).status_code == 422

    voided = client.post(f"/api/invoices/{invoice.id}/void").json()
    assert voided["status"] == "void"
    assert voided["outstanding"] == 0
    assert client.get("/api/invoices", params={"status": "void"}).json()[0]["id"] == invoice.id


def test_missing_invoice_is_404(client):
    response = client.get("/api/invoices/999")
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_unbalanced_manual_entry(client, seeded):
    response = client.post("/api/journal-entries", json={
        "entry": {"entryDate": "2026-03-01", "memo": "Bad"},
        "lines": [
            {"accountId": seeded("1000").id, "debit": 500},
            {"accountId": seeded("4000").id, "credit": 400},
        ],
    })
    assert response.status_code == 400
    assert response.json()["code"] == "UNBALANCED_ENTRY"
    assert response.json()["totalDebit"] == 500
    assert client.get("/api/journal-entries").json() == []


def test_manual_entry_and_reversal(client, seeded):
    created = client.post("/api/journal-entries", json={
        "entry": {"entryDate": "2026-03-01", "memo": "Capital"},
        "lines": [
            {"accountId": seeded("1010").id, "debit": 5000},
            {"accountId": seeded("3000").id, "credit": 5000},
        ],
    })
    assert created.status_code == 201
    entry = created.json()
    assert entry["totalDebit"] == entry["totalCredit"] == 5000
    assert entry["lines"][0]["account"]["code"] == "1010"

    reversal = client.post(f"/api/journal-entries/{entry['id']}/reverse").json()
    assert reversal["reversesEntryId"] == entry["id"]
    assert reversal["lines"][0]["credit"] == 5000

    assert client.post(f"/api/journal-entries/{entry['id']}/reverse").status_code == 400


def test_auto_post_requires_seeded_chart(client, make_invoice):
    response = client.post(f"/api/journal-entries/auto-post/invoice/{make_invoice().id}")
    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "CHART_NOT_SEEDED"
    assert "/api/accounts/seed" in body["hint"]


def test_auto_post_invoice_and_payment(client, seeded, make_invoice):
    invoice = make_invoice(base_amount=1000)
    entry = client.post(f"/api/journal-entries/auto-post/invoice/{invoice.id}")
    assert entry.status_code == 201
    assert entry.json()["sourceType"] == "invoice"
    assert client.post(f"/api/journal-entries/auto-post/invoice/{invoice.id}").status_code == 400

    payment = client.post("/api/payments", json={
        "invoiceId": invoice.id, "customerId": invoice.customer_id, "amount": 1000,
        "method": "bank", "collectedBy": "Desk",
    }).json()["payment"]
    posted = client.post(f"/api/journal-entries/auto-post/payment/{payment['id']}").json()
    assert posted["sourceId"] == payment["id"]

    entries = client.get("/api/journal-entries", params={"sourceType": "payment"}).json()
    assert [e["id"] for e in entries] == [posted["id"]]


def test_expenses_endpoints(client, seeded):
    created = client.post("/api/expenses", json={
        "category": "maintenance", "description": "Splice repair", "amount": 1200,
        "expenseDate": "2026-03-04", "paymentMethod": "cash",
    })
    assert created.status_code == 201
    expense = created.json()
    assert expense["expenseDate"] == "2026-03-04"
    assert client.get(f"/api/expenses/{expense['id']}").json()["amount"] == 1200
    assert client.post(f"/api/journal-entries/auto-post/expense/{expense['id']}").status_code == 400
    assert len(client.get("/api/expenses", params={"category": "maintenance"}).json()) == 1


def test_expense_without_chart_is_409(client):
    response = client.post("/api/expenses", json={
        "description": "Fuel", "amount": 300, "expenseDate": "2026-03-04",
    })
    assert response.status_code == 409


def test_opening_balance_and_ledger(client, make_customer):
    customer = make_customer()
    assert client.get(f"/api/opening-balances/{customer.id}").json() == {
        "customerId": customer.id, "amount": 0, "asOfDate": None, "notes": None,
    }
    saved = client.post("/api/opening-balances", json={
        "customerId": customer.id, "amount": 450, "asOfDate": "2026-01-01",
    })
    assert saved.status_code == 201

    ledger = client.get(f"/api/customer-ledger/{customer.id}").json()
    assert ledger["balance"] == 450
    assert ledger["entries"][0]["type"] == "opening_balance"
    assert ledger["entries"][0]["referenceId"] is None
    assert client.get("/api/customer-ledger/999").status_code == 404


def test_reports_endpoints(client, seeded, make_invoice):
    invoice = make_invoice(base_amount=1000, issue_date="2026-02-01", due_date="2020-01-01")
    client.post(f"/api/journal-entries/auto-post/invoice/{invoice.id}")

    trial = client.get("/api/reports/trial-balance").json()
    assert trial["totalDebit"] == trial["totalCredit"] == 1000

    pnl = client.get("/api/reports/profit-loss", params={"startDate": "2026-02-01", "endDate": "2026-02-28"}).json()
    assert pnl["totalRevenue"] == 1000
    assert pnl["netIncome"] == 1000

    assert client.get("/api/reports/profit-loss",
                      params={"startDate": "2026-03-01", "endDate": "2026-02-01"}).status_code == 400

    sheet = client.get("/api/reports/balance-sheet").json()
    assert sheet["totalAssets"] == sheet["totalLiabilities"] + sheet["totalEquity"] == 1000

    aging = client.get("/api/reports/aging").json()
    assert aging["totals"]["over90"] == 1000
    assert aging["customers"][0]["customerName"]

    stats = client.get("/api/billing/stats").json()
    assert stats == {"totalDue": 1000, "totalCollected": 0, "overdueCount": 0, "collectedThisMonth": 0}
