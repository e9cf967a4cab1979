"""WhatsApp receipt rendering and bridge failure handling"""
import httpx

from isp_billing.services import payments
from isp_billing.services.notifications import WhatsAppNotifier, render_payment_receipt


def _recorded_payment(db, make_customer, make_invoice, amount=600):
    customer = make_customer(name="Farah Khan", contact="03001112223")
    invoice = make_invoice(customer=customer, base_amount=1000)
    payment, _ = payments.record_payment(db, invoice.id, customer.id, amount, "mobile_money", "Agent 9")
    return payment


def test_receipt_mentions_amount_method_and_balance(db, make_customer, make_invoice):
    message = render_payment_receipt(_recorded_payment(db, make_customer, make_invoice))
    assert "Assalam o Alaikum Farah Khan" in message
    assert "Your payment of Rs. 600 has been received." in message
    assert "Payment Method: Mobile Money" in message
    assert "Collected By: Agent 9" in message
    assert "Balance Due: Rs. 400" in message


def test_fully_paid_receipt(db, make_customer, make_invoice):
    message = render_payment_receipt(_recorded_payment(db, make_customer, make_invoice, amount=1000))
    assert "Rs. 1,000" in message
    assert "fully paid" in message
    assert "Balance Due" not in message


def test_disabled_notifier_sends_nothing(db, make_customer, make_invoice):
    payment = _recorded_payment(db, make_customer, make_invoice)
    assert WhatsAppNotifier(enabled=False).send_payment_receipt(db, payment.id) is False


def test_successful_send_flags_payment(db, make_customer, make_invoice):
    seen = []

    def bridge(request):
        seen.append(request)
        return httpx.Response(200)

    payment = _recorded_payment(db, make_customer, make_invoice)
    notifier = WhatsAppNotifier(base_url="http://bridge", api_key="k", enabled=True,
                                transport=httpx.MockTransport(bridge))

    assert notifier.send_payment_receipt(db, payment.id) is True
    assert payment.whatsapp_sent is True
    assert seen[0].headers["x-api-key"] == "k"


def test_bridge_errors_return_false(db, make_customer, make_invoice):
    def unreachable(request):
        raise httpx.ConnectError("refused", request=request)

    payment = _recorded_payment(db, make_customer, make_invoice)
    for transport in (httpx.MockTransport(lambda r: httpx.Response(500)), httpx.MockTransport(unreachable)):
        notifier = WhatsAppNotifier(base_url="http://bridge", enabled=True, transport=transport)
        assert notifier.send_payment_receipt(db, payment.id) is False
    assert payment.whatsapp_sent is False


def test_missing_contact_is_skipped():
    notifier = WhatsAppNotifier(enabled=True, transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    assert notifier.send_message("", "hello") is False
