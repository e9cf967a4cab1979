# isp_billing/services/notifications.py - Payment receipts over the WhatsApp bridge
import logging
from typing import Callable, Optional

import httpx
from jinja2 import Template
from sqlalchemy.orm import Session

from isp_billing.core.config import settings
from isp_billing.models.payment import Payment

logger = logging.getLogger(__name__)


PAYMENT_RECEIPT_TEMPLATE = Template(
    """*{{ company_name }}*

Assalam o Alaikum {{ customer_name }},

Your payment of Rs. {{ amount }} has been received.

Invoice: #{{ invoice_id }} ({{ period_start }} to {{ period_end }})
Payment Method: {{ method_label }}
Collected By: {{ collected_by }}
{% if outstanding > 0 -%}
Balance Due: Rs. {{ outstanding }}
{% else -%}
Your invoice is fully paid. Thank you!
{% endif -%}
{% if company_contact %}
Contact: {{ company_contact }}
{% endif %}"""
)

METHOD_LABELS = {
    "cash": "Cash",
    "bank": "Bank Transfer",
    "mobile_money": "Mobile Money",
    "online": "Online",
}


def render_payment_receipt(payment: Payment) -> str:
    invoice = payment.invoice
    return PAYMENT_RECEIPT_TEMPLATE.render(
        company_name=settings.COMPANY_NAME,
        company_contact=settings.COMPANY_CONTACT,
        customer_name=payment.customer.name,
        amount=f"{payment.amount:,}",
        invoice_id=invoice.id,
        period_start=invoice.period_start,
        period_end=invoice.period_end,
        method_label=METHOD_LABELS.get(payment.method, payment.method),
        collected_by=payment.collected_by,
        outstanding=invoice.outstanding,
    ).strip()


class WhatsAppNotifier:
    """Sends text messages through the WhatsApp bridge service"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        enabled: Optional[bool] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or settings.WA_BRIDGE_URL).rstrip("/")
        self.api_key = api_key or settings.WA_BRIDGE_API_KEY
        self.timeout = timeout or settings.WA_BRIDGE_TIMEOUT
        self.enabled = settings.WA_ENABLED if enabled is None else enabled
        self.transport = transport

    def send_message(self, to: str, message: str) -> bool:
        """POST one message to the bridge. Returns False instead of raising on failure."""
        if not self.enabled:
            logger.debug(f"WhatsApp disabled; message to {to} not sent")
            return False
        if not to:
            logger.warning("WhatsApp message skipped: no contact number")
            return False

        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    "/send",
                    json={"to": to, "message": message},
                    headers={"x-api-key": self.api_key},
                )
                response.raise_for_status()
            logger.info(f"WhatsApp message sent to {to}")
            return True
        except httpx.HTTPStatusError as e:
            logger.error(f"WhatsApp bridge rejected message to {to}: HTTP {e.response.status_code}")
        except httpx.TimeoutException:
            logger.error(f"WhatsApp bridge timed out sending to {to}")
        except httpx.HTTPError as e:
            logger.error(f"WhatsApp bridge unreachable: {e}")
        return False

    def send_payment_receipt(self, db: Session, payment_id: int) -> bool:
        """
        Send the receipt for a committed payment and flag it as sent.

        Runs after the payment transaction; nothing here can undo the payment.
        """
        if not self.enabled:
            return False
        payment = db.get(Payment, payment_id)
        if payment is None:
            logger.warning(f"Receipt not sent: payment {payment_id} no longer exists")
            return False

        sent = self.send_message(payment.customer.contact, render_payment_receipt(payment))
        if sent and not payment.whatsapp_sent:
            payment.whatsapp_sent = True
            db.commit()
        return sent


def send_receipt_in_background(notifier: WhatsAppNotifier, session_factory: Callable[[], Session],
                               payment_id: int) -> None:
    """Entry point for FastAPI background tasks, which outlive the request session"""
    db = session_factory()
    try:
        notifier.send_payment_receipt(db, payment_id)
    except Exception as e:
        db.rollback()
        logger.error(f"Payment receipt {payment_id} failed: {e}", exc_info=True)
    finally:
        db.close()
