# isp_billing/models/__init__.py - Import all models so SQLAlchemy can discover them

from isp_billing.models.base import Base

from isp_billing.models.customer import Customer, ServicePlan
from isp_billing.models.payment import Invoice, Payment
from isp_billing.models.accounting import Account, JournalEntry, JournalLine, OpeningBalance
from isp_billing.models.expense import Expense
from isp_billing.models.vendor import Vendor, VendorBill

__all__ = [
    "Base",
    "Customer",
    "ServicePlan",
    "Invoice",
    "Payment",
    "Account",
    "JournalEntry",
    "JournalLine",
    "OpeningBalance",
    "Expense",
    "Vendor",
    "VendorBill",
]
