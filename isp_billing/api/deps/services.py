# isp_billing/api/deps/services.py - Injectable collaborators for the routers
from typing import Callable

from sqlalchemy.orm import Session

from isp_billing.core.db import get_session_maker
from isp_billing.services.notifications import WhatsAppNotifier


def get_notifier() -> WhatsAppNotifier:
    return WhatsAppNotifier()


def get_session_factory() -> Callable[[], Session]:
    """Sessions for work that runs after the request session has closed"""
    return get_session_maker()
