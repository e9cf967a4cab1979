# isp_billing/services/events.py - In-process domain events
"""
Synchronous domain events.

Handlers run inside the publisher's session and therefore inside its
transaction: a handler failure rolls back the write that raised the event,
and a committed write always has its handlers' effects committed with it.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, List, Type

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvoiceFullyPaid:
    invoice_id: int
    customer_id: int
    paid_amount: int
    total_amount: int


Handler = Callable[[Session, object], None]


class EventBus:
    def __init__(self):
        self._handlers: DefaultDict[Type, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type, handler: Handler) -> None:
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: Type, handler: Handler) -> None:
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

    def publish(self, db: Session, event) -> None:
        handlers = self._handlers.get(type(event), [])
        logger.debug(f"Publishing {type(event).__name__} to {len(handlers)} handler(s)")
        for handler in handlers:
            handler(db, event)


event_bus = EventBus()
