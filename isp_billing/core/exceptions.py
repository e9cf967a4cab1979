"""
Typed exceptions for the billing and accounting core.

Every error carries a machine-readable ``code`` so API clients and tests can
react to the type rather than parse the message:

    BillingError (base)
    |
    +-- InvalidInput       malformed amounts, missing fields, illegal transitions
    +-- NotFound           invoice / payment / account / customer absent
    +-- UnbalancedEntry    sum(debit) != sum(credit) on a journal submission
    +-- ChartNotSeeded     auto-post attempted before the required accounts exist
    +-- PersistenceError   database failure during a multi-step write

The HTTP layer maps these to status codes in ``isp_billing.main``.
"""

from typing import Any, Dict, Optional


class BillingError(Exception):
    """Base class for all billing core errors."""

    code: str = "BILLING_ERROR"

    def __init__(self, message: str, **data: Any):
        super().__init__(message)
        self.message = message
        self.data: Dict[str, Any] = data

    def to_dict(self) -> Dict[str, Any]:
        payload = {"code": self.code, "message": self.message}
        payload.update(self.data)
        return payload


class InvalidInput(BillingError):
    code = "INVALID_INPUT"


class NotFound(BillingError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: Any):
        super().__init__(f"{entity} {identifier} not found", entity=entity, id=identifier)


class UnbalancedEntry(BillingError):
    code = "UNBALANCED_ENTRY"

    def __init__(self, total_debit: int, total_credit: int):
        super().__init__(
            f"Debits ({total_debit}) must equal credits ({total_credit})",
            totalDebit=total_debit,
            totalCredit=total_credit,
        )
        self.total_debit = total_debit
        self.total_credit = total_credit


class ChartNotSeeded(BillingError):
    code = "CHART_NOT_SEEDED"

    def __init__(self, missing_codes, hint: Optional[str] = None):
        missing = sorted(set(missing_codes))
        super().__init__(
            f"Chart of accounts not seeded: missing account(s) {', '.join(missing)}",
            missingCodes=missing,
            hint=hint or "Seed the chart of accounts first (POST /api/accounts/seed).",
        )
        self.missing_codes = missing


class PersistenceError(BillingError):
    code = "PERSISTENCE_ERROR"


__all__ = [
    "BillingError",
    "InvalidInput",
    "NotFound",
    "UnbalancedEntry",
    "ChartNotSeeded",
    "PersistenceError",
]
