# isp_billing/schemas/reports.py - Read-side projections
from typing import List, Optional

from isp_billing.schemas.base import CamelModel


class LedgerRow(CamelModel):
    date: str
    type: str
    description: str
    debit: int
    credit: int
    balance: int
    reference_id: Optional[int] = None


class CustomerLedger(CamelModel):
    customer_id: int
    entries: List[LedgerRow]
    balance: int


class TrialBalanceRow(CamelModel):
    id: int
    code: str
    name: str
    type: str
    debit: int
    credit: int


class TrialBalance(CamelModel):
    accounts: List[TrialBalanceRow]
    total_debit: int
    total_credit: int


class AmountRow(CamelModel):
    id: Optional[int]
    code: Optional[str]
    name: str
    amount: int


class ProfitAndLoss(CamelModel):
    start_date: str
    end_date: str
    revenue: List[AmountRow]
    expenses: List[AmountRow]
    total_revenue: int
    total_expenses: int
    net_income: int


class BalanceRow(CamelModel):
    id: Optional[int]
    code: Optional[str]
    name: str
    balance: int


class BalanceSheet(CamelModel):
    assets: List[BalanceRow]
    liabilities: List[BalanceRow]
    equity: List[BalanceRow]
    total_assets: int
    total_liabilities: int
    total_equity: int


class AgingBuckets(CamelModel):
    current: int = 0
    days30: int = 0
    days60: int = 0
    days90: int = 0
    over90: int = 0
    total: int = 0


class AgingRow(AgingBuckets):
    customer_id: int
    customer_name: str


class AgingReport(CamelModel):
    as_of: str
    customers: List[AgingRow]
    totals: AgingBuckets
