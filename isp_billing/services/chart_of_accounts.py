# isp_billing/services/chart_of_accounts.py - Chart of accounts registry
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from isp_billing.core.config import settings
from isp_billing.core.exceptions import ChartNotSeeded, InvalidInput, NotFound
from isp_billing.models.accounting import Account, ACCOUNT_TYPES
from isp_billing.services.base import atomic

logger = logging.getLogger(__name__)

DEFAULT_CHART = [
    ("1000", "Cash", "asset", "Cash on hand"),
    ("1010", "Bank Account", "asset", "Bank deposits"),
    ("1020", "Mobile Money", "asset", "Mobile payment accounts"),
    ("1100", "Accounts Receivable", "asset", "Customer outstanding balances"),
    ("1200", "Equipment", "asset", "Routers, ONU, cables, tools"),
    ("1210", "Infrastructure", "asset", "Fiber cables, poles, ducts"),
    ("2000", "Accounts Payable", "liability", "Vendor outstanding balances"),
    ("2100", "Tax Payable", "liability", "GST/tax obligations"),
    ("2200", "Advance Payments", "liability", "Customer advance payments"),
    ("3000", "Owner Equity", "equity", "Owner investment"),
    ("3100", "Retained Earnings", "equity", "Accumulated profits"),
    ("4000", "Internet Service Revenue", "revenue", "Monthly subscription income"),
    ("4010", "Installation Revenue", "revenue", "New connection charges"),
    ("4020", "Late Fee Revenue", "revenue", "Penalty charges"),
    ("4030", "Other Revenue", "revenue", "Miscellaneous income"),
    ("5000", "Bandwidth Cost", "expense", "Internet bandwidth purchase"),
    ("5010", "Infrastructure Expense", "expense", "Fiber, cables, poles maintenance"),
    ("5020", "Salary Expense", "expense", "Staff salaries"),
    ("5030", "Commission Expense", "expense", "Sales commissions"),
    ("5040", "Maintenance Expense", "expense", "Equipment repairs & maintenance"),
    ("5050", "Office Expense", "expense", "Office supplies & rent"),
    ("5060", "Utilities Expense", "expense", "Electricity, water, etc."),
    ("5070", "Other Expense", "expense", "Miscellaneous expenses"),
    ("5080", "Discount Allowed", "expense", "Customer discounts"),
]


@dataclass
class AccountRoles:
    """
    The single table binding posting roles to account codes.

    The posting engine asks for "receivable" or "service_revenue" and never
    hardcodes a code; deployments remap roles through settings.
    """

    role_codes: Dict[str, str]
    expense_codes: Dict[str, str] = field(default_factory=dict)
    default_expense_code: str = "5070"

    METHOD_ROLES = {"cash": "cash", "bank": "bank", "mobile_money": "mobile_money"}

    @classmethod
    def from_settings(cls) -> "AccountRoles":
        return cls(
            role_codes=dict(settings.ACCOUNT_ROLE_CODES),
            expense_codes=dict(settings.EXPENSE_CATEGORY_CODES),
            default_expense_code=settings.DEFAULT_EXPENSE_ACCOUNT_CODE,
        )

    def code_for(self, role: str) -> str:
        try:
            return self.role_codes[role]
        except KeyError:
            raise InvalidInput(f"No account code configured for posting role '{role}'")

    def cash_code_for(self, method: Optional[str]) -> str:
        """Cash-equivalent account for a payment method; anything unmapped lands in cash"""
        return self.code_for(self.METHOD_ROLES.get(method or "cash", "cash"))

    def expense_code_for(self, category: Optional[str]) -> str:
        return self.expense_codes.get(category or "", self.default_expense_code)


def list_accounts(db: Session, active_only: bool = False) -> List[Account]:
    query = select(Account).order_by(Account.code)
    if active_only:
        query = query.where(Account.is_active.is_(True))
    return list(db.execute(query).scalars().all())


def get_account(db: Session, account_id: int) -> Account:
    account = db.get(Account, account_id)
    if not account:
        raise NotFound("Account", account_id)
    return account


def get_account_by_code(db: Session, code: str) -> Optional[Account]:
    return db.execute(select(Account).where(Account.code == code)).scalar_one_or_none()


def require_accounts(db: Session, codes: Iterable[str]) -> Dict[str, Account]:
    """Resolve codes to accounts, raising ChartNotSeeded for any that are missing"""
    wanted = set(codes)
    found = db.execute(select(Account).where(Account.code.in_(wanted))).scalars().all()
    by_code = {account.code: account for account in found}
    missing = wanted - set(by_code)
    if missing:
        raise ChartNotSeeded(missing)
    return by_code


def create_account(db: Session, code: str, name: str, type: str,
                   parent_id: Optional[int] = None, is_active: bool = True,
                   description: Optional[str] = None) -> Account:
    if type not in ACCOUNT_TYPES:
        raise InvalidInput(f"Account type must be one of {', '.join(ACCOUNT_TYPES)}")
    with atomic(db, "Create account"):
        if get_account_by_code(db, code):
            raise InvalidInput(f"Account code {code} already exists")
        if parent_id is not None and not db.get(Account, parent_id):
            raise NotFound("Account", parent_id)
        account = Account(
            code=code, name=name, type=type, parent_id=parent_id,
            is_active=is_active, description=description,
        )
        db.add(account)
    logger.info(f"Created account {code} {name} ({type})")
    return account


def update_account(db: Session, account_id: int, **changes) -> Account:
    """Only name, description and the active flag are editable; code and type are fixed"""
    with atomic(db, "Update account"):
        account = get_account(db, account_id)
        for key in ("name", "description", "is_active"):
            if changes.get(key) is not None:
                setattr(account, key, changes[key])
    return account


def seed_chart(db: Session) -> tuple[bool, int]:
    """
    Create the default ISP chart of accounts.

    Returns (created, count). An existing chart is left untouched.
    """
    existing = db.execute(select(func.count(Account.id))).scalar_one()
    if existing:
        return False, existing

    with atomic(db, "Seed chart of accounts"):
        for code, name, account_type, description in DEFAULT_CHART:
            db.add(Account(code=code, name=name, type=account_type, description=description))
    logger.info(f"Seeded chart of accounts with {len(DEFAULT_CHART)} accounts")
    return True, len(DEFAULT_CHART)
