# isp_billing/schemas/accounting.py - Chart of accounts and journal schemas
from datetime import date
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from isp_billing.schemas.base import CamelModel

AccountType = Literal["asset", "liability", "equity", "revenue", "expense"]
JournalSource = Literal[
    "invoice", "payment", "expense", "vendor_bill", "vendor_payment",
    "adjustment", "opening_balance", "manual",
]


class AccountCreate(CamelModel):
    code: str = Field(..., min_length=1, max_length=16)
    name: str = Field(..., min_length=1, max_length=128)
    type: AccountType
    parent_id: Optional[int] = None
    is_active: bool = True
    description: Optional[str] = Field(default=None, max_length=255)

    @field_validator("code", "name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class AccountUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    is_active: Optional[bool] = None
    description: Optional[str] = Field(default=None, max_length=255)


class AccountOut(CamelModel):
    id: int
    code: str
    name: str
    type: AccountType
    parent_id: Optional[int]
    is_active: bool
    description: Optional[str]


class SeedResult(CamelModel):
    message: str
    count: int


class JournalLineIn(CamelModel):
    account_id: int
    debit: int = Field(default=0, ge=0)
    credit: int = Field(default=0, ge=0)
    customer_id: Optional[int] = None
    vendor_id: Optional[int] = None
    description: Optional[str] = Field(default=None, max_length=255)


class JournalEntryIn(CamelModel):
    entry_date: date
    memo: str = Field(..., min_length=1, max_length=255)
    source_type: JournalSource = "manual"
    source_id: Optional[int] = None


class JournalEntryCreate(CamelModel):
    entry: JournalEntryIn
    lines: List[JournalLineIn] = Field(..., min_length=2)


class JournalLineOut(CamelModel):
    id: int
    account_id: int
    debit: int
    credit: int
    customer_id: Optional[int]
    vendor_id: Optional[int]
    description: Optional[str]
    account: AccountOut


class JournalEntryOut(CamelModel):
    id: int
    entry_date: str
    memo: str
    source_type: JournalSource
    source_id: Optional[int]
    reverses_entry_id: Optional[int]
    total_debit: int
    total_credit: int
    lines: List[JournalLineOut]


class OpeningBalanceIn(CamelModel):
    customer_id: int
    amount: int
    as_of_date: date
    notes: Optional[str] = Field(default=None, max_length=255)


class OpeningBalanceOut(CamelModel):
    customer_id: int
    amount: int
    as_of_date: Optional[str] = None
    notes: Optional[str] = None


class JournalReverseRequest(CamelModel):
    entry_date: Optional[date] = None
    memo: Optional[str] = Field(default=None, max_length=255)
