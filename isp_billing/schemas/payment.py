# isp_billing/schemas/payment.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from isp_billing.schemas.base import CamelModel

PaymentMethod = Literal["cash", "bank", "mobile_money", "online"]


class PaymentCreate(CamelModel):
    invoice_id: int
    customer_id: int
    amount: int = Field(..., gt=0)
    method: PaymentMethod = "cash"
    collected_by: str = Field(..., min_length=1, max_length=64)
    reference: Optional[str] = Field(default=None, max_length=64)
    notes: Optional[str] = Field(default=None, max_length=255)

    @field_validator("collected_by")
    @classmethod
    def validate_collected_by(cls, v: str) -> str:
        """Ensure the collector is not just whitespace"""
        if not v.strip():
            raise ValueError("collectedBy cannot be empty or whitespace")
        return v.strip()


class PaymentOut(CamelModel):
    id: int
    invoice_id: int
    customer_id: int
    amount: int
    method: PaymentMethod
    collected_by: str
    reference: Optional[str]
    notes: Optional[str]
    whatsapp_sent: bool
    received_at: datetime
