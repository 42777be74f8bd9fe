from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .common import RequiredStr, TrimmedStr, reject_null
from .enums import InvoiceStatus


class InvoiceCreate(BaseModel):
    customer_id: RequiredStr
    amount: float = Field(..., ge=0)
    due_date: date

    invoice_number: Optional[TrimmedStr] = None
    service_id: Optional[str] = None
    description: Optional[TrimmedStr] = None


class InvoiceUpdate(BaseModel):
    amount: Optional[float] = Field(None, ge=0)
    due_date: Optional[date] = None
    status: Optional[InvoiceStatus] = None
    description: Optional[TrimmedStr] = None

    @field_validator("amount", "due_date", "status")
    def not_null(cls, v):
        return reject_null(v)
