from typing import Optional
from pydantic import BaseModel, EmailStr, field_validator

from .common import RequiredStr, TrimmedStr, reject_null
from .enums import CustomerStatus


class CustomerCreate(BaseModel):
    customer_code: RequiredStr
    billing_address: RequiredStr

    business_name: Optional[TrimmedStr] = None
    contact_person: Optional[TrimmedStr] = None
    phone: Optional[TrimmedStr] = None
    email: Optional[EmailStr] = None
    service_address: Optional[TrimmedStr] = None
    status: CustomerStatus = CustomerStatus.active

    # Login linked to this account (customer role)
    user_id: Optional[str] = None


class CustomerUpdate(BaseModel):
    """
    Customers may edit their own contact details; staff may edit everything.
    """
    customer_code: Optional[RequiredStr] = None
    billing_address: Optional[RequiredStr] = None
    business_name: Optional[TrimmedStr] = None
    contact_person: Optional[TrimmedStr] = None
    phone: Optional[TrimmedStr] = None
    email: Optional[EmailStr] = None
    service_address: Optional[TrimmedStr] = None
    status: Optional[CustomerStatus] = None
    user_id: Optional[str] = None

    @field_validator("customer_code", "billing_address", "status")
    def not_null(cls, v):
        return reject_null(v)
