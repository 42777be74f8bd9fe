from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from .common import RequiredStr, TrimmedStr, reject_null
from .enums import ServicePriority, ServiceStatus


def _normalize_timestamp(v):
    if isinstance(v, str) and v.endswith("Z"):
        return v.replace("Z", "+00:00")
    return v


# -------------------------------------------------
# CREATE
# -------------------------------------------------
class ServiceCreate(BaseModel):
    customer_id: RequiredStr
    service_type: RequiredStr
    description: RequiredStr

    priority: ServicePriority = ServicePriority.medium
    scheduled_date: Optional[datetime] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    service_address: Optional[TrimmedStr] = None
    complaint_id: Optional[str] = None
    assigned_technician: Optional[str] = None

    # -------------------------------------------------
    # Normalize timestamps like "2025-01-01T00:00:00Z"
    # -------------------------------------------------
    @field_validator("scheduled_date", mode="before")
    def parse_scheduled_date(cls, v):
        return _normalize_timestamp(v)


# -------------------------------------------------
# UPDATE (PATCH)
# -------------------------------------------------
class ServiceUpdate(BaseModel):
    service_type: Optional[RequiredStr] = None
    description: Optional[RequiredStr] = None
    priority: Optional[ServicePriority] = None
    status: Optional[ServiceStatus] = None
    scheduled_date: Optional[datetime] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    assigned_technician: Optional[str] = None
    service_notes: Optional[TrimmedStr] = None
    materials_used: Optional[List[dict]] = None

    @field_validator("service_type", "description", "priority", "status")
    def not_null(cls, v):
        return reject_null(v)

    @field_validator("scheduled_date", mode="before")
    def parse_scheduled_date(cls, v):
        return _normalize_timestamp(v)


# -------------------------------------------------
# ASSIGNMENT
# -------------------------------------------------
class ServiceAssign(BaseModel):
    service_id: RequiredStr
    technician_id: RequiredStr
    scheduled_date: Optional[datetime] = None

    @field_validator("scheduled_date", mode="before")
    def parse_scheduled_date(cls, v):
        return _normalize_timestamp(v)


class ServiceReassign(BaseModel):
    service_id: RequiredStr
    new_technician_id: RequiredStr
    reason: Optional[TrimmedStr] = None
