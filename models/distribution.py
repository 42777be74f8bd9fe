from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .common import RequiredStr, TrimmedStr, reject_null
from .enums import DistributionStatus


class DistributionCreate(BaseModel):
    vehicle_id: RequiredStr
    route_id: RequiredStr
    driver_id: RequiredStr
    quantity_liters: float = Field(..., gt=0)
    scheduled_date: datetime

    notes: Optional[TrimmedStr] = None

    # -------------------------------------------------
    # Normalize timestamps like "2025-01-01T00:00:00Z"
    # -------------------------------------------------
    @field_validator("scheduled_date", mode="before")
    def parse_scheduled_date(cls, v):
        if isinstance(v, str) and v.endswith("Z"):
            return v.replace("Z", "+00:00")
        return v


class DistributionUpdate(BaseModel):
    vehicle_id: Optional[RequiredStr] = None
    route_id: Optional[RequiredStr] = None
    driver_id: Optional[RequiredStr] = None
    quantity_liters: Optional[float] = Field(None, gt=0)
    scheduled_date: Optional[datetime] = None
    status: Optional[DistributionStatus] = None
    notes: Optional[TrimmedStr] = None

    @field_validator("vehicle_id", "route_id", "driver_id", "quantity_liters", "scheduled_date", "status")
    def not_null(cls, v):
        return reject_null(v)
