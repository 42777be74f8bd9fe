from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .common import RequiredStr, TrimmedStr, reject_null
from .enums import ComplaintCategory, ComplaintPriority, ComplaintStatus


# -------------------------------------------------
# CREATE
# -------------------------------------------------
class ComplaintCreate(BaseModel):
    customer_id: RequiredStr
    title: RequiredStr
    description: RequiredStr

    category: ComplaintCategory = ComplaintCategory.general
    priority: ComplaintPriority = ComplaintPriority.medium
    location: Optional[TrimmedStr] = None

    # Staff may assign on intake
    assigned_to: Optional[str] = None


# -------------------------------------------------
# UPDATE (PATCH)
# -------------------------------------------------
class ComplaintUpdate(BaseModel):
    """
    Every field optional. Which ones a caller may actually write depends on
    their role (see COMPLAINT_WRITABLE_FIELDS in routers/complaints.py).
    """
    title: Optional[RequiredStr] = None
    description: Optional[RequiredStr] = None
    category: Optional[ComplaintCategory] = None
    priority: Optional[ComplaintPriority] = None
    status: Optional[ComplaintStatus] = None
    assigned_to: Optional[str] = None
    location: Optional[TrimmedStr] = None
    resolution_notes: Optional[TrimmedStr] = Field(None, max_length=5000)

    @field_validator("title", "description", "category", "priority", "status")
    def not_null(cls, v):
        return reject_null(v)

