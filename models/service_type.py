from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .common import RequiredStr, TrimmedStr, reject_null
from .enums import SkillLevel


class ServiceTypeCreate(BaseModel):
    type_code: RequiredStr
    type_name: RequiredStr
    category: RequiredStr

    description: Optional[TrimmedStr] = None
    estimated_duration_hours: Optional[float] = Field(None, ge=0)
    base_price: Optional[float] = Field(None, ge=0)
    skill_level: SkillLevel = SkillLevel.basic
    is_active: bool = True


class ServiceTypeUpdate(BaseModel):
    type_name: Optional[RequiredStr] = None
    category: Optional[RequiredStr] = None
    description: Optional[TrimmedStr] = None
    estimated_duration_hours: Optional[float] = Field(None, ge=0)
    base_price: Optional[float] = Field(None, ge=0)
    skill_level: Optional[SkillLevel] = None
    is_active: Optional[bool] = None

    @field_validator("type_name", "category", "is_active")
    def not_null(cls, v):
        return reject_null(v)
