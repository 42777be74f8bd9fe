from typing import List, Optional
from pydantic import BaseModel, Field

from .common import RequiredStr, TrimmedStr
from .enums import NotificationType


class NotificationCreate(BaseModel):
    user_id: RequiredStr
    title: RequiredStr
    message: RequiredStr

    type: NotificationType = NotificationType.info
    link: Optional[TrimmedStr] = None


class NotificationUpdate(BaseModel):
    is_read: bool


class MarkReadRequest(BaseModel):
    """
    Omit notification_ids to mark every unread notification of the caller.
    """
    notification_ids: Optional[List[str]] = Field(None, max_length=500)
