"""In-app notification schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    message: str
    link: Optional[str] = None
    read: bool
    created_at: datetime


class NotificationInbox(BaseModel):
    data: list[NotificationOut]
    unread_count: int
