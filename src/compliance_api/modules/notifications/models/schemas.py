from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from compliance_api.modules.notifications.models.notification import NotificationPriority, NotificationType

class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    type: NotificationType
    priority: NotificationPriority
    is_read: bool = False
    related_id: Optional[int] = None
    related_type: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    user_id: int

    model_config = {"from_attributes": True}

class NotificationCounts(BaseModel):
    total: int
    unread: int
