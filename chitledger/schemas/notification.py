import uuid
from datetime import datetime
from sqlmodel import SQLModel

class NotificationRead(SQLModel):
    """
    Schema for reading a notification.
    """
    id: uuid.UUID
    title: str
    body: str
    type: str
    is_read: bool
    action_url: str | None
    created_at: datetime
