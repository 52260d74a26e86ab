import uuid
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field

class Notification(SQLModel, table=True):
    """
    Model for user notifications.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="Unique identifier for the notification")
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True, description="ID of the user receiving the notification")
    title: str = Field(description="Notification title")
    body: str = Field(description="Content of the notification")
    type: str = Field(description="Type of notification (e.g., 'payment', 'info', 'success')")
    is_read: bool = Field(default=False, description="Whether the notification has been read")
    action_url: str | None = Field(default=None, description="Deep link for the related record")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None))
