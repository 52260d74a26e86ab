import logging
from sqlalchemy.ext.asyncio import AsyncSession

from chitledger.models.notification import Notification
from chitledger.models.enums import NotificationType
from chitledger.models.user import User

logger = logging.getLogger(__name__)

def add_notification(
    session: AsyncSession,
    user: User,
    *,
    title: str,
    body: str,
    type: NotificationType = NotificationType.INFO,
    action_url: str | None = None,
) -> Notification:
    """
    Stage an in-app notification on the session. The caller commits it
    together with the change it describes.
    """
    notification = Notification(
        user_id=user.id,
        title=title,
        body=body,
        type=type,
        action_url=action_url,
    )
    session.add(notification)
    return notification

def queue_email(user: User, subject: str, template: str, context: dict) -> None:
    """
    Hand an email to the Celery worker. Delivery problems never fail the
    request that triggered the email.
    """
    from chitledger.worker import send_email_task

    try:
        send_email_task.delay(
            email_to=user.email,
            subject=subject,
            html_template=template,
            environment=context,
        )
    except Exception as e:
        logger.warning(f"Could not queue '{subject}' email for {user.email}: {e}")
