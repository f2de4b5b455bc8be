from datetime import datetime, timezone
from typing import Any, Iterable
import logging

from sqlmodel import Session

from core.errors import ForbiddenError, NotFoundError
from models import (
    Notification, NotificationType, NotificationCategory, PaginationParams,
)
from repositories import NotificationRepository, Page

logger = logging.getLogger(__name__)

CATEGORY_BY_TYPE = {
    NotificationType.CONNECTION_REQUEST: NotificationCategory.SOCIAL,
    NotificationType.CONNECTION_ACCEPTED: NotificationCategory.SOCIAL,
    NotificationType.TEAM_JOIN_REQUEST: NotificationCategory.TEAM,
    NotificationType.TEAM_JOIN_APPROVED: NotificationCategory.TEAM,
    NotificationType.TEAM_JOIN_REJECTED: NotificationCategory.TEAM,
    NotificationType.TEAM_INVITATION: NotificationCategory.TEAM,
    NotificationType.PROJECT_INVITATION: NotificationCategory.PROJECT,
    NotificationType.POST_REACTION: NotificationCategory.SOCIAL,
    NotificationType.POST_COMMENT: NotificationCategory.SOCIAL,
    NotificationType.COMMENT_REPLY: NotificationCategory.SOCIAL,
    NotificationType.POST_SHARED: NotificationCategory.SOCIAL,
    NotificationType.POST_MENTION: NotificationCategory.SOCIAL,
    NotificationType.NEW_MESSAGE: NotificationCategory.MESSAGE,
}


class NotificationService:
    def __init__(self, session: Session):
        self.session = session
        self.notifications = NotificationRepository(session)

    def notify(
        self,
        user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
        actor_id: int | None = None,
    ) -> Notification | None:
        """Store a notification for ``user_id``; users are never notified of their own actions"""
        if actor_id is not None and actor_id == user_id:
            return None
        notification = Notification(
            user_id=user_id,
            type=type,
            category=CATEGORY_BY_TYPE.get(type, NotificationCategory.SYSTEM),
            title=title,
            message=message,
            data=data,
        )
        return self.notifications.save(notification)

    def notify_many(
        self,
        user_ids: Iterable[int],
        type: NotificationType,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
        actor_id: int | None = None,
    ) -> int:
        sent = 0
        for user_id in set(user_ids):
            if self.notify(user_id, type, title, message, data, actor_id) is not None:
                sent += 1
        return sent

    def list_for_user(self, user_id: int, params: PaginationParams, unread_only: bool = False) -> Page[Notification]:
        return self.notifications.list_for_user(user_id, params, unread_only)

    def unread_count(self, user_id: int) -> int:
        return self.notifications.unread_count(user_id)

    def _get_own(self, notification_id: int, user_id: int) -> Notification:
        notification = self.notifications.get(notification_id)
        if not notification:
            raise NotFoundError("Notification not found")
        if notification.user_id != user_id:
            raise ForbiddenError("You can only access your own notifications")
        return notification

    def mark_read(self, notification_id: int, user_id: int) -> Notification:
        notification = self._get_own(notification_id, user_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            notification = self.notifications.save(notification)
        return notification

    def mark_all_read(self, user_id: int) -> int:
        return self.notifications.mark_all_read(user_id)

    def delete(self, notification_id: int, user_id: int) -> None:
        self.notifications.delete(self._get_own(notification_id, user_id))

    def cleanup(self, retention_days: int) -> int:
        deleted = self.notifications.delete_read_older_than(retention_days)
        logger.info(f"Deleted {deleted} read notifications older than {retention_days} days")
        return deleted
