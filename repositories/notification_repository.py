from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, func, update
from sqlmodel import select

from models import Notification, PaginationParams
from .base import BaseRepository, Page


class NotificationRepository(BaseRepository[Notification]):
    model = Notification

    def list_for_user(self, user_id: int, params: PaginationParams, unread_only: bool = False) -> Page[Notification]:
        statement = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            statement = statement.where(Notification.is_read == False)
        statement = statement.order_by(Notification.created_at.desc(), Notification.id.desc())
        return self.paginate(statement, params)

    def unread_count(self, user_id: int) -> int:
        return self.session.exec(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id, Notification.is_read == False
            )
        ).one()

    def mark_all_read(self, user_id: int) -> int:
        result = self.session.exec(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read == False)
            .values(is_read=True, read_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount

    def delete_read_older_than(self, days: int) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        result = self.session.exec(
            delete(Notification)
            .where(Notification.is_read == True, Notification.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount
