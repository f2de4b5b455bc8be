from sqlmodel import SQLModel, Field, Column, JSON
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .user import utcnow


class NotificationType(str, Enum):
    CONNECTION_REQUEST = "CONNECTION_REQUEST"
    CONNECTION_ACCEPTED = "CONNECTION_ACCEPTED"
    TEAM_JOIN_REQUEST = "TEAM_JOIN_REQUEST"
    TEAM_JOIN_APPROVED = "TEAM_JOIN_APPROVED"
    TEAM_JOIN_REJECTED = "TEAM_JOIN_REJECTED"
    TEAM_INVITATION = "TEAM_INVITATION"
    PROJECT_INVITATION = "PROJECT_INVITATION"
    POST_REACTION = "POST_REACTION"
    POST_COMMENT = "POST_COMMENT"
    COMMENT_REPLY = "COMMENT_REPLY"
    POST_SHARED = "POST_SHARED"
    POST_MENTION = "POST_MENTION"
    NEW_MESSAGE = "NEW_MESSAGE"


class NotificationCategory(str, Enum):
    SOCIAL = "social"
    TEAM = "team"
    PROJECT = "project"
    MESSAGE = "message"
    SYSTEM = "system"


class Notification(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    type: NotificationType
    category: NotificationCategory = Field(default=NotificationCategory.SOCIAL)
    title: str
    message: str
    data: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON)
    )
    is_read: bool = Field(default=False, index=True)
    read_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, index=True)


class NotificationPublic(SQLModel):
    id: int
    type: NotificationType
    category: NotificationCategory
    title: str
    message: str
    data: Optional[Dict[str, Any]] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class UnreadCount(SQLModel):
    unread: int
