from .base import BaseRepository, Page
from .user_repository import UserRepository
from .connection_repository import ConnectionRepository, normalize_pair
from .team_repository import TeamRepository
from .project_repository import ProjectRepository
from .post_repository import (
    PostRepository, PostFilters, SocialGraph, TRENDING_WINDOWS, DEFAULT_TRENDING_WINDOW, resolve_window,
)
from .notification_repository import NotificationRepository
from .chat_repository import ChatRepository

__all__ = [
    "BaseRepository", "Page",
    "UserRepository",
    "ConnectionRepository", "normalize_pair",
    "TeamRepository",
    "ProjectRepository",
    "PostRepository", "PostFilters", "SocialGraph", "TRENDING_WINDOWS", "DEFAULT_TRENDING_WINDOW", "resolve_window",
    "NotificationRepository",
    "ChatRepository",
]
