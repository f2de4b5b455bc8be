from .auth import router as auth_router
from .users import router as users_router
from .connections import router as connections_router
from .teams import router as teams_router
from .projects import router as projects_router
from .posts import router as posts_router
from .comments import router as comments_router
from .notifications import router as notifications_router
from .chat import router as chat_router

__all__ = [
    "auth_router",
    "users_router",
    "connections_router",
    "teams_router",
    "projects_router",
    "posts_router",
    "comments_router",
    "notifications_router",
    "chat_router",
]
