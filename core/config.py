from pydantic_settings import BaseSettings
from functools import lru_cache
from pathlib import Path


class Settings(BaseSettings):
    # App
    APP_NAME: str = "ProjectBuddy API"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = """
    Social networking API for professionals.

    ## Features
    * Registration, login and JWT bearer authentication
    * Connections between users (request, accept, decline, block)
    * Teams with roles, join requests, invitations and follows
    * Projects with member roles
    * Posts with reactions, comments, shares and bookmarks
    * Personalized feed and trending posts
    * Notifications and direct messaging

    ## Rate Limits
    * Posts: 5 posts per minute
    * Connection requests: 10 per minute
    * Reactions: 30 per minute
    """
    DOCS_URL: str = "/docs"
    REDOC_URL: str = "/redoc"
    OPENAPI_URL: str = "/openapi.json"
    OPENAPI_TAGS: list[dict] = [
        {
            "name": "auth",
            "description": "Registration, login, logout and availability checks"
        },
        {
            "name": "users",
            "description": "Profiles, user search and account management"
        },
        {
            "name": "connections",
            "description": "Connection requests between users and their lifecycle"
        },
        {
            "name": "teams",
            "description": "Teams, memberships, roles, join requests, invitations and follows"
        },
        {
            "name": "projects",
            "description": "Projects and project membership"
        },
        {
            "name": "posts",
            "description": "Posts, feed, trending, reactions, shares and bookmarks"
        },
        {
            "name": "comments",
            "description": "Comments and replies on posts"
        },
        {
            "name": "notifications",
            "description": "User notifications"
        },
        {
            "name": "conversations",
            "description": "Direct and group messaging"
        },
    ]
    CONTACT: dict = {"name": "ProjectBuddy", "email": "dev@projectbuddy.app"}
    LICENSE_INFO: dict = {
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT",
        "identifier": "MIT",
    }

    # CORS
    CORS_ALLOWED_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost"]

    # Database
    DB_USER: str = "projectbuddy"
    DB_PASS: str = "projectbuddy"
    DB_NAME: str = "projectbuddy"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_URL: str | None = None  # full SQLAlchemy URL, overrides the DB_* parts
    DB_ECHO: bool = False

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return f"postgresql://{self.DB_USER}:{self.DB_PASS}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # JWT
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # Cache
    CACHE_ENABLED: bool = True
    CACHE_EXPIRE_TIME: int = 300  # 5 minutes

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    POSTS_PER_MINUTE: int = 5
    CONNECTION_REQUESTS_PER_MINUTE: int = 10
    REACTIONS_PER_MINUTE: int = 30

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Teams
    INVITATION_EXPIRE_DAYS: int = 7

    # Background tasks
    BACKGROUND_TASKS_ENABLED: bool = True
    NOTIFICATION_RETENTION_DAYS: int = 30
    NOTIFICATION_CLEANUP_INTERVAL: int = 86400  # every 24h
    COUNTS_RECONCILE_INTERVAL: int = 3600  # every hour

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"  # console | json

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    # Get the current file's directory
    current_dir = Path(__file__).resolve().parent
    # Go up one level to the project root
    root_dir = current_dir.parent

    # Initialize settings with explicit .env path
    return Settings(_env_file=root_dir / ".env")
