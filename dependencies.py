from datetime import datetime, timedelta, timezone
from typing import Annotated
from uuid import uuid4
import logging
import re
from time import time

from fastapi import Depends, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.security import OAuth2PasswordBearer
from fastapi.responses import JSONResponse
from sqlalchemy import event, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, create_engine
from starlette.exceptions import HTTPException as StarletteHTTPException
from jwt.exceptions import InvalidTokenError
import jwt
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from core.config import get_settings
from core.errors import ForbiddenError, RateLimitedError, ServiceError, UnauthorizedError
from models import User, TokenData, PaginationParams
from services.chat_service import ChatService
from services.connection_service import ConnectionService
from services.notification_service import NotificationService
from services.post_service import PostService
from services.project_service import ProjectService
from services.team_service import TeamService
from services.user_service import UserService

settings = get_settings()
logger = logging.getLogger(__name__)


def create_db_engine(url: str, echo: bool = False, **kwargs):
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(url, echo=echo, **kwargs)

    if engine.dialect.name == "sqlite":
        # SQLite leaves foreign keys (and so ON DELETE CASCADE) off by default
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = create_db_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)


# Database dependency
def get_session():
    with Session(engine) as session:
        yield session

SessionDep = Annotated[Session, Depends(get_session)]


# Authentication dependencies
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token", auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta if expires_delta else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> TokenData:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            raise UnauthorizedError("Could not validate credentials")
        return TokenData(user_id=int(subject))
    except (InvalidTokenError, ValueError):
        raise UnauthorizedError("Could not validate credentials")


def _request_token(request: Request, bearer: str | None) -> str | None:
    if bearer:
        return bearer
    cookie = request.cookies.get("access_token")
    if cookie:
        return cookie.replace("Bearer ", "")
    return None


async def get_current_user(
    request: Request,
    session: SessionDep,
    token: Annotated[str | None, Depends(oauth2_scheme)],
) -> User:
    token = _request_token(request, token)
    if not token:
        raise UnauthorizedError("Not authenticated")
    token_data = decode_access_token(token)
    user = session.get(User, token_data.user_id)
    if user is None:
        raise UnauthorizedError("Could not validate credentials")
    request.state.user_id = user.id
    return user


async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    if current_user.disabled:
        raise ForbiddenError("Inactive user")
    return current_user


async def get_optional_user(
    request: Request,
    session: SessionDep,
    token: Annotated[str | None, Depends(oauth2_scheme)],
) -> User | None:
    """Current user when a valid token is sent, None for anonymous callers"""
    token = _request_token(request, token)
    if not token:
        return None
    try:
        token_data = decode_access_token(token)
    except UnauthorizedError:
        return None
    user = session.get(User, token_data.user_id)
    if user is None or user.disabled:
        return None
    request.state.user_id = user.id
    return user

CurrentUser = Annotated[User, Depends(get_current_active_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]


# Pagination
LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: str | int | None, default: int) -> int:
    """Leading integer of the value ("2.5" -> 2), the default when there is none"""
    if value is None:
        return default
    match = LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else default


def get_pagination(
    page: str | None = Query(None, description="1-indexed page number"),
    limit: str | None = Query(None, description="Items per page"),
) -> PaginationParams:
    """Malformed or out-of-range values are clamped rather than rejected"""
    return PaginationParams(
        page=max(parse_int(page, 1), 1),
        limit=min(max(parse_int(limit, settings.DEFAULT_PAGE_SIZE), 1), settings.MAX_PAGE_SIZE),
    )

Pagination = Annotated[PaginationParams, Depends(get_pagination)]


# Service providers
def get_user_service(session: SessionDep) -> UserService:
    return UserService(session)


def get_connection_service(session: SessionDep) -> ConnectionService:
    return ConnectionService(session)


def get_team_service(session: SessionDep) -> TeamService:
    return TeamService(session)


def get_project_service(session: SessionDep) -> ProjectService:
    return ProjectService(session)


def get_post_service(session: SessionDep) -> PostService:
    return PostService(session)


def get_notification_service(session: SessionDep) -> NotificationService:
    return NotificationService(session)


def get_chat_service(session: SessionDep) -> ChatService:
    return ChatService(session)

UserServiceDep = Annotated[UserService, Depends(get_user_service)]
ConnectionServiceDep = Annotated[ConnectionService, Depends(get_connection_service)]
TeamServiceDep = Annotated[TeamService, Depends(get_team_service)]
ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
PostServiceDep = Annotated[PostService, Depends(get_post_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]


# Rate limiting dependency
_rate_limit_redis: aioredis.Redis | None = None


def _get_rate_limit_redis() -> aioredis.Redis:
    global _rate_limit_redis
    if _rate_limit_redis is None:
        _rate_limit_redis = aioredis.from_url(settings.REDIS_URL)
    return _rate_limit_redis


def rate_limit(key_prefix: str, limit: int, window: int = 60):
    """Fixed window counter per user, fails open when Redis is unreachable"""
    async def dependency(current_user: CurrentUser):
        if not settings.RATE_LIMIT_ENABLED:
            return
        key = f"rate_limit:{key_prefix}:{current_user.id}:{int(time() // window)}"
        try:
            redis = _get_rate_limit_redis()
            requests = await redis.incr(key)
            if requests == 1:
                await redis.expire(key, window)
        except RedisError as e:
            logger.error(f"Rate limit error: {str(e)}")
            return
        if requests > limit:
            raise RateLimitedError("Too many requests, please try again later")

    return dependency


# Middleware
async def log_requests(request: Request, call_next):
    start_time = time()
    response = await call_next(request)
    process_time = time() - start_time

    logger.info(
        f"Path: {request.url.path} | "
        f"Method: {request.method} | "
        f"Status: {response.status_code} | "
        f"Process Time: {process_time:.2f}s"
    )
    return response


def _error_response(status_code: int, message: str, error: str | None = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "data": None, "error": error},
        headers=headers,
    )


# Error handlers
def setup_error_handlers(app):
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return _error_response(exc.status_code, exc.message, exc.kind.value, headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        return _error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(
            exc.status_code, str(exc.detail), "http_error", getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error_id = str(uuid4())
        logger.error(
            f"Unhandled error {error_id}: {str(exc)}",
            exc_info=True,
            extra={
                "path": request.url.path,
                "method": request.method,
                "error_id": error_id,
            },
        )
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred",
            f"error_id: {error_id}",
        )


def setup_last_active_middleware(app):
    @app.middleware("http")
    async def update_last_active(request: Request, call_next):
        response = await call_next(request)

        user_id = getattr(request.state, "user_id", None)
        if user_id is not None:
            session_factory = app.dependency_overrides.get(get_session, get_session)
            sessions = session_factory()
            session = next(sessions)
            try:
                session.exec(
                    update(User)
                    .where(User.id == user_id)
                    .values(last_active=datetime.now(timezone.utc))
                    .execution_options(synchronize_session=False)
                )
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Failed to update last_active: {e}")
            finally:
                sessions.close()

        return response
