from contextlib import asynccontextmanager
import asyncio
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from prometheus_fastapi_instrumentator import Instrumentator, metrics
from sqlalchemy import text
from sqlmodel import SQLModel, Session
from redis import asyncio as aioredis

from core.config import get_settings
from core.logging_config import setup_logging
from core.tasks import cleanup_notifications, reconcile_post_counts, run_periodically
from dependencies import (
    SessionDep, engine, log_requests, setup_error_handlers, setup_last_active_middleware,
)
from routers import (
    auth_router,
    users_router,
    connections_router,
    teams_router,
    projects_router,
    posts_router,
    comments_router,
    notifications_router,
    chat_router,
)

# Initialize settings and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

redis: aioredis.Redis = None


def create_db_and_tables():
    SQLModel.metadata.create_all(engine)


def custom_generate_unique_id(route: APIRoute):
    return f"{route.tags[0] if route.tags else ''}-{route.name}"


def _session_factory():
    return Session(engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Setup and cleanup tasks for the application lifecycle"""
    global redis
    create_db_and_tables()
    redis = aioredis.from_url(settings.REDIS_URL, encoding="utf8", decode_responses=True)

    tasks = []
    if settings.BACKGROUND_TASKS_ENABLED:
        tasks.append(asyncio.create_task(run_periodically(
            cleanup_notifications,
            _session_factory,
            settings.NOTIFICATION_CLEANUP_INTERVAL,
            days=settings.NOTIFICATION_RETENTION_DAYS,
        )))
        tasks.append(asyncio.create_task(run_periodically(
            reconcile_post_counts,
            _session_factory,
            settings.COUNTS_RECONCILE_INTERVAL,
        )))
    try:
        yield
    finally:
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        await redis.aclose()


def create_application() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url=settings.DOCS_URL,
        redoc_url=settings.REDOC_URL,
        openapi_url=settings.OPENAPI_URL,
        openapi_tags=settings.OPENAPI_TAGS,
        contact=settings.CONTACT,
        license_info=settings.LICENSE_INFO,
        lifespan=lifespan,
        generate_unique_id_function=custom_generate_unique_id,
    )

    # Add middleware
    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add error handlers
    setup_error_handlers(app)

    # Add last active middleware
    setup_last_active_middleware(app)

    Instrumentator().instrument(app)\
        .add(metrics.request_size())\
        .add(metrics.response_size())\
        .add(metrics.latency(buckets=[0.1, 0.5, 1.0, 2.0, 3.0, 4.0, 5.0]))\
        .add(metrics.requests(should_include_handler=True))\
        .expose(app, include_in_schema=True, should_gzip=True)

    # Include routers
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(users_router, prefix="/users", tags=["users"])
    app.include_router(connections_router, prefix="/connections", tags=["connections"])
    app.include_router(teams_router, prefix="/teams", tags=["teams"])
    app.include_router(projects_router, prefix="/projects", tags=["projects"])
    app.include_router(posts_router, prefix="/posts", tags=["posts"])
    app.include_router(comments_router, prefix="/comments", tags=["comments"])
    app.include_router(notifications_router, prefix="/notifications", tags=["notifications"])
    app.include_router(chat_router, prefix="/conversations", tags=["conversations"])

    return app


# Create the FastAPI application
app = create_application()


@app.get("/health", tags=["health"])
async def health_check(session: SessionDep):
    """Health check endpoint for monitoring"""
    try:
        session.execute(text("SELECT 1"))
        await redis.ping()
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc),
            "version": settings.APP_VERSION
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        raise HTTPException(
            status_code=503,
            detail="Service unavailable"
        )


def main():
    """Create the schema and fill it with demo data"""
    create_db_and_tables()
    try:
        from seed_data import create_test_data
        create_test_data()
    except Exception as e:
        logger.error(f"Failed to create test data: {e}")


if __name__ == "__main__":
    main()
