import asyncio
import logging
from sqlmodel import Session

from core.config import get_settings
from repositories import PostRepository
from services.notification_service import NotificationService

settings = get_settings()
logger = logging.getLogger(__name__)


async def cleanup_notifications(session: Session, days: int | None = None) -> int:
    """
    Delete read notifications older than the retention window
    """
    days = days if days is not None else settings.NOTIFICATION_RETENTION_DAYS
    return NotificationService(session).cleanup(days)


async def reconcile_post_counts(session: Session) -> int:
    """
    Recompute reaction, comment and share counters for posts that drifted
    from their child rows. Returns the number of posts fixed.
    """
    posts = PostRepository(session)
    drifted = posts.post_ids_with_drift()
    if drifted:
        posts.update_counts()
        logger.warning(f"Reconciled counters for {len(drifted)} posts")
    return len(drifted)


async def run_periodically(task, session_factory, interval: int, **kwargs):
    """Run a task forever, one fresh session per run"""
    while True:
        try:
            with session_factory() as session:
                await task(session, **kwargs)
        except Exception as e:
            logger.error(f"Error in {task.__name__}: {e}")
        await asyncio.sleep(interval)
