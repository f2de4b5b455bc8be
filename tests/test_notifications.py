import asyncio
from datetime import datetime, timedelta, timezone

from fastapi import status
from sqlmodel import select

from core.tasks import cleanup_notifications, reconcile_post_counts
from models import Notification, NotificationType, Post, Reaction
from services.notification_service import NotificationService


def notify(db_session, user, title="Hello", **kwargs):
    return NotificationService(db_session).notify(
        user.id, NotificationType.CONNECTION_REQUEST, title, f"{title} message", **kwargs
    )


def test_actions_on_yourself_do_not_notify(db_session, user):
    assert notify(db_session, user, actor_id=user.id) is None
    assert db_session.get(Notification, 1) is None


def test_list_and_unread_count(client, db_session, user, auth_header):
    first = notify(db_session, user, "First")
    notify(db_session, user, "Second")

    listing = client.get("/notifications", headers=auth_header).json()
    assert [n["title"] for n in listing["data"]] == ["Second", "First"]
    assert listing["data"][0]["category"] == "social"

    count = client.get("/notifications/unread-count", headers=auth_header).json()["data"]
    assert count == {"unread": 2}

    response = client.put(f"/notifications/{first.id}/read", headers=auth_header)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["is_read"] is True

    unread = client.get("/notifications", headers=auth_header, params={"unread_only": True}).json()["data"]
    assert [n["title"] for n in unread] == ["Second"]


def test_mark_all_read(client, db_session, user, auth_header):
    for title in ("One", "Two", "Three"):
        notify(db_session, user, title)

    response = client.put("/notifications/read-all", headers=auth_header)
    assert response.json()["message"] == "3 notifications marked as read"
    assert client.get("/notifications/unread-count", headers=auth_header).json()["data"]["unread"] == 0


def test_notifications_are_private(client, db_session, user, create_user, auth_header, headers_for):
    notification = notify(db_session, user)
    other = headers_for(create_user("other"))

    assert client.put(f"/notifications/{notification.id}/read", headers=other).status_code == status.HTTP_403_FORBIDDEN
    assert client.delete(f"/notifications/{notification.id}", headers=other).status_code == status.HTTP_403_FORBIDDEN
    assert client.delete("/notifications/999", headers=auth_header).status_code == status.HTTP_404_NOT_FOUND

    response = client.delete(f"/notifications/{notification.id}", headers=auth_header)
    assert response.json()["message"] == "Notification deleted"


def test_cleanup_removes_only_old_read_notifications(db_session, user):
    old = datetime.now(timezone.utc) - timedelta(days=60)
    db_session.add_all([
        Notification(user_id=user.id, type=NotificationType.NEW_MESSAGE, title="old read",
                     message="x", is_read=True, created_at=old),
        Notification(user_id=user.id, type=NotificationType.NEW_MESSAGE, title="old unread",
                     message="x", created_at=old),
        Notification(user_id=user.id, type=NotificationType.NEW_MESSAGE, title="new read",
                     message="x", is_read=True),
    ])
    db_session.commit()

    deleted = asyncio.run(cleanup_notifications(db_session, days=30))
    assert deleted == 1
    remaining = sorted(n.title for n in db_session.exec(select(Notification)).all())
    assert remaining == ["new read", "old unread"]


def test_reconcile_post_counts(db_session, user, create_user):
    post = Post(author_id=user.id, content="Drifting", likes_count=5)
    db_session.add(post)
    db_session.commit()
    db_session.add(Reaction(user_id=create_user("fan").id, post_id=post.id))
    db_session.commit()

    assert asyncio.run(reconcile_post_counts(db_session)) == 1
    db_session.refresh(post)
    assert post.likes_count == 1
    assert asyncio.run(reconcile_post_counts(db_session)) == 0
