from fastapi import APIRouter
import logging

from models import ApiResponse, BasicResponse, NotificationPublic, PaginationMeta, UnreadCount
from dependencies import CurrentUser, NotificationServiceDep, Pagination

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=ApiResponse[list[NotificationPublic]])
async def list_notifications(
    current_user: CurrentUser,
    service: NotificationServiceDep,
    params: Pagination,
    unread_only: bool = False,
):
    page = service.list_for_user(current_user.id, params, unread_only)
    return ApiResponse(
        message="Notifications retrieved successfully",
        data=[NotificationPublic.model_validate(notification) for notification in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.get("/unread-count", response_model=ApiResponse[UnreadCount])
async def unread_count(current_user: CurrentUser, service: NotificationServiceDep):
    return ApiResponse(message="Unread count", data=UnreadCount(unread=service.unread_count(current_user.id)))


@router.put("/read-all", response_model=BasicResponse)
async def mark_all_read(current_user: CurrentUser, service: NotificationServiceDep):
    updated = service.mark_all_read(current_user.id)
    return BasicResponse(message=f"{updated} notifications marked as read")


@router.put("/{notification_id}/read", response_model=ApiResponse[NotificationPublic])
async def mark_read(notification_id: int, current_user: CurrentUser, service: NotificationServiceDep):
    notification = service.mark_read(notification_id, current_user.id)
    return ApiResponse(message="Notification marked as read", data=NotificationPublic.model_validate(notification))


@router.delete("/{notification_id}", response_model=BasicResponse)
async def delete_notification(notification_id: int, current_user: CurrentUser, service: NotificationServiceDep):
    service.delete(notification_id, current_user.id)
    return BasicResponse(message="Notification deleted")
