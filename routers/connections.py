from fastapi import APIRouter, Depends, Query, status
import logging

from models import (
    ApiResponse, BasicResponse, ConnectionPublic, ConnectionRequest, ConnectionResponse,
    ConnectionStats, ConnectionStatus, ConnectionStatusInfo, PaginationMeta,
)
from dependencies import ConnectionServiceDep, CurrentUser, Pagination, rate_limit
from core.config import get_settings

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


def _page_response(message, page, params):
    return ApiResponse(
        message=message,
        data=[ConnectionPublic.model_validate(connection) for connection in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.post(
    "/send",
    response_model=ApiResponse[ConnectionPublic],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("connections", settings.CONNECTION_REQUESTS_PER_MINUTE))],
)
async def send_connection_request(
    request: ConnectionRequest,
    current_user: CurrentUser,
    service: ConnectionServiceDep,
):
    connection = service.send_request(current_user, request.receiver_id, request.message)
    return ApiResponse(
        message="Connection request sent successfully",
        data=ConnectionPublic.model_validate(connection),
    )


@router.put("/{connection_id}/respond", response_model=ApiResponse[ConnectionPublic])
async def respond_to_connection(
    connection_id: int,
    body: ConnectionResponse,
    current_user: CurrentUser,
    service: ConnectionServiceDep,
):
    """Accept, decline or block a pending request addressed to the current user"""
    connection = service.respond(connection_id, current_user, body.action)
    return ApiResponse(
        message=f"Connection request {connection.status.value.lower()}",
        data=ConnectionPublic.model_validate(connection),
    )


@router.delete("/{connection_id}", response_model=BasicResponse)
async def remove_connection(connection_id: int, current_user: CurrentUser, service: ConnectionServiceDep):
    service.remove(connection_id, current_user)
    return BasicResponse(message="Connection removed successfully")


@router.get("", response_model=ApiResponse[list[ConnectionPublic]])
async def list_connections(
    current_user: CurrentUser,
    service: ConnectionServiceDep,
    params: Pagination,
    connection_status: ConnectionStatus = Query(ConnectionStatus.ACCEPTED, alias="status"),
):
    page = service.list_connections(current_user.id, params, connection_status)
    return _page_response("Connections retrieved successfully", page, params)


@router.get("/pending", response_model=ApiResponse[list[ConnectionPublic]])
async def pending_requests(current_user: CurrentUser, service: ConnectionServiceDep, params: Pagination):
    """Requests waiting for the current user's answer"""
    page = service.pending_received(current_user.id, params)
    return _page_response("Pending requests retrieved successfully", page, params)


@router.get("/sent", response_model=ApiResponse[list[ConnectionPublic]])
async def sent_requests(current_user: CurrentUser, service: ConnectionServiceDep, params: Pagination):
    page = service.pending_sent(current_user.id, params)
    return _page_response("Sent requests retrieved successfully", page, params)


@router.get("/stats", response_model=ApiResponse[ConnectionStats])
async def connection_stats(current_user: CurrentUser, service: ConnectionServiceDep):
    return ApiResponse(message="Connection stats", data=service.stats(current_user.id))


@router.get("/status/{user_id}", response_model=ApiResponse[ConnectionStatusInfo])
async def connection_status(user_id: int, current_user: CurrentUser, service: ConnectionServiceDep):
    return ApiResponse(message="Connection status", data=service.status_with(current_user.id, user_id))
