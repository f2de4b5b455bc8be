from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from typing import Dict, Set
import logging

from models import (
    ApiResponse, ConversationCreate, ConversationPublic, Message, MessageCreate, MessagePublic,
    PaginationMeta, User,
)
from dependencies import ChatServiceDep, CurrentUser, Pagination, SessionDep, decode_access_token
from services.chat_service import ChatService
from core.errors import ServiceError

router = APIRouter()
logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        # A user may hold several sockets, one per open client
        self.active_connections: Dict[int, Set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, user_id: int):
        await websocket.accept()
        self.active_connections.setdefault(user_id, set()).add(websocket)

    def disconnect(self, websocket: WebSocket, user_id: int):
        sockets = self.active_connections.get(user_id)
        if sockets is None:
            return
        sockets.discard(websocket)
        if not sockets:
            del self.active_connections[user_id]

    async def send_message(self, message: dict, user_id: int):
        for websocket in list(self.active_connections.get(user_id, ())):
            await websocket.send_json(message)


manager = ConnectionManager()


def _message_event(message: Message) -> dict:
    return {
        "type": "message",
        "message": MessagePublic.model_validate(message).model_dump(mode="json"),
    }


async def push_message(service: ChatService, message: Message, sender_id: int):
    """Deliver a stored message to every recipient with an open socket"""
    conversation = service.get_for_participant(message.conversation_id, sender_id)
    event = _message_event(message)
    for user_id in service.recipient_ids(conversation, sender_id):
        await manager.send_message(event, user_id)


@router.websocket("/ws")
async def chat_websocket(websocket: WebSocket, session: SessionDep, token: str = Query(...)):
    try:
        user = session.get(User, decode_access_token(token).user_id)
    except ServiceError:
        user = None
    if user is None or user.disabled:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    service = ChatService(session)
    await manager.connect(websocket, user.id)
    try:
        while True:
            data = await websocket.receive_json()
            if data.get("type") != "message":
                continue
            try:
                message = service.send(int(data["conversation_id"]), user, str(data.get("content", "")))
            except (ServiceError, KeyError, ValueError) as e:
                await websocket.send_json({"type": "error", "message": str(e)})
                continue
            await websocket.send_json(_message_event(message))
            await push_message(service, message, user.id)
    except WebSocketDisconnect:
        manager.disconnect(websocket, user.id)
    except Exception as e:
        manager.disconnect(websocket, user.id)
        logger.error(f"WebSocket error: {e}")
        await websocket.close()


@router.post("", response_model=ApiResponse[ConversationPublic], status_code=status.HTTP_201_CREATED)
async def create_conversation(data: ConversationCreate, current_user: CurrentUser, service: ChatServiceDep):
    """Open a direct or group conversation, reusing an existing direct one"""
    conversation = service.create(current_user, data)
    return ApiResponse(message="Conversation ready", data=service.to_public(conversation, current_user.id))


@router.get("", response_model=ApiResponse[list[ConversationPublic]])
async def list_conversations(current_user: CurrentUser, service: ChatServiceDep, params: Pagination):
    page = service.list_for_user(current_user.id, params)
    return ApiResponse(
        message="Conversations retrieved successfully",
        data=[service.to_public(conversation, current_user.id) for conversation in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.get("/{conversation_id}", response_model=ApiResponse[ConversationPublic])
async def get_conversation(conversation_id: int, current_user: CurrentUser, service: ChatServiceDep):
    conversation = service.get_for_participant(conversation_id, current_user.id)
    return ApiResponse(message="Conversation retrieved successfully", data=service.to_public(conversation, current_user.id))


@router.get("/{conversation_id}/messages", response_model=ApiResponse[list[MessagePublic]])
async def get_messages(conversation_id: int, current_user: CurrentUser, service: ChatServiceDep, params: Pagination):
    """Messages newest first; reading them marks the conversation as read"""
    page = service.messages(conversation_id, current_user.id, params)
    return ApiResponse(
        message="Messages retrieved successfully",
        data=[MessagePublic.model_validate(message) for message in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.post(
    "/{conversation_id}/messages",
    response_model=ApiResponse[MessagePublic],
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: int,
    data: MessageCreate,
    current_user: CurrentUser,
    service: ChatServiceDep,
):
    message = service.send(conversation_id, current_user, data.content)
    await push_message(service, message, current_user.id)
    return ApiResponse(message="Message sent", data=MessagePublic.model_validate(message))
