from datetime import datetime, timezone
import logging

from sqlmodel import Session

from core.errors import ForbiddenError, NotFoundError, ValidationError
from models import (
    Conversation, ConversationType, ConversationCreate,
    ConversationPublic, Message, NotificationType, PaginationParams, User,
)
from repositories import ChatRepository, ConnectionRepository, UserRepository, Page
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class ChatService:
    def __init__(self, session: Session):
        self.session = session
        self.chats = ChatRepository(session)
        self.connections = ConnectionRepository(session)
        self.users = UserRepository(session)
        self.notifications = NotificationService(session)

    def to_public(self, conversation: Conversation, viewer_id: int) -> ConversationPublic:
        participant = self.chats.get_participant(conversation.id, viewer_id)
        unread = self.chats.unread_count(participant) if participant else 0
        return ConversationPublic.model_validate(conversation, update={"unread_count": unread})

    def create(self, creator: User, data: ConversationCreate) -> Conversation:
        other_ids = [uid for uid in dict.fromkeys(data.participant_ids) if uid != creator.id]
        if not other_ids:
            raise ValidationError("A conversation needs at least one other participant")
        participants = []
        for user_id in other_ids:
            user = self.users.get(user_id)
            if not user or user.disabled:
                raise NotFoundError(f"User {user_id} not found")
            participants.append(user)

        if data.type == ConversationType.DIRECT:
            if len(other_ids) != 1:
                raise ValidationError("Direct conversations have exactly two participants")
            other_id = other_ids[0]
            if not self.connections.are_connected(creator.id, other_id):
                raise ForbiddenError("You can only message your connections")
            existing = self.chats.find_direct(creator.id, other_id)
            if existing:
                return existing
        elif not data.title:
            raise ValidationError("Group conversations need a title")

        conversation = Conversation(type=data.type, title=data.title, created_by=creator.id)
        conversation.participants = [creator, *participants]
        conversation = self.chats.save(conversation)
        logger.info(f"User {creator.id} opened conversation {conversation.id}")
        return conversation

    def get_for_participant(self, conversation_id: int, user_id: int) -> Conversation:
        conversation = self.chats.get(conversation_id)
        if not conversation:
            raise NotFoundError("Conversation not found")
        if not self.chats.get_participant(conversation.id, user_id):
            raise ForbiddenError("You are not a participant in this conversation")
        return conversation

    def list_for_user(self, user_id: int, params: PaginationParams) -> Page[Conversation]:
        return self.chats.list_for_user(user_id, params)

    def messages(self, conversation_id: int, user_id: int, params: PaginationParams) -> Page[Message]:
        conversation = self.get_for_participant(conversation_id, user_id)
        page = self.chats.list_messages(conversation.id, params)
        participant = self.chats.get_participant(conversation.id, user_id)
        participant.last_read_at = datetime.now(timezone.utc)
        self.chats.save(participant)
        return page

    def send(self, conversation_id: int, sender: User, content: str) -> Message:
        conversation = self.get_for_participant(conversation_id, sender.id)
        content = content.strip()
        if not content:
            raise ValidationError("Message cannot be empty")
        now = datetime.now(timezone.utc)
        message = Message(conversation_id=conversation.id, sender_id=sender.id, content=content, created_at=now)
        conversation.last_message_at = now
        self.session.add(conversation)
        message = self.chats.save(message)

        sender_participant = self.chats.get_participant(conversation.id, sender.id)
        sender_participant.last_read_at = now
        self.chats.save(sender_participant)

        self.notifications.notify_many(
            self.recipient_ids(conversation, sender.id),
            NotificationType.NEW_MESSAGE,
            "New message",
            f"{sender.first_name} {sender.last_name} sent you a message",
            data={"conversation_id": conversation.id, "message_id": message.id},
            actor_id=sender.id,
        )
        return message

    def recipient_ids(self, conversation: Conversation, sender_id: int) -> list[int]:
        return [user.id for user in conversation.participants if user.id != sender_id]
