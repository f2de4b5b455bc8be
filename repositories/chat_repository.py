from sqlalchemy import func
from sqlmodel import select

from models import (
    Conversation, ConversationParticipant, ConversationType, Message, PaginationParams,
)
from .base import BaseRepository, Page


class ChatRepository(BaseRepository[Conversation]):
    model = Conversation

    def get_participant(self, conversation_id: int, user_id: int) -> ConversationParticipant | None:
        return self.session.get(ConversationParticipant, (conversation_id, user_id))

    def find_direct(self, user_a: int, user_b: int) -> Conversation | None:
        """Existing direct conversation whose participants are exactly the two users"""
        shared = (
            select(ConversationParticipant.conversation_id)
            .where(ConversationParticipant.user_id.in_([user_a, user_b]))
            .group_by(ConversationParticipant.conversation_id)
            .having(func.count() == 2)
        )
        return self.session.exec(
            select(Conversation).where(
                Conversation.type == ConversationType.DIRECT,
                Conversation.id.in_(shared),
            )
        ).first()

    def list_for_user(self, user_id: int, params: PaginationParams) -> Page[Conversation]:
        statement = (
            select(Conversation)
            .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
            .where(ConversationParticipant.user_id == user_id)
            .order_by(Conversation.last_message_at.desc(), Conversation.id.desc())
        )
        return self.paginate(statement, params)

    def list_messages(self, conversation_id: int, params: PaginationParams) -> Page[Message]:
        statement = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
        )
        return self.paginate(statement, params)

    def unread_count(self, participant: ConversationParticipant) -> int:
        return self.session.exec(
            select(func.count(Message.id)).where(
                Message.conversation_id == participant.conversation_id,
                Message.sender_id != participant.user_id,
                Message.created_at > participant.last_read_at,
            )
        ).one()
