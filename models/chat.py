from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING
from enum import Enum

from .user import UserSummary, utcnow

if TYPE_CHECKING:
    from .user import User


class ConversationType(str, Enum):
    DIRECT = "DIRECT"
    GROUP = "GROUP"


class MessageStatus(str, Enum):
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"


class ConversationParticipant(SQLModel, table=True):
    conversation_id: int = Field(foreign_key="conversation.id", primary_key=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="user.id", primary_key=True, ondelete="CASCADE")
    joined_at: datetime = Field(default_factory=utcnow)
    last_read_at: datetime = Field(default_factory=utcnow)


class Conversation(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    type: ConversationType = Field(default=ConversationType.DIRECT)
    title: str | None = Field(default=None, max_length=100)
    created_by: int = Field(foreign_key="user.id", ondelete="CASCADE")
    created_at: datetime = Field(default_factory=utcnow)
    last_message_at: datetime = Field(default_factory=utcnow)

    # Relationships
    messages: List["Message"] = Relationship(
        back_populates="conversation",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Message.created_at"}
    )
    participants: List["User"] = Relationship(
        link_model=ConversationParticipant,
        sa_relationship_kwargs={"lazy": "selectin"}
    )


class Message(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    conversation_id: int = Field(foreign_key="conversation.id", index=True, ondelete="CASCADE")
    sender_id: int = Field(foreign_key="user.id", ondelete="CASCADE")
    content: str = Field(max_length=5000)
    status: MessageStatus = Field(default=MessageStatus.SENT)
    created_at: datetime = Field(default_factory=utcnow, index=True)

    # Relationships
    conversation: Conversation = Relationship(back_populates="messages")
    sender: "User" = Relationship(sa_relationship_kwargs={"lazy": "joined"})


class ConversationCreate(SQLModel):
    type: ConversationType = ConversationType.DIRECT
    participant_ids: list[int] = Field(min_length=1)
    title: str | None = Field(default=None, max_length=100)


class ConversationPublic(SQLModel):
    id: int
    type: ConversationType
    title: str | None = None
    created_by: int
    created_at: datetime
    last_message_at: datetime
    participants: list[UserSummary] = []
    unread_count: int = 0


class MessageCreate(SQLModel):
    content: str = Field(min_length=1, max_length=5000)


class MessagePublic(SQLModel):
    id: int
    conversation_id: int
    sender_id: int
    content: str
    status: MessageStatus
    created_at: datetime
    sender: UserSummary | None = None
