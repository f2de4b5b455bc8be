from sqlmodel import SQLModel, Field, Relationship, UniqueConstraint
from pydantic import AliasChoices, BaseModel, Field as PydanticField
from datetime import datetime
from enum import Enum
from typing import Literal, TYPE_CHECKING

from .user import UserSummary, utcnow

if TYPE_CHECKING:
    from .user import User


class ConnectionStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    BLOCKED = "BLOCKED"


class Connection(SQLModel, table=True):
    # One row per unordered pair: (user_low_id, user_high_id) is the normalized pair
    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_connection_pair"),
    )

    id: int | None = Field(default=None, primary_key=True)
    sender_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    receiver_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    user_low_id: int = Field(index=True)
    user_high_id: int = Field(index=True)
    status: ConnectionStatus = Field(default=ConnectionStatus.PENDING, index=True)
    message: str | None = Field(default=None, max_length=300)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    sender: "User" = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Connection.sender_id]", "lazy": "joined"}
    )
    receiver: "User" = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Connection.receiver_id]", "lazy": "joined"}
    )

    def other_party(self, user_id: int) -> int:
        return self.receiver_id if self.sender_id == user_id else self.sender_id


class ConnectionPublic(SQLModel):
    id: int
    sender_id: int
    receiver_id: int
    status: ConnectionStatus
    message: str | None = None
    created_at: datetime
    updated_at: datetime
    sender: UserSummary | None = None
    receiver: UserSummary | None = None


class ConnectionRequest(BaseModel):
    receiver_id: int = PydanticField(validation_alias=AliasChoices("receiver_id", "receiverId"))
    message: str | None = PydanticField(default=None, max_length=300)


class ConnectionResponse(SQLModel):
    action: Literal["accept", "decline", "block"]


class ConnectionStatusInfo(SQLModel):
    status: ConnectionStatus | None = None
    connection_id: int | None = None
    can_send_request: bool
    is_pending: bool
    is_connected: bool


class ConnectionStats(SQLModel):
    total_connections: int
    pending_requests: int
    sent_requests: int
