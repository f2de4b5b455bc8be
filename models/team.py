from sqlmodel import SQLModel, Field, Relationship, Column, JSON, UniqueConstraint
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, TYPE_CHECKING

from .user import UserSummary, utcnow

if TYPE_CHECKING:
    from .user import User


class TeamVisibility(str, Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    INVITE_ONLY = "INVITE_ONLY"


class TeamType(str, Enum):
    PROJECT_BASED = "PROJECT_BASED"
    SKILL_BASED = "SKILL_BASED"
    STARTUP = "STARTUP"
    FREELANCE = "FREELANCE"
    OPEN_SOURCE = "OPEN_SOURCE"
    HACKATHON = "HACKATHON"
    STUDY_GROUP = "STUDY_GROUP"
    NETWORKING = "NETWORKING"
    MENTORSHIP = "MENTORSHIP"


class TeamMemberStatus(str, Enum):
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    MEMBER = "MEMBER"


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class InvitationStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"


class TeamBase(SQLModel):
    name: str = Field(index=True, min_length=2, max_length=100)
    description: str = Field(max_length=1000)
    visibility: TeamVisibility = Field(default=TeamVisibility.PUBLIC)
    type: TeamType = Field(default=TeamType.PROJECT_BASED)
    location: str | None = Field(default=None)
    max_members: int | None = Field(default=None, ge=1)
    is_recruiting: bool = Field(default=True)
    allow_join_requests: bool = Field(default=True)


class Team(TeamBase, table=True):
    id: int | None = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    skills: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    avatar: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    owner: "User" = Relationship()
    members: List["TeamMember"] = Relationship(
        back_populates="team",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    follows: List["TeamFollow"] = Relationship(
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    join_requests: List["TeamJoinRequest"] = Relationship(
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    invitations: List["TeamInvitation"] = Relationship(
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )


class TeamMember(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("team_id", "user_id", name="uq_team_member"),)

    id: int | None = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="team.id", index=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    status: TeamMemberStatus = Field(default=TeamMemberStatus.MEMBER)
    joined_at: datetime = Field(default_factory=utcnow)

    team: Team = Relationship(back_populates="members")
    user: "User" = Relationship(sa_relationship_kwargs={"lazy": "joined"})


class TeamFollow(SQLModel, table=True):
    user_id: int = Field(foreign_key="user.id", primary_key=True, ondelete="CASCADE")
    team_id: int = Field(foreign_key="team.id", primary_key=True, ondelete="CASCADE")
    created_at: datetime = Field(default_factory=utcnow)


class TeamJoinRequest(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="team.id", index=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    message: str | None = Field(default=None, max_length=500)
    status: RequestStatus = Field(default=RequestStatus.PENDING)
    created_at: datetime = Field(default_factory=utcnow)

    user: "User" = Relationship(sa_relationship_kwargs={"lazy": "joined"})


class TeamInvitation(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="team.id", index=True, ondelete="CASCADE")
    inviter_id: int = Field(foreign_key="user.id", ondelete="CASCADE")
    invitee_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    message: str | None = Field(default=None, max_length=500)
    status: InvitationStatus = Field(default=InvitationStatus.PENDING)
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)


# Request/response schemas

class TeamCreate(TeamBase):
    skills: list[str] = []
    tags: list[str] = []


class TeamUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    visibility: TeamVisibility | None = None
    type: TeamType | None = None
    location: str | None = None
    max_members: int | None = Field(default=None, ge=1)
    is_recruiting: bool | None = None
    allow_join_requests: bool | None = None
    skills: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    avatar: str | None = None


class TeamPublic(TeamBase):
    id: int
    owner_id: int
    skills: list[str] = []
    tags: list[str] = []
    avatar: str | None = None
    created_at: datetime
    updated_at: datetime
    owner: UserSummary | None = None
    member_count: int = 0
    follower_count: int = 0
    viewer_status: TeamMemberStatus | None = None
    is_following: bool = False


class TeamMemberPublic(SQLModel):
    id: int
    team_id: int
    user_id: int
    status: TeamMemberStatus
    joined_at: datetime
    is_owner: bool = False
    user: UserSummary | None = None


class TeamMemberRoleUpdate(SQLModel):
    status: TeamMemberStatus


class JoinRequestCreate(SQLModel):
    message: str | None = Field(default=None, max_length=500)


class JoinRequestPublic(SQLModel):
    id: int
    team_id: int
    user_id: int
    message: str | None = None
    status: RequestStatus
    created_at: datetime
    user: UserSummary | None = None


class JoinRequestDecision(SQLModel):
    action: Literal["approve", "reject"]


class InvitationCreate(SQLModel):
    invitee_id: int
    message: str | None = Field(default=None, max_length=500)


class InvitationPublic(SQLModel):
    id: int
    team_id: int
    inviter_id: int
    invitee_id: int
    message: str | None = None
    status: InvitationStatus
    expires_at: datetime
    created_at: datetime


class InvitationDecision(SQLModel):
    action: Literal["accept", "decline"]
