from sqlmodel import SQLModel, Field, Relationship, Column, JSON, UniqueConstraint
from datetime import datetime
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

from .user import UserSummary, utcnow

if TYPE_CHECKING:
    from .user import User


class ProjectStatus(str, Enum):
    PLANNING = "PLANNING"
    RECRUITING = "RECRUITING"
    ACTIVE = "ACTIVE"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ProjectRole(str, Enum):
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
    VIEWER = "VIEWER"


class ProjectBase(SQLModel):
    title: str = Field(index=True, min_length=3, max_length=200)
    description: str = Field(max_length=5000)
    status: ProjectStatus = Field(default=ProjectStatus.PLANNING)
    is_public: bool = Field(default=True)
    start_date: datetime | None = None
    end_date: datetime | None = None


class Project(ProjectBase, table=True):
    id: int | None = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    owner: "User" = Relationship()
    members: List["ProjectMember"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )


class ProjectMember(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_member"),)

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    role: ProjectRole = Field(default=ProjectRole.MEMBER)
    joined_at: datetime = Field(default_factory=utcnow)

    project: Project = Relationship(back_populates="members")
    user: "User" = Relationship(sa_relationship_kwargs={"lazy": "joined"})


class ProjectCreate(ProjectBase):
    tags: list[str] = []


class ProjectUpdate(SQLModel):
    title: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    status: ProjectStatus | None = None
    is_public: bool | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    tags: Optional[list[str]] = None


class ProjectPublic(ProjectBase):
    id: int
    owner_id: int
    tags: list[str] = []
    created_at: datetime
    updated_at: datetime
    owner: UserSummary | None = None
    member_count: int = 0


class ProjectMemberPublic(SQLModel):
    id: int
    project_id: int
    user_id: int
    role: ProjectRole
    joined_at: datetime
    is_owner: bool = False
    user: UserSummary | None = None


class ProjectInvite(SQLModel):
    user_id: int
    role: ProjectRole = ProjectRole.MEMBER


class ProjectRoleUpdate(SQLModel):
    role: ProjectRole
