from sqlmodel import Field, SQLModel, Column, JSON
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserBase(SQLModel):
    username: str = Field(index=True, unique=True, min_length=3, max_length=30)
    email: str = Field(index=True, unique=True)
    first_name: str = Field(max_length=50)
    last_name: str = Field(max_length=50)


class User(UserBase, table=True):
    id: int | None = Field(default=None, primary_key=True)
    password: str
    bio: str | None = Field(default=None)
    location: str | None = Field(default=None)
    position: str | None = Field(default=None)
    company: str | None = Field(default=None)
    avatar: str | None = Field(default=None)
    skills: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    interests: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    disabled: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
    last_active: datetime = Field(default_factory=utcnow)


class UserSummary(SQLModel):
    """Compact author/member representation embedded in other responses"""
    id: int
    username: str
    first_name: str
    last_name: str
    avatar: str | None = None


class UserPublic(UserSummary):
    bio: str | None = None
    location: str | None = None
    position: str | None = None
    company: str | None = None
    skills: list[str] = []
    interests: list[str] = []
    created_at: datetime


class UserPrivate(UserPublic):
    email: str
    last_active: datetime


class UserCreate(UserBase):
    password: str = Field(min_length=8)


class UserUpdate(SQLModel):
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    location: str | None = None
    position: str | None = None
    company: str | None = None
    avatar: str | None = None
    skills: Optional[list[str]] = None
    interests: Optional[list[str]] = None
