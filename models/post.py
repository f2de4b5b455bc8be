from sqlmodel import Field, SQLModel, Relationship, Column, JSON, UniqueConstraint
from datetime import datetime
from enum import Enum
from typing import Optional, List, TYPE_CHECKING

from .user import UserSummary, utcnow

if TYPE_CHECKING:
    from .user import User
    from .team import Team


class PostType(str, Enum):
    GENERAL = "GENERAL"
    PROJECT_UPDATE = "PROJECT_UPDATE"
    PROJECT_ANNOUNCEMENT = "PROJECT_ANNOUNCEMENT"
    ACHIEVEMENT = "ACHIEVEMENT"
    MILESTONE_COMPLETED = "MILESTONE_COMPLETED"
    GOAL_COMPLETED = "GOAL_COMPLETED"
    TEAM_FORMATION = "TEAM_FORMATION"
    FIND_TEAMMATES = "FIND_TEAMMATES"
    FIND_TEAM = "FIND_TEAM"
    FIND_PROJECT = "FIND_PROJECT"
    PROJECT_SHOWCASE = "PROJECT_SHOWCASE"
    SKILL_SHARE = "SKILL_SHARE"
    RESOURCE_SHARE = "RESOURCE_SHARE"
    QUESTION = "QUESTION"
    POLL = "POLL"
    EVENT = "EVENT"
    CELEBRATION = "CELEBRATION"


class PostVisibility(str, Enum):
    PUBLIC = "public"
    CONNECTIONS = "connections"
    TEAM = "team"
    PROJECT = "project"


class ReactionType(str, Enum):
    LIKE = "LIKE"
    LOVE = "LOVE"
    CELEBRATE = "CELEBRATE"
    SUPPORT = "SUPPORT"
    INSIGHTFUL = "INSIGHTFUL"
    FUNNY = "FUNNY"
    AMAZING = "AMAZING"


class PostBase(SQLModel):
    content: str = Field(min_length=1, max_length=5000)
    type: PostType = Field(default=PostType.GENERAL)
    visibility: PostVisibility = Field(default=PostVisibility.CONNECTIONS)


class Post(PostBase, table=True):
    id: int | None = Field(default=None, primary_key=True)
    author_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    team_id: int | None = Field(default=None, foreign_key="team.id", index=True, ondelete="CASCADE")
    project_id: int | None = Field(default=None, foreign_key="project.id", index=True, ondelete="CASCADE")
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    media: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    mentions: list[int] = Field(default_factory=list, sa_column=Column(JSON))

    # Denormalized counters, refreshed by PostRepository.update_counts
    likes_count: int = Field(default=0)
    comments_count: int = Field(default=0)
    shares_count: int = Field(default=0)
    views_count: int = Field(default=0)

    is_edited: bool = Field(default=False)
    edited_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)

    # Relationships
    author: "User" = Relationship(sa_relationship_kwargs={"lazy": "joined"})
    team: Optional["Team"] = Relationship(sa_relationship_kwargs={"lazy": "joined"})
    hashtag_links: List["PostHashtag"] = Relationship(
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "lazy": "selectin"}
    )
    reactions: List["Reaction"] = Relationship(sa_relationship_kwargs={"cascade": "all, delete-orphan"})
    comments: List["Comment"] = Relationship(sa_relationship_kwargs={"cascade": "all, delete-orphan"})
    shares: List["Share"] = Relationship(sa_relationship_kwargs={"cascade": "all, delete-orphan"})
    bookmarks: List["Bookmark"] = Relationship(sa_relationship_kwargs={"cascade": "all, delete-orphan"})

    @property
    def hashtags(self) -> list[str]:
        return [link.tag for link in self.hashtag_links]


class PostHashtag(SQLModel, table=True):
    post_id: int = Field(foreign_key="post.id", primary_key=True, ondelete="CASCADE")
    tag: str = Field(primary_key=True, index=True, max_length=100)


class Reaction(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_reaction_user_post"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    post_id: int = Field(foreign_key="post.id", index=True, ondelete="CASCADE")
    type: ReactionType = Field(default=ReactionType.LIKE)
    created_at: datetime = Field(default_factory=utcnow)

    user: "User" = Relationship(sa_relationship_kwargs={"lazy": "joined"})


class Comment(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="post.id", index=True, ondelete="CASCADE")
    author_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    parent_id: int | None = Field(default=None, foreign_key="comment.id", index=True, ondelete="CASCADE")
    content: str = Field(max_length=2000)
    is_edited: bool = Field(default=False)
    edited_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)

    author: "User" = Relationship(sa_relationship_kwargs={"lazy": "joined"})
    replies: List["Comment"] = Relationship(
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "Comment.created_at",
        }
    )


class Share(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_share_user_post"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    post_id: int = Field(foreign_key="post.id", index=True, ondelete="CASCADE")
    comment: str | None = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utcnow)


class Bookmark(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_bookmark_user_post"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    post_id: int = Field(foreign_key="post.id", index=True, ondelete="CASCADE")
    created_at: datetime = Field(default_factory=utcnow)


# Request/response schemas

class TeamSummary(SQLModel):
    id: int
    name: str
    avatar: str | None = None


class PostCreate(PostBase):
    team_id: int | None = None
    project_id: int | None = None
    tags: list[str] = []
    media: list[str] = []
    mentions: list[int] = []
    hashtags: list[str] = []


class PostUpdate(SQLModel):
    content: str | None = Field(default=None, min_length=1, max_length=5000)
    type: PostType | None = None
    visibility: PostVisibility | None = None
    tags: Optional[list[str]] = None
    media: Optional[list[str]] = None
    hashtags: Optional[list[str]] = None


class PostPublic(PostBase):
    id: int
    author_id: int
    team_id: int | None = None
    project_id: int | None = None
    tags: list[str] = []
    media: list[str] = []
    mentions: list[int] = []
    hashtags: list[str] = []
    likes_count: int
    comments_count: int
    shares_count: int
    views_count: int
    is_edited: bool
    edited_at: datetime | None = None
    created_at: datetime
    author: UserSummary | None = None
    team: TeamSummary | None = None
    # Viewer-specific state
    viewer_reaction: ReactionType | None = None
    is_bookmarked: bool = False


class ReactionCreate(SQLModel):
    type: ReactionType = ReactionType.LIKE


class ReactionPublic(SQLModel):
    id: int
    user_id: int
    post_id: int
    type: ReactionType
    created_at: datetime
    user: UserSummary | None = None


class ShareCreate(SQLModel):
    comment: str | None = Field(default=None, max_length=500)


class SharePublic(SQLModel):
    id: int
    user_id: int
    post_id: int
    comment: str | None = None
    created_at: datetime


class BookmarkPublic(SQLModel):
    id: int
    user_id: int
    post_id: int
    created_at: datetime


class CommentCreate(SQLModel):
    content: str = Field(min_length=1, max_length=2000)
    parent_id: int | None = None


class CommentUpdate(SQLModel):
    content: str = Field(min_length=1, max_length=2000)


class CommentPublic(SQLModel):
    id: int
    post_id: int
    author_id: int
    parent_id: int | None = None
    content: str
    is_edited: bool
    edited_at: datetime | None = None
    created_at: datetime
    author: UserSummary | None = None
    reply_count: int = 0
    replies: list["CommentPublic"] = []


class PostAnalytics(SQLModel):
    views: int
    reactions: int
    comments: int
    shares: int
    bookmarks: int
    reactions_by_type: dict[str, int]
