from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sqlalchemy import and_, func, or_, update, select as sa_select
from sqlmodel import select

from models import (
    Post, PostHashtag, PostType, PostVisibility, Reaction, ReactionType,
    Comment, Share, Bookmark, PaginationParams,
)
from .base import BaseRepository, LIKE_ESCAPE, Page, contains_pattern

TRENDING_WINDOWS = {
    "1h": timedelta(hours=1),
    "6h": timedelta(hours=6),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
}
DEFAULT_TRENDING_WINDOW = "24h"


@dataclass
class SocialGraph:
    """Who a viewer is linked to: accepted connections and teams joined or followed"""
    user_id: int
    connected_ids: list[int] = field(default_factory=list)
    member_team_ids: list[int] = field(default_factory=list)
    followed_team_ids: list[int] = field(default_factory=list)

    @property
    def team_ids(self) -> list[int]:
        return sorted(set(self.member_team_ids) | set(self.followed_team_ids))


@dataclass
class PostFilters:
    type: PostType | None = None
    author_id: int | None = None
    team_id: int | None = None
    project_id: int | None = None
    hashtags: list[str] = field(default_factory=list)
    visibility: PostVisibility | None = None
    search: str | None = None


def resolve_window(timeframe: str | None) -> tuple[str, timedelta]:
    """Map a timeframe label to its window, unknown labels fall back to 24h"""
    if timeframe not in TRENDING_WINDOWS:
        timeframe = DEFAULT_TRENDING_WINDOW
    return timeframe, TRENDING_WINDOWS[timeframe]


def _count_of(model, post_ref):
    return sa_select(func.count(model.id)).where(model.post_id == post_ref).scalar_subquery()


class PostRepository(BaseRepository[Post]):
    model = Post

    @staticmethod
    def _newest_first(statement):
        return statement.order_by(Post.created_at.desc(), Post.id.desc())

    @staticmethod
    def _apply_filters(statement, filters: PostFilters | None):
        if filters is None:
            return statement
        if filters.type is not None:
            statement = statement.where(Post.type == filters.type)
        if filters.author_id is not None:
            statement = statement.where(Post.author_id == filters.author_id)
        if filters.team_id is not None:
            statement = statement.where(Post.team_id == filters.team_id)
        if filters.project_id is not None:
            statement = statement.where(Post.project_id == filters.project_id)
        if filters.visibility is not None:
            statement = statement.where(Post.visibility == filters.visibility)
        if filters.hashtags:
            statement = statement.where(
                Post.id.in_(
                    sa_select(PostHashtag.post_id).where(PostHashtag.tag.in_(filters.hashtags))
                )
            )
        if filters.search:
            pattern = contains_pattern(filters.search)
            statement = statement.where(
                or_(
                    func.lower(Post.content).like(pattern, escape=LIKE_ESCAPE),
                    Post.id.in_(
                        sa_select(PostHashtag.post_id).where(PostHashtag.tag.like(pattern, escape=LIKE_ESCAPE))
                    ),
                )
            )
        return statement

    # Feed

    @staticmethod
    def feed_predicate(graph: SocialGraph):
        return or_(
            Post.author_id == graph.user_id,
            Post.author_id.in_(graph.connected_ids),
            Post.team_id.in_(graph.team_ids),
            and_(Post.visibility == PostVisibility.PUBLIC, Post.author_id != graph.user_id),
        )

    @staticmethod
    def access_predicate(graph: SocialGraph | None):
        """Posts a listing or search may return, anonymous callers get public only.

        Narrower than the feed predicate: a connection's team or project posts
        stay out of listings unless the viewer is in or follows that team, even
        though the feed and a read by id show them.
        """
        if graph is None:
            return Post.visibility == PostVisibility.PUBLIC
        return or_(
            Post.author_id == graph.user_id,
            Post.visibility == PostVisibility.PUBLIC,
            and_(
                Post.visibility == PostVisibility.CONNECTIONS,
                Post.author_id.in_(graph.connected_ids),
            ),
            Post.team_id.in_(graph.team_ids),
        )

    def get_feed(
        self,
        graph: SocialGraph,
        params: PaginationParams,
        filters: PostFilters | None = None,
    ) -> Page[Post]:
        statement = select(Post).where(self.feed_predicate(graph))
        statement = self._newest_first(self._apply_filters(statement, filters))
        return self.paginate(statement, params)

    def is_in_feed(self, post_id: int, graph: SocialGraph) -> bool:
        return self.session.exec(
            select(Post.id).where(Post.id == post_id, self.feed_predicate(graph))
        ).first() is not None

    def search(
        self,
        params: PaginationParams,
        graph: SocialGraph | None,
        filters: PostFilters | None = None,
    ) -> Page[Post]:
        statement = select(Post).where(self.access_predicate(graph))
        statement = self._newest_first(self._apply_filters(statement, filters))
        return self.paginate(statement, params)

    def trending(self, params: PaginationParams, timeframe: str | None = None) -> Page[Post]:
        _, window = resolve_window(timeframe)
        since = datetime.now(timezone.utc) - window
        statement = (
            select(Post)
            .where(Post.created_at >= since)
            .order_by(
                Post.likes_count.desc(),
                Post.comments_count.desc(),
                Post.shares_count.desc(),
                Post.created_at.desc(),
                Post.id.desc(),
            )
        )
        return self.paginate(statement, params)

    def list_by_author(self, author_id: int, params: PaginationParams, public_only: bool) -> Page[Post]:
        statement = select(Post).where(Post.author_id == author_id)
        if public_only:
            statement = statement.where(Post.visibility == PostVisibility.PUBLIC)
        return self.paginate(self._newest_first(statement), params)

    def list_by_team(self, team_id: int, params: PaginationParams) -> Page[Post]:
        statement = self._newest_first(select(Post).where(Post.team_id == team_id))
        return self.paginate(statement, params)

    def list_bookmarked(self, user_id: int, params: PaginationParams) -> Page[Post]:
        statement = (
            select(Post)
            .join(Bookmark, Bookmark.post_id == Post.id)
            .where(Bookmark.user_id == user_id)
            .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
        )
        return self.paginate(statement, params)

    # Hashtags

    def set_hashtags(self, post: Post, tags: list[str]) -> None:
        wanted = list(dict.fromkeys(tags))
        post.hashtag_links = [link for link in post.hashtag_links if link.tag in wanted]
        present = {link.tag for link in post.hashtag_links}
        for tag in wanted:
            if tag not in present:
                post.hashtag_links.append(PostHashtag(tag=tag))

    # Viewer state

    def viewer_reactions(self, user_id: int, post_ids: list[int]) -> dict[int, ReactionType]:
        if not post_ids:
            return {}
        rows = self.session.exec(
            select(Reaction.post_id, Reaction.type).where(
                Reaction.user_id == user_id, Reaction.post_id.in_(post_ids)
            )
        ).all()
        return {post_id: reaction_type for post_id, reaction_type in rows}

    def bookmarked_ids(self, user_id: int, post_ids: list[int]) -> set[int]:
        if not post_ids:
            return set()
        return set(self.session.exec(
            select(Bookmark.post_id).where(Bookmark.user_id == user_id, Bookmark.post_id.in_(post_ids))
        ).all())

    # Reactions, shares, bookmarks

    def get_reaction(self, post_id: int, user_id: int) -> Reaction | None:
        return self.session.exec(
            select(Reaction).where(Reaction.post_id == post_id, Reaction.user_id == user_id)
        ).first()

    def list_reactions(
        self,
        post_id: int,
        params: PaginationParams,
        reaction_type: ReactionType | None = None,
    ) -> Page[Reaction]:
        statement = select(Reaction).where(Reaction.post_id == post_id)
        if reaction_type is not None:
            statement = statement.where(Reaction.type == reaction_type)
        statement = statement.order_by(Reaction.created_at.desc(), Reaction.id.desc())
        return self.paginate(statement, params)

    def reactions_by_type(self, post_id: int) -> dict[str, int]:
        rows = self.session.exec(
            select(Reaction.type, func.count(Reaction.id))
            .where(Reaction.post_id == post_id)
            .group_by(Reaction.type)
        ).all()
        return {reaction_type.value: count for reaction_type, count in rows}

    def get_share(self, post_id: int, user_id: int) -> Share | None:
        return self.session.exec(
            select(Share).where(Share.post_id == post_id, Share.user_id == user_id)
        ).first()

    def get_bookmark(self, post_id: int, user_id: int) -> Bookmark | None:
        return self.session.exec(
            select(Bookmark).where(Bookmark.post_id == post_id, Bookmark.user_id == user_id)
        ).first()

    def bookmark_count(self, post_id: int) -> int:
        return self.session.exec(
            select(func.count(Bookmark.id)).where(Bookmark.post_id == post_id)
        ).one()

    # Comments

    def get_comment(self, comment_id: int) -> Comment | None:
        return self.session.get(Comment, comment_id)

    def list_comments(self, post_id: int, params: PaginationParams) -> Page[Comment]:
        statement = (
            select(Comment)
            .where(Comment.post_id == post_id, Comment.parent_id == None)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
        return self.paginate(statement, params)

    def list_replies(self, comment_id: int, params: PaginationParams) -> Page[Comment]:
        statement = (
            select(Comment)
            .where(Comment.parent_id == comment_id)
            .order_by(Comment.created_at, Comment.id)
        )
        return self.paginate(statement, params)

    def reply_counts(self, comment_ids: list[int]) -> dict[int, int]:
        if not comment_ids:
            return {}
        rows = self.session.exec(
            select(Comment.parent_id, func.count(Comment.id))
            .where(Comment.parent_id.in_(comment_ids))
            .group_by(Comment.parent_id)
        ).all()
        return {parent_id: count for parent_id, count in rows}

    # Counters

    def engaged_post_ids(self, user_id: int) -> list[int]:
        """Posts carrying a reaction, comment or share by the user"""
        statement = (
            sa_select(Reaction.post_id).where(Reaction.user_id == user_id)
            .union(sa_select(Comment.post_id).where(Comment.author_id == user_id))
            .union(sa_select(Share.post_id).where(Share.user_id == user_id))
        )
        return list(self.session.exec(statement).scalars().all())

    def update_counts(self, post_id: int | None = None) -> None:
        """Recompute the denormalized counters from child rows in one UPDATE.

        Without a post id every post is reconciled.
        """
        statement = update(Post).values(
            likes_count=_count_of(Reaction, Post.id),
            comments_count=_count_of(Comment, Post.id),
            shares_count=_count_of(Share, Post.id),
        )
        if post_id is not None:
            statement = statement.where(Post.id == post_id)
        self.session.exec(statement.execution_options(synchronize_session=False))
        self.session.commit()

    def increment_view_count(self, post_id: int) -> None:
        self.session.exec(
            update(Post)
            .where(Post.id == post_id)
            .values(views_count=Post.views_count + 1)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()

    def post_ids_with_drift(self) -> list[int]:
        """Posts whose stored counters disagree with their child rows"""
        return list(self.session.exec(
            select(Post.id).where(
                or_(
                    Post.likes_count != _count_of(Reaction, Post.id),
                    Post.comments_count != _count_of(Comment, Post.id),
                    Post.shares_count != _count_of(Share, Post.id),
                )
            )
        ).all())
