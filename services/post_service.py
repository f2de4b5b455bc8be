from datetime import datetime, timezone
import logging

import structlog
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from models import (
    Post, PostCreate, PostUpdate, PostPublic, PostVisibility, PostAnalytics,
    Reaction, ReactionType, Share, Bookmark, Comment, CommentCreate, CommentUpdate,
    CommentPublic, NotificationType, PaginationParams, Project, Team, TeamVisibility, User,
)
from repositories import (
    PostRepository, PostFilters, SocialGraph, ConnectionRepository, TeamRepository,
    UserRepository, Page,
)
from services.hashtags import extract_hashtags, merge_hashtags
from services.notification_service import NotificationService
from services.permissions import Capability, authorize

logger = logging.getLogger(__name__)
feed_log = structlog.get_logger(__name__)


class PostService:
    def __init__(self, session: Session):
        self.session = session
        self.posts = PostRepository(session)
        self.connections = ConnectionRepository(session)
        self.teams = TeamRepository(session)
        self.users = UserRepository(session)
        self.notifications = NotificationService(session)

    # Social graph and access

    def resolve_social_graph(self, user_id: int) -> SocialGraph:
        return SocialGraph(
            user_id=user_id,
            connected_ids=self.connections.connected_user_ids(user_id),
            member_team_ids=self.teams.member_team_ids(user_id),
            followed_team_ids=self.teams.followed_team_ids(user_id),
        )

    def can_view(self, post: Post, viewer_id: int | None) -> bool:
        """Single reads follow the feed predicate, see PostRepository.access_predicate for listings"""
        if viewer_id is None:
            return post.visibility == PostVisibility.PUBLIC
        if post.author_id == viewer_id or post.visibility == PostVisibility.PUBLIC:
            return True
        return self.posts.is_in_feed(post.id, self.resolve_social_graph(viewer_id))

    def get(self, post_id: int) -> Post:
        post = self.posts.get(post_id)
        if not post:
            raise NotFoundError("Post not found")
        return post

    def get_accessible(self, post_id: int, viewer_id: int | None) -> Post:
        post = self.get(post_id)
        if not self.can_view(post, viewer_id):
            raise ForbiddenError("You do not have access to this post")
        return post

    # Presentation

    def to_public(self, post: Post, viewer_id: int | None = None) -> PostPublic:
        return self.to_public_many([post], viewer_id)[0]

    def to_public_many(self, posts: list[Post], viewer_id: int | None = None) -> list[PostPublic]:
        reactions: dict[int, ReactionType] = {}
        bookmarked: set[int] = set()
        if viewer_id is not None:
            post_ids = [post.id for post in posts]
            reactions = self.posts.viewer_reactions(viewer_id, post_ids)
            bookmarked = self.posts.bookmarked_ids(viewer_id, post_ids)
        return [
            PostPublic.model_validate(
                post,
                update={
                    "viewer_reaction": reactions.get(post.id),
                    "is_bookmarked": post.id in bookmarked,
                },
            )
            for post in posts
        ]

    # Posts

    def _check_scope(self, author: User, team_id: int | None, project_id: int | None, visibility: PostVisibility) -> None:
        if visibility == PostVisibility.TEAM and team_id is None:
            raise ValidationError("Team visibility requires a team")
        if visibility == PostVisibility.PROJECT and project_id is None:
            raise ValidationError("Project visibility requires a project")
        if team_id is not None:
            team = self.session.get(Team, team_id)
            if not team:
                raise NotFoundError("Team not found")
            authorize(self.session, author.id, team, Capability.TEAM_POST)
        if project_id is not None:
            project = self.session.get(Project, project_id)
            if not project:
                raise NotFoundError("Project not found")
            authorize(self.session, author.id, project, Capability.PROJECT_POST)

    def create(self, author: User, data: PostCreate) -> Post:
        self._check_scope(author, data.team_id, data.project_id, data.visibility)
        post = Post.model_validate(data.model_dump(exclude={"hashtags"}), update={"author_id": author.id})
        self.posts.set_hashtags(post, merge_hashtags(data.hashtags, extract_hashtags(data.content)))
        post = self.posts.save(post)
        self._notify_mentions(post, author)
        logger.info(f"User {author.id} created post {post.id}")
        return post

    def _notify_mentions(self, post: Post, author: User) -> None:
        for user_id in set(post.mentions or []):
            if self.users.get(user_id) is None:
                continue
            self.notifications.notify(
                user_id,
                NotificationType.POST_MENTION,
                "You were mentioned",
                f"{author.first_name} {author.last_name} mentioned you in a post",
                data={"post_id": post.id},
                actor_id=author.id,
            )

    def read(self, post_id: int, viewer_id: int | None) -> Post:
        post = self.get_accessible(post_id, viewer_id)
        if viewer_id is not None:
            self.posts.increment_view_count(post.id)
        return post

    def update(self, post_id: int, user: User, data: PostUpdate) -> Post:
        post = self.get(post_id)
        authorize(self.session, user.id, post, Capability.POST_EDIT)
        changes = data.model_dump(exclude_unset=True, exclude={"hashtags"})
        visibility = changes.get("visibility", post.visibility)
        if visibility == PostVisibility.TEAM and post.team_id is None:
            raise ValidationError("Team visibility requires a team")
        if visibility == PostVisibility.PROJECT and post.project_id is None:
            raise ValidationError("Project visibility requires a project")

        post.sqlmodel_update(changes)
        if "content" in changes or data.hashtags is not None:
            explicit = data.hashtags if data.hashtags is not None else post.hashtags
            self.posts.set_hashtags(post, merge_hashtags(explicit, extract_hashtags(post.content)))
        now = datetime.now(timezone.utc)
        post.is_edited = True
        post.edited_at = now
        post.updated_at = now
        return self.posts.save(post)

    def delete(self, post_id: int, user: User) -> None:
        post = self.get(post_id)
        authorize(self.session, user.id, post, Capability.POST_DELETE)
        self.posts.delete(post)
        logger.info(f"User {user.id} deleted post {post_id}")

    # Listings

    def feed(self, user: User, params: PaginationParams, filters: PostFilters | None = None) -> Page[Post]:
        graph = self.resolve_social_graph(user.id)
        page = self.posts.get_feed(graph, params, filters)
        feed_log.info(
            "feed_composed",
            user_id=user.id,
            connections=len(graph.connected_ids),
            teams=len(graph.team_ids),
            page=params.page,
            total=page.total,
        )
        return page

    def trending(self, params: PaginationParams, timeframe: str | None = None) -> Page[Post]:
        return self.posts.trending(params, timeframe)

    def search(self, params: PaginationParams, viewer_id: int | None, filters: PostFilters) -> Page[Post]:
        graph = self.resolve_social_graph(viewer_id) if viewer_id is not None else None
        return self.posts.search(params, graph, filters)

    def user_posts(self, author_id: int, viewer_id: int | None, params: PaginationParams) -> Page[Post]:
        author = self.users.get(author_id)
        if not author or author.disabled:
            raise NotFoundError("User not found")
        return self.posts.list_by_author(author_id, params, public_only=author_id != viewer_id)

    def team_posts(self, team_id: int, viewer_id: int | None, params: PaginationParams) -> Page[Post]:
        team = self.session.get(Team, team_id)
        if not team:
            raise NotFoundError("Team not found")
        if viewer_id is None:
            if team.visibility == TeamVisibility.PRIVATE:
                raise ForbiddenError("This team is private")
        else:
            authorize(self.session, viewer_id, team, Capability.TEAM_VIEW)
        return self.posts.list_by_team(team_id, params)

    def bookmarks(self, user: User, params: PaginationParams) -> Page[Post]:
        return self.posts.list_bookmarked(user.id, params)

    # Reactions

    def react(self, post_id: int, user: User, reaction_type: ReactionType) -> Reaction:
        post = self.get_accessible(post_id, user.id)
        reaction = self.posts.get_reaction(post.id, user.id)
        if reaction is not None:
            reaction.type = reaction_type
            return self.posts.save(reaction)
        try:
            reaction = self.posts.save(Reaction(user_id=user.id, post_id=post.id, type=reaction_type))
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("You have already reacted to this post")
        self.posts.update_counts(post.id)
        self.notifications.notify(
            post.author_id,
            NotificationType.POST_REACTION,
            "New reaction",
            f"{user.first_name} {user.last_name} reacted to your post",
            data={"post_id": post.id, "reaction": reaction_type.value},
            actor_id=user.id,
        )
        return reaction

    def unreact(self, post_id: int, user: User) -> None:
        post = self.get(post_id)
        reaction = self.posts.get_reaction(post.id, user.id)
        if not reaction:
            raise NotFoundError("Reaction not found")
        self.posts.delete(reaction)
        self.posts.update_counts(post.id)

    def list_reactions(
        self,
        post_id: int,
        viewer_id: int | None,
        params: PaginationParams,
        reaction_type: ReactionType | None = None,
    ) -> Page[Reaction]:
        post = self.get_accessible(post_id, viewer_id)
        return self.posts.list_reactions(post.id, params, reaction_type)

    # Shares and bookmarks

    def share(self, post_id: int, user: User, comment: str | None = None) -> Share:
        post = self.get_accessible(post_id, user.id)
        if self.posts.get_share(post.id, user.id):
            raise ConflictError("You have already shared this post")
        try:
            share = self.posts.save(Share(user_id=user.id, post_id=post.id, comment=comment))
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("You have already shared this post")
        self.posts.update_counts(post.id)
        self.notifications.notify(
            post.author_id,
            NotificationType.POST_SHARED,
            "Post shared",
            f"{user.first_name} {user.last_name} shared your post",
            data={"post_id": post.id},
            actor_id=user.id,
        )
        return share

    def unshare(self, post_id: int, user: User) -> None:
        post = self.get(post_id)
        share = self.posts.get_share(post.id, user.id)
        if not share:
            raise NotFoundError("Share not found")
        self.posts.delete(share)
        self.posts.update_counts(post.id)

    def bookmark(self, post_id: int, user: User) -> Bookmark:
        post = self.get_accessible(post_id, user.id)
        if self.posts.get_bookmark(post.id, user.id):
            raise ConflictError("Post already bookmarked")
        try:
            return self.posts.save(Bookmark(user_id=user.id, post_id=post.id))
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("Post already bookmarked")

    def unbookmark(self, post_id: int, user: User) -> None:
        bookmark = self.posts.get_bookmark(post_id, user.id)
        if not bookmark:
            raise NotFoundError("Bookmark not found")
        self.posts.delete(bookmark)

    def analytics(self, post_id: int, user: User) -> PostAnalytics:
        post = self.get(post_id)
        authorize(self.session, user.id, post, Capability.POST_ANALYTICS)
        return PostAnalytics(
            views=post.views_count,
            reactions=post.likes_count,
            comments=post.comments_count,
            shares=post.shares_count,
            bookmarks=self.posts.bookmark_count(post.id),
            reactions_by_type=self.posts.reactions_by_type(post.id),
        )

    # Comments

    def comment_to_public(self, comment: Comment, with_replies: bool = True) -> CommentPublic:
        replies = list(comment.replies) if with_replies else []
        return CommentPublic.model_validate(
            comment,
            update={
                "reply_count": len(comment.replies),
                "replies": [self.comment_to_public(reply, with_replies=False) for reply in replies],
            },
        )

    def get_comment(self, comment_id: int, viewer_id: int | None = None) -> Comment:
        comment = self.posts.get_comment(comment_id)
        if not comment:
            raise NotFoundError("Comment not found")
        self.get_accessible(comment.post_id, viewer_id)
        return comment

    def add_comment(self, post_id: int, user: User, data: CommentCreate) -> Comment:
        post = self.get_accessible(post_id, user.id)
        parent = None
        if data.parent_id is not None:
            parent = self.posts.get_comment(data.parent_id)
            if not parent:
                raise NotFoundError("Parent comment not found")
            if parent.post_id != post.id:
                raise ValidationError("Parent comment belongs to a different post")
            if parent.parent_id is not None:
                raise ValidationError("Cannot reply to a reply")

        comment = self.posts.save(Comment(
            post_id=post.id,
            author_id=user.id,
            parent_id=data.parent_id,
            content=data.content,
        ))
        self.posts.update_counts(post.id)

        self.notifications.notify(
            post.author_id,
            NotificationType.POST_COMMENT,
            "New comment",
            f"{user.first_name} {user.last_name} commented on your post",
            data={"post_id": post.id, "comment_id": comment.id},
            actor_id=user.id,
        )
        if parent is not None and parent.author_id != post.author_id:
            self.notifications.notify(
                parent.author_id,
                NotificationType.COMMENT_REPLY,
                "New reply",
                f"{user.first_name} {user.last_name} replied to your comment",
                data={"post_id": post.id, "comment_id": comment.id, "parent_id": parent.id},
                actor_id=user.id,
            )
        return comment

    def list_comments(self, post_id: int, viewer_id: int | None, params: PaginationParams) -> Page[Comment]:
        post = self.get_accessible(post_id, viewer_id)
        return self.posts.list_comments(post.id, params)

    def list_replies(self, comment_id: int, viewer_id: int | None, params: PaginationParams) -> Page[Comment]:
        comment = self.get_comment(comment_id, viewer_id)
        return self.posts.list_replies(comment.id, params)

    def update_comment(self, comment_id: int, user: User, data: CommentUpdate) -> Comment:
        comment = self.posts.get_comment(comment_id)
        if not comment:
            raise NotFoundError("Comment not found")
        authorize(self.session, user.id, comment, Capability.COMMENT_EDIT)
        comment.content = data.content
        comment.is_edited = True
        comment.edited_at = datetime.now(timezone.utc)
        return self.posts.save(comment)

    def delete_comment(self, comment_id: int, user: User) -> None:
        comment = self.posts.get_comment(comment_id)
        if not comment:
            raise NotFoundError("Comment not found")
        authorize(self.session, user.id, comment, Capability.COMMENT_DELETE)
        post_id = comment.post_id
        self.posts.delete(comment)
        self.posts.update_counts(post_id)
