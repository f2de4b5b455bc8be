from time import perf_counter
from fastapi import APIRouter, Depends, Query, status
import logging

from models import (
    ApiResponse, BasicResponse, PaginationMeta,
    PostCreate, PostUpdate, PostPublic, PostType, PostVisibility, PostAnalytics,
    ReactionCreate, ReactionPublic, ReactionType, ShareCreate, SharePublic, BookmarkPublic,
    CommentCreate, CommentPublic,
)
from dependencies import CurrentUser, OptionalUser, Pagination, PostServiceDep, rate_limit
from repositories import PostFilters
from services.hashtags import parse_hashtag_param
from core.config import get_settings
from core.metrics import feed_requests_total, feed_latency
from cache import cache_response

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


def _posts_page(service, message, page, params, viewer_id):
    return ApiResponse(
        message=message,
        data=service.to_public_many(page.items, viewer_id),
        pagination=PaginationMeta.build(params, page.total),
    )


@router.post(
    "",
    response_model=ApiResponse[PostPublic],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("posts", settings.POSTS_PER_MINUTE))],
)
async def create_post(data: PostCreate, current_user: CurrentUser, service: PostServiceDep):
    """Create a post, optionally scoped to a team or a project"""
    post = service.create(current_user, data)
    return ApiResponse(message="Post created successfully", data=service.to_public(post, current_user.id))


@router.get("", response_model=ApiResponse[list[PostPublic]])
async def search_posts(
    service: PostServiceDep,
    params: Pagination,
    viewer: OptionalUser,
    type: PostType | None = None,
    author_id: int | None = None,
    project_id: int | None = None,
    team_id: int | None = None,
    search: str | None = None,
    hashtag: str | None = None,
    visibility: PostVisibility | None = None,
):
    viewer_id = viewer.id if viewer else None
    filters = PostFilters(
        type=type,
        author_id=author_id,
        team_id=team_id,
        project_id=project_id,
        hashtags=parse_hashtag_param(hashtag),
        visibility=visibility,
        search=search,
    )
    page = service.search(params, viewer_id, filters)
    return _posts_page(service, "Posts retrieved successfully", page, params, viewer_id)


@router.get("/user/feed", response_model=ApiResponse[list[PostPublic]])
async def get_feed(
    current_user: CurrentUser,
    service: PostServiceDep,
    params: Pagination,
    type: PostType | None = None,
    author_id: int | None = None,
    team_id: int | None = None,
    hashtag: str | None = None,
    visibility: PostVisibility | None = None,
):
    """Personalized feed: own posts, connections, teams and public posts, newest first"""
    feed_requests_total.inc()
    start_time = perf_counter()
    filters = PostFilters(
        type=type,
        author_id=author_id,
        team_id=team_id,
        hashtags=parse_hashtag_param(hashtag),
        visibility=visibility,
    )
    page = service.feed(current_user, params, filters)
    feed_latency.observe(perf_counter() - start_time)
    return _posts_page(service, "Feed retrieved successfully", page, params, current_user.id)


@router.get("/trending", response_model=ApiResponse[list[PostPublic]])
@cache_response(settings.CACHE_EXPIRE_TIME)
async def get_trending(
    service: PostServiceDep,
    params: Pagination,
    timeframe: str | None = Query(None, description="1h, 6h, 24h or 7d"),
):
    page = service.trending(params, timeframe)
    return _posts_page(service, "Trending posts retrieved successfully", page, params, None)


@router.get("/bookmarks", response_model=ApiResponse[list[PostPublic]])
async def get_bookmarks(current_user: CurrentUser, service: PostServiceDep, params: Pagination):
    page = service.bookmarks(current_user, params)
    return _posts_page(service, "Bookmarks retrieved successfully", page, params, current_user.id)


@router.get("/team/{team_id}", response_model=ApiResponse[list[PostPublic]])
async def get_team_posts(team_id: int, viewer: OptionalUser, service: PostServiceDep, params: Pagination):
    viewer_id = viewer.id if viewer else None
    page = service.team_posts(team_id, viewer_id, params)
    return _posts_page(service, "Team posts retrieved successfully", page, params, viewer_id)


@router.get("/user/{user_id}", response_model=ApiResponse[list[PostPublic]])
async def get_user_posts(user_id: int, viewer: OptionalUser, service: PostServiceDep, params: Pagination):
    viewer_id = viewer.id if viewer else None
    page = service.user_posts(user_id, viewer_id, params)
    return _posts_page(service, "User posts retrieved successfully", page, params, viewer_id)


@router.get("/{post_id}", response_model=ApiResponse[PostPublic])
async def get_post(post_id: int, viewer: OptionalUser, service: PostServiceDep):
    viewer_id = viewer.id if viewer else None
    post = service.read(post_id, viewer_id)
    return ApiResponse(message="Post retrieved successfully", data=service.to_public(post, viewer_id))


@router.put("/{post_id}", response_model=ApiResponse[PostPublic])
async def update_post(post_id: int, data: PostUpdate, current_user: CurrentUser, service: PostServiceDep):
    post = service.update(post_id, current_user, data)
    return ApiResponse(message="Post updated successfully", data=service.to_public(post, current_user.id))


@router.delete("/{post_id}", response_model=BasicResponse)
async def delete_post(post_id: int, current_user: CurrentUser, service: PostServiceDep):
    service.delete(post_id, current_user)
    return BasicResponse(message="Post deleted successfully")


# Reactions

@router.post(
    "/{post_id}/react",
    response_model=ApiResponse[ReactionPublic],
    dependencies=[Depends(rate_limit("reactions", settings.REACTIONS_PER_MINUTE))],
)
async def react_to_post(
    post_id: int,
    body: ReactionCreate,
    current_user: CurrentUser,
    service: PostServiceDep,
):
    """Add a reaction, or change the type of an existing one"""
    reaction = service.react(post_id, current_user, body.type)
    return ApiResponse(message="Reaction saved", data=ReactionPublic.model_validate(reaction))


@router.delete("/{post_id}/react", response_model=BasicResponse)
async def remove_reaction(post_id: int, current_user: CurrentUser, service: PostServiceDep):
    service.unreact(post_id, current_user)
    return BasicResponse(message="Reaction removed")


@router.get("/{post_id}/reactions", response_model=ApiResponse[list[ReactionPublic]])
async def list_reactions(
    post_id: int,
    viewer: OptionalUser,
    service: PostServiceDep,
    params: Pagination,
    type: ReactionType | None = None,
):
    page = service.list_reactions(post_id, viewer.id if viewer else None, params, type)
    return ApiResponse(
        message="Reactions retrieved successfully",
        data=[ReactionPublic.model_validate(reaction) for reaction in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


# Shares and bookmarks

@router.post("/{post_id}/share", response_model=ApiResponse[SharePublic], status_code=status.HTTP_201_CREATED)
async def share_post(post_id: int, body: ShareCreate, current_user: CurrentUser, service: PostServiceDep):
    share = service.share(post_id, current_user, body.comment)
    return ApiResponse(message="Post shared successfully", data=SharePublic.model_validate(share))


@router.delete("/{post_id}/share", response_model=BasicResponse)
async def unshare_post(post_id: int, current_user: CurrentUser, service: PostServiceDep):
    service.unshare(post_id, current_user)
    return BasicResponse(message="Share removed")


@router.post("/{post_id}/bookmark", response_model=ApiResponse[BookmarkPublic], status_code=status.HTTP_201_CREATED)
async def bookmark_post(post_id: int, current_user: CurrentUser, service: PostServiceDep):
    bookmark = service.bookmark(post_id, current_user)
    return ApiResponse(message="Post bookmarked", data=BookmarkPublic.model_validate(bookmark))


@router.delete("/{post_id}/bookmark", response_model=BasicResponse)
async def remove_bookmark(post_id: int, current_user: CurrentUser, service: PostServiceDep):
    service.unbookmark(post_id, current_user)
    return BasicResponse(message="Bookmark removed")


# Comments

@router.get("/{post_id}/comments", response_model=ApiResponse[list[CommentPublic]])
async def list_comments(post_id: int, viewer: OptionalUser, service: PostServiceDep, params: Pagination):
    """Top-level comments, newest first, each with its replies"""
    page = service.list_comments(post_id, viewer.id if viewer else None, params)
    return ApiResponse(
        message="Comments retrieved successfully",
        data=[service.comment_to_public(comment) for comment in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.post("/{post_id}/comments", response_model=ApiResponse[CommentPublic], status_code=status.HTTP_201_CREATED)
async def add_comment(post_id: int, data: CommentCreate, current_user: CurrentUser, service: PostServiceDep):
    comment = service.add_comment(post_id, current_user, data)
    return ApiResponse(message="Comment added successfully", data=service.comment_to_public(comment))


@router.get("/{post_id}/analytics", response_model=ApiResponse[PostAnalytics])
async def post_analytics(post_id: int, current_user: CurrentUser, service: PostServiceDep):
    return ApiResponse(message="Post analytics", data=service.analytics(post_id, current_user))
