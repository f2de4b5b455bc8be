from fastapi import APIRouter
import logging

from models import ApiResponse, BasicResponse, CommentPublic, CommentUpdate, PaginationMeta
from dependencies import CurrentUser, OptionalUser, Pagination, PostServiceDep

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/{comment_id}", response_model=ApiResponse[CommentPublic])
async def get_comment(comment_id: int, viewer: OptionalUser, service: PostServiceDep):
    comment = service.get_comment(comment_id, viewer.id if viewer else None)
    return ApiResponse(message="Comment retrieved successfully", data=service.comment_to_public(comment))


@router.get("/{comment_id}/replies", response_model=ApiResponse[list[CommentPublic]])
async def list_replies(comment_id: int, viewer: OptionalUser, service: PostServiceDep, params: Pagination):
    """Replies of a comment, oldest first"""
    page = service.list_replies(comment_id, viewer.id if viewer else None, params)
    return ApiResponse(
        message="Replies retrieved successfully",
        data=[service.comment_to_public(reply, with_replies=False) for reply in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.put("/{comment_id}", response_model=ApiResponse[CommentPublic])
async def update_comment(comment_id: int, data: CommentUpdate, current_user: CurrentUser, service: PostServiceDep):
    comment = service.update_comment(comment_id, current_user, data)
    return ApiResponse(message="Comment updated successfully", data=service.comment_to_public(comment))


@router.delete("/{comment_id}", response_model=BasicResponse)
async def delete_comment(comment_id: int, current_user: CurrentUser, service: PostServiceDep):
    service.delete_comment(comment_id, current_user)
    return BasicResponse(message="Comment deleted successfully")
