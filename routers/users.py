from fastapi import APIRouter, Response
import logging

from models import ApiResponse, BasicResponse, PaginationMeta, UserPrivate, UserPublic, UserUpdate
from dependencies import CurrentUser, OptionalUser, Pagination, UserServiceDep

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/search", response_model=ApiResponse[list[UserPublic]])
async def search_users(
    service: UserServiceDep,
    params: Pagination,
    viewer: OptionalUser,
    q: str | None = None,
    skill: str | None = None,
    location: str | None = None,
):
    """Search users by name, username, position, company, skill or location"""
    page = service.search(
        params,
        query=q,
        skill=skill,
        location=location,
        exclude_id=viewer.id if viewer else None,
    )
    return ApiResponse(
        message="Users retrieved successfully",
        data=[UserPublic.model_validate(user) for user in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.put("/profile", response_model=ApiResponse[UserPrivate])
async def update_profile(data: UserUpdate, current_user: CurrentUser, service: UserServiceDep):
    user = service.update_profile(current_user, data)
    return ApiResponse(message="Profile updated successfully", data=UserPrivate.model_validate(user))


@router.delete("/account", response_model=BasicResponse)
async def delete_account(response: Response, current_user: CurrentUser, service: UserServiceDep):
    """Delete the current account and everything it owns"""
    service.delete_account(current_user)
    response.delete_cookie("access_token")
    return BasicResponse(message="Account deleted successfully")


@router.get("/{user_id}", response_model=ApiResponse[UserPublic])
async def get_user(user_id: int, service: UserServiceDep):
    user = service.get(user_id)
    return ApiResponse(message="User retrieved successfully", data=UserPublic.model_validate(user))
