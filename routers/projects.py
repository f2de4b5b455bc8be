from fastapi import APIRouter, Query, status
import logging

from models import (
    ApiResponse, BasicResponse, PaginationMeta,
    ProjectCreate, ProjectUpdate, ProjectPublic, ProjectStatus,
    ProjectMemberPublic, ProjectInvite, ProjectRoleUpdate,
)
from dependencies import CurrentUser, OptionalUser, Pagination, ProjectServiceDep

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=ApiResponse[ProjectPublic], status_code=status.HTTP_201_CREATED)
async def create_project(data: ProjectCreate, current_user: CurrentUser, service: ProjectServiceDep):
    project = service.create(current_user, data)
    return ApiResponse(message="Project created successfully", data=service.to_public(project))


@router.get("", response_model=ApiResponse[list[ProjectPublic]])
async def search_projects(
    service: ProjectServiceDep,
    params: Pagination,
    viewer: OptionalUser,
    q: str | None = None,
    project_status: ProjectStatus | None = Query(None, alias="status"),
    owner_id: int | None = None,
):
    """Public projects plus the private ones the viewer belongs to"""
    page = service.search(
        params,
        viewer_id=viewer.id if viewer else None,
        query=q,
        status=project_status,
        owner_id=owner_id,
    )
    return ApiResponse(
        message="Projects retrieved successfully",
        data=[service.to_public(project) for project in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.get("/my", response_model=ApiResponse[list[ProjectPublic]])
async def my_projects(current_user: CurrentUser, service: ProjectServiceDep, params: Pagination):
    page = service.my_projects(current_user.id, params)
    return ApiResponse(
        message="Projects retrieved successfully",
        data=[service.to_public(project) for project in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.get("/{project_id}", response_model=ApiResponse[ProjectPublic])
async def get_project(project_id: int, viewer: OptionalUser, service: ProjectServiceDep):
    project = service.get_visible(project_id, viewer.id if viewer else None)
    return ApiResponse(message="Project retrieved successfully", data=service.to_public(project))


@router.put("/{project_id}", response_model=ApiResponse[ProjectPublic])
async def update_project(
    project_id: int,
    data: ProjectUpdate,
    current_user: CurrentUser,
    service: ProjectServiceDep,
):
    project = service.update(project_id, current_user, data)
    return ApiResponse(message="Project updated successfully", data=service.to_public(project))


@router.delete("/{project_id}", response_model=BasicResponse)
async def delete_project(project_id: int, current_user: CurrentUser, service: ProjectServiceDep):
    service.delete(project_id, current_user)
    return BasicResponse(message="Project deleted successfully")


@router.get("/{project_id}/members", response_model=ApiResponse[list[ProjectMemberPublic]])
async def list_members(project_id: int, viewer: OptionalUser, service: ProjectServiceDep, params: Pagination):
    project, page = service.list_members(project_id, viewer.id if viewer else None, params)
    return ApiResponse(
        message="Members retrieved successfully",
        data=[service.member_to_public(project, member) for member in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.post(
    "/{project_id}/members",
    response_model=ApiResponse[ProjectMemberPublic],
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    project_id: int,
    body: ProjectInvite,
    current_user: CurrentUser,
    service: ProjectServiceDep,
):
    """Add a user to the project, the user is notified"""
    member = service.invite(project_id, current_user, body.user_id, body.role)
    project = service.get(project_id)
    return ApiResponse(message="Member added successfully", data=service.member_to_public(project, member))


@router.put("/{project_id}/members/{user_id}/role", response_model=ApiResponse[ProjectMemberPublic])
async def change_member_role(
    project_id: int,
    user_id: int,
    body: ProjectRoleUpdate,
    current_user: CurrentUser,
    service: ProjectServiceDep,
):
    member = service.change_role(project_id, user_id, current_user, body.role)
    project = service.get(project_id)
    return ApiResponse(message="Member role updated successfully", data=service.member_to_public(project, member))


@router.delete("/{project_id}/members/{user_id}", response_model=BasicResponse)
async def remove_member(project_id: int, user_id: int, current_user: CurrentUser, service: ProjectServiceDep):
    service.remove_member(project_id, user_id, current_user)
    return BasicResponse(message="Member removed successfully")
