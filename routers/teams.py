from fastapi import APIRouter, Query, status
import logging

from models import (
    ApiResponse, BasicResponse, PaginationMeta,
    TeamCreate, TeamUpdate, TeamPublic, TeamType, TeamMemberPublic, TeamMemberRoleUpdate,
    JoinRequestCreate, JoinRequestPublic, JoinRequestDecision, RequestStatus,
    InvitationCreate, InvitationPublic, InvitationDecision,
)
from dependencies import CurrentUser, OptionalUser, Pagination, TeamServiceDep

router = APIRouter()
logger = logging.getLogger(__name__)


def _teams_page(service, message, page, params, viewer_id):
    return ApiResponse(
        message=message,
        data=[service.to_public(team, viewer_id) for team in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.post("", response_model=ApiResponse[TeamPublic], status_code=status.HTTP_201_CREATED)
async def create_team(data: TeamCreate, current_user: CurrentUser, service: TeamServiceDep):
    """Create a team, the creator becomes its owner and first admin"""
    team = service.create(current_user, data)
    return ApiResponse(message="Team created successfully", data=service.to_public(team, current_user.id))


@router.get("", response_model=ApiResponse[list[TeamPublic]])
async def search_teams(
    service: TeamServiceDep,
    params: Pagination,
    viewer: OptionalUser,
    q: str | None = None,
    type: TeamType | None = None,
    skill: str | None = None,
    location: str | None = None,
    is_recruiting: bool | None = None,
):
    viewer_id = viewer.id if viewer else None
    page = service.search(
        params,
        viewer_id=viewer_id,
        query=q,
        team_type=type,
        skill=skill,
        location=location,
        is_recruiting=is_recruiting,
    )
    return _teams_page(service, "Teams retrieved successfully", page, params, viewer_id)


@router.get("/my-teams", response_model=ApiResponse[list[TeamPublic]])
async def my_teams(current_user: CurrentUser, service: TeamServiceDep, params: Pagination):
    page = service.my_teams(current_user.id, params)
    return _teams_page(service, "Teams retrieved successfully", page, params, current_user.id)


@router.get("/recommendations", response_model=ApiResponse[list[TeamPublic]])
async def team_recommendations(
    current_user: CurrentUser,
    service: TeamServiceDep,
    limit: int = Query(10, ge=1, le=50),
):
    """Recruiting public teams, ranked by skill overlap with the current user"""
    teams = service.recommendations(current_user, limit)
    return ApiResponse(
        message="Recommendations retrieved successfully",
        data=[service.to_public(team, current_user.id) for team in teams],
    )


@router.get("/following", response_model=ApiResponse[list[TeamPublic]])
async def followed_teams(current_user: CurrentUser, service: TeamServiceDep, params: Pagination):
    page = service.following(current_user, params)
    return _teams_page(service, "Followed teams retrieved successfully", page, params, current_user.id)


@router.get("/invitations", response_model=ApiResponse[list[InvitationPublic]])
async def my_invitations(current_user: CurrentUser, service: TeamServiceDep, params: Pagination):
    page = service.my_invitations(current_user, params)
    return ApiResponse(
        message="Invitations retrieved successfully",
        data=[InvitationPublic.model_validate(invitation) for invitation in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.put("/invitations/{invitation_id}/respond", response_model=ApiResponse[InvitationPublic])
async def respond_to_invitation(
    invitation_id: int,
    body: InvitationDecision,
    current_user: CurrentUser,
    service: TeamServiceDep,
):
    invitation = service.respond_invitation(invitation_id, current_user, body.action)
    return ApiResponse(
        message=f"Invitation {invitation.status.value.lower()}",
        data=InvitationPublic.model_validate(invitation),
    )


@router.get("/{team_id}", response_model=ApiResponse[TeamPublic])
async def get_team(team_id: int, viewer: OptionalUser, service: TeamServiceDep):
    viewer_id = viewer.id if viewer else None
    team = service.get_visible(team_id, viewer_id)
    return ApiResponse(message="Team retrieved successfully", data=service.to_public(team, viewer_id))


@router.put("/{team_id}", response_model=ApiResponse[TeamPublic])
async def update_team(team_id: int, data: TeamUpdate, current_user: CurrentUser, service: TeamServiceDep):
    team = service.update(team_id, current_user, data)
    return ApiResponse(message="Team updated successfully", data=service.to_public(team, current_user.id))


@router.delete("/{team_id}", response_model=BasicResponse)
async def delete_team(team_id: int, current_user: CurrentUser, service: TeamServiceDep):
    service.delete(team_id, current_user)
    return BasicResponse(message="Team deleted successfully")


@router.get("/{team_id}/members", response_model=ApiResponse[list[TeamMemberPublic]])
async def list_members(team_id: int, viewer: OptionalUser, service: TeamServiceDep, params: Pagination):
    team, page = service.list_members(team_id, viewer.id if viewer else None, params)
    return ApiResponse(
        message="Members retrieved successfully",
        data=[service.member_to_public(team, member) for member in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.post("/{team_id}/join", response_model=ApiResponse[TeamMemberPublic], status_code=status.HTTP_201_CREATED)
async def join_team(team_id: int, current_user: CurrentUser, service: TeamServiceDep):
    """Join a public, recruiting team directly"""
    member = service.join(team_id, current_user)
    team = service.get(team_id)
    return ApiResponse(message="Joined team successfully", data=service.member_to_public(team, member))


@router.post(
    "/{team_id}/join-request",
    response_model=ApiResponse[JoinRequestPublic],
    status_code=status.HTTP_201_CREATED,
)
async def request_to_join(
    team_id: int,
    body: JoinRequestCreate,
    current_user: CurrentUser,
    service: TeamServiceDep,
):
    join_request = service.request_to_join(team_id, current_user, body.message)
    return ApiResponse(
        message="Join request sent successfully",
        data=JoinRequestPublic.model_validate(join_request),
    )


@router.get("/{team_id}/join-requests", response_model=ApiResponse[list[JoinRequestPublic]])
async def list_join_requests(
    team_id: int,
    current_user: CurrentUser,
    service: TeamServiceDep,
    params: Pagination,
    request_status: RequestStatus = Query(RequestStatus.PENDING, alias="status"),
):
    page = service.list_join_requests(team_id, current_user, params, request_status)
    return ApiResponse(
        message="Join requests retrieved successfully",
        data=[JoinRequestPublic.model_validate(join_request) for join_request in page.items],
        pagination=PaginationMeta.build(params, page.total),
    )


@router.put("/{team_id}/join-requests/{request_id}", response_model=ApiResponse[JoinRequestPublic])
async def decide_join_request(
    team_id: int,
    request_id: int,
    body: JoinRequestDecision,
    current_user: CurrentUser,
    service: TeamServiceDep,
):
    join_request = service.decide_join_request(team_id, request_id, current_user, body.action)
    return ApiResponse(
        message=f"Join request {join_request.status.value.lower()}",
        data=JoinRequestPublic.model_validate(join_request),
    )


@router.post("/{team_id}/leave", response_model=BasicResponse)
async def leave_team(team_id: int, current_user: CurrentUser, service: TeamServiceDep):
    service.leave(team_id, current_user)
    return BasicResponse(message="Left team successfully")


@router.put("/{team_id}/members/{user_id}/role", response_model=ApiResponse[TeamMemberPublic])
async def change_member_role(
    team_id: int,
    user_id: int,
    body: TeamMemberRoleUpdate,
    current_user: CurrentUser,
    service: TeamServiceDep,
):
    member = service.change_role(team_id, user_id, current_user, body.status)
    team = service.get(team_id)
    return ApiResponse(message="Member role updated successfully", data=service.member_to_public(team, member))


@router.delete("/{team_id}/members/{user_id}", response_model=BasicResponse)
async def remove_member(team_id: int, user_id: int, current_user: CurrentUser, service: TeamServiceDep):
    service.remove_member(team_id, user_id, current_user)
    return BasicResponse(message="Member removed successfully")


@router.post("/{team_id}/invite", response_model=ApiResponse[InvitationPublic], status_code=status.HTTP_201_CREATED)
async def invite_member(
    team_id: int,
    body: InvitationCreate,
    current_user: CurrentUser,
    service: TeamServiceDep,
):
    invitation = service.invite(team_id, current_user, body.invitee_id, body.message)
    return ApiResponse(message="Invitation sent successfully", data=InvitationPublic.model_validate(invitation))


@router.post("/{team_id}/follow", response_model=BasicResponse, status_code=status.HTTP_201_CREATED)
async def follow_team(team_id: int, current_user: CurrentUser, service: TeamServiceDep):
    service.follow(team_id, current_user)
    return BasicResponse(message="Team followed successfully")


@router.delete("/{team_id}/follow", response_model=BasicResponse)
async def unfollow_team(team_id: int, current_user: CurrentUser, service: TeamServiceDep):
    service.unfollow(team_id, current_user)
    return BasicResponse(message="Team unfollowed successfully")
