from datetime import datetime, timedelta, timezone
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from core.config import get_settings
from core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from models import (
    Team, TeamMember, TeamFollow, TeamJoinRequest, TeamInvitation,
    TeamCreate, TeamUpdate, TeamPublic, TeamMemberPublic, TeamMemberStatus,
    TeamVisibility, TeamType, RequestStatus, InvitationStatus,
    NotificationType, PaginationParams, User,
)
from repositories import TeamRepository, UserRepository, Page
from services.notification_service import NotificationService
from services.permissions import Capability, authorize

settings = get_settings()
logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class TeamService:
    def __init__(self, session: Session):
        self.session = session
        self.teams = TeamRepository(session)
        self.users = UserRepository(session)
        self.notifications = NotificationService(session)

    # Lookups and presentation

    def get(self, team_id: int) -> Team:
        team = self.teams.get(team_id)
        if not team:
            raise NotFoundError("Team not found")
        return team

    def get_visible(self, team_id: int, viewer_id: int | None) -> Team:
        team = self.get(team_id)
        if team.visibility == TeamVisibility.PRIVATE:
            if viewer_id is None:
                raise ForbiddenError("This team is private")
            authorize(self.session, viewer_id, team, Capability.TEAM_VIEW)
        return team

    def to_public(self, team: Team, viewer_id: int | None = None) -> TeamPublic:
        viewer_status = None
        is_following = False
        if viewer_id is not None:
            member = self.teams.get_member(team.id, viewer_id)
            viewer_status = member.status if member else None
            is_following = self.teams.get_follow(team.id, viewer_id) is not None
        return TeamPublic.model_validate(
            team,
            update={
                "member_count": self.teams.member_count(team.id),
                "follower_count": self.teams.follower_count(team.id),
                "viewer_status": viewer_status,
                "is_following": is_following,
            },
        )

    def member_to_public(self, team: Team, member: TeamMember) -> TeamMemberPublic:
        return TeamMemberPublic.model_validate(member, update={"is_owner": member.user_id == team.owner_id})

    # CRUD

    def create(self, owner: User, data: TeamCreate) -> Team:
        team = Team.model_validate(data, update={"owner_id": owner.id})
        team.members = [TeamMember(user_id=owner.id, status=TeamMemberStatus.ADMIN)]
        team = self.teams.save(team)
        logger.info(f"User {owner.id} created team {team.id}")
        return team

    def update(self, team_id: int, user: User, data: TeamUpdate) -> Team:
        team = self.get(team_id)
        authorize(self.session, user.id, team, Capability.TEAM_UPDATE)
        changes = data.model_dump(exclude_unset=True)
        new_cap = changes.get("max_members")
        if new_cap is not None and new_cap < self.teams.member_count(team.id):
            raise ValidationError("max_members cannot be lower than the current member count")
        team.sqlmodel_update(changes)
        team.updated_at = datetime.now(timezone.utc)
        return self.teams.save(team)

    def delete(self, team_id: int, user: User) -> None:
        team = self.get(team_id)
        authorize(self.session, user.id, team, Capability.TEAM_DELETE)
        self.teams.delete(team)
        logger.info(f"User {user.id} deleted team {team_id}")

    def search(
        self,
        params: PaginationParams,
        viewer_id: int | None = None,
        query: str | None = None,
        team_type: TeamType | None = None,
        skill: str | None = None,
        location: str | None = None,
        is_recruiting: bool | None = None,
    ) -> Page[Team]:
        return self.teams.search(
            params,
            viewer_id=viewer_id,
            query=query,
            team_type=team_type,
            skill=skill,
            location=location,
            is_recruiting=is_recruiting,
        )

    def my_teams(self, user_id: int, params: PaginationParams) -> Page[Team]:
        return self.teams.list_for_member(user_id, params)

    def recommendations(self, user: User, limit: int) -> list[Team]:
        return self.teams.recommendations(user.id, user.skills or [], limit)

    # Membership

    def list_members(self, team_id: int, viewer_id: int | None, params: PaginationParams) -> tuple[Team, Page[TeamMember]]:
        team = self.get_visible(team_id, viewer_id)
        return team, self.teams.list_members(team.id, params)

    def has_capacity(self, team: Team) -> bool:
        if team.max_members is None:
            return True
        return self.teams.member_count(team.id) < team.max_members

    def check_join_eligibility(self, team: Team, user_id: int, via_request: bool) -> None:
        """Shared gate for direct joins and join requests, each failure has its own message"""
        if self.teams.get_member(team.id, user_id):
            raise ConflictError("You are already a member of this team")
        if via_request and self.teams.pending_join_request(team.id, user_id):
            raise ConflictError("You already have a pending join request for this team")
        if team.visibility != TeamVisibility.PUBLIC:
            raise ForbiddenError("This team is not open to join requests")
        if not team.allow_join_requests:
            raise ForbiddenError("This team is not accepting join requests")
        if not team.is_recruiting:
            raise ForbiddenError("This team is not currently recruiting new members")
        if not self.has_capacity(team):
            raise ConflictError("Team has reached maximum member capacity")

    def _add_member(self, team: Team, user_id: int, status: TeamMemberStatus = TeamMemberStatus.MEMBER) -> TeamMember:
        member = TeamMember(team_id=team.id, user_id=user_id, status=status)
        try:
            return self.teams.save(member)
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("You are already a member of this team")

    def join(self, team_id: int, user: User) -> TeamMember:
        team = self.get(team_id)
        self.check_join_eligibility(team, user.id, via_request=False)
        member = self._add_member(team, user.id)
        logger.info(f"User {user.id} joined team {team.id}")
        return member

    def request_to_join(self, team_id: int, user: User, message: str | None = None) -> TeamJoinRequest:
        team = self.get(team_id)
        self.check_join_eligibility(team, user.id, via_request=True)
        join_request = self.teams.save(TeamJoinRequest(team_id=team.id, user_id=user.id, message=message))
        self.notifications.notify_many(
            self.teams.manager_ids(team),
            NotificationType.TEAM_JOIN_REQUEST,
            "New join request",
            f"{user.first_name} {user.last_name} asked to join {team.name}",
            data={"team_id": team.id, "request_id": join_request.id, "user_id": user.id},
            actor_id=user.id,
        )
        return join_request

    def list_join_requests(
        self,
        team_id: int,
        user: User,
        params: PaginationParams,
        status: RequestStatus | None = RequestStatus.PENDING,
    ) -> Page[TeamJoinRequest]:
        team = self.get(team_id)
        authorize(self.session, user.id, team, Capability.TEAM_REVIEW_REQUESTS)
        return self.teams.list_join_requests(team.id, params, status)

    def decide_join_request(self, team_id: int, request_id: int, user: User, action: str) -> TeamJoinRequest:
        team = self.get(team_id)
        authorize(self.session, user.id, team, Capability.TEAM_REVIEW_REQUESTS)
        join_request = self.teams.get_join_request(request_id)
        if not join_request or join_request.team_id != team.id:
            raise NotFoundError("Join request not found")
        if join_request.status != RequestStatus.PENDING:
            raise ValidationError("Join request has already been processed")

        if action == "approve":
            if self.teams.get_member(team.id, join_request.user_id):
                raise ConflictError("User is already a member of this team")
            if not self.has_capacity(team):
                raise ConflictError("Team has reached maximum member capacity")
            self.session.add(TeamMember(team_id=team.id, user_id=join_request.user_id))
            join_request.status = RequestStatus.APPROVED
            notification_type = NotificationType.TEAM_JOIN_APPROVED
            text = f"Your request to join {team.name} was approved"
        elif action == "reject":
            join_request.status = RequestStatus.REJECTED
            notification_type = NotificationType.TEAM_JOIN_REJECTED
            text = f"Your request to join {team.name} was declined"
        else:
            raise ValidationError("Invalid action")

        join_request = self.teams.save(join_request)
        self.notifications.notify(
            join_request.user_id,
            notification_type,
            "Join request update",
            text,
            data={"team_id": team.id, "request_id": join_request.id},
        )
        return join_request

    def leave(self, team_id: int, user: User) -> None:
        team = self.get(team_id)
        if team.owner_id == user.id:
            raise ForbiddenError("Team owner cannot leave the team")
        member = self.teams.get_member(team.id, user.id)
        if not member:
            raise NotFoundError("You are not a member of this team")
        self.teams.delete(member)

    def change_role(self, team_id: int, target_user_id: int, user: User, status: TeamMemberStatus) -> TeamMember:
        team = self.get(team_id)
        authorize(self.session, user.id, team, Capability.TEAM_CHANGE_ROLE, target_user_id=target_user_id)
        member = self.teams.get_member(team.id, target_user_id)
        if not member:
            raise NotFoundError("Member not found")
        member.status = status
        return self.teams.save(member)

    def remove_member(self, team_id: int, target_user_id: int, user: User) -> None:
        team = self.get(team_id)
        authorize(self.session, user.id, team, Capability.TEAM_REMOVE_MEMBER, target_user_id=target_user_id)
        member = self.teams.get_member(team.id, target_user_id)
        if not member:
            raise NotFoundError("Member not found")
        self.teams.delete(member)
        logger.info(f"User {user.id} removed {target_user_id} from team {team.id}")

    # Invitations

    def invite(self, team_id: int, user: User, invitee_id: int, message: str | None = None) -> TeamInvitation:
        team = self.get(team_id)
        authorize(self.session, user.id, team, Capability.TEAM_INVITE)
        invitee = self.users.get(invitee_id)
        if not invitee or invitee.disabled:
            raise NotFoundError("User not found")
        if self.teams.get_member(team.id, invitee_id):
            raise ConflictError("User is already a member of this team")
        if self.teams.pending_invitation(team.id, invitee_id):
            raise ConflictError("Invitation already sent")

        invitation = self.teams.save(TeamInvitation(
            team_id=team.id,
            inviter_id=user.id,
            invitee_id=invitee_id,
            message=message,
            expires_at=datetime.now(timezone.utc) + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
        ))
        self.notifications.notify(
            invitee_id,
            NotificationType.TEAM_INVITATION,
            "Team invitation",
            f"{user.first_name} {user.last_name} invited you to join {team.name}",
            data={"team_id": team.id, "invitation_id": invitation.id},
        )
        return invitation

    def my_invitations(self, user: User, params: PaginationParams) -> Page[TeamInvitation]:
        return self.teams.list_invitations_for(user.id, params)

    def respond_invitation(self, invitation_id: int, user: User, action: str) -> TeamInvitation:
        invitation = self.teams.get_invitation(invitation_id)
        if not invitation:
            raise NotFoundError("Invitation not found")
        if invitation.invitee_id != user.id:
            raise ForbiddenError("You can only respond to your own invitations")
        if invitation.status != InvitationStatus.PENDING:
            raise ValidationError("Invitation has already been answered")

        if action == "accept":
            if _aware(invitation.expires_at) < datetime.now(timezone.utc):
                raise ValidationError("Invitation has expired")
            team = self.get(invitation.team_id)
            if self.teams.get_member(team.id, user.id):
                raise ConflictError("You are already a member of this team")
            if not self.has_capacity(team):
                raise ConflictError("Team has reached maximum member capacity")
            self.session.add(TeamMember(team_id=team.id, user_id=user.id))
            invitation.status = InvitationStatus.ACCEPTED
        elif action == "decline":
            invitation.status = InvitationStatus.DECLINED
        else:
            raise ValidationError("Invalid action")
        return self.teams.save(invitation)

    # Follows

    def follow(self, team_id: int, user: User) -> TeamFollow:
        team = self.get_visible(team_id, user.id)
        if self.teams.get_follow(team.id, user.id):
            raise ConflictError("You are already following this team")
        return self.teams.save(TeamFollow(team_id=team.id, user_id=user.id))

    def unfollow(self, team_id: int, user: User) -> None:
        follow = self.teams.get_follow(team_id, user.id)
        if not follow:
            raise NotFoundError("You are not following this team")
        self.teams.delete(follow)

    def following(self, user: User, params: PaginationParams) -> Page[Team]:
        return self.teams.list_followed(user.id, params)

