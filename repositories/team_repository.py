from sqlalchemy import func, or_, String, cast
from sqlmodel import select

from models import (
    Team, TeamMember, TeamFollow, TeamJoinRequest, TeamInvitation,
    TeamMemberStatus, TeamVisibility, RequestStatus, InvitationStatus,
    PaginationParams,
)
from .base import BaseRepository, LIKE_ESCAPE, Page, contains_pattern


class TeamRepository(BaseRepository[Team]):
    model = Team

    # Memberships

    def get_member(self, team_id: int, user_id: int) -> TeamMember | None:
        return self.session.exec(
            select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
        ).first()

    def member_count(self, team_id: int) -> int:
        return self.session.exec(
            select(func.count(TeamMember.id)).where(TeamMember.team_id == team_id)
        ).one()

    def follower_count(self, team_id: int) -> int:
        return self.session.exec(
            select(func.count()).select_from(TeamFollow).where(TeamFollow.team_id == team_id)
        ).one()

    def list_members(self, team_id: int, params: PaginationParams) -> Page[TeamMember]:
        statement = (
            select(TeamMember)
            .where(TeamMember.team_id == team_id)
            .order_by(TeamMember.joined_at, TeamMember.id)
        )
        return self.paginate(statement, params)

    def manager_ids(self, team: Team) -> list[int]:
        ids = self.session.exec(
            select(TeamMember.user_id).where(
                TeamMember.team_id == team.id,
                TeamMember.status.in_([TeamMemberStatus.ADMIN, TeamMemberStatus.MODERATOR]),
            )
        ).all()
        return list({team.owner_id, *ids})

    def member_team_ids(self, user_id: int) -> list[int]:
        return list(self.session.exec(
            select(TeamMember.team_id).where(TeamMember.user_id == user_id)
        ).all())

    def followed_team_ids(self, user_id: int) -> list[int]:
        return list(self.session.exec(
            select(TeamFollow.team_id).where(TeamFollow.user_id == user_id)
        ).all())

    # Follows

    def get_follow(self, team_id: int, user_id: int) -> TeamFollow | None:
        return self.session.get(TeamFollow, (user_id, team_id))

    def list_followed(self, user_id: int, params: PaginationParams) -> Page[Team]:
        statement = (
            select(Team)
            .join(TeamFollow, TeamFollow.team_id == Team.id)
            .where(TeamFollow.user_id == user_id)
            .order_by(TeamFollow.created_at.desc())
        )
        return self.paginate(statement, params)

    # Join requests and invitations

    def get_join_request(self, request_id: int) -> TeamJoinRequest | None:
        return self.session.get(TeamJoinRequest, request_id)

    def pending_join_request(self, team_id: int, user_id: int) -> TeamJoinRequest | None:
        return self.session.exec(
            select(TeamJoinRequest).where(
                TeamJoinRequest.team_id == team_id,
                TeamJoinRequest.user_id == user_id,
                TeamJoinRequest.status == RequestStatus.PENDING,
            )
        ).first()

    def list_join_requests(
        self,
        team_id: int,
        params: PaginationParams,
        status: RequestStatus | None = RequestStatus.PENDING,
    ) -> Page[TeamJoinRequest]:
        statement = select(TeamJoinRequest).where(TeamJoinRequest.team_id == team_id)
        if status is not None:
            statement = statement.where(TeamJoinRequest.status == status)
        statement = statement.order_by(TeamJoinRequest.created_at.desc(), TeamJoinRequest.id.desc())
        return self.paginate(statement, params)

    def get_invitation(self, invitation_id: int) -> TeamInvitation | None:
        return self.session.get(TeamInvitation, invitation_id)

    def pending_invitation(self, team_id: int, invitee_id: int) -> TeamInvitation | None:
        return self.session.exec(
            select(TeamInvitation).where(
                TeamInvitation.team_id == team_id,
                TeamInvitation.invitee_id == invitee_id,
                TeamInvitation.status == InvitationStatus.PENDING,
            )
        ).first()

    def list_invitations_for(self, user_id: int, params: PaginationParams) -> Page[TeamInvitation]:
        statement = (
            select(TeamInvitation)
            .where(
                TeamInvitation.invitee_id == user_id,
                TeamInvitation.status == InvitationStatus.PENDING,
            )
            .order_by(TeamInvitation.created_at.desc(), TeamInvitation.id.desc())
        )
        return self.paginate(statement, params)

    # Listings

    def search(
        self,
        params: PaginationParams,
        viewer_id: int | None = None,
        query: str | None = None,
        team_type=None,
        skill: str | None = None,
        location: str | None = None,
        is_recruiting: bool | None = None,
    ) -> Page[Team]:
        """Discoverable teams: anything not PRIVATE, plus private teams the viewer belongs to"""
        visible = Team.visibility != TeamVisibility.PRIVATE
        if viewer_id is not None:
            visible = or_(visible, Team.id.in_(self.member_team_ids(viewer_id)))
        statement = select(Team).where(visible)
        if query:
            pattern = contains_pattern(query)
            statement = statement.where(
                or_(
                    func.lower(Team.name).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(Team.description).like(pattern, escape=LIKE_ESCAPE),
                )
            )
        if team_type is not None:
            statement = statement.where(Team.type == team_type)
        if skill:
            statement = statement.where(
                func.lower(cast(Team.skills, String)).like(f'%"{skill.lower()}"%')
            )
        if location:
            statement = statement.where(
                func.lower(Team.location).like(contains_pattern(location), escape=LIKE_ESCAPE)
            )
        if is_recruiting is not None:
            statement = statement.where(Team.is_recruiting == is_recruiting)
        statement = statement.order_by(Team.created_at.desc(), Team.id.desc())
        return self.paginate(statement, params)

    def list_for_member(self, user_id: int, params: PaginationParams) -> Page[Team]:
        statement = (
            select(Team)
            .join(TeamMember, TeamMember.team_id == Team.id)
            .where(TeamMember.user_id == user_id)
            .order_by(TeamMember.joined_at.desc(), Team.id.desc())
        )
        return self.paginate(statement, params)

    def recommendations(self, user_id: int, skills: list[str], limit: int) -> list[Team]:
        """Recruiting public teams the user is not in, teams sharing their skills first"""
        excluded = self.member_team_ids(user_id)
        candidates = self.session.exec(
            select(Team)
            .where(
                Team.visibility == TeamVisibility.PUBLIC,
                Team.is_recruiting == True,
                Team.id.not_in(excluded),
            )
            .order_by(Team.created_at.desc(), Team.id.desc())
        ).all()
        wanted = {skill.lower() for skill in skills}
        ranked = sorted(
            candidates,
            key=lambda team: len(wanted & {s.lower() for s in (team.skills or [])}),
            reverse=True,
        )
        return ranked[:limit]
