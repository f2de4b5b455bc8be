"""Authorization policy for teams, projects, posts and comments.

Every service asks ``authorize`` before mutating a resource. Each capability
maps to one rule in ``RULES``; a rule returns ``None`` when the actor is
allowed, or the message explaining the refusal.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from sqlmodel import Session, select

from core.errors import ForbiddenError
from models import (
    Team, TeamMember, TeamMemberStatus, TeamVisibility,
    Project, ProjectMember, ProjectRole,
    Post, Comment,
)

TEAM_MANAGER_STATUSES = (TeamMemberStatus.ADMIN, TeamMemberStatus.MODERATOR)


class Capability(str, Enum):
    TEAM_VIEW = "team:view"
    TEAM_UPDATE = "team:update"
    TEAM_DELETE = "team:delete"
    TEAM_INVITE = "team:invite"
    TEAM_REVIEW_REQUESTS = "team:review_requests"
    TEAM_CHANGE_ROLE = "team:change_role"
    TEAM_REMOVE_MEMBER = "team:remove_member"
    TEAM_POST = "team:post"

    PROJECT_VIEW = "project:view"
    PROJECT_UPDATE = "project:update"
    PROJECT_DELETE = "project:delete"
    PROJECT_INVITE = "project:invite"
    PROJECT_CHANGE_ROLE = "project:change_role"
    PROJECT_REMOVE_MEMBER = "project:remove_member"
    PROJECT_POST = "project:post"

    POST_EDIT = "post:edit"
    POST_DELETE = "post:delete"
    POST_ANALYTICS = "post:analytics"

    COMMENT_EDIT = "comment:edit"
    COMMENT_DELETE = "comment:delete"


@dataclass
class AccessRequest:
    session: Session
    actor_id: int
    resource: object
    target_user_id: Optional[int] = None


Rule = Callable[[AccessRequest], Optional[str]]


def team_status(session: Session, team_id: int, user_id: int) -> TeamMemberStatus | None:
    return session.exec(
        select(TeamMember.status).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
    ).first()


def project_role(session: Session, project_id: int, user_id: int) -> ProjectRole | None:
    return session.exec(
        select(ProjectMember.role).where(
            ProjectMember.project_id == project_id, ProjectMember.user_id == user_id
        )
    ).first()


def is_team_manager(session: Session, team: Team, user_id: int) -> bool:
    if team.owner_id == user_id:
        return True
    return team_status(session, team.id, user_id) in TEAM_MANAGER_STATUSES


def is_project_admin(session: Session, project: Project, user_id: int) -> bool:
    if project.owner_id == user_id:
        return True
    return project_role(session, project.id, user_id) == ProjectRole.ADMIN


# Team rules

def _team_view(req: AccessRequest) -> Optional[str]:
    team: Team = req.resource
    if team.visibility != TeamVisibility.PRIVATE or team.owner_id == req.actor_id:
        return None
    if team_status(req.session, team.id, req.actor_id) is not None:
        return None
    return "This team is private"


def _team_manage(message: str) -> Rule:
    def rule(req: AccessRequest) -> Optional[str]:
        if is_team_manager(req.session, req.resource, req.actor_id):
            return None
        return message
    return rule


def _team_delete(req: AccessRequest) -> Optional[str]:
    if req.resource.owner_id == req.actor_id:
        return None
    return "Only the team owner can delete the team"


def _team_change_role(req: AccessRequest) -> Optional[str]:
    team: Team = req.resource
    if req.target_user_id == team.owner_id:
        return "Team owner's role cannot be changed"
    if is_team_manager(req.session, team, req.actor_id):
        return None
    return "Only team owners, admins and moderators can change member roles"


def _team_remove_member(req: AccessRequest) -> Optional[str]:
    team: Team = req.resource
    if req.target_user_id == team.owner_id:
        return "Cannot remove team owner"
    if req.target_user_id == req.actor_id:
        return None
    if is_team_manager(req.session, team, req.actor_id):
        return None
    return "Only team owners, admins and moderators can remove members"


def _team_post(req: AccessRequest) -> Optional[str]:
    team: Team = req.resource
    if team.owner_id == req.actor_id or team_status(req.session, team.id, req.actor_id) is not None:
        return None
    return "You must be a team member to post in this team"


# Project rules

def _project_view(req: AccessRequest) -> Optional[str]:
    project: Project = req.resource
    if project.is_public or project.owner_id == req.actor_id:
        return None
    if project_role(req.session, project.id, req.actor_id) is not None:
        return None
    return "This project is private"


def _project_admin(message: str) -> Rule:
    def rule(req: AccessRequest) -> Optional[str]:
        if is_project_admin(req.session, req.resource, req.actor_id):
            return None
        return message
    return rule


def _project_change_role(req: AccessRequest) -> Optional[str]:
    project: Project = req.resource
    if req.target_user_id == project.owner_id:
        return "Project owner's role cannot be changed"
    if is_project_admin(req.session, project, req.actor_id):
        return None
    return "Only the project owner or admins can change member roles"


def _project_remove_member(req: AccessRequest) -> Optional[str]:
    project: Project = req.resource
    if req.target_user_id == project.owner_id:
        return "Cannot remove project owner"
    if req.target_user_id == req.actor_id:
        return None
    if is_project_admin(req.session, project, req.actor_id):
        return None
    return "Only the project owner or admins can remove members"


def _project_post(req: AccessRequest) -> Optional[str]:
    project: Project = req.resource
    if project.owner_id == req.actor_id or project_role(req.session, project.id, req.actor_id) is not None:
        return None
    return "You must be a project member to post in this project"


# Post and comment rules

def _post_edit(req: AccessRequest) -> Optional[str]:
    if req.resource.author_id == req.actor_id:
        return None
    return "You can only update your own posts"


def _post_delete(req: AccessRequest) -> Optional[str]:
    post: Post = req.resource
    if post.author_id == req.actor_id:
        return None
    if post.team_id is not None:
        team = req.session.get(Team, post.team_id)
        if team is not None and is_team_manager(req.session, team, req.actor_id):
            return None
    return "You can only delete your own posts"


def _post_analytics(req: AccessRequest) -> Optional[str]:
    if req.resource.author_id == req.actor_id:
        return None
    return "You can only view analytics for your own posts"


def _comment_edit(req: AccessRequest) -> Optional[str]:
    if req.resource.author_id == req.actor_id:
        return None
    return "You can only update your own comments"


def _comment_delete(req: AccessRequest) -> Optional[str]:
    comment: Comment = req.resource
    if comment.author_id == req.actor_id:
        return None
    post = req.session.get(Post, comment.post_id)
    if post is not None and post.author_id == req.actor_id:
        return None
    return "You can only delete your own comments"


RULES: dict[Capability, Rule] = {
    Capability.TEAM_VIEW: _team_view,
    Capability.TEAM_UPDATE: _team_manage("Only team owners, admins and moderators can update the team"),
    Capability.TEAM_DELETE: _team_delete,
    Capability.TEAM_INVITE: _team_manage("Only team owners, admins and moderators can invite members"),
    Capability.TEAM_REVIEW_REQUESTS: _team_manage(
        "Only team owners, admins and moderators can review join requests"
    ),
    Capability.TEAM_CHANGE_ROLE: _team_change_role,
    Capability.TEAM_REMOVE_MEMBER: _team_remove_member,
    Capability.TEAM_POST: _team_post,
    Capability.PROJECT_VIEW: _project_view,
    Capability.PROJECT_UPDATE: _project_admin("Only the project owner or admins can update the project"),
    Capability.PROJECT_DELETE: _project_admin("Only the project owner or admins can delete the project"),
    Capability.PROJECT_INVITE: _project_admin("Only the project owner or admins can invite members"),
    Capability.PROJECT_CHANGE_ROLE: _project_change_role,
    Capability.PROJECT_REMOVE_MEMBER: _project_remove_member,
    Capability.PROJECT_POST: _project_post,
    Capability.POST_EDIT: _post_edit,
    Capability.POST_DELETE: _post_delete,
    Capability.POST_ANALYTICS: _post_analytics,
    Capability.COMMENT_EDIT: _comment_edit,
    Capability.COMMENT_DELETE: _comment_delete,
}


def check(
    session: Session,
    actor_id: int,
    resource: object,
    capability: Capability,
    target_user_id: int | None = None,
) -> Optional[str]:
    """Return the refusal message, or None when the actor holds the capability"""
    rule = RULES[capability]
    return rule(AccessRequest(session, actor_id, resource, target_user_id))


def can(
    session: Session,
    actor_id: int,
    resource: object,
    capability: Capability,
    target_user_id: int | None = None,
) -> bool:
    return check(session, actor_id, resource, capability, target_user_id) is None


def authorize(
    session: Session,
    actor_id: int,
    resource: object,
    capability: Capability,
    target_user_id: int | None = None,
) -> None:
    denial = check(session, actor_id, resource, capability, target_user_id)
    if denial is not None:
        raise ForbiddenError(denial)
