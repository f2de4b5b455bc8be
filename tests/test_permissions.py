import pytest

from core.errors import ForbiddenError
from models import (
    Comment, Post, Project, ProjectMember, ProjectRole, TeamMember, TeamMemberStatus, TeamVisibility,
)
from services.permissions import Capability, authorize, can, check


@pytest.fixture
def team_roles(db_session, create_user, create_team):
    owner = create_user("owner")
    team = create_team(owner, visibility=TeamVisibility.PRIVATE)
    users = {"owner": owner}
    for name, role in (("moderator", TeamMemberStatus.MODERATOR), ("member", TeamMemberStatus.MEMBER)):
        users[name] = create_user(name)
        db_session.add(TeamMember(team_id=team.id, user_id=users[name].id, status=role))
    users["outsider"] = create_user("outsider")
    db_session.commit()
    return team, users


def test_private_team_view(db_session, team_roles):
    team, users = team_roles
    assert can(db_session, users["member"].id, team, Capability.TEAM_VIEW)
    assert check(db_session, users["outsider"].id, team, Capability.TEAM_VIEW) == "This team is private"


def test_team_management_is_for_managers(db_session, team_roles):
    team, users = team_roles
    for capability in (Capability.TEAM_UPDATE, Capability.TEAM_INVITE, Capability.TEAM_REVIEW_REQUESTS):
        assert can(db_session, users["owner"].id, team, capability)
        assert can(db_session, users["moderator"].id, team, capability)
        assert not can(db_session, users["member"].id, team, capability)


def test_only_owner_deletes_team(db_session, team_roles):
    team, users = team_roles
    assert can(db_session, users["owner"].id, team, Capability.TEAM_DELETE)
    assert not can(db_session, users["moderator"].id, team, Capability.TEAM_DELETE)


def test_owner_role_and_membership_are_protected(db_session, team_roles):
    team, users = team_roles
    owner_id = users["owner"].id
    assert check(
        db_session, users["moderator"].id, team, Capability.TEAM_CHANGE_ROLE, target_user_id=owner_id
    ) == "Team owner's role cannot be changed"
    assert check(
        db_session, owner_id, team, Capability.TEAM_REMOVE_MEMBER, target_user_id=owner_id
    ) == "Cannot remove team owner"
    assert can(
        db_session, users["moderator"].id, team, Capability.TEAM_REMOVE_MEMBER, target_user_id=users["member"].id
    )
    assert can(
        db_session, users["member"].id, team, Capability.TEAM_REMOVE_MEMBER, target_user_id=users["member"].id
    )


def test_authorize_raises_with_the_rule_message(db_session, team_roles):
    team, users = team_roles
    with pytest.raises(ForbiddenError) as exc_info:
        authorize(db_session, users["outsider"].id, team, Capability.TEAM_POST)
    assert exc_info.value.message == "You must be a team member to post in this team"
    authorize(db_session, users["member"].id, team, Capability.TEAM_POST)


def test_project_rules(db_session, create_user):
    owner = create_user("owner")
    admin = create_user("admin")
    viewer = create_user("viewer")
    project = Project(title="Atlas", description="Maps", owner_id=owner.id, is_public=False)
    project.members = [
        ProjectMember(user_id=owner.id, role=ProjectRole.ADMIN),
        ProjectMember(user_id=admin.id, role=ProjectRole.ADMIN),
        ProjectMember(user_id=viewer.id, role=ProjectRole.VIEWER),
    ]
    db_session.add(project)
    db_session.commit()
    outsider = create_user("outsider")

    assert can(db_session, viewer.id, project, Capability.PROJECT_VIEW)
    assert not can(db_session, outsider.id, project, Capability.PROJECT_VIEW)
    assert can(db_session, admin.id, project, Capability.PROJECT_DELETE)
    assert not can(db_session, viewer.id, project, Capability.PROJECT_UPDATE)
    assert check(
        db_session, admin.id, project, Capability.PROJECT_CHANGE_ROLE, target_user_id=owner.id
    ) == "Project owner's role cannot be changed"


def test_post_and_comment_rules(db_session, team_roles):
    team, users = team_roles
    post = Post(author_id=users["member"].id, content="Team news", team_id=team.id)
    db_session.add(post)
    db_session.commit()
    comment = Comment(post_id=post.id, author_id=users["outsider"].id, content="Nice")
    db_session.add(comment)
    db_session.commit()

    assert can(db_session, users["member"].id, post, Capability.POST_EDIT)
    assert not can(db_session, users["moderator"].id, post, Capability.POST_EDIT)
    assert can(db_session, users["moderator"].id, post, Capability.POST_DELETE)
    assert not can(db_session, users["outsider"].id, post, Capability.POST_DELETE)
    assert not can(db_session, users["owner"].id, post, Capability.POST_ANALYTICS)

    assert can(db_session, users["outsider"].id, comment, Capability.COMMENT_EDIT)
    assert not can(db_session, users["member"].id, comment, Capability.COMMENT_EDIT)
    assert can(db_session, users["member"].id, comment, Capability.COMMENT_DELETE)
    assert not can(db_session, users["moderator"].id, comment, Capability.COMMENT_DELETE)
