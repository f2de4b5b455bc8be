from datetime import datetime, timezone
import logging

from sqlmodel import Session

from core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from models import (
    Project, ProjectMember, ProjectCreate, ProjectUpdate, ProjectPublic,
    ProjectMemberPublic, ProjectRole, ProjectStatus, NotificationType,
    PaginationParams, User,
)
from repositories import ProjectRepository, UserRepository, Page
from services.notification_service import NotificationService
from services.permissions import Capability, authorize

logger = logging.getLogger(__name__)


class ProjectService:
    def __init__(self, session: Session):
        self.session = session
        self.projects = ProjectRepository(session)
        self.users = UserRepository(session)
        self.notifications = NotificationService(session)

    def get(self, project_id: int) -> Project:
        project = self.projects.get(project_id)
        if not project:
            raise NotFoundError("Project not found")
        return project

    def get_visible(self, project_id: int, viewer_id: int | None) -> Project:
        project = self.get(project_id)
        if not project.is_public:
            if viewer_id is None:
                raise ForbiddenError("This project is private")
            authorize(self.session, viewer_id, project, Capability.PROJECT_VIEW)
        return project

    def to_public(self, project: Project) -> ProjectPublic:
        return ProjectPublic.model_validate(
            project, update={"member_count": self.projects.member_count(project.id)}
        )

    def member_to_public(self, project: Project, member: ProjectMember) -> ProjectMemberPublic:
        return ProjectMemberPublic.model_validate(
            member, update={"is_owner": member.user_id == project.owner_id}
        )

    def create(self, owner: User, data: ProjectCreate) -> Project:
        if data.start_date and data.end_date and data.end_date < data.start_date:
            raise ValidationError("end_date must be after start_date")
        project = Project.model_validate(data, update={"owner_id": owner.id})
        project.members = [ProjectMember(user_id=owner.id, role=ProjectRole.ADMIN)]
        project = self.projects.save(project)
        logger.info(f"User {owner.id} created project {project.id}")
        return project

    def update(self, project_id: int, user: User, data: ProjectUpdate) -> Project:
        project = self.get(project_id)
        authorize(self.session, user.id, project, Capability.PROJECT_UPDATE)
        project.sqlmodel_update(data.model_dump(exclude_unset=True))
        project.updated_at = datetime.now(timezone.utc)
        return self.projects.save(project)

    def delete(self, project_id: int, user: User) -> None:
        project = self.get(project_id)
        authorize(self.session, user.id, project, Capability.PROJECT_DELETE)
        self.projects.delete(project)
        logger.info(f"User {user.id} deleted project {project_id}")

    def search(
        self,
        params: PaginationParams,
        viewer_id: int | None = None,
        query: str | None = None,
        status: ProjectStatus | None = None,
        owner_id: int | None = None,
    ) -> Page[Project]:
        return self.projects.search(params, viewer_id=viewer_id, query=query, status=status, owner_id=owner_id)

    def my_projects(self, user_id: int, params: PaginationParams) -> Page[Project]:
        return self.projects.list_for_member(user_id, params)

    def list_members(self, project_id: int, viewer_id: int | None, params: PaginationParams) -> tuple[Project, Page[ProjectMember]]:
        project = self.get_visible(project_id, viewer_id)
        return project, self.projects.list_members(project.id, params)

    def invite(self, project_id: int, user: User, invitee_id: int, role: ProjectRole = ProjectRole.MEMBER) -> ProjectMember:
        project = self.get(project_id)
        authorize(self.session, user.id, project, Capability.PROJECT_INVITE)
        invitee = self.users.get(invitee_id)
        if not invitee or invitee.disabled:
            raise NotFoundError("User not found")
        if self.projects.get_member(project.id, invitee_id):
            raise ConflictError("User is already a member of this project")

        member = self.projects.save(ProjectMember(project_id=project.id, user_id=invitee_id, role=role))
        self.notifications.notify(
            invitee_id,
            NotificationType.PROJECT_INVITATION,
            "Added to project",
            f"{user.first_name} {user.last_name} added you to {project.title}",
            data={"project_id": project.id, "role": role.value},
            actor_id=user.id,
        )
        return member

    def change_role(self, project_id: int, target_user_id: int, user: User, role: ProjectRole) -> ProjectMember:
        project = self.get(project_id)
        authorize(self.session, user.id, project, Capability.PROJECT_CHANGE_ROLE, target_user_id=target_user_id)
        member = self.projects.get_member(project.id, target_user_id)
        if not member:
            raise NotFoundError("Member not found")
        member.role = role
        return self.projects.save(member)

    def remove_member(self, project_id: int, target_user_id: int, user: User) -> None:
        project = self.get(project_id)
        authorize(self.session, user.id, project, Capability.PROJECT_REMOVE_MEMBER, target_user_id=target_user_id)
        member = self.projects.get_member(project.id, target_user_id)
        if not member:
            raise NotFoundError("Member not found")
        self.projects.delete(member)
