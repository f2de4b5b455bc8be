from sqlalchemy import func, or_
from sqlmodel import select

from models import Project, ProjectMember, ProjectStatus, PaginationParams
from .base import BaseRepository, LIKE_ESCAPE, Page, contains_pattern


class ProjectRepository(BaseRepository[Project]):
    model = Project

    def get_member(self, project_id: int, user_id: int) -> ProjectMember | None:
        return self.session.exec(
            select(ProjectMember).where(
                ProjectMember.project_id == project_id,
                ProjectMember.user_id == user_id,
            )
        ).first()

    def member_count(self, project_id: int) -> int:
        return self.session.exec(
            select(func.count(ProjectMember.id)).where(ProjectMember.project_id == project_id)
        ).one()

    def member_project_ids(self, user_id: int) -> list[int]:
        return list(self.session.exec(
            select(ProjectMember.project_id).where(ProjectMember.user_id == user_id)
        ).all())

    def list_members(self, project_id: int, params: PaginationParams) -> Page[ProjectMember]:
        statement = (
            select(ProjectMember)
            .where(ProjectMember.project_id == project_id)
            .order_by(ProjectMember.joined_at, ProjectMember.id)
        )
        return self.paginate(statement, params)

    def search(
        self,
        params: PaginationParams,
        viewer_id: int | None = None,
        query: str | None = None,
        status: ProjectStatus | None = None,
        owner_id: int | None = None,
    ) -> Page[Project]:
        visible = Project.is_public == True
        if viewer_id is not None:
            visible = or_(visible, Project.id.in_(self.member_project_ids(viewer_id)))
        statement = select(Project).where(visible)
        if query:
            pattern = contains_pattern(query)
            statement = statement.where(
                or_(
                    func.lower(Project.title).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(Project.description).like(pattern, escape=LIKE_ESCAPE),
                )
            )
        if status is not None:
            statement = statement.where(Project.status == status)
        if owner_id is not None:
            statement = statement.where(Project.owner_id == owner_id)
        statement = statement.order_by(Project.created_at.desc(), Project.id.desc())
        return self.paginate(statement, params)

    def list_for_member(self, user_id: int, params: PaginationParams) -> Page[Project]:
        statement = (
            select(Project)
            .join(ProjectMember, ProjectMember.project_id == Project.id)
            .where(ProjectMember.user_id == user_id)
            .order_by(Project.updated_at.desc(), Project.id.desc())
        )
        return self.paginate(statement, params)
