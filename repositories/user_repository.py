from sqlalchemy import String, cast, func, or_
from sqlmodel import select

from models import User, PaginationParams
from .base import BaseRepository, LIKE_ESCAPE, Page, contains_pattern


class UserRepository(BaseRepository[User]):
    model = User

    def get_by_username(self, username: str) -> User | None:
        return self.session.exec(select(User).where(User.username == username)).first()

    def get_by_email(self, email: str) -> User | None:
        return self.session.exec(
            select(User).where(func.lower(User.email) == email.lower())
        ).first()

    def get_by_login(self, login: str) -> User | None:
        """Look a user up by username or email"""
        if "@" in login:
            return self.get_by_email(login)
        return self.get_by_username(login)

    def search(
        self,
        params: PaginationParams,
        query: str | None = None,
        skill: str | None = None,
        location: str | None = None,
        exclude_id: int | None = None,
    ) -> Page[User]:
        statement = select(User).where(User.disabled == False)
        if exclude_id is not None:
            statement = statement.where(User.id != exclude_id)
        if query:
            pattern = contains_pattern(query)
            statement = statement.where(
                or_(
                    func.lower(User.username).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(User.first_name).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(User.last_name).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(User.position).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(User.company).like(pattern, escape=LIKE_ESCAPE),
                )
            )
        if location:
            statement = statement.where(
                func.lower(User.location).like(contains_pattern(location), escape=LIKE_ESCAPE)
            )
        if skill:
            # skills is a JSON list, match the quoted element in its text form
            statement = statement.where(
                func.lower(cast(User.skills, String)).like(f'%"{skill.lower()}"%')
            )
        statement = statement.order_by(User.username)
        return self.paginate(statement, params)
