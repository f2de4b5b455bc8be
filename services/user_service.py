import logging
import re

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from auth.security import get_password_hash, verify_password
from core.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from models import User, UserCreate, UserUpdate, PaginationParams
from repositories import PostRepository, UserRepository, Page

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[A-Za-z0-9_.]{3,30}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserService:
    def __init__(self, session: Session):
        self.session = session
        self.users = UserRepository(session)
        self.posts = PostRepository(session)

    def register(self, data: UserCreate) -> User:
        if not USERNAME_RE.match(data.username):
            raise ValidationError("Username may only contain letters, digits, dots and underscores")
        if not EMAIL_RE.match(data.email):
            raise ValidationError("Invalid email format")
        if self.users.get_by_username(data.username):
            raise ConflictError("Username already registered")
        if self.users.get_by_email(data.email):
            raise ConflictError("Email already registered")

        user = User.model_validate(
            data,
            update={"password": get_password_hash(data.password), "email": data.email.lower()},
        )
        try:
            user = self.users.save(user)
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("Username or email already registered")
        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    def authenticate(self, login: str, password: str) -> User:
        user = self.users.get_by_login(login)
        if not user or not verify_password(password, user.password):
            raise UnauthorizedError("Incorrect username or password")
        if user.disabled:
            raise UnauthorizedError("Account is disabled")
        return user

    def get(self, user_id: int) -> User:
        user = self.users.get(user_id)
        if not user or user.disabled:
            raise NotFoundError("User not found")
        return user

    def is_username_available(self, username: str) -> bool:
        return self.users.get_by_username(username) is None

    def is_email_available(self, email: str) -> bool:
        return self.users.get_by_email(email) is None

    def update_profile(self, user: User, data: UserUpdate) -> User:
        user.sqlmodel_update(data.model_dump(exclude_unset=True))
        return self.users.save(user)

    def search(
        self,
        params: PaginationParams,
        query: str | None = None,
        skill: str | None = None,
        location: str | None = None,
        exclude_id: int | None = None,
    ) -> Page[User]:
        return self.users.search(params, query=query, skill=skill, location=location, exclude_id=exclude_id)

    def delete_account(self, user: User) -> None:
        logger.info(f"Deleting account {user.id} ({user.username})")
        engaged = self.posts.engaged_post_ids(user.id)
        self.users.delete(user)
        # Reactions, comments and shares on other posts went with the account
        for post_id in engaged:
            self.posts.update_counts(post_id)
