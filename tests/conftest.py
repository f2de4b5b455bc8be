import os

# Settings are cached on first import, so the test environment goes in first
os.environ["DB_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BACKGROUND_TASKS_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel

from auth.security import get_password_hash
from dependencies import create_access_token, create_db_engine, get_session
from main import app
from models import Connection, ConnectionStatus, Team, TeamMember, TeamMemberStatus, User
from repositories import normalize_pair

TEST_PASSWORD = "testpass123"
# Hashing is slow on purpose, every fixture user shares one hash
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture
def test_db_engine():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(test_db_engine):
    with Session(test_db_engine) as session:
        yield session


@pytest.fixture
def client(db_session):
    def get_session_override():
        yield db_session

    app.dependency_overrides[get_session] = get_session_override
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def create_user(db_session):
    def _create_user(username: str, **kwargs) -> User:
        kwargs.setdefault("email", f"{username}@example.com")
        kwargs.setdefault("first_name", username.capitalize())
        kwargs.setdefault("last_name", "Tester")
        user = User(username=username, password=TEST_PASSWORD_HASH, **kwargs)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create_user


def _headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return _headers_for


@pytest.fixture
def password():
    return TEST_PASSWORD


@pytest.fixture
def user(create_user):
    return create_user("testuser")


@pytest.fixture
def auth_header(user):
    return _headers_for(user)


@pytest.fixture
def connect(db_session):
    """Store an accepted connection between two users"""
    def _connect(sender: User, receiver: User) -> Connection:
        low, high = normalize_pair(sender.id, receiver.id)
        connection = Connection(
            sender_id=sender.id,
            receiver_id=receiver.id,
            user_low_id=low,
            user_high_id=high,
            status=ConnectionStatus.ACCEPTED,
        )
        db_session.add(connection)
        db_session.commit()
        db_session.refresh(connection)
        return connection
    return _connect


@pytest.fixture
def create_team(db_session):
    def _create_team(owner: User, name: str = "Builders", **kwargs) -> Team:
        kwargs.setdefault("description", "We build things")
        team = Team(name=name, owner_id=owner.id, **kwargs)
        team.members = [TeamMember(user_id=owner.id, status=TeamMemberStatus.ADMIN)]
        db_session.add(team)
        db_session.commit()
        db_session.refresh(team)
        return team
    return _create_team
