from pydantic import BaseModel

from .user import UserPrivate


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPrivate


class TokenData(BaseModel):
    user_id: int | None = None


class LoginRequest(BaseModel):
    # username or email
    login: str
    password: str


class Availability(BaseModel):
    available: bool
