from datetime import timedelta
from typing import Annotated
from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.security import OAuth2PasswordRequestForm
import logging

from models import (
    ApiResponse, Availability, BasicResponse, LoginRequest, Token, UserCreate, UserPrivate,
)
from dependencies import CurrentUser, UserServiceDep, create_access_token
from core.config import get_settings
from core.metrics import users_registered_total

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


def _issue_token(response: Response, user) -> Token:
    access_token = create_access_token(
        data={"sub": str(user.id)},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        secure=True,
        samesite="Lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return Token(access_token=access_token, user=UserPrivate.model_validate(user))


@router.post("/register", response_model=ApiResponse[Token], status_code=status.HTTP_201_CREATED)
async def register(data: UserCreate, response: Response, service: UserServiceDep):
    """Create an account and log it in"""
    user = service.register(data)
    users_registered_total.inc()
    return ApiResponse(message="User registered successfully", data=_issue_token(response, user))


@router.post("/login", response_model=ApiResponse[Token])
async def login(credentials: LoginRequest, response: Response, service: UserServiceDep):
    """Login with username or email"""
    user = service.authenticate(credentials.login, credentials.password)
    logger.info(f"User {user.id} logged in")
    return ApiResponse(message="Login successful", data=_issue_token(response, user))


@router.post("/token")
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    response: Response,
    service: UserServiceDep,
):
    """OAuth2 password flow, used by the interactive docs"""
    user = service.authenticate(form_data.username, form_data.password)
    token = _issue_token(response, user)
    return {"access_token": token.access_token, "token_type": token.token_type}


@router.post("/logout", response_model=BasicResponse)
async def logout(response: Response):
    """Clear the authentication cookie"""
    response.delete_cookie("access_token")
    return BasicResponse(message="Logged out")


@router.get("/me", response_model=ApiResponse[UserPrivate])
async def read_current_user(current_user: CurrentUser):
    return ApiResponse(message="Current user", data=UserPrivate.model_validate(current_user))


@router.get("/check-username", response_model=ApiResponse[Availability])
async def check_username(service: UserServiceDep, username: str = Query(..., min_length=1)):
    available = service.is_username_available(username)
    return ApiResponse(message="Username availability", data=Availability(available=available))


@router.get("/check-email", response_model=ApiResponse[Availability])
async def check_email(service: UserServiceDep, email: str = Query(..., min_length=3)):
    available = service.is_email_available(email)
    return ApiResponse(message="Email availability", data=Availability(available=available))
