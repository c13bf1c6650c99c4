from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlmodel import Session

from ..config import ACCESS_TOKEN_EXPIRE_MINUTES
from ..database import get_db
from ..errors import AuthenticationError
from ..models import User
from ..schemas.task import MessageResponse
from ..schemas.user import AuthResponse, LoginRequest, TokenData, User as UserSchema, UserCreate
from ..services import UserService

router = APIRouter()

TOKEN_COOKIE = "token"


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def _get_token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip()
    return request.cookies.get(TOKEN_COOKIE)


def _set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token,
        httponly=True,
        secure=False,  # Set to True in production with HTTPS
        samesite="lax",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


def _auth_response(user: User, token: str, message: str) -> AuthResponse:
    return AuthResponse(
        user_id=user.id,
        username=user.username,
        email=user.email,
        message=message,
        token=token,
    )


def get_current_user(
    request: Request,
    users: UserService = Depends(get_user_service),
) -> User:
    """Resolve the caller from the bearer token (header or cookie)."""
    token = _get_token_from_request(request)
    if not token:
        raise AuthenticationError("Not authenticated")

    claims = users.token_issuer.decode(token)
    token_data = TokenData(username=claims.get("sub"), user_id=claims.get("userId"))
    if token_data.username is None:
        raise AuthenticationError("Invalid token")

    user = users.find_by_username(token_data.username)
    if user is None or (token_data.user_id is not None and user.id != token_data.user_id):
        raise AuthenticationError("User not found")
    return user


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: UserCreate,
    response: Response,
    users: UserService = Depends(get_user_service),
):
    """Create a new user account and sign it in."""
    user, token = users.register(payload)
    _set_token_cookie(response, token)
    return _auth_response(user, token, "User registered successfully")


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    response: Response,
    users: UserService = Depends(get_user_service),
):
    """Sign in and get a JWT."""
    result = users.login(payload.username, payload.password)
    if result is None:
        raise AuthenticationError("Invalid credentials")

    user, token = result
    _set_token_cookie(response, token)
    return _auth_response(user, token, "Login successful")


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response):
    """Sign out and clear the session cookie."""
    response.delete_cookie(key=TOKEN_COOKIE)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserSchema)
def read_users_me(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user
