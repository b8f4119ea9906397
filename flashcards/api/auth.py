import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from flashcards.api.schemas import SuccessResponse
from flashcards.core.config import settings
from flashcards.core.database import get_db
from flashcards.core.password import validate_password_strength
from flashcards.models.user import User, UserRole
from flashcards.services.auth import (
    authenticate_user,
    create_access_token,
    create_user,
    decode_access_token,
    get_user_by_id,
    get_user_by_username,
    hash_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])
security = HTTPBearer(auto_error=False)


# Request/Response schemas
class CredentialsRequest(BaseModel):
    """Request body for register and login."""

    username: str | None = None
    password: str | None = None


class SessionResponse(SuccessResponse):
    """Response after a session was opened."""

    access_token: str
    token_type: str = "bearer"
    role: UserRole


class ProfileUpdateRequest(BaseModel):
    """Request body for updating the current user's profile."""

    username: str | None = None
    password: str | None = None


class UserResponse(BaseModel):
    """Response containing user information."""

    id: int
    username: str
    role: UserRole


class AuthStatusResponse(BaseModel):
    authenticated: bool


def _session_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    """Bearer header wins over the session cookie."""
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


def _open_session(response: Response, user: User, message: str) -> SessionResponse:
    access_token = create_access_token(user.id)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=access_token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return SessionResponse(message=message, access_token=access_token, role=user.role)


# Dependency to get current user
async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Dependency that resolves the session token to a user."""
    token = _session_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please log in first",
        )

    user_id = decode_access_token(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    return user


# Optional user dependency (for endpoints that work with or without auth)
async def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Optional dependency that returns user if authenticated, None otherwise."""
    try:
        return await get_current_user(request, credentials, db)
    except HTTPException:
        return None


# Routes
@router.post("/register", response_model=SessionResponse)
async def register(
    request: CredentialsRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Create a new account and log it in."""
    username = (request.username or "").strip()
    password = request.password or ""
    if not username or not password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username and password are required",
        )

    try:
        validate_password_strength(password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if await get_user_by_username(db, username):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already exists",
        )

    user = await create_user(db, username=username, password=password)
    logger.info(f"User registered: {user.id}")

    return _open_session(response, user, "Registration successful")


@router.post("/login", response_model=SessionResponse)
async def login(
    request: CredentialsRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate and open a session."""
    user = None
    if request.username and request.password:
        user = await authenticate_user(db, request.username.strip(), request.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    return _open_session(response, user, "Login successful")


@router.post("/logout", response_model=SuccessResponse)
async def logout(response: Response):
    """Close the session by dropping the cookie."""
    response.delete_cookie(key=settings.session_cookie_name)
    return SuccessResponse()


@router.get("/check-auth", response_model=AuthStatusResponse)
async def check_auth(user: User | None = Depends(get_optional_user)):
    """Report whether the caller has a valid session."""
    return AuthStatusResponse(authenticated=user is not None)


@router.get("/auth/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get the current authenticated user's information."""
    return UserResponse(
        id=current_user.id,
        username=current_user.username,
        role=current_user.role,
    )


@router.post("/auth/profile", response_model=SuccessResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change the current user's username and/or password."""
    username = (request.username or "").strip()

    # Validate everything before writing anything
    if request.password:
        try:
            validate_password_strength(request.password)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if username and username != current_user.username:
        if await get_user_by_username(db, username):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username already exists",
            )
        current_user.username = username

    if request.password:
        current_user.password_hash = hash_password(request.password)

    await db.commit()
    return SuccessResponse(message="Profile updated")
