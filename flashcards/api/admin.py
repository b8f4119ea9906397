"""Admin API routes for user and wordbook management."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from flashcards.api.auth import get_current_user
from flashcards.api.schemas import SuccessResponse
from flashcards.core.config import settings
from flashcards.core.database import get_db
from flashcards.models.study import Progress
from flashcards.models.user import User, UserRole
from flashcards.models.wordbook import Word, Wordbook
from flashcards.services.auth import delete_user_account, get_user_by_id, hash_password
from flashcards.services.wordbooks import delete_wordbook, get_wordbook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# Dependency to require admin access
async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Dependency that requires the current user to be an admin."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


# Schemas
class GlobalStatsResponse(BaseModel):
    """Global statistics response."""

    user_count: int
    wordbook_count: int
    word_count: int
    progress_count: int


class UserListResponse(BaseModel):
    """Response for user list."""

    id: int
    username: str
    role: UserRole
    created_at: datetime


class AdminWordbookResponse(BaseModel):
    """Wordbook as listed in the admin panel."""

    id: int
    user_id: int
    name: str
    total_words: int
    is_public: bool
    is_cloned: bool
    content_hash: str | None
    created_at: datetime
    creator_name: str


class TogglePublicRequest(BaseModel):
    """Request to publish or unpublish a wordbook in the market."""

    wordbook_id: int = Field(validation_alias=AliasChoices("wordbookId", "wordbook_id"))
    is_public: bool = Field(validation_alias=AliasChoices("isPublic", "is_public"))


# Routes

@router.get("/stats", response_model=GlobalStatsResponse)
async def get_global_stats(
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Get global statistics (admin only)."""
    user_count = await db.execute(select(func.count(User.id)))
    wordbook_count = await db.execute(select(func.count(Wordbook.id)))
    word_count = await db.execute(select(func.count(Word.id)))
    progress_count = await db.execute(select(func.count(Progress.id)))

    return GlobalStatsResponse(
        user_count=user_count.scalar() or 0,
        wordbook_count=wordbook_count.scalar() or 0,
        word_count=word_count.scalar() or 0,
        progress_count=progress_count.scalar() or 0,
    )


@router.get("/users", response_model=list[UserListResponse])
async def list_users(
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """List all users, newest first (admin only)."""
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    users = result.scalars().all()

    return [
        UserListResponse(
            id=u.id,
            username=u.username,
            role=u.role,
            created_at=u.created_at,
        )
        for u in users
    ]


@router.post("/users/{user_id}/reset", response_model=SuccessResponse)
async def reset_user_password(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Reset a user's password to the configured default (admin only)."""
    user = await get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    user.password_hash = hash_password(settings.admin_reset_password)
    await db.commit()
    logger.info(f"Admin {admin.id} reset the password of user {user_id}")

    return SuccessResponse(message=f"Password has been reset to: {settings.admin_reset_password}")


@router.delete("/users/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Delete a user and everything they own (admin only)."""
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete yourself")

    user = await get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if user.is_admin:
        raise HTTPException(status_code=400, detail="Cannot delete admin users")

    await delete_user_account(db, user_id)
    return SuccessResponse()


@router.get("/wordbooks", response_model=list[AdminWordbookResponse])
async def list_wordbooks(
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """List all original (not cloned) wordbooks with their creators (admin only)."""
    result = await db.execute(
        select(Wordbook, User.username)
        .join(User, User.id == Wordbook.user_id)
        .where(Wordbook.is_cloned == False)  # noqa: E712
        .order_by(Wordbook.created_at.desc(), Wordbook.id.desc())
    )

    return [
        AdminWordbookResponse(
            id=wb.id,
            user_id=wb.user_id,
            name=wb.name,
            total_words=wb.total_words,
            is_public=wb.is_public,
            is_cloned=wb.is_cloned,
            content_hash=wb.content_hash,
            created_at=wb.created_at,
            creator_name=creator_name,
        )
        for wb, creator_name in result.all()
    ]


@router.delete("/wordbooks/{wordbook_id}", response_model=SuccessResponse)
async def delete_any_wordbook(
    wordbook_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Delete a wordbook for everyone (admin only)."""
    if not await get_wordbook(db, wordbook_id):
        raise HTTPException(status_code=404, detail="Wordbook not found")

    await delete_wordbook(db, wordbook_id)
    await db.commit()
    logger.info(f"Admin {admin.id} deleted wordbook {wordbook_id}")
    return SuccessResponse()


@router.post("/toggle-public", response_model=SuccessResponse)
async def toggle_public(
    request: TogglePublicRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Publish or unpublish a wordbook in the market (admin only)."""
    result = await db.execute(
        update(Wordbook)
        .where(Wordbook.id == request.wordbook_id)
        .values(is_public=request.is_public)
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Wordbook not found")

    await db.commit()
    return SuccessResponse()
