from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from flashcards.api.auth import get_current_user
from flashcards.api.schemas import WordbookIdRequest
from flashcards.core.database import get_db
from flashcards.models.user import User
from flashcards.services.wordbooks import WordbookService, get_wordbook

router = APIRouter(prefix="/market", tags=["market"])


class MarketBookResponse(BaseModel):
    id: int
    name: str
    total_words: int
    created_at: datetime
    creator_name: str
    has_added: bool


class SubscribeResponse(BaseModel):
    success: bool = True
    message: str
    new_book_id: int


@router.get("", response_model=list[MarketBookResponse])
async def list_market(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List public wordbooks, marking the ones the user already has."""
    books = await WordbookService(db, current_user.id).list_market()
    return [
        MarketBookResponse(
            id=b.wordbook.id,
            name=b.wordbook.name,
            total_words=b.wordbook.total_words,
            created_at=b.wordbook.created_at,
            creator_name=b.creator_name,
            has_added=b.has_added,
        )
        for b in books
    ]


@router.post("/clone", response_model=SubscribeResponse)
async def subscribe_wordbook(
    request: WordbookIdRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Add a public wordbook to the user's list as a subscriber.

    Words are shared with the original book, not copied.
    """
    service = WordbookService(db, current_user.id)
    if await service.get_membership(request.wordbook_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You have already added this wordbook",
        )

    wordbook = await get_wordbook(db, request.wordbook_id)
    if not wordbook or not wordbook.is_public:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Wordbook not found or not public",
        )

    await service.subscribe(wordbook.id)
    return SubscribeResponse(message="Added to your wordbooks", new_book_id=wordbook.id)
