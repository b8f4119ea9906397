from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from flashcards.api.auth import get_current_user
from flashcards.api.schemas import CompletedResponse, SuccessResponse, WordIdRequest, WordResponse
from flashcards.api.study import require_answerable_word
from flashcards.core.database import get_db
from flashcards.models.user import User
from flashcards.services.mistakes import MistakeQueue

router = APIRouter(prefix="/mistakes", tags=["mistakes"])


class MistakeItem(BaseModel):
    word_id: int
    word: str
    wordbook_id: int
    added_at: datetime


class MistakeCountResponse(BaseModel):
    count: int


class MistakeWordResponse(WordResponse):
    mistake_id: int


class NextMistakeResponse(BaseModel):
    word: MistakeWordResponse
    remaining: int


@router.get("", response_model=list[MistakeItem])
async def list_mistakes(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the user's mistakes, most recent first."""
    entries = await MistakeQueue(db, current_user.id).entries()
    return [
        MistakeItem(
            word_id=e.word.id,
            word=e.word.word,
            wordbook_id=e.word.wordbook_id,
            added_at=e.mistake.added_at,
        )
        for e in entries
    ]


@router.get("/count", response_model=MistakeCountResponse)
async def count_mistakes(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return MistakeCountResponse(count=await MistakeQueue(db, current_user.id).count())


@router.get("/next", response_model=NextMistakeResponse | CompletedResponse)
async def next_mistake(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the oldest mistake in the queue."""
    queue = MistakeQueue(db, current_user.id)
    entry = await queue.peek_next()
    if entry is None:
        return CompletedResponse()

    return NextMistakeResponse(
        word=MistakeWordResponse(
            id=entry.word.id,
            wordbook_id=entry.word.wordbook_id,
            word=entry.word.word,
            order_index=entry.word.order_index,
            mistake_id=entry.mistake.id,
        ),
        remaining=await queue.count(),
    )


@router.post("/known", response_model=SuccessResponse)
async def resolve_mistake(
    request: WordIdRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Remove a word from the queue and mark it as known."""
    await require_answerable_word(db, current_user, request.word_id)
    await MistakeQueue(db, current_user.id).resolve(request.word_id)
    return SuccessResponse()


@router.post("/skip", response_model=SuccessResponse)
async def skip_mistake(
    request: WordIdRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Move a word to the back of the queue."""
    if not await MistakeQueue(db, current_user.id).skip(request.word_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Word is not in your mistake list",
        )
    return SuccessResponse()
