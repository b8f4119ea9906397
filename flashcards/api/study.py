"""Study routes: new-word flow and per-user counters."""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from flashcards.api.auth import get_current_user
from flashcards.api.schemas import CompletedResponse, SuccessResponse, WordIdRequest, WordResponse
from flashcards.core.database import get_db
from flashcards.models.user import User
from flashcards.services.study import ReviewSelector, get_word
from flashcards.services.wordbooks import WordbookService

router = APIRouter(tags=["study"])


class ProgressCounter(BaseModel):
    current: int
    total: int


class NextWordResponse(BaseModel):
    word: WordResponse
    progress: ProgressCounter


class StatsResponse(BaseModel):
    total_learned: int
    total_mistakes: int


async def require_member(db: AsyncSession, user: User, wordbook_id: int) -> None:
    if not await WordbookService(db, user.id).get_membership(wordbook_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You have not added this wordbook",
        )


async def require_answerable_word(db: AsyncSession, user: User, word_id: int) -> None:
    """The word must exist and belong to a wordbook the user has."""
    word = await get_word(db, word_id)
    if not word:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Word not found")
    await require_member(db, user, word.wordbook_id)


@router.get("/study/next", response_model=NextWordResponse | CompletedResponse)
async def next_word(
    wordbook_id: int = Query(alias="wordbookId"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the next word the user has not answered yet."""
    await require_member(db, current_user, wordbook_id)

    selection = await ReviewSelector(db, current_user.id).next_word(wordbook_id)
    if selection is None:
        return CompletedResponse()

    word = selection.word
    return NextWordResponse(
        word=WordResponse(
            id=word.id,
            wordbook_id=word.wordbook_id,
            word=word.word,
            order_index=word.order_index,
        ),
        progress=ProgressCounter(current=selection.current, total=selection.total),
    )


@router.post("/study/known", response_model=SuccessResponse)
async def mark_known(
    request: WordIdRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark a word as known; removes it from the mistake queue."""
    await require_answerable_word(db, current_user, request.word_id)
    await ReviewSelector(db, current_user.id).mark_known(request.word_id)
    return SuccessResponse()


@router.post("/study/unknown", response_model=SuccessResponse)
async def mark_unknown(
    request: WordIdRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark a word as unknown; queues it for review."""
    await require_answerable_word(db, current_user, request.word_id)
    await ReviewSelector(db, current_user.id).mark_unknown(request.word_id)
    return SuccessResponse()


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the current user's learning counters."""
    stats = await ReviewSelector(db, current_user.id).stats()
    return StatsResponse(**stats)
