"""Wordbook routes: upload, listing, preview and owner/subscriber management."""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from flashcards.api.auth import get_current_user
from flashcards.api.schemas import SuccessResponse
from flashcards.core.config import settings
from flashcards.core.database import get_db
from flashcards.models.user import User
from flashcards.models.wordbook import MembershipRole
from flashcards.services.wordbooks import MemberBook, WordbookService, get_wordbook, parse_word_list

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wordbooks", tags=["wordbooks"])

DEFAULT_WORDBOOK_NAME = "Untitled wordbook"


# Request/Response schemas
class UploadResponse(BaseModel):
    success: bool = True
    wordbook_id: int
    word_count: int


class WordbookResponse(BaseModel):
    """A wordbook from the point of view of one of its members."""

    id: int
    name: str
    total_words: int
    is_public: bool
    created_at: datetime
    role: MembershipRole
    joined_at: datetime
    learned_count: int


class WordbookDetailResponse(WordbookResponse):
    user_id: int
    is_cloned: bool
    content_hash: str | None


class RenameRequest(BaseModel):
    name: str | None = None


class PreviewWord(BaseModel):
    id: int
    word: str


class PreviewResponse(BaseModel):
    words: list[PreviewWord]


def _to_response(book: MemberBook) -> WordbookResponse:
    wb = book.wordbook
    return WordbookResponse(
        id=wb.id,
        name=wb.name,
        total_words=wb.total_words,
        is_public=wb.is_public,
        created_at=wb.created_at,
        role=book.role,
        joined_at=book.joined_at,
        learned_count=book.learned_count,
    )


# Routes
@router.post("/upload", response_model=UploadResponse)
async def upload_wordbook(
    txt: UploadFile | None = File(None),
    name: str | None = Form(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a wordbook from a text file with one word or phrase per line."""
    if txt is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please upload a TXT file",
        )

    content = await txt.read(settings.upload_max_bytes + 1)
    if len(content) > settings.upload_max_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File is larger than {settings.upload_max_bytes} bytes",
        )

    words = parse_word_list(content)
    if not words:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid words found in the file",
        )

    book_name = (name or "").strip() or DEFAULT_WORDBOOK_NAME

    try:
        service = WordbookService(db, current_user.id)
        wordbook = await service.create_wordbook(book_name, words)
    except Exception as e:
        logger.error(f"Wordbook import failed: {type(e).__name__}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to import the wordbook",
        )

    return UploadResponse(wordbook_id=wordbook.id, word_count=len(words))


@router.get("", response_model=list[WordbookResponse])
async def list_wordbooks(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the wordbooks the current user owns or subscribes to."""
    books = await WordbookService(db, current_user.id).list_books()
    return [_to_response(book) for book in books]


@router.get("/{wordbook_id}", response_model=WordbookDetailResponse)
async def get_wordbook_detail(
    wordbook_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get one of the current user's wordbooks."""
    book = await WordbookService(db, current_user.id).get_book(wordbook_id)
    if not book:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Wordbook not found or not added",
        )

    return WordbookDetailResponse(
        **_to_response(book).model_dump(),
        user_id=book.wordbook.user_id,
        is_cloned=book.wordbook.is_cloned,
        content_hash=book.wordbook.content_hash,
    )


@router.get("/{wordbook_id}/words", response_model=PreviewResponse)
async def preview_words(
    wordbook_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the words of a public, owned or subscribed wordbook in study order."""
    wordbook = await get_wordbook(db, wordbook_id)
    if not wordbook:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Wordbook not found")

    service = WordbookService(db, current_user.id)
    if not await service.can_view(wordbook):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this wordbook",
        )

    words = await service.list_words(wordbook_id)
    return PreviewResponse(words=[PreviewWord(id=w.id, word=w.word) for w in words])


@router.post("/{wordbook_id}/rename", response_model=SuccessResponse)
async def rename_wordbook(
    wordbook_id: int,
    request: RenameRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Rename a wordbook (owner only)."""
    name = (request.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name must not be empty")

    service = WordbookService(db, current_user.id)
    membership = await service.get_membership(wordbook_id)
    if not membership or membership.role != MembershipRole.OWNER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the owner can rename this wordbook",
        )

    await service.rename(wordbook_id, name)
    return SuccessResponse()


@router.post("/{wordbook_id}/reset", response_model=SuccessResponse)
async def reset_wordbook_progress(
    wordbook_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Forget the current user's answers and mistakes for a wordbook."""
    service = WordbookService(db, current_user.id)
    if not await service.get_membership(wordbook_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Wordbook not found")

    await service.reset_progress(wordbook_id)
    return SuccessResponse(message="Progress has been reset")


@router.delete("/{wordbook_id}", response_model=SuccessResponse)
async def delete_wordbook(
    wordbook_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete an owned wordbook, or unsubscribe from someone else's."""
    service = WordbookService(db, current_user.id)
    membership = await service.get_membership(wordbook_id)
    if not membership:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Wordbook not found")

    deleted = await service.remove(membership)
    if deleted:
        return SuccessResponse(message="Wordbook permanently deleted")
    return SuccessResponse(message="Unsubscribed from the wordbook")
