import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from flashcards.core.config import settings
from flashcards.core.database import get_db
from flashcards.services.dictionary import USER_AGENT, DictionaryCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dict", tags=["dictionary"])


class DictionaryResponse(BaseModel):
    """Dictionary entry for a word."""

    word: str
    phonetic: str
    translation: list[str]
    audio: str | None


async def get_http_client():
    """Dependency that provides an HTTP client for upstream dictionary calls."""
    async with httpx.AsyncClient(
        timeout=settings.dictionary_timeout_seconds,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    ) as client:
        yield client


async def get_dictionary_cache(
    db: AsyncSession = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> DictionaryCache:
    return DictionaryCache(
        db,
        client,
        static_dir=settings.static_dir,
        ttl_days=settings.dictionary_cache_ttl_days,
    )


@router.get("/{word}", response_model=DictionaryResponse)
async def lookup_word(word: str, cache: DictionaryCache = Depends(get_dictionary_cache)):
    """Look up phonetic, translations and pronunciation audio for a word."""
    try:
        result = await cache.lookup(word)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception:
        logger.exception(f"Dictionary lookup failed for '{word}'")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Dictionary lookup failed",
        )

    return DictionaryResponse(**result.to_dict())
