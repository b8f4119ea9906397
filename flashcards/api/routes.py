from fastapi import APIRouter

from flashcards.api.schemas import HealthResponse
from flashcards.core.config import settings
from flashcards.models.base import utcnow

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Check API health."""
    return HealthResponse(status="healthy", version=settings.version, time=utcnow())
