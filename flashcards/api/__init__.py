from fastapi import APIRouter

from flashcards.api import admin, auth, dictionary, market, mistakes, study, wordbooks
from flashcards.api.routes import router

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(wordbooks.router)
api_router.include_router(study.router)
api_router.include_router(mistakes.router)
api_router.include_router(market.router)
api_router.include_router(dictionary.router)
api_router.include_router(admin.router)

__all__ = ["api_router", "router"]
