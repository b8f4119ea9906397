"""Schemas shared by several routers."""
from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field


class SuccessResponse(BaseModel):
    """Generic acknowledgement."""

    success: bool = True
    message: str | None = None


class CompletedResponse(BaseModel):
    """Returned instead of a word when there is nothing left to show."""

    completed: bool = True


class WordIdRequest(BaseModel):
    """Request body naming a single word (accepts ``wordId`` or ``word_id``)."""

    word_id: int = Field(validation_alias=AliasChoices("wordId", "word_id"))


class WordbookIdRequest(BaseModel):
    """Request body naming a wordbook (accepts ``wordbookId`` or ``wordbook_id``)."""

    wordbook_id: int = Field(validation_alias=AliasChoices("wordbookId", "wordbook_id"))


class WordResponse(BaseModel):
    id: int
    wordbook_id: int
    word: str
    order_index: int


class HealthResponse(BaseModel):
    status: str
    version: str
    time: datetime
