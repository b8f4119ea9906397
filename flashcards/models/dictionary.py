import json
from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from flashcards.models.base import Base, utcnow


class DictionaryCacheEntry(Base):
    """Cached dictionary lookup for a lowercased word."""

    __tablename__ = "dictionary_cache"

    word: Mapped[str] = mapped_column(String(255), primary_key=True)
    phonetic: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # JSON-encoded list of translation strings
    translation: Mapped[str] = mapped_column(Text, default="[]")

    # Path relative to the static directory, e.g. /audio/hello.mp3
    audio_path: Mapped[str | None] = mapped_column(String(500), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    @property
    def translations(self) -> list[str]:
        try:
            value = json.loads(self.translation or "[]")
        except ValueError:
            return []
        return [str(t) for t in value] if isinstance(value, list) else []
