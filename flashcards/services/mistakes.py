"""Per-user mistake queue.

Entries are reviewed oldest ``added_at`` first. Skipping an entry moves it to
the back of the queue by rewriting its timestamp; resolving it removes it.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from flashcards.models.base import utcnow
from flashcards.models.study import Mistake
from flashcards.models.wordbook import Word
from flashcards.services.study import remove_mistake, upsert_progress

logger = logging.getLogger(__name__)


@dataclass
class QueuedMistake:
    mistake: Mistake
    word: Word


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MistakeQueue:
    """FIFO of the words a user got wrong."""

    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def count(self) -> int:
        result = await self.db.execute(
            select(func.count(Mistake.id)).where(Mistake.user_id == self.user_id)
        )
        return result.scalar() or 0

    async def entries(self) -> list[QueuedMistake]:
        """All queued mistakes, most recently added first."""
        result = await self.db.execute(
            select(Mistake, Word)
            .join(Word, Word.id == Mistake.word_id)
            .where(Mistake.user_id == self.user_id)
            .order_by(Mistake.added_at.desc(), Mistake.id.desc())
        )
        return [QueuedMistake(mistake=row[0], word=row[1]) for row in result.all()]

    async def peek_next(self) -> QueuedMistake | None:
        """Oldest queued mistake, or None when the queue is empty."""
        result = await self.db.execute(
            select(Mistake, Word)
            .join(Word, Word.id == Mistake.word_id)
            .where(Mistake.user_id == self.user_id)
            .order_by(Mistake.added_at.asc(), Mistake.id.asc())
            .limit(1)
        )
        row = result.first()
        if row is None:
            return None
        return QueuedMistake(mistake=row[0], word=row[1])

    async def resolve(self, word_id: int) -> None:
        """Take a word out of the queue and mark it as known."""
        await remove_mistake(self.db, self.user_id, word_id)
        await upsert_progress(self.db, self.user_id, word_id, known=True)
        await self.db.commit()
        logger.debug(f"User {self.user_id} resolved mistake for word {word_id}")

    async def skip(self, word_id: int) -> bool:
        """Requeue a word at the tail of the queue.

        Returns False when the word is not queued for this user.
        """
        result = await self.db.execute(
            select(Mistake).where(Mistake.user_id == self.user_id, Mistake.word_id == word_id)
        )
        mistake = result.scalar_one_or_none()
        if mistake is None:
            return False

        newest_result = await self.db.execute(
            select(func.max(Mistake.added_at)).where(Mistake.user_id == self.user_id)
        )
        newest = newest_result.scalar()

        # Must sort strictly after every other entry, even within one clock tick.
        added_at = utcnow()
        if newest is not None:
            added_at = max(added_at, _as_utc(newest) + timedelta(microseconds=1))

        mistake.added_at = added_at
        await self.db.commit()
        logger.debug(f"User {self.user_id} skipped mistake for word {word_id}")
        return True
