"""Study flow: choosing the next new word and recording answers."""
import logging
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from flashcards.core.database import dialect_insert
from flashcards.models.base import utcnow
from flashcards.models.study import Mistake, Progress
from flashcards.models.wordbook import Word

logger = logging.getLogger(__name__)


@dataclass
class NextWord:
    """The word to present next, with a position counter for display."""

    word: Word
    current: int
    total: int


async def get_word(db: AsyncSession, word_id: int) -> Word | None:
    result = await db.execute(select(Word).where(Word.id == word_id))
    return result.scalar_one_or_none()


async def upsert_progress(db: AsyncSession, user_id: int, word_id: int, known: bool) -> None:
    """Record an answer. Does not commit.

    Concurrent answers for the same word resolve to a single row.
    """
    insert = dialect_insert(db)
    stmt = insert(Progress).values(
        user_id=user_id,
        word_id=word_id,
        known=known,
        last_reviewed=utcnow(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "word_id"],
        set_={"known": stmt.excluded.known, "last_reviewed": stmt.excluded.last_reviewed},
    )
    await db.execute(stmt)


async def add_mistake(db: AsyncSession, user_id: int, word_id: int) -> None:
    """Queue a mistake unless it is already queued. Does not commit.

    An existing entry keeps its place in the queue.
    """
    insert = dialect_insert(db)
    stmt = (
        insert(Mistake)
        .values(user_id=user_id, word_id=word_id, added_at=utcnow())
        .on_conflict_do_nothing(index_elements=["user_id", "word_id"])
    )
    await db.execute(stmt)


async def remove_mistake(db: AsyncSession, user_id: int, word_id: int) -> int:
    """Drop a word from the mistake queue. Does not commit."""
    result = await db.execute(
        delete(Mistake).where(Mistake.user_id == user_id, Mistake.word_id == word_id)
    )
    return result.rowcount


class ReviewSelector:
    """Chooses new words for a user and records their answers."""

    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def next_word(self, wordbook_id: int) -> NextWord | None:
        """First word of the book, by order_index, the user has never answered.

        Returns None when every word has been surfaced or the book is empty.
        """
        total_result = await self.db.execute(
            select(func.count(Word.id)).where(Word.wordbook_id == wordbook_id)
        )
        total = total_result.scalar() or 0
        if total == 0:
            return None

        surfaced = select(Progress.id).where(
            Progress.user_id == self.user_id,
            Progress.word_id == Word.id,
        )
        result = await self.db.execute(
            select(Word)
            .where(Word.wordbook_id == wordbook_id, ~surfaced.exists())
            .order_by(Word.order_index)
            .limit(1)
        )
        word = result.scalar_one_or_none()
        if word is None:
            return None

        seen_result = await self.db.execute(
            select(func.count(Progress.id))
            .join(Word, Word.id == Progress.word_id)
            .where(Word.wordbook_id == wordbook_id, Progress.user_id == self.user_id)
        )
        seen = seen_result.scalar() or 0

        return NextWord(word=word, current=seen + 1, total=total)

    async def mark_known(self, word_id: int) -> None:
        """Mark a word as mastered and take it out of the mistake queue."""
        await upsert_progress(self.db, self.user_id, word_id, known=True)
        await remove_mistake(self.db, self.user_id, word_id)
        await self.db.commit()
        logger.debug(f"User {self.user_id} knows word {word_id}")

    async def mark_unknown(self, word_id: int) -> None:
        """Mark a word as missed and queue it for review."""
        await upsert_progress(self.db, self.user_id, word_id, known=False)
        await add_mistake(self.db, self.user_id, word_id)
        await self.db.commit()
        logger.debug(f"User {self.user_id} missed word {word_id}")

    async def stats(self) -> dict:
        """Per-user counters across all wordbooks."""
        learned = await self.db.execute(
            select(func.count(Progress.id)).where(
                Progress.user_id == self.user_id,
                Progress.known == True,  # noqa: E712
            )
        )
        mistakes = await self.db.execute(
            select(func.count(Mistake.id)).where(Mistake.user_id == self.user_id)
        )
        return {
            "total_learned": learned.scalar() or 0,
            "total_mistakes": mistakes.scalar() or 0,
        }
