"""Wordbook service: upload parsing, memberships and the public market."""
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from flashcards.core.config import settings
from flashcards.models.study import Mistake, Progress
from flashcards.models.user import User
from flashcards.models.wordbook import Membership, MembershipRole, Word, Wordbook

logger = logging.getLogger(__name__)


def parse_word_list(content: bytes, max_length: int | None = None) -> list[str]:
    """Turn an uploaded text file into an ordered list of words.

    One word or phrase per line. Lines are stripped; blank lines and lines of
    ``max_length`` characters or more are dropped. Duplicates are kept.
    """
    if max_length is None:
        max_length = settings.max_word_length

    text = content.decode("utf-8-sig", errors="replace")
    words = []
    for line in text.split("\n"):
        line = line.strip()
        if line and len(line) < max_length:
            words.append(line)
    return words


def fingerprint(words: list[str]) -> str:
    """Content hash of a parsed word list."""
    return hashlib.sha256("\n".join(words).encode("utf-8")).hexdigest()


@dataclass
class MemberBook:
    """A wordbook as seen by one of its members."""

    wordbook: Wordbook
    role: MembershipRole
    joined_at: datetime
    learned_count: int


@dataclass
class MarketBook:
    """A public wordbook listed in the market."""

    wordbook: Wordbook
    creator_name: str
    has_added: bool


async def delete_wordbook(db: AsyncSession, wordbook_id: int) -> None:
    """Delete a wordbook with its words, memberships, progress and mistakes.

    Does not commit; the caller owns the transaction.
    """
    word_ids = select(Word.id).where(Word.wordbook_id == wordbook_id)
    await db.execute(delete(Progress).where(Progress.word_id.in_(word_ids)))
    await db.execute(delete(Mistake).where(Mistake.word_id.in_(word_ids)))
    await db.execute(delete(Membership).where(Membership.wordbook_id == wordbook_id))
    await db.execute(delete(Word).where(Word.wordbook_id == wordbook_id))
    await db.execute(delete(Wordbook).where(Wordbook.id == wordbook_id))


async def get_wordbook(db: AsyncSession, wordbook_id: int) -> Wordbook | None:
    result = await db.execute(select(Wordbook).where(Wordbook.id == wordbook_id))
    return result.scalar_one_or_none()


class WordbookService:
    """Wordbook operations on behalf of a single user."""

    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    def _learned_count(self):
        """Correlated count of words the user knows in the outer wordbook."""
        return (
            select(func.count(Progress.id))
            .join(Word, Word.id == Progress.word_id)
            .where(
                Word.wordbook_id == Wordbook.id,
                Progress.user_id == self.user_id,
                Progress.known == True,  # noqa: E712
            )
            .correlate(Wordbook)
            .scalar_subquery()
        )

    async def get_membership(self, wordbook_id: int) -> Membership | None:
        result = await self.db.execute(
            select(Membership).where(
                Membership.wordbook_id == wordbook_id,
                Membership.user_id == self.user_id,
            )
        )
        return result.scalar_one_or_none()

    async def create_wordbook(self, name: str, words: list[str]) -> Wordbook:
        """Create a wordbook owned by the user from an already parsed word list."""
        wordbook = Wordbook(
            user_id=self.user_id,
            name=name,
            total_words=len(words),
            content_hash=fingerprint(words),
        )
        self.db.add(wordbook)
        await self.db.flush()

        self.db.add(
            Membership(
                user_id=self.user_id,
                wordbook_id=wordbook.id,
                role=MembershipRole.OWNER,
            )
        )
        if words:
            await self.db.execute(
                insert(Word),
                [
                    {"wordbook_id": wordbook.id, "word": word, "order_index": index}
                    for index, word in enumerate(words)
                ],
            )

        await self.db.commit()
        await self.db.refresh(wordbook)

        logger.info(
            f"User {self.user_id} created wordbook {wordbook.id} ({len(words)} words)"
        )
        return wordbook

    async def list_books(self) -> list[MemberBook]:
        """Wordbooks the user owns or subscribes to, most recently joined first."""
        result = await self.db.execute(
            select(Wordbook, Membership.role, Membership.joined_at, self._learned_count())
            .join(Membership, Membership.wordbook_id == Wordbook.id)
            .where(Membership.user_id == self.user_id)
            .order_by(Membership.joined_at.desc(), Membership.id.desc())
        )
        return [
            MemberBook(wordbook=row[0], role=row[1], joined_at=row[2], learned_count=row[3] or 0)
            for row in result.all()
        ]

    async def get_book(self, wordbook_id: int) -> MemberBook | None:
        """A single wordbook, only if the user is a member of it."""
        result = await self.db.execute(
            select(Wordbook, Membership.role, Membership.joined_at, self._learned_count())
            .join(Membership, Membership.wordbook_id == Wordbook.id)
            .where(Wordbook.id == wordbook_id, Membership.user_id == self.user_id)
        )
        row = result.one_or_none()
        if row is None:
            return None
        return MemberBook(wordbook=row[0], role=row[1], joined_at=row[2], learned_count=row[3] or 0)

    async def rename(self, wordbook_id: int, name: str) -> None:
        await self.db.execute(update(Wordbook).where(Wordbook.id == wordbook_id).values(name=name))
        await self.db.commit()

    async def reset_progress(self, wordbook_id: int) -> None:
        """Forget the user's answers and mistakes for every word of the book."""
        word_ids = select(Word.id).where(Word.wordbook_id == wordbook_id)
        await self.db.execute(
            delete(Progress).where(Progress.user_id == self.user_id, Progress.word_id.in_(word_ids))
        )
        await self.db.execute(
            delete(Mistake).where(Mistake.user_id == self.user_id, Mistake.word_id.in_(word_ids))
        )
        await self.db.commit()
        logger.info(f"User {self.user_id} reset progress of wordbook {wordbook_id}")

    async def remove(self, membership: Membership) -> bool:
        """Delete the book if the user owns it, otherwise unsubscribe.

        Returns True when the book itself was deleted.
        """
        wordbook_id = membership.wordbook_id
        if membership.role == MembershipRole.OWNER:
            await delete_wordbook(self.db, wordbook_id)
            await self.db.commit()
            logger.info(f"User {self.user_id} deleted wordbook {wordbook_id}")
            return True

        await self.db.execute(delete(Membership).where(Membership.id == membership.id))
        await self.db.commit()
        logger.info(f"User {self.user_id} unsubscribed from wordbook {wordbook_id}")
        return False

    async def can_view(self, wordbook: Wordbook) -> bool:
        """Public books are visible to everyone, private ones to members."""
        if wordbook.is_public or wordbook.user_id == self.user_id:
            return True
        return await self.get_membership(wordbook.id) is not None

    async def list_words(self, wordbook_id: int) -> list[Word]:
        result = await self.db.execute(
            select(Word).where(Word.wordbook_id == wordbook_id).order_by(Word.order_index)
        )
        return list(result.scalars().all())

    async def list_market(self) -> list[MarketBook]:
        """Public, original (not cloned) wordbooks, newest first."""
        has_added = (
            select(func.count(Membership.id))
            .where(Membership.wordbook_id == Wordbook.id, Membership.user_id == self.user_id)
            .correlate(Wordbook)
            .scalar_subquery()
        )
        result = await self.db.execute(
            select(Wordbook, User.username, has_added)
            .join(User, User.id == Wordbook.user_id)
            .where(Wordbook.is_public == True, Wordbook.is_cloned == False)  # noqa: E712
            .order_by(Wordbook.created_at.desc(), Wordbook.id.desc())
        )
        return [
            MarketBook(wordbook=row[0], creator_name=row[1], has_added=bool(row[2]))
            for row in result.all()
        ]

    async def subscribe(self, wordbook_id: int) -> Membership:
        membership = Membership(
            user_id=self.user_id,
            wordbook_id=wordbook_id,
            role=MembershipRole.SUBSCRIBER,
        )
        self.db.add(membership)
        await self.db.commit()
        await self.db.refresh(membership)
        logger.info(f"User {self.user_id} subscribed to wordbook {wordbook_id}")
        return membership
