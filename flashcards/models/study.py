"""Per-user learning state: progress records and the mistake queue."""
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flashcards.models.base import Base, utcnow
from flashcards.models.wordbook import Word


class Progress(Base):
    """Answer a user last gave for a word.

    Any row, known or not, marks the word as already surfaced.
    """

    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "word_id", name="uq_progress_user_word"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    word_id: Mapped[int] = mapped_column(ForeignKey("words.id", ondelete="CASCADE"), index=True)
    known: Mapped[bool] = mapped_column(Boolean, default=False)
    last_reviewed: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    word: Mapped["Word"] = relationship("Word")


class Mistake(Base):
    """Entry of a user's mistake queue, reviewed oldest ``added_at`` first."""

    __tablename__ = "mistakes"
    __table_args__ = (
        UniqueConstraint("user_id", "word_id", name="uq_mistakes_user_word"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    word_id: Mapped[int] = mapped_column(ForeignKey("words.id", ondelete="CASCADE"), index=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    word: Mapped["Word"] = relationship("Word")
