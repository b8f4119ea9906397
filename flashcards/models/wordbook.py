from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flashcards.models.base import Base, utcnow

if TYPE_CHECKING:
    from flashcards.models.user import User


class MembershipRole(str, Enum):
    """How a user is attached to a wordbook."""

    OWNER = "owner"  # Uploaded the book; may rename and delete it
    SUBSCRIBER = "subscriber"  # Added it from the market; may only unsubscribe


class Wordbook(Base):
    """A named, ordered list of words."""

    __tablename__ = "wordbooks"

    id: Mapped[int] = mapped_column(primary_key=True)
    # Creator. Access is decided by memberships, not by this column.
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    total_words: Mapped[int] = mapped_column(Integer, default=0)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False)
    is_cloned: Mapped[bool] = mapped_column(Boolean, default=False)

    # sha256 of the parsed word list
    content_hash: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    words: Mapped[list["Word"]] = relationship(
        "Word",
        back_populates="wordbook",
        order_by="Word.order_index",
        passive_deletes=True,
    )
    creator: Mapped["User"] = relationship("User")


class Word(Base):
    """A single entry of a wordbook. Immutable once inserted."""

    __tablename__ = "words"
    __table_args__ = (
        UniqueConstraint("wordbook_id", "order_index", name="uq_words_book_order"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    wordbook_id: Mapped[int] = mapped_column(
        ForeignKey("wordbooks.id", ondelete="CASCADE"), index=True
    )
    word: Mapped[str] = mapped_column(String(255))
    order_index: Mapped[int] = mapped_column(Integer)

    wordbook: Mapped["Wordbook"] = relationship("Wordbook", back_populates="words")


class Membership(Base):
    """Access of one user to one wordbook."""

    __tablename__ = "user_wordbooks"
    __table_args__ = (
        UniqueConstraint("user_id", "wordbook_id", name="uq_user_wordbooks_user_book"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    wordbook_id: Mapped[int] = mapped_column(
        ForeignKey("wordbooks.id", ondelete="CASCADE"), index=True
    )
    role: Mapped[MembershipRole] = mapped_column(
        SQLEnum(MembershipRole), default=MembershipRole.SUBSCRIBER
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    user: Mapped["User"] = relationship("User", back_populates="memberships")
    wordbook: Mapped["Wordbook"] = relationship("Wordbook")
