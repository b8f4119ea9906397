"""Initial schema for the flashcards service.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

Tables: users, wordbooks, words, user_wordbooks, user_progress, mistakes,
        dictionary_cache
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("USER", "ADMIN", name="userrole"),
            nullable=False,
            server_default="USER",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    # --- wordbooks ---
    op.create_table(
        "wordbooks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("total_words", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_cloned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("content_hash", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_wordbooks_user_id", "wordbooks", ["user_id"])
    op.create_index("ix_wordbooks_content_hash", "wordbooks", ["content_hash"])

    # --- words ---
    op.create_table(
        "words",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "wordbook_id", sa.Integer(), sa.ForeignKey("wordbooks.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("word", sa.String(255), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.UniqueConstraint("wordbook_id", "order_index", name="uq_words_book_order"),
    )
    op.create_index("ix_words_wordbook_id", "words", ["wordbook_id"])

    # --- user_wordbooks ---
    op.create_table(
        "user_wordbooks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "wordbook_id", sa.Integer(), sa.ForeignKey("wordbooks.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "role",
            sa.Enum("OWNER", "SUBSCRIBER", name="membershiprole"),
            nullable=False,
            server_default="SUBSCRIBER",
        ),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "wordbook_id", name="uq_user_wordbooks_user_book"),
    )
    op.create_index("ix_user_wordbooks_user_id", "user_wordbooks", ["user_id"])
    op.create_index("ix_user_wordbooks_wordbook_id", "user_wordbooks", ["wordbook_id"])

    # --- user_progress ---
    op.create_table(
        "user_progress",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("word_id", sa.Integer(), sa.ForeignKey("words.id", ondelete="CASCADE"), nullable=False),
        sa.Column("known", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_reviewed", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("user_id", "word_id", name="uq_progress_user_word"),
    )
    op.create_index("ix_user_progress_user_id", "user_progress", ["user_id"])
    op.create_index("ix_user_progress_word_id", "user_progress", ["word_id"])

    # --- mistakes ---
    op.create_table(
        "mistakes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("word_id", sa.Integer(), sa.ForeignKey("words.id", ondelete="CASCADE"), nullable=False),
        sa.Column("added_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "word_id", name="uq_mistakes_user_word"),
    )
    op.create_index("ix_mistakes_user_id", "mistakes", ["user_id"])
    op.create_index("ix_mistakes_word_id", "mistakes", ["word_id"])

    # --- dictionary_cache ---
    op.create_table(
        "dictionary_cache",
        sa.Column("word", sa.String(255), primary_key=True),
        sa.Column("phonetic", sa.String(255), nullable=True),
        sa.Column("translation", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("audio_path", sa.String(500), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("dictionary_cache")
    op.drop_table("mistakes")
    op.drop_table("user_progress")
    op.drop_table("user_wordbooks")
    op.drop_table("words")
    op.drop_table("wordbooks")
    op.drop_table("users")
    sa.Enum(name="membershiprole").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="userrole").drop(op.get_bind(), checkfirst=True)
