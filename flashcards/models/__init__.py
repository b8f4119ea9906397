from flashcards.models.base import Base
from flashcards.models.user import User, UserRole
from flashcards.models.wordbook import Membership, MembershipRole, Word, Wordbook
from flashcards.models.study import Mistake, Progress
from flashcards.models.dictionary import DictionaryCacheEntry

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Wordbook",
    "Word",
    "Membership",
    "MembershipRole",
    "Progress",
    "Mistake",
    "DictionaryCacheEntry",
]
