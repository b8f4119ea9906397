import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from flashcards.core.config import settings
from flashcards.models.study import Mistake, Progress
from flashcards.models.user import User, UserRole
from flashcards.models.wordbook import Membership, Wordbook
from flashcards.services.wordbooks import delete_wordbook

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT configuration
ALGORITHM = "HS256"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """Create a signed session token for a user."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    }

    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> int | None:
    """Decode a session token and return the user ID."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None:
            return None
        return int(user_id)
    except (JWTError, ValueError):
        return None


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    """Get a user by their username."""
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Get a user by their ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    username: str,
    password: str,
    role: UserRole = UserRole.USER,
) -> User:
    """Create a new user."""
    user = User(
        username=username,
        password_hash=hash_password(password),
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def authenticate_user(
    db: AsyncSession,
    username: str,
    password: str,
) -> User | None:
    """Authenticate a user by username and password."""
    user = await get_user_by_username(db, username)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


async def ensure_bootstrap_admin(db: AsyncSession) -> User | None:
    """Create the configured admin account if it does not exist yet.

    Returns the new user, or None when the account was already there.
    """
    existing = await get_user_by_username(db, settings.bootstrap_admin_username)
    if existing:
        return None

    admin = await create_user(
        db,
        username=settings.bootstrap_admin_username,
        password=settings.bootstrap_admin_password,
        role=UserRole.ADMIN,
    )
    logger.info("Created bootstrap admin account '%s'", admin.username)
    return admin


async def delete_user_account(db: AsyncSession, user_id: int) -> None:
    """Delete a user with their wordbooks, memberships, progress and mistakes."""
    owned = await db.execute(select(Wordbook.id).where(Wordbook.user_id == user_id))
    for wordbook_id in owned.scalars().all():
        await delete_wordbook(db, wordbook_id)

    await db.execute(delete(Progress).where(Progress.user_id == user_id))
    await db.execute(delete(Mistake).where(Mistake.user_id == user_id))
    await db.execute(delete(Membership).where(Membership.user_id == user_id))
    await db.execute(delete(User).where(User.id == user_id))
    await db.commit()
    logger.info(f"Deleted user {user_id}")
