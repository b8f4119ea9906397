"""Shared test fixtures: per-test SQLite database, test client, auth helpers."""

import os

# Set env vars BEFORE importing app modules (config reads at import time)
os.environ.setdefault("FLASHCARDS_SECRET_KEY", "test-secret-key-for-tests")
os.environ.setdefault("FLASHCARDS_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from flashcards.core.config import settings  # noqa: E402
from flashcards.core.database import enable_sqlite_foreign_keys, get_db  # noqa: E402
from flashcards.main import app  # noqa: E402
from flashcards.models import Base  # noqa: E402


@pytest.fixture
async def engine(tmp_path):
    """A fresh file-backed SQLite database for every test."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    enable_sqlite_foreign_keys(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture(autouse=True)
def static_dir(tmp_path, monkeypatch):
    """Keep downloaded audio inside the test's temporary directory."""
    path = tmp_path / "public"
    monkeypatch.setattr(settings, "static_dir", str(path))
    return path


@pytest.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


async def create_test_user(
    client: AsyncClient,
    username: str = "alice",
    password: str = "secret123",
) -> dict:
    """Helper: register a user and return the session response."""
    resp = await client.post("/api/register", json={
        "username": username,
        "password": password,
    })
    assert resp.status_code == 200, f"Register failed: {resp.text}"
    return resp.json()


def auth_headers(token: str) -> dict:
    """Helper: return Authorization header dict."""
    return {"Authorization": f"Bearer {token}"}


async def login_headers(client: AsyncClient, username: str = "alice", password: str = "secret123") -> dict:
    """Helper: register a user and return bearer headers for them."""
    data = await create_test_user(client, username, password)
    return auth_headers(data["access_token"])


async def upload_wordbook(
    client: AsyncClient,
    headers: dict,
    words: list[str],
    name: str = "Test book",
) -> int:
    """Helper: upload a word list and return the new wordbook id."""
    content = "\n".join(words).encode("utf-8")
    resp = await client.post(
        "/api/wordbooks/upload",
        files={"txt": ("words.txt", content, "text/plain")},
        data={"name": name},
        headers=headers,
    )
    assert resp.status_code == 200, f"Upload failed: {resp.text}"
    return resp.json()["wordbook_id"]


async def word_ids(client: AsyncClient, headers: dict, wordbook_id: int) -> list[int]:
    """Helper: ids of a wordbook's words in study order."""
    resp = await client.get(f"/api/wordbooks/{wordbook_id}/words", headers=headers)
    assert resp.status_code == 200, resp.text
    return [w["id"] for w in resp.json()["words"]]
