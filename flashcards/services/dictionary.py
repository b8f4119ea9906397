"""Dictionary lookups backed by Youdao, cached in the database and on disk.

A cached entry is only served when its pronunciation file still exists;
otherwise the word is fetched again and the file re-downloaded.
"""
import asyncio
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from flashcards.core.config import settings
from flashcards.core.database import dialect_insert
from flashcards.models.base import utcnow
from flashcards.models.dictionary import DictionaryCacheEntry

logger = logging.getLogger(__name__)

SUGGEST_URL = "https://dict.youdao.com/suggest"
DICT_URL = "https://dict.youdao.com/jsonapi"
VOICE_URL = "https://dict.youdao.com/dictvoice"
VOICE_TYPE_US = 2

# The voice endpoint rejects requests without a browser-like agent
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

AUDIO_SUBDIR = "audio"


class CacheState(str, Enum):
    """Validity of a dictionary cache entry."""

    VALID = "valid"
    STALE = "stale"  # Older than the configured TTL
    MISSING_ASSET = "missing_asset"  # Row exists but its audio file does not
    MISSING = "missing"  # No row at all


@dataclass
class DictionaryResult:
    word: str
    phonetic: str = ""
    translation: list[str] = field(default_factory=list)
    audio: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def normalize_word(word: str, max_length: int | None = None) -> str:
    """Lowercase a lookup term and make sure it is safe to use as a file name.

    Raises ValueError for empty, overlong or path-like input.
    """
    if max_length is None:
        max_length = settings.max_word_length

    normalized = word.strip().lower()
    if not normalized:
        raise ValueError("Word must not be empty")
    if len(normalized) > max_length:
        raise ValueError(f"Word must be at most {max_length} characters")
    if "/" in normalized or "\\" in normalized or "\x00" in normalized or normalized.startswith("."):
        raise ValueError("Word contains invalid characters")
    return normalized


def _dig(data: Any, *path: str | int) -> Any:
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    current = data
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                return None
        elif not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def extract_phonetic(detail: dict) -> str:
    """US phonetic from the full dictionary, falling back to the simple one."""
    phone = _dig(detail, "ec", "word", 0, "usphone") or _dig(detail, "simple", "word", 0, "phone")
    return f"/{phone}/" if phone else ""


def extract_translations(detail: dict, suggest: dict | None = None) -> list[str]:
    """Structured senses first, then the free-text gloss, then the suggestion."""
    translations = []
    for sense in _dig(detail, "ec", "word", 0, "trs") or []:
        text = _dig(sense, "tr", 0, "l", "i", 0)
        if isinstance(text, str) and text:
            translations.append(text)
    if translations:
        return translations

    gloss = _dig(detail, "fanyi", "tran")
    if isinstance(gloss, str) and gloss:
        return [gloss]

    explain = _dig(suggest or {}, "data", "entries", 0, "explain")
    if isinstance(explain, str) and explain:
        return [explain]
    return []


def build_audio_url(word: str) -> str:
    return str(httpx.URL(VOICE_URL, params={"audio": word, "type": VOICE_TYPE_US}))


class DictionaryCache:
    """Read-through cache in front of the Youdao dictionary."""

    def __init__(
        self,
        db: AsyncSession,
        client: httpx.AsyncClient,
        static_dir: str | Path,
        ttl_days: int = 0,
    ):
        self.db = db
        self.client = client
        self.static_dir = Path(static_dir)
        self.audio_dir = self.static_dir / AUDIO_SUBDIR
        self.ttl_days = ttl_days

    def audio_file(self, word: str) -> Path:
        return self.audio_dir / f"{word}.mp3"

    def audio_ref(self, word: str) -> str:
        return f"/{AUDIO_SUBDIR}/{word}.mp3"

    def entry_state(self, entry: DictionaryCacheEntry | None) -> CacheState:
        if entry is None:
            return CacheState.MISSING
        if not entry.audio_path:
            return CacheState.MISSING_ASSET
        if not (self.static_dir / entry.audio_path.lstrip("/")).is_file():
            return CacheState.MISSING_ASSET
        if self.ttl_days > 0 and entry.updated_at is not None:
            updated_at = entry.updated_at
            if updated_at.tzinfo is None:
                updated_at = updated_at.replace(tzinfo=timezone.utc)
            if utcnow() - updated_at > timedelta(days=self.ttl_days):
                return CacheState.STALE
        return CacheState.VALID

    async def lookup(self, word: str) -> DictionaryResult:
        """Look a word up, serving from cache when the entry is still valid."""
        word = normalize_word(word)

        entry = await self.db.get(DictionaryCacheEntry, word)
        state = self.entry_state(entry)
        if state == CacheState.VALID:
            logger.info(f"Dictionary cache hit: {word}")
            return DictionaryResult(
                word=entry.word,
                phonetic=entry.phonetic or "",
                translation=entry.translations,
                audio=entry.audio_path,
            )

        logger.info(f"Dictionary cache {state.value}: {word}, querying upstream")
        suggest, detail = await asyncio.gather(
            self._fetch_json(
                SUGGEST_URL,
                {"num": 1, "ver": "3.0", "doctype": "json", "cache": "false", "le": "en", "q": word},
            ),
            self._fetch_json(DICT_URL, {"q": word}),
        )

        result = DictionaryResult(
            word=word,
            phonetic=extract_phonetic(detail or {}),
            translation=extract_translations(detail or {}, suggest),
            audio=await self.download_audio(word, build_audio_url(word)),
        )

        if suggest is None and detail is None:
            logger.warning(f"Dictionary upstream unavailable for '{word}', not caching")
            return result

        # Replace semantics; concurrent first lookups of one word share a row.
        insert = dialect_insert(self.db)
        stmt = insert(DictionaryCacheEntry).values(
            word=word,
            phonetic=result.phonetic,
            translation=json.dumps(result.translation, ensure_ascii=False),
            audio_path=result.audio,
            updated_at=utcnow(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["word"],
            set_={
                "phonetic": stmt.excluded.phonetic,
                "translation": stmt.excluded.translation,
                "audio_path": stmt.excluded.audio_path,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.db.execute(stmt)
        await self.db.commit()
        return result

    async def _fetch_json(self, url: str, params: dict) -> dict | None:
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Dictionary request to {url} failed: {type(e).__name__}: {e}")
            return None
        return data if isinstance(data, dict) else None

    async def download_audio(self, word: str, url: str) -> str | None:
        """Store the pronunciation once per word and return its relative path."""
        path = self.audio_file(word)
        if path.is_file():
            return self.audio_ref(word)

        try:
            response = await self.client.get(url, headers={"User-Agent": USER_AGENT})
        except httpx.HTTPError as e:
            logger.error(f"Audio download failed for '{word}': {type(e).__name__}: {e}")
            return None

        if response.status_code != 200 or not response.content:
            logger.error(f"Audio download failed for '{word}': status {response.status_code}")
            return None

        try:
            self.audio_dir.mkdir(parents=True, exist_ok=True)
            partial = path.with_name(path.name + ".part")
            partial.write_bytes(response.content)
            partial.replace(path)
        except OSError as e:
            logger.error(f"Failed to save audio file for '{word}': {e}")
            return None

        return self.audio_ref(word)
