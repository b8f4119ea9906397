"""Unit tests for word-list parsing and dictionary response extraction."""
import pytest

from flashcards.core.database import get_async_database_url
from flashcards.core.password import validate_password_strength
from flashcards.services.dictionary import (
    build_audio_url,
    extract_phonetic,
    extract_translations,
    normalize_word,
)
from flashcards.services.wordbooks import fingerprint, parse_word_list


class TestParseWordList:

    def test_blank_lines_and_whitespace(self):
        assert parse_word_list(b"cat\n\n dog \ndog\n") == ["cat", "dog", "dog"]

    def test_crlf_and_bom(self):
        assert parse_word_list("\ufeffone\r\ntwo\r\n".encode("utf-8")) == ["one", "two"]

    def test_phrases_keep_inner_spaces(self):
        assert parse_word_list(b"ice cream\n  look  up  \n") == ["ice cream", "look  up"]

    def test_overlong_lines_dropped(self):
        words = parse_word_list(("a" * 99 + "\n" + "b" * 100 + "\nc").encode(), max_length=100)
        assert words == ["a" * 99, "c"]

    def test_invalid_utf8_does_not_raise(self):
        words = parse_word_list(b"caf\xe9\nok\n")
        assert words[-1] == "ok"
        assert len(words) == 2

    def test_empty(self):
        assert parse_word_list(b"") == []
        assert parse_word_list(b"\n \n\t\n") == []

    def test_fingerprint(self):
        assert fingerprint(["cat", "dog"]) == fingerprint(["cat", "dog"])
        assert fingerprint(["cat", "dog"]) != fingerprint(["dog", "cat"])
        assert len(fingerprint([])) == 64


class TestNormalizeWord:

    def test_lowercases_and_strips(self):
        assert normalize_word("  Hello ") == "hello"

    def test_phrases_allowed(self):
        assert normalize_word("Ice Cream") == "ice cream"

    def test_explicit_length_limit(self):
        assert normalize_word("abc", max_length=3) == "abc"
        with pytest.raises(ValueError):
            normalize_word("abcd", max_length=3)

    @pytest.mark.parametrize("word", ["", "   ", "../etc", "a/b", "a\\b", ".hidden", "x" * 101, "a\x00b"])
    def test_rejected(self, word):
        with pytest.raises(ValueError):
            normalize_word(word)


class TestExtraction:

    def test_phonetic_prefers_us(self):
        detail = {
            "ec": {"word": [{"usphone": "kæt", "ukphone": "kat"}]},
            "simple": {"word": [{"phone": "simple"}]},
        }
        assert extract_phonetic(detail) == "/kæt/"

    def test_phonetic_falls_back_to_simple(self):
        assert extract_phonetic({"simple": {"word": [{"phone": "kæt"}]}}) == "/kæt/"

    def test_phonetic_missing(self):
        assert extract_phonetic({}) == ""
        assert extract_phonetic({"ec": {"word": []}}) == ""

    def test_translations_from_senses(self):
        detail = {"ec": {"word": [{"trs": [
            {"tr": [{"l": {"i": ["n. cat"]}}]},
            {"tr": [{"l": {"i": []}}]},
            {"tr": [{"l": {"i": ["v. to vomit"]}}]},
        ]}]}}
        assert extract_translations(detail) == ["n. cat", "v. to vomit"]

    def test_translations_from_machine_translation(self):
        detail = {"fanyi": {"tran": "look it up"}}
        assert extract_translations(detail, {"data": {"entries": [{"explain": "x"}]}}) == ["look it up"]

    def test_translations_from_suggestion(self):
        suggest = {"data": {"entries": [{"explain": "n. cat"}]}}
        assert extract_translations({}, suggest) == ["n. cat"]

    def test_translations_empty(self):
        assert extract_translations({}, None) == []
        assert extract_translations({"ec": "garbage"}, {"data": None}) == []

    def test_audio_url(self):
        url = build_audio_url("ice cream")
        assert url.startswith("https://dict.youdao.com/dictvoice?")
        assert "audio=ice" in url
        assert "type=2" in url


class TestHelpers:

    def test_database_url_conversion(self):
        assert get_async_database_url("postgres://u@h/db") == "postgresql+asyncpg://u@h/db"
        assert get_async_database_url("postgresql://u@h/db") == "postgresql+asyncpg://u@h/db"
        assert get_async_database_url("sqlite:///./x.db") == "sqlite+aiosqlite:///./x.db"
        assert get_async_database_url("sqlite+aiosqlite:///./x.db") == "sqlite+aiosqlite:///./x.db"

    def test_password_strength(self):
        validate_password_strength("secret")
        with pytest.raises(ValueError):
            validate_password_strength("12345")
        with pytest.raises(ValueError):
            validate_password_strength("x" * 73)
