"""Tests for wordbook endpoints.

Covers:
  - POST /wordbooks/upload: parsing, naming, empty and missing files
  - GET /wordbooks, GET /wordbooks/{id}, GET /wordbooks/{id}/words
  - Rename, reset progress, delete vs unsubscribe
  - Authorization: unauthenticated → 401, strangers → 403/404
"""
from httpx import AsyncClient
from sqlalchemy import func, select

from flashcards.models import Membership, Mistake, Progress, Word, Wordbook
from tests.conftest import login_headers, upload_wordbook, word_ids


async def _publish(db, wordbook_id: int) -> None:
    book = await db.get(Wordbook, wordbook_id)
    book.is_public = True
    await db.commit()


# =============================================================================
# UPLOAD
# =============================================================================

class TestUpload:

    async def test_upload_keeps_order_and_duplicates(self, client: AsyncClient):
        headers = await login_headers(client)
        resp = await client.post(
            "/api/wordbooks/upload",
            files={"txt": ("words.txt", b"cat\n\n dog \ndog\n", "text/plain")},
            data={"name": "Pets"},
            headers=headers,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["word_count"] == 3

        preview = await client.get(f"/api/wordbooks/{data['wordbook_id']}/words", headers=headers)
        assert [w["word"] for w in preview.json()["words"]] == ["cat", "dog", "dog"]

        books = await client.get("/api/wordbooks", headers=headers)
        [book] = books.json()
        assert book["name"] == "Pets"
        assert book["total_words"] == 3
        assert book["role"] == "owner"
        assert book["learned_count"] == 0
        assert book["is_public"] is False

    async def test_upload_default_name(self, client: AsyncClient):
        headers = await login_headers(client)
        resp = await client.post(
            "/api/wordbooks/upload",
            files={"txt": ("words.txt", b"apple\n", "text/plain")},
            headers=headers,
        )
        assert resp.status_code == 200
        books = await client.get("/api/wordbooks", headers=headers)
        assert books.json()[0]["name"] == "Untitled wordbook"

    async def test_upload_strips_bom_and_crlf(self, client: AsyncClient):
        headers = await login_headers(client)
        resp = await client.post(
            "/api/wordbooks/upload",
            files={"txt": ("words.txt", "\ufeffapple\r\nbanana\r\n".encode("utf-8"), "text/plain")},
            headers=headers,
        )
        wordbook_id = resp.json()["wordbook_id"]
        preview = await client.get(f"/api/wordbooks/{wordbook_id}/words", headers=headers)
        assert [w["word"] for w in preview.json()["words"]] == ["apple", "banana"]

    async def test_upload_without_words(self, client: AsyncClient):
        headers = await login_headers(client)
        resp = await client.post(
            "/api/wordbooks/upload",
            files={"txt": ("words.txt", b"\n   \n", "text/plain")},
            headers=headers,
        )
        assert resp.status_code == 400

        books = await client.get("/api/wordbooks", headers=headers)
        assert books.json() == []

    async def test_upload_without_file(self, client: AsyncClient):
        headers = await login_headers(client)
        resp = await client.post("/api/wordbooks/upload", data={"name": "x"}, headers=headers)
        assert resp.status_code == 400

    async def test_upload_no_auth(self, client: AsyncClient):
        resp = await client.post(
            "/api/wordbooks/upload",
            files={"txt": ("words.txt", b"cat\n", "text/plain")},
        )
        assert resp.status_code == 401

    async def test_upload_stores_fingerprint(self, client: AsyncClient):
        headers = await login_headers(client)
        first = await upload_wordbook(client, headers, ["cat", "dog"])
        second = await upload_wordbook(client, headers, ["cat", "dog"], name="Again")

        a = await client.get(f"/api/wordbooks/{first}", headers=headers)
        b = await client.get(f"/api/wordbooks/{second}", headers=headers)
        assert a.json()["content_hash"] == b.json()["content_hash"]
        assert len(a.json()["content_hash"]) == 64


# =============================================================================
# LIST / DETAIL / PREVIEW
# =============================================================================

class TestListing:

    async def test_list_only_own_books(self, client: AsyncClient):
        alice = await login_headers(client, "alice")
        bob = await login_headers(client, "bob")
        await upload_wordbook(client, alice, ["cat"])

        resp = await client.get("/api/wordbooks", headers=bob)
        assert resp.json() == []

    async def test_list_newest_first(self, client: AsyncClient):
        headers = await login_headers(client)
        first = await upload_wordbook(client, headers, ["cat"], name="First")
        second = await upload_wordbook(client, headers, ["dog"], name="Second")

        resp = await client.get("/api/wordbooks", headers=headers)
        assert [b["id"] for b in resp.json()] == [second, first]

    async def test_learned_count(self, client: AsyncClient):
        headers = await login_headers(client)
        wordbook_id = await upload_wordbook(client, headers, ["cat", "dog", "emu"])
        ids = await word_ids(client, headers, wordbook_id)

        await client.post("/api/study/known", json={"wordId": ids[0]}, headers=headers)
        await client.post("/api/study/unknown", json={"wordId": ids[1]}, headers=headers)

        resp = await client.get(f"/api/wordbooks/{wordbook_id}", headers=headers)
        assert resp.json()["learned_count"] == 1

    async def test_detail_of_foreign_book(self, client: AsyncClient):
        alice = await login_headers(client, "alice")
        bob = await login_headers(client, "bob")
        wordbook_id = await upload_wordbook(client, alice, ["cat"])

        resp = await client.get(f"/api/wordbooks/{wordbook_id}", headers=bob)
        assert resp.status_code == 404

    async def test_preview_private_book_forbidden(self, client: AsyncClient):
        alice = await login_headers(client, "alice")
        bob = await login_headers(client, "bob")
        wordbook_id = await upload_wordbook(client, alice, ["cat"])

        resp = await client.get(f"/api/wordbooks/{wordbook_id}/words", headers=bob)
        assert resp.status_code == 403

    async def test_preview_public_book(self, client: AsyncClient, db):
        alice = await login_headers(client, "alice")
        bob = await login_headers(client, "bob")
        wordbook_id = await upload_wordbook(client, alice, ["cat", "dog"])
        await _publish(db, wordbook_id)

        resp = await client.get(f"/api/wordbooks/{wordbook_id}/words", headers=bob)
        assert resp.status_code == 200
        assert [w["word"] for w in resp.json()["words"]] == ["cat", "dog"]

    async def test_preview_missing_book(self, client: AsyncClient):
        headers = await login_headers(client)
        resp = await client.get("/api/wordbooks/999/words", headers=headers)
        assert resp.status_code == 404


# =============================================================================
# RENAME / RESET
# =============================================================================

class TestManage:

    async def test_rename(self, client: AsyncClient):
        headers = await login_headers(client)
        wordbook_id = await upload_wordbook(client, headers, ["cat"])

        resp = await client.post(
            f"/api/wordbooks/{wordbook_id}/rename", json={"name": "  Animals "}, headers=headers
        )
        assert resp.status_code == 200

        detail = await client.get(f"/api/wordbooks/{wordbook_id}", headers=headers)
        assert detail.json()["name"] == "Animals"

    async def test_rename_empty(self, client: AsyncClient):
        headers = await login_headers(client)
        wordbook_id = await upload_wordbook(client, headers, ["cat"])
        resp = await client.post(
            f"/api/wordbooks/{wordbook_id}/rename", json={"name": "   "}, headers=headers
        )
        assert resp.status_code == 400

    async def test_rename_by_subscriber_forbidden(self, client: AsyncClient, db):
        alice = await login_headers(client, "alice")
        bob = await login_headers(client, "bob")
        wordbook_id = await upload_wordbook(client, alice, ["cat"])
        await _publish(db, wordbook_id)
        await client.post("/api/market/clone", json={"wordbookId": wordbook_id}, headers=bob)

        resp = await client.post(
            f"/api/wordbooks/{wordbook_id}/rename", json={"name": "Mine"}, headers=bob
        )
        assert resp.status_code == 403

    async def test_reset_progress(self, client: AsyncClient):
        headers = await login_headers(client)
        wordbook_id = await upload_wordbook(client, headers, ["cat", "dog"])
        ids = await word_ids(client, headers, wordbook_id)
        await client.post("/api/study/known", json={"wordId": ids[0]}, headers=headers)
        await client.post("/api/study/unknown", json={"wordId": ids[1]}, headers=headers)

        resp = await client.post(f"/api/wordbooks/{wordbook_id}/reset", headers=headers)
        assert resp.status_code == 200

        stats = await client.get("/api/stats", headers=headers)
        assert stats.json() == {"total_learned": 0, "total_mistakes": 0}

        nxt = await client.get("/api/study/next", params={"wordbookId": wordbook_id}, headers=headers)
        assert nxt.json()["word"]["word"] == "cat"

    async def test_reset_leaves_other_users_alone(self, client: AsyncClient, db):
        alice = await login_headers(client, "alice")
        bob = await login_headers(client, "bob")
        wordbook_id = await upload_wordbook(client, alice, ["cat"])
        await _publish(db, wordbook_id)
        await client.post("/api/market/clone", json={"wordbookId": wordbook_id}, headers=bob)
        [cat] = await word_ids(client, alice, wordbook_id)

        await client.post("/api/study/known", json={"wordId": cat}, headers=bob)
        await client.post(f"/api/wordbooks/{wordbook_id}/reset", headers=alice)

        stats = await client.get("/api/stats", headers=bob)
        assert stats.json()["total_learned"] == 1

    async def test_reset_not_member(self, client: AsyncClient):
        headers = await login_headers(client)
        resp = await client.post("/api/wordbooks/999/reset", headers=headers)
        assert resp.status_code == 404


# =============================================================================
# DELETE / UNSUBSCRIBE
# =============================================================================

class TestDelete:

    async def test_owner_delete_cascades(self, client: AsyncClient, db):
        alice = await login_headers(client, "alice")
        bob = await login_headers(client, "bob")
        wordbook_id = await upload_wordbook(client, alice, ["cat", "dog"])
        await _publish(db, wordbook_id)
        await client.post("/api/market/clone", json={"wordbookId": wordbook_id}, headers=bob)
        ids = await word_ids(client, alice, wordbook_id)
        await client.post("/api/study/unknown", json={"wordId": ids[0]}, headers=bob)
        await client.post("/api/study/known", json={"wordId": ids[1]}, headers=alice)

        resp = await client.delete(f"/api/wordbooks/{wordbook_id}", headers=alice)
        assert resp.status_code == 200
        assert resp.json()["message"] == "Wordbook permanently deleted"

        assert (await client.get("/api/wordbooks", headers=bob)).json() == []
        count = await client.get("/api/mistakes/count", headers=bob)
        assert count.json()["count"] == 0

        for model in (Word, Membership, Progress, Mistake):
            remaining = await db.execute(select(func.count()).select_from(model))
            assert remaining.scalar() == 0

    async def test_subscriber_unsubscribes(self, client: AsyncClient, db):
        alice = await login_headers(client, "alice")
        bob = await login_headers(client, "bob")
        wordbook_id = await upload_wordbook(client, alice, ["cat"])
        await _publish(db, wordbook_id)
        await client.post("/api/market/clone", json={"wordbookId": wordbook_id}, headers=bob)

        resp = await client.delete(f"/api/wordbooks/{wordbook_id}", headers=bob)
        assert resp.status_code == 200
        assert resp.json()["message"] == "Unsubscribed from the wordbook"

        assert (await client.get("/api/wordbooks", headers=bob)).json() == []
        owned = await client.get("/api/wordbooks", headers=alice)
        assert [b["id"] for b in owned.json()] == [wordbook_id]

    async def test_delete_not_member(self, client: AsyncClient):
        alice = await login_headers(client, "alice")
        bob = await login_headers(client, "bob")
        wordbook_id = await upload_wordbook(client, alice, ["cat"])

        resp = await client.delete(f"/api/wordbooks/{wordbook_id}", headers=bob)
        assert resp.status_code == 404
        assert (await client.get("/api/wordbooks", headers=alice)).json() != []
