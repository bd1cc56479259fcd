"""Unit tests for client.records — strict parsing and the endpoint API."""

from __future__ import annotations

import uuid

import httpx
import pytest

from client.connectivity import ConnectionStatus
from client.errors import ApiError, ErrorKind
from client.records import Bookmark, Note, NotekeeperApi, all_tags, parse, parse_list
from client.resilient import ResilientClient

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeProbe:
    async def check(self) -> ConnectionStatus:
        return ConnectionStatus(is_online=True, is_server_reachable=True)


async def _no_sleep(delay: float) -> None:
    return None


def _note_json(**overrides) -> dict:
    data = {
        "id": str(uuid.uuid4()),
        "title": "Title",
        "content": "Body",
        "tags": ["a"],
        "createdAt": "2024-01-01T12:00:00Z",
        "updatedAt": "2024-01-01T12:00:00Z",
    }
    data.update(overrides)
    return data


def _bookmark_json(**overrides) -> dict:
    data = _note_json(**overrides)
    data.pop("content")
    data.setdefault("url", "https://example.com")
    return data


def _api(handler) -> tuple[NotekeeperApi, list[httpx.Request]]:
    calls: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return handler(request)

    client = ResilientClient(
        "http://api.test",
        transport=httpx.MockTransport(recording),
        probe=FakeProbe(),
        sleep=_no_sleep,
    )
    return NotekeeperApi(client, title_timeout=15.0), calls


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParse:
    def test_note(self):
        note = parse(Note, _note_json(title="Hello"))
        assert note.title == "Hello"
        assert note.created_at.year == 2024
        assert isinstance(note.id, uuid.UUID)

    def test_bookmark(self):
        bookmark = parse(Bookmark, _bookmark_json(url="https://x.example"))
        assert bookmark.url == "https://x.example"

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            {"title": "missing everything else"},
            _note_json(id="not-a-uuid"),
            _note_json(tags="a,b"),
            _note_json(createdAt="yesterday"),
        ],
    )
    def test_malformed_note(self, payload):
        with pytest.raises(ApiError) as exc_info:
            parse(Note, payload)
        assert exc_info.value.kind is ErrorKind.INVALID_RESPONSE

    def test_list(self):
        items = [_note_json(), _note_json()]
        notes = parse_list(Note, {"count": 2, "items": items})
        assert [str(n.id) for n in notes] == [i["id"] for i in items]

    @pytest.mark.parametrize(
        "payload",
        [
            [_note_json()],
            {"items": []},
            {"count": 3, "items": [_note_json()]},
            {"count": 1, "items": [{"id": "x"}]},
        ],
    )
    def test_malformed_list(self, payload):
        with pytest.raises(ApiError) as exc_info:
            parse_list(Note, payload)
        assert exc_info.value.kind is ErrorKind.INVALID_RESPONSE


class TestAllTags:
    def test_distinct_in_first_seen_order(self):
        notes = [
            parse(Note, _note_json(tags=["b", "a"])),
            parse(Note, _note_json(tags=["a", "c"])),
            parse(Note, _note_json(tags=[])),
        ]
        assert all_tags(notes) == ["b", "a", "c"]

    def test_empty(self):
        assert all_tags([]) == []


# ---------------------------------------------------------------------------
# NotekeeperApi
# ---------------------------------------------------------------------------


class TestNotekeeperApi:
    @pytest.mark.asyncio
    async def test_list_notes_params(self):
        api, calls = _api(lambda r: httpx.Response(200, json={"count": 0, "items": []}))
        async with api.client:
            assert await api.list_notes(q=" rust ", tags=["a", "b"], limit=3) == []
        params = calls[0].url.params
        assert calls[0].url.path == "/api/notes"
        assert (params["q"], params["tags"], params["limit"]) == ("rust", "a,b", "3")

    @pytest.mark.asyncio
    async def test_list_without_filters_sends_no_params(self):
        api, calls = _api(lambda r: httpx.Response(200, json={"count": 0, "items": []}))
        async with api.client:
            await api.list_bookmarks(q="  ", tags=[])
        assert str(calls[0].url) == "http://api.test/api/bookmarks"

    @pytest.mark.asyncio
    async def test_create_note(self):
        created = _note_json(title="T", content="C", tags=["x"])
        api, calls = _api(lambda r: httpx.Response(201, json=created))
        async with api.client:
            note = await api.create_note("T", "C", ["x"])
        assert str(note.id) == created["id"]
        assert calls[0].method == "POST"

    @pytest.mark.asyncio
    async def test_create_bookmark_blank_title_sent_as_null(self):
        api, calls = _api(lambda r: httpx.Response(201, json=_bookmark_json()))
        async with api.client:
            await api.create_bookmark("https://example.com", title="")
        assert b'"title":null' in calls[0].content.replace(b" ", b"")

    @pytest.mark.asyncio
    async def test_update_and_delete(self):
        record_id = str(uuid.uuid4())

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "DELETE":
                return httpx.Response(204)
            return httpx.Response(200, json=_bookmark_json(id=record_id))

        api, calls = _api(handler)
        async with api.client:
            updated = await api.update_bookmark(record_id, "https://example.com", "T", ["t"])
            assert await api.delete_bookmark(record_id) is None
        assert str(updated.id) == record_id
        assert [c.method for c in calls] == ["PUT", "DELETE"]
        assert calls[1].url.path == f"/api/bookmarks/{record_id}"

    @pytest.mark.asyncio
    async def test_not_found(self):
        api, _ = _api(lambda r: httpx.Response(404, json={"error": "Note not found"}))
        async with api.client:
            with pytest.raises(ApiError) as exc_info:
                await api.get_note(uuid.uuid4())
        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_fetch_title(self):
        api, calls = _api(lambda r: httpx.Response(200, json={"title": "Example"}))
        async with api.client:
            assert await api.fetch_title("https://example.com") == "Example"
        assert calls[0].url.path == "/api/bookmarks/fetch-title"
        assert calls[0].extensions["timeout"]["read"] == 15.0

    @pytest.mark.asyncio
    async def test_fetch_title_bad_payload(self):
        api, _ = _api(lambda r: httpx.Response(200, json={"name": "Example"}))
        async with api.client:
            with pytest.raises(ApiError) as exc_info:
                await api.fetch_title("https://example.com")
        assert exc_info.value.kind is ErrorKind.INVALID_RESPONSE
