"""Tests for the search engine client."""

import json

import httpx
import pytest

from app.errors import SearchTaskError
from clients.search import SearchClient


class TestIndexes:
    @pytest.mark.asyncio
    async def test_get_or_create(self, search, meili):
        index = await search.get_or_create_index("posts")
        assert index.uid == "posts"
        await search.get_or_create_index("posts")
        assert len(meili.requests_to("POST", "/indexes")) == 1

    @pytest.mark.asyncio
    async def test_get_missing(self, search):
        assert await search.get_index("nope") is None

    @pytest.mark.asyncio
    async def test_delete_if_exists(self, search, meili):
        await search.create_index("posts")
        assert await search.delete_index_if_exists("posts")
        assert not await search.delete_index_if_exists("posts")
        assert "posts" not in meili.indexes

    @pytest.mark.asyncio
    async def test_swap_payload(self, search, meili):
        await search.create_index("posts")
        await search.create_index("posts_new")
        await search.swap_indexes([("posts", "posts_new")])
        request = meili.requests_to("POST", "/swap-indexes")[0]
        assert json.loads(request.content) == [{"indexes": ["posts", "posts_new"]}]

    @pytest.mark.asyncio
    async def test_failed_task_raises(self, search):
        with pytest.raises(SearchTaskError, match="indexSwap") as exc:
            await search.swap_indexes([("a", "b")])
        assert exc.value.task_uid is not None

    @pytest.mark.asyncio
    async def test_sends_api_key(self, search, meili):
        await search.get_index("posts")
        assert meili.requests[0].headers["Authorization"] == "Bearer key"


class TestDocuments:
    @pytest.mark.asyncio
    async def test_add_delete_search(self, search, meili):
        await search.add_documents("posts", [{"id": 1, "title": "red"}, {"id": 2, "title": "blue"}])
        assert meili.ids("posts") == [1, 2]
        assert meili.requests_to("POST", "/indexes/posts/documents")[0].url.params["primaryKey"] == "id"

        hits = (await search.search("posts", "blue"))["hits"]
        assert [h["id"] for h in hits] == [2]

        await search.delete_documents("posts", [1])
        assert [d["id"] for d in await search.get_documents("posts")] == [2]

    @pytest.mark.asyncio
    async def test_empty_batches_skip_requests(self, search, meili):
        await search.add_documents("posts", [])
        await search.delete_documents("posts", [])
        assert meili.requests == []


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_request_before_open(self, meili):
        client = SearchClient("http://search.test", transport=meili.transport)
        with pytest.raises(RuntimeError):
            await client.get_index("posts")

    @pytest.mark.asyncio
    async def test_client_errors_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(400, json={"code": "bad_request"})

        async with SearchClient("http://search.test", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await client.update_settings("posts", {})
        assert len(calls) == 1
