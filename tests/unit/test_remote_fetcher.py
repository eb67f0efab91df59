"""Tests for the remote fetcher."""

import json
import logging

import httpx
import pytest

from form_builder.services.remote_fetcher import build_query_params, fetch_json


def _client(handler):
    """AsyncClient whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestBuildQueryParams:
    """Tests for query parameter stringification."""

    def test_empty(self):
        assert build_query_params(None) == {}
        assert build_query_params({}) == {}

    def test_values_stringified(self):
        params = build_query_params({"a": 1, "b": True, "c": "x", "d": ["y"]})
        assert params == {"a": "1", "b": "true", "c": "x", "d": '["y"]'}

    def test_none_dropped(self):
        assert build_query_params({"a": None, "b": "x"}) == {"b": "x"}


class TestFetchJsonSuccess:
    """Tests for successful requests."""

    @pytest.mark.asyncio
    async def test_get_with_query(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["params"] = dict(request.url.params)
            seen["body"] = request.content
            return httpx.Response(200, json={"items": ["a"]})

        async with _client(handler) as client:
            result = await fetch_json(
                "https://api.test/items", "GET", {"q": "fr"}, body={"ignored": True}, client=client,
            )

        assert result == {"items": ["a"]}
        assert seen["method"] == "GET"
        assert seen["params"] == {"q": "fr"}
        assert seen["body"] == b""

    @pytest.mark.asyncio
    async def test_post_sends_json_body_and_query(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["params"] = dict(request.url.params)
            seen["content_type"] = request.headers.get("content-type")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=[1, 2])

        async with _client(handler) as client:
            result = await fetch_json(
                "https://api.test/search", "post", {"page": 2}, body={"term": "x"}, client=client,
            )

        assert result == [1, 2]
        assert seen["method"] == "POST"
        assert seen["params"] == {"page": "2"}
        assert seen["content_type"] == "application/json"
        assert seen["body"] == {"term": "x"}

    @pytest.mark.asyncio
    async def test_post_without_body_sends_none(self):
        seen = {}

        def handler(request):
            seen["body"] = request.content
            seen["content_type"] = request.headers.get("content-type")
            return httpx.Response(200, json={})

        async with _client(handler) as client:
            await fetch_json("https://api.test/x", "POST", client=client)

        assert seen["body"] == b""
        assert seen["content_type"] is None


class TestFetchJsonFailures:
    """Failures are logged and reported as None, never raised."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [301, 400, 404, 500, 503])
    async def test_non_success_status(self, status, caplog):
        async with _client(lambda request: httpx.Response(status, json={"items": []})) as client:
            with caplog.at_level(logging.WARNING):
                result = await fetch_json("https://api.test/x", client=client)

        assert result is None
        assert "Error fetching" in caplog.text

    @pytest.mark.asyncio
    async def test_invalid_json(self, caplog):
        async with _client(lambda request: httpx.Response(200, text="<html>")) as client:
            with caplog.at_level(logging.WARNING):
                result = await fetch_json("https://api.test/x", client=client)

        assert result is None
        assert "invalid JSON" in caplog.text

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            assert await fetch_json("https://api.test/x", client=client) is None

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        async with _client(handler) as client:
            assert await fetch_json("https://api.test/x", client=client) is None

    @pytest.mark.asyncio
    async def test_unserializable_body(self):
        async with _client(lambda request: httpx.Response(200, json={})) as client:
            assert await fetch_json("https://api.test/x", "POST", body={"s": {1, 2}}, client=client) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("number", [float("nan"), float("inf")])
    async def test_non_finite_body_value(self, number, caplog):
        """Bodies that cannot be encoded as strict JSON are a failure, not an exception."""
        async with _client(lambda request: httpx.Response(200, json={})) as client:
            with caplog.at_level(logging.WARNING):
                result = await fetch_json("https://api.test/x", "POST", None, {"x": number}, client=client)

        assert result is None
        assert "Error fetching POST" in caplog.text
