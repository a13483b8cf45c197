"""
Tests for the httpx-backed request capability.
"""

import json

import httpx
import pytest

from scriptflow.capabilities import HttpxRequester, collect_headers


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# =============================================================================
# HttpxRequester Tests
# =============================================================================


class TestHttpxRequester:
    """Tests for HttpxRequester."""

    @pytest.mark.asyncio
    async def test_get(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, text="Lorem ipsum", headers={"Content-Type": "text/plain"})

        requester = HttpxRequester(client=mock_client(handler))
        response = await requester("GET", "https://example.com/page", {"X-Token": "abc"}, None, None)

        assert response["status"] == 200
        assert response["body"] == "Lorem ipsum"
        assert response["headers"]["content-type"] == ["text/plain"]
        assert seen[0].headers["x-token"] == "abc"

    @pytest.mark.asyncio
    async def test_json_body(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json={"ok": True})

        requester = HttpxRequester(client=mock_client(handler))
        response = await requester("POST", "https://example.com/items", {}, {"name": "foo"}, None)

        assert response["status"] == 201
        assert json.loads(seen[0].content) == {"name": "foo"}
        assert seen[0].headers["content-type"] == "application/json"

    @pytest.mark.asyncio
    async def test_text_body_keeps_content_type(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200)

        requester = HttpxRequester(client=mock_client(handler))
        await requester("PUT", "https://example.com/x", {"Content-Type": "text/csv"}, "a,b", None)

        assert seen[0].content == b"a,b"
        assert seen[0].headers["content-type"] == "text/csv"

    @pytest.mark.asyncio
    async def test_cookies(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, headers={"Set-Cookie": "session=xyz; Path=/"})

        requester = HttpxRequester(client=mock_client(handler))
        response = await requester("GET", "https://example.com/", {}, None, {"a": "1", "b": "2"})

        assert seen[0].headers["cookie"] == "a=1; b=2"
        assert response["cookies"] == {"session": "xyz"}

    @pytest.mark.asyncio
    async def test_error_status_is_returned(self):
        requester = HttpxRequester(client=mock_client(lambda request: httpx.Response(404, text="missing")))

        response = await requester("GET", "https://example.com/none", {}, None, None)

        assert response["status"] == 404
        assert response["body"] == "missing"

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        requester = HttpxRequester(client=mock_client(handler))

        with pytest.raises(httpx.ConnectError):
            await requester("GET", "https://example.com/", {}, None, None)

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self):
        client = mock_client(lambda request: httpx.Response(200))
        requester = HttpxRequester(client=client)

        await requester.close()

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_close_owned_client(self):
        requester = HttpxRequester()
        client = await requester._get_client()

        await requester.close()

        assert client.is_closed


class TestCollectHeaders:
    """Tests for collect_headers."""

    def test_groups_repeated_headers(self):
        headers = httpx.Headers([("Set-Cookie", "a=1"), ("set-cookie", "b=2"), ("X-One", "1")])

        assert collect_headers(headers) == {"set-cookie": ["a=1", "b=2"], "x-one": ["1"]}


# =============================================================================
# Request Step Integration
# =============================================================================


class TestRequestStepWithHttpx:
    """Request steps running through HttpxRequester."""

    @pytest.mark.asyncio
    async def test_json_response_is_parsed(self, create_script):
        def handler(request):
            return httpx.Response(200, json={"items": [{"id": 1}, {"id": 2}]})

        script = create_script(
            {
                "name": "Fetch",
                "steps": [
                    {"request": "https://example.com/items.json"},
                    {"get": "/result/body/items", "map": {"get": "/id"}},
                ],
            },
            request=HttpxRequester(client=mock_client(handler)),
        )

        assert await script.run({}) == [1, 2]

    @pytest.mark.asyncio
    async def test_xml_response_is_parsed(self, create_script):
        def handler(request):
            return httpx.Response(
                200,
                text="<feed><entry>a</entry><entry>b</entry></feed>",
                headers={"Content-Type": "application/atom+xml"},
            )

        script = create_script(
            {"name": "Feed", "steps": [{"request": "https://example.com/feed", "resultProperty": "/feed"}]},
            request=HttpxRequester(client=mock_client(handler)),
        )

        output = await script.run({})

        assert output["feed"]["status"] == 200
        assert output["feed"]["body"] == {"feed": {"entry": ["a", "b"]}}

    @pytest.mark.asyncio
    async def test_invalid_json_keeps_text(self, create_script, caplog):
        def handler(request):
            return httpx.Response(200, text="{oops", headers={"Content-Type": "application/json"})

        script = create_script(
            {"name": "Broken", "steps": [{"request": "https://example.com/"}]},
            request=HttpxRequester(client=mock_client(handler)),
        )

        output = await script.run({})

        assert output["result"]["body"] == "{oops"
        assert "not valid JSON" in caplog.text
