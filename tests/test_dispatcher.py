from urllib.parse import parse_qs

import httpx
import pytest

from .helpers import json_response, text_response
from netatmo import HttpxDispatcher, NetatmoConnectionError, RawResponse
from netatmo.types import HttpMethod


def mock_dispatcher(handler):
    dispatcher = HttpxDispatcher()
    dispatcher._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return dispatcher


class TestHttpxDispatcher:
    @pytest.mark.asyncio
    async def test_post_sends_form_body(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["content_type"] = request.headers["content-type"]
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(200, json={"access_token": "A"})

        dispatcher = mock_dispatcher(handler)
        response = await dispatcher.dispatch(
            HttpMethod.POST,
            "https://api.netatmo.com/oauth2/token",
            body={"grant_type": "password", "scope": "read_station read_camera"},
        )
        await dispatcher.close()

        assert seen["method"] == "POST"
        assert seen["content_type"] == "application/x-www-form-urlencoded"
        assert seen["form"] == {
            "grant_type": ["password"],
            "scope": ["read_station read_camera"],
        }
        assert response.status_code == 200
        assert response.is_json
        assert response.json_body() == {"access_token": "A"}

    @pytest.mark.asyncio
    async def test_get_sends_query(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, content=b"jpeg", headers={"Content-Type": "image/jpeg"})

        dispatcher = mock_dispatcher(handler)
        response = await dispatcher.dispatch(
            "GET",
            "https://api.netatmo.com/api/getcamerapicture",
            query={"image_id": "i", "key": "k"},
        )
        await dispatcher.close()

        assert seen["params"] == {"image_id": "i", "key": "k"}
        assert response.content == b"jpeg"
        assert not response.is_json

    @pytest.mark.asyncio
    async def test_non_200_is_returned_not_raised(self):
        dispatcher = mock_dispatcher(lambda request: httpx.Response(403, json={"error": "x"}))
        response = await dispatcher.dispatch(HttpMethod.POST, "https://api.netatmo.com/x")
        await dispatcher.close()
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_transport_failure_raises_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        dispatcher = mock_dispatcher(handler)
        with pytest.raises(NetatmoConnectionError) as exc_info:
            await dispatcher.dispatch(HttpMethod.GET, "https://api.netatmo.com/x")
        await dispatcher.close()

        assert "connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_ensure_client_creates_once(self):
        dispatcher = HttpxDispatcher(timeout=5.0)
        c1 = await dispatcher._ensure_client()
        c2 = await dispatcher._ensure_client()
        assert c1 is c2
        await dispatcher.close()
        await dispatcher.close()


class TestRawResponse:
    def test_header_lookup_is_case_insensitive(self):
        response = RawResponse(status_code=200, headers={"Content-Type": "text/plain"})
        assert response.header("content-type") == "text/plain"
        assert response.header("X-Missing") is None

    def test_error_message_from_detail(self):
        response = json_response({"error": {"code": 2, "message": "Invalid token"}}, 403)
        assert response.error_message() == "Invalid token"

    def test_error_message_from_string(self):
        response = json_response({"error": "invalid_client"}, 400)
        assert response.error_message() == "invalid_client"

    def test_error_message_code_only(self):
        response = json_response({"error": {"code": 26}}, 403)
        assert response.error_message() == "26"

    def test_error_message_without_envelope(self):
        response = json_response({"status": "failed"}, 500)
        assert response.error_message() == "Status code 500"

    def test_error_message_malformed_json(self):
        response = RawResponse(
            status_code=500,
            headers={"content-type": "application/json"},
            content=b"{not json",
        )
        assert response.error_message() == "Status code 500"

    def test_error_message_non_json(self):
        response = text_response(b"<html>Gateway</html>", status=504)
        assert response.error_message() == "Status code 504"

    def test_error_message_empty_body(self):
        response = RawResponse(status_code=401, headers={"content-type": "application/json"})
        assert response.error_message() == "Status code 401"
