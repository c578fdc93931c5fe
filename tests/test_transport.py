"""Tests for solr_cursorstream.transport module."""

import logging

import httpx
import pytest
import respx
from httpx import Response

from solr_cursorstream.exceptions import DecodeError, RateLimitError, TransportError
from solr_cursorstream.transport import HttpxTransport, should_retry

URL = "http://solr.test/solr/books/select"


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", URL)
    return httpx.HTTPStatusError("error", request=request, response=Response(status, request=request))


class TestShouldRetry:
    """Tests for the retry condition."""

    @pytest.mark.parametrize("status", [429, 502, 503, 504])
    def test_retries_transient_statuses(self, status):
        """Rate limits and gateway errors are retried."""
        assert should_retry(_status_error(status))

    @pytest.mark.parametrize("status", [400, 404, 500])
    def test_does_not_retry_deterministic_statuses(self, status):
        """Bad requests and server errors are not retried."""
        assert not should_retry(_status_error(status))

    def test_retries_timeouts_and_connection_errors(self):
        """Network failures are retried."""
        assert should_retry(httpx.ConnectError("refused"))
        assert should_retry(httpx.ReadTimeout("slow"))

    def test_does_not_retry_other_exceptions(self):
        """Unrelated exceptions are not retried."""
        assert not should_retry(ValueError("nope"))


class TestHttpxTransport:
    """Tests for HttpxTransport requests."""

    @respx.mock
    def test_get_json_returns_body(self, transport):
        """Successful responses are decoded from JSON."""
        respx.get(URL).mock(return_value=Response(200, json={"ok": True}))

        assert transport.get_json(URL, {"q": "*:*"}) == {"ok": True}

    @respx.mock
    def test_retries_then_succeeds(self, transport, caplog):
        """A 503 followed by a 200 returns the 200 and logs the retry."""
        route = respx.get(URL)
        route.side_effect = [
            Response(503, text="Service Unavailable"),
            Response(200, json={"ok": True}),
        ]

        with caplog.at_level(logging.WARNING, logger="solr_cursorstream.transport"):
            body = transport.get_json(URL, {})

        assert body == {"ok": True}
        assert route.call_count == 2
        assert "Retrying" in caplog.text

    @respx.mock
    def test_gives_up_after_max_retries(self, transport):
        """Persistent 503 raises TransportError after max_retries + 1 attempts."""
        route = respx.get(URL).mock(return_value=Response(503, text="down"))

        with pytest.raises(TransportError) as exc_info:
            transport.get_json(URL, {})

        assert route.call_count == 3
        assert exc_info.value.status_code == 503
        assert exc_info.value.url == URL

    @respx.mock
    def test_not_found_is_not_retried(self, transport):
        """A 404 (wrong core or handler) fails on the first attempt."""
        route = respx.get(URL).mock(return_value=Response(404, text="Not Found"))

        with pytest.raises(TransportError) as exc_info:
            transport.get_json(URL, {})

        assert route.call_count == 1
        assert exc_info.value.status_code == 404
        assert "404" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @respx.mock
    def test_rate_limit_error(self):
        """A 429 raises RateLimitError with retry_after from the header."""
        respx.get(URL).mock(return_value=Response(429, headers={"Retry-After": "120"}))
        transport = HttpxTransport(max_retries=0)

        with pytest.raises(RateLimitError) as exc_info:
            transport.get_json(URL, {})

        assert exc_info.value.retry_after == 120
        assert exc_info.value.status_code == 429
        assert isinstance(exc_info.value, TransportError)

    @respx.mock
    def test_rate_limit_without_header_defaults(self):
        """retry_after defaults to 60 without a usable header."""
        respx.get(URL).mock(return_value=Response(429, headers={"Retry-After": "soon"}))
        transport = HttpxTransport(max_retries=0)

        with pytest.raises(RateLimitError) as exc_info:
            transport.get_json(URL, {})

        assert exc_info.value.retry_after == 60

    @respx.mock
    def test_timeout_becomes_transport_error(self, transport):
        """Timeouts surface as TransportError without a status code."""
        route = respx.get(URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(TransportError) as exc_info:
            transport.get_json(URL, {})

        assert route.call_count == 3
        assert exc_info.value.status_code is None

    @respx.mock
    def test_non_json_body_raises_decode_error(self, transport):
        """An HTML error page with status 200 raises DecodeError."""
        respx.get(URL).mock(return_value=Response(200, text="<html>proxy login</html>"))

        with pytest.raises(DecodeError):
            transport.get_json(URL, {})

    @respx.mock
    def test_client_is_created_once(self, transport):
        """The same httpx client is reused between requests."""
        respx.get(URL).mock(return_value=Response(200, json={}))

        transport.get_json(URL, {})
        client = transport._client
        transport.get_json(URL, {})

        assert client is not None
        assert transport._client is client

    def test_uses_given_client(self):
        """A client passed in is used instead of creating one."""
        client = httpx.Client()
        transport = HttpxTransport(client=client)

        assert transport._get_client() is client
        transport.close()
        assert client.is_closed

    def test_timeout_is_applied_to_created_client(self):
        """The configured timeout is passed to httpx."""
        transport = HttpxTransport(timeout=5.0)

        assert transport._get_client().timeout.read == 5.0
        transport.close()


class TestHttpxTransportAsync:
    """Tests for the async request path."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_aget_json_retries(self, transport):
        """aget_json retries like get_json."""
        route = respx.get(URL)
        route.side_effect = [
            httpx.ConnectError("refused"),
            Response(200, json={"ok": True}),
        ]

        body = await transport.aget_json(URL, {})
        await transport.aclose()

        assert body == {"ok": True}
        assert route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_aget_json_translates_errors(self, transport):
        """aget_json raises TransportError for failed statuses."""
        respx.get(URL).mock(return_value=Response(400, text="can not sort on multivalued field"))

        with pytest.raises(TransportError) as exc_info:
            await transport.aget_json(URL, {})
        await transport.aclose()

        assert exc_info.value.status_code == 400
        assert "multivalued" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_aclose_closes_both_clients(self, transport):
        """aclose closes the async and the sync client."""
        sync_client = transport._get_client()
        async_client = transport._get_async_client()

        await transport.aclose()

        assert sync_client.is_closed
        assert async_client.is_closed
