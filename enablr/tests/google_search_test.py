import httpx
import pytest

from enablr.errors import ConfigurationError, UpstreamError
from enablr.integrations.google_search import GoogleSearchClient

pytestmark = pytest.mark.asyncio


def _client(handler) -> GoogleSearchClient:
    return GoogleSearchClient("key-123", "cx-456", transport=httpx.MockTransport(handler))


async def test_search_sends_uk_restricted_query():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={
                "items": [
                    {"title": "Smith Legal", "link": "https://smithlegal.example", "snippet": "Solicitors"},
                    {"title": "No snippet", "link": "https://nosnippet.example"},
                ]
            },
        )

    results = await _client(handler).search('"Legal" small business near Birmingham UK')

    assert seen["params"]["q"] == '"Legal" small business near Birmingham UK'
    assert seen["params"]["gl"] == "uk"
    assert seen["params"]["cr"] == "countryUK"
    assert seen["params"]["key"] == "key-123"
    assert seen["params"]["cx"] == "cx-456"
    assert [result.link for result in results] == ["https://smithlegal.example", "https://nosnippet.example"]
    assert results[1].snippet == ""


async def test_search_without_items_is_empty():
    results = await _client(lambda request: httpx.Response(200, json={})).search("anything")
    assert results == []


async def test_error_status_raises_upstream_error():
    client = _client(lambda request: httpx.Response(403, json={"error": {"message": "quota"}}))

    with pytest.raises(UpstreamError) as excinfo:
        await client.search("anything")

    assert "403" in str(excinfo.value)
    assert excinfo.value.client_message() == "Upstream service failed"


async def test_transport_failure_raises_upstream_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError):
        await _client(handler).search("anything")


async def test_missing_credentials():
    client = GoogleSearchClient("key-only", None)

    assert not client.is_configured()
    with pytest.raises(ConfigurationError):
        await client.search("anything")
