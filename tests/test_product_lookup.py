"""Tests for the Open Food Facts client (mocked transport)."""

import httpx
import pytest

from pento.foodref.errors import UpstreamUnavailable
from pento.foodref.product_lookup import OpenFoodFactsClient


def _client(handler):
    return OpenFoodFactsClient(
        base_url="https://off.test/api/v2/product",
        user_agent="PentoTest/1.0",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_fetch_found():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["ua"] = request.headers["User-Agent"]
        return httpx.Response(
            200, json={"status": 1, "product": {"product_name": "Nutella"}}
        )

    product = await _client(handler).fetch_by_barcode("3017620422003")

    assert product == {"product_name": "Nutella"}
    assert seen["url"] == "https://off.test/api/v2/product/3017620422003.json"
    assert seen["ua"] == "PentoTest/1.0"


@pytest.mark.asyncio
async def test_status_zero_is_not_found():
    def handler(request):
        return httpx.Response(200, json={"status": 0, "status_verbose": "product not found"})

    assert await _client(handler).fetch_by_barcode("000") is None


@pytest.mark.asyncio
async def test_404_is_not_found():
    def handler(request):
        return httpx.Response(404, json={"status": 0})

    assert await _client(handler).fetch_by_barcode("000") is None


@pytest.mark.asyncio
async def test_server_error_is_upstream():
    def handler(request):
        return httpx.Response(503, text="maintenance")

    with pytest.raises(UpstreamUnavailable, match="503"):
        await _client(handler).fetch_by_barcode("123")


@pytest.mark.asyncio
async def test_transport_error_is_upstream():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamUnavailable, match="request failed"):
        await _client(handler).fetch_by_barcode("123")


@pytest.mark.asyncio
async def test_malformed_body_is_upstream():
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(UpstreamUnavailable, match="malformed"):
        await _client(handler).fetch_by_barcode("123")


@pytest.mark.asyncio
async def test_non_object_body_is_upstream():
    def handler(request):
        return httpx.Response(200, json=["not", "an", "object"])

    with pytest.raises(UpstreamUnavailable, match="malformed"):
        await _client(handler).fetch_by_barcode("123")
