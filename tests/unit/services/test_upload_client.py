import json

import httpx
import pytest

from sitesmith.services import upload_document

UPLOAD_URL = "http://sitesmith.test/api/upload-to-irys"


@pytest.mark.asyncio
async def test_upload_success(make_client):
    client = make_client(
        lambda request: httpx.Response(
            200,
            json={
                "success": True,
                "transactionId": "tx-1",
                "gatewayUrl": "https://gateway.example/tx-1",
                "explorerUrl": "https://explorer.example/tx/tx-1",
            },
        )
    )

    result = await upload_document("<html></html>", endpoint_url=UPLOAD_URL, client=client)

    assert result.success is True
    assert result.transaction_id == "tx-1"
    assert result.gateway_url == "https://gateway.example/tx-1"
    assert json.loads(client.captured[0].content) == {"htmlContent": "<html></html>"}


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   \n"])
async def test_upload_rejects_empty_content(make_client, content):
    client = make_client(lambda request: httpx.Response(200, json={"success": True}))

    result = await upload_document(content, endpoint_url=UPLOAD_URL, client=client)

    assert result.success is False
    assert result.error == "No HTML content provided for upload"
    assert client.captured == []


@pytest.mark.asyncio
async def test_upload_error_status_returns_message(make_client):
    client = make_client(lambda request: httpx.Response(500, json={"success": False, "error": "insufficient funds"}))

    result = await upload_document("<html></html>", endpoint_url=UPLOAD_URL, client=client)

    assert result.success is False
    assert result.error == "insufficient funds"


@pytest.mark.asyncio
async def test_upload_error_status_without_body(make_client):
    client = make_client(lambda request: httpx.Response(503, text="Service Unavailable"))

    result = await upload_document("<html></html>", endpoint_url=UPLOAD_URL, client=client)

    assert result.success is False
    assert result.error == "Upload failed"


@pytest.mark.asyncio
async def test_upload_network_failure_does_not_raise(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)

    result = await upload_document("<html></html>", endpoint_url=UPLOAD_URL, client=client)

    assert result.success is False
    assert "connection refused" in result.error


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"transactionId": "missing success flag"}),
    ],
)
async def test_upload_unreadable_success_response(make_client, response):
    client = make_client(lambda request: response)

    result = await upload_document("<html></html>", endpoint_url=UPLOAD_URL, client=client)

    assert result.success is False
    assert result.error
