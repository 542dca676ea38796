import logging

import httpx
from pydantic import ValidationError

from sitesmith.core.config import settings
from sitesmith.models.generation_models import UploadResult

logger = logging.getLogger(__name__)


async def upload_document(
    html_content: str,
    endpoint_url: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> UploadResult:
    """Publish a finished document through the upload endpoint.

    Never raises for upload failures: every problem (empty document, network
    error, error status, malformed reply) comes back as ``success=False`` with
    a message in ``error``.
    """
    url = endpoint_url or settings.upload_endpoint_url

    if not html_content or not html_content.strip():
        logger.error("Upload rejected: no HTML content provided")
        return UploadResult(success=False, error="No HTML content provided for upload")

    logger.info("Starting upload of %d chars to %s", len(html_content), url)
    try:
        if client is not None:
            response = await client.post(url, json={"htmlContent": html_content})
        else:
            timeout = httpx.Timeout(settings.CLIENT_CONNECT_TIMEOUT, read=settings.CLIENT_READ_TIMEOUT)
            async with httpx.AsyncClient(timeout=timeout) as owned_client:
                response = await owned_client.post(url, json={"htmlContent": html_content})
    except httpx.HTTPError as e:
        logger.error("Failed to upload document: %s", str(e) or type(e).__name__, exc_info=True)
        return UploadResult(success=False, error=str(e) or "Upload failed")

    try:
        data = response.json()
    except ValueError:
        data = None

    if not response.is_success:
        message = data.get("error") if isinstance(data, dict) else None
        logger.error("Upload failed with HTTP %d: %s", response.status_code, message)
        return UploadResult(success=False, error=message or "Upload failed")

    if not isinstance(data, dict):
        logger.error("Upload endpoint returned a non-JSON body")
        return UploadResult(success=False, error="Upload endpoint returned an unreadable response")

    try:
        result = UploadResult.model_validate(data)
    except ValidationError as e:
        logger.error("Upload endpoint returned an unexpected payload: %s", e.errors(), exc_info=False)
        return UploadResult(success=False, error="Upload endpoint returned an unexpected response")

    if result.success:
        logger.info(
            "Upload successful! Transaction ID: %s, gateway: %s, explorer: %s",
            result.transaction_id,
            result.gateway_url,
            result.explorer_url,
        )
    else:
        logger.error("Upload reported failure: %s", result.error)
    return result
