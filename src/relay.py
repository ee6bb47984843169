"""Streaming relay from Pixeldrain to the browser.

The upstream API key stays on the server: it is sent as HTTP Basic auth
(empty user name, key as password) and never appears in responses or logs.
Bytes are forwarded chunk by chunk as they arrive. A caller's ``Range``
header is passed upstream, so ``Accept-Ranges`` is only advertised when the
upstream honours ranges itself.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterator
from urllib.parse import quote

import httpx

from adapters.base import error_text
from app_logging import get_logger
from config import PIXELDRAIN_BASE_URL
from exceptions import ClientInputError, ServerConfigurationError, UpstreamFailure, UpstreamTimeout

CONNECT_TIMEOUT = 10.0
CHUNK_SIZE = 64 * 1024
# 416 answers the caller's own Range header
RELAYED_STATUSES = (200, 206, 416)

logger = get_logger("dashboard_relay.relay")


def ipv4_transport(**kwargs) -> httpx.AsyncHTTPTransport:
    """Keep-alive transport pinned to IPv4 (binding 0.0.0.0 rules out AAAA routes)."""
    return httpx.AsyncHTTPTransport(local_address="0.0.0.0", retries=0, **kwargs)


@dataclass
class MediaStream:
    status_code: int
    headers: dict[str, str]
    _response: httpx.Response = field(repr=False)
    _client: httpx.AsyncClient = field(repr=False)
    _closed: bool = field(default=False, repr=False)

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_raw(CHUNK_SIZE):
                yield chunk
        except httpx.TimeoutException:
            # headers are already sent; dropping the connection is the only signal left
            logger.warning("stream_stalled", extra={"url": str(self._response.request.url.path)})
            raise
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._response.aclose()
        finally:
            await self._client.aclose()
        logger.debug("stream_closed")


class MediaRelay:
    provider = "pixeldrain"

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = PIXELDRAIN_BASE_URL,
        content_type: str = "video/webm",
        cache_control: str = "public, max-age=3600",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._content_type = content_type
        self._cache_control = cache_control
        self._timeout = httpx.Timeout(timeout, connect=CONNECT_TIMEOUT)
        self._transport = transport

    async def open(self, file_id: str | None, range_header: str | None = None) -> MediaStream:
        """Connect upstream and return a stream ready to be relayed.

        Raises:
            ClientInputError: ``file_id`` missing or blank.
            ServerConfigurationError: no API key configured.
            UpstreamTimeout: connect / first byte exceeded the timeout.
            UpstreamFailure: any other transport error or non-success status.
        """
        file_id = (file_id or "").strip()
        if not file_id:
            raise ClientInputError(self.provider, "Missing file id")
        if not self._api_key:
            raise ServerConfigurationError(self.provider, "PIXELDRAIN_API_KEY is not configured")

        client = httpx.AsyncClient(
            transport=self._transport or ipv4_transport(),
            timeout=self._timeout,
            auth=httpx.BasicAuth("", self._api_key),
        )
        headers = {"Range": range_header} if range_header else {}
        url = f"{self._base_url}/file/{quote(file_id, safe='')}"
        try:
            request = client.build_request("GET", url, headers=headers)
            response = await client.send(request, stream=True)
        except httpx.TimeoutException as e:
            await client.aclose()
            logger.warning("upstream_timeout", extra={"file_id": file_id})
            raise UpstreamTimeout(self.provider, "Upstream timed out") from e
        except httpx.HTTPError as e:
            await client.aclose()
            logger.warning("upstream_error", extra={"file_id": file_id, "error": type(e).__name__})
            raise UpstreamFailure(self.provider, f"Streaming failed: {e}") from e

        if response.status_code not in RELAYED_STATUSES:
            try:
                detail = await _error_detail(response)
            finally:
                await response.aclose()
                await client.aclose()
            logger.warning("upstream_error", extra={"file_id": file_id, "status": response.status_code})
            raise UpstreamFailure(self.provider, f"Streaming failed: HTTP {response.status_code}: {detail}")

        logger.info("stream_opened", extra={"file_id": file_id, "status": response.status_code})
        return MediaStream(
            status_code=response.status_code,
            headers=self._relay_headers(response),
            _response=response,
            _client=client,
        )

    def _relay_headers(self, response: httpx.Response) -> dict[str, str]:
        headers = {
            "Content-Type": self._content_type,
            "Cache-Control": self._cache_control,
            "Content-Disposition": "inline",
        }
        upstream = response.headers
        if response.status_code in (206, 416) or upstream.get("accept-ranges", "").lower() == "bytes":
            headers["Accept-Ranges"] = "bytes"
        for name in ("Content-Length", "Content-Range", "Content-Encoding"):
            if name in upstream:
                headers[name] = upstream[name]
        return headers


async def _error_detail(response: httpx.Response) -> str:
    try:
        await response.aread()
    except httpx.HTTPError:
        return "no error detail"
    return error_text(response)


__all__ = ["MediaRelay", "MediaStream", "ipv4_transport"]
