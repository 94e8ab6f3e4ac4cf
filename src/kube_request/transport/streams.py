"""Live byte streams for ``stream=True`` calls.

A ``ByteStream`` is handed back before any network I/O happens; the
request is sent the first time the stream is entered or iterated. Status
codes are not inspected and nothing is retried, which suits long-lived
log tails and watches.
"""

import json
import logging
from typing import Any, AsyncIterator, Optional

import httpx

from ..exceptions import RequestTimeoutError, TransportError
from ..utils.security import sanitize_url

logger = logging.getLogger(__name__)


def transport_error_from(exc: httpx.TransportError, request: httpx.Request) -> TransportError:
    """Translate an httpx transport failure into a backend error."""
    url = sanitize_url(str(request.url))
    if isinstance(exc, httpx.TimeoutException):
        return RequestTimeoutError(
            f"Request timed out: {request.method} {url}", url=url, original_error=exc
        )
    return TransportError(
        f"Request failed: {request.method} {url}: {exc}", url=url, original_error=exc
    )


class ByteStream:
    """Lazily opened streaming response.

    :param client: Client used to send the request
    :type client: httpx.AsyncClient
    :param request: Fully built request
    :type request: httpx.Request
    """

    def __init__(self, client: httpx.AsyncClient, request: httpx.Request):
        self._client = client
        self.request = request
        self._response: Optional[httpx.Response] = None

    @property
    def response(self) -> Optional[httpx.Response]:
        return self._response

    @property
    def status_code(self) -> Optional[int]:
        return self._response.status_code if self._response is not None else None

    async def open(self) -> httpx.Response:
        """Send the request and return the unread response (idempotent)."""
        if self._response is None:
            logger.debug(f"Opening stream: {self.request.method} {sanitize_url(str(self.request.url))}")
            try:
                self._response = await self._client.send(self.request, stream=True)
            except httpx.TransportError as e:
                raise transport_error_from(e, self.request) from e
        return self._response

    async def aiter_bytes(self, chunk_size: Optional[int] = None) -> AsyncIterator[bytes]:
        response = await self.open()
        try:
            async for chunk in response.aiter_bytes(chunk_size):
                yield chunk
        except httpx.TransportError as e:
            raise transport_error_from(e, self.request) from e

    async def aiter_lines(self) -> AsyncIterator[str]:
        response = await self.open()
        try:
            async for line in response.aiter_lines():
                yield line
        except httpx.TransportError as e:
            raise transport_error_from(e, self.request) from e

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.aiter_bytes()

    async def aclose(self) -> None:
        if self._response is not None:
            await self._response.aclose()

    async def __aenter__(self) -> "ByteStream":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


async def iter_json_objects(stream: ByteStream) -> AsyncIterator[Any]:
    """Yield one decoded JSON document per line of a streamed body.

    Watch endpoints emit newline-delimited events; lines that do not parse
    are logged and skipped.
    """
    async with stream:
        async for line in stream.aiter_lines():
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.warning(f"Skipping undecodable watch line: {line[:200]}")
