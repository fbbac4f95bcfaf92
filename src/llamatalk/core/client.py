"""
HTTP client for the local inference server's /api/generate endpoint.
"""

import json
import logging
from typing import Any, Optional

import httpx

from llamatalk.core.encoder import encode_generate_request
from llamatalk.core.errors import DecodeError, TransportError

logger = logging.getLogger(__name__)

GENERATE_PATH = '/api/generate'


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except (ValueError, httpx.ResponseNotRead):
        return ''
    if isinstance(body, dict) and isinstance(body.get('error'), str):
        return body['error']
    return ''


def as_transport_error(exc: BaseException) -> TransportError:
    """Wrap a failure raised below the HTTP layer (httpx, anyio, sockets)."""
    return TransportError(str(exc) or type(exc).__name__)


class StreamHandle:
    """
    Ownership of an open streamed response body.

    Lines are read lazily from the socket; `aclose` releases the connection.
    """

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.lines = response.aiter_lines()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def aclose(self) -> None:
        if self._closed:
            return
        await self.response.aclose()
        self._closed = True


class OllamaClient:
    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            base_url: server root, e.g. http://localhost:11434
            model: model name sent with every request
            timeout: connect/read bound in seconds, None waits forever
            transport: alternative httpx transport (tests use MockTransport)
        """
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def _send(self, prompt: str, stream: bool) -> httpx.Response:
        payload = encode_generate_request(prompt, self.model, stream=stream)
        request = self.http.build_request('POST', GENERATE_PATH, json=payload)
        logger.debug("POST %s model=%s stream=%s", request.url, self.model, stream)
        try:
            response = await self.http.send(request, stream=True)
        except Exception as exc:
            raise as_transport_error(exc) from exc

        if response.status_code >= 400:
            try:
                await response.aread()
            except httpx.HTTPError:
                pass
            finally:
                await response.aclose()
            detail = _error_detail(response)
            message = f'HTTP {response.status_code}'
            raise TransportError(f'{message}: {detail}' if detail else message)
        return response

    async def open_stream(self, prompt: str) -> StreamHandle:
        """Send a streaming request and hand back its still-open body."""
        response = await self._send(prompt, stream=True)
        return StreamHandle(response)

    async def send_prompt(self, prompt: str) -> str:
        """Send a non-streaming request and return the whole reply."""
        response = await self._send(prompt, stream=False)
        try:
            raw = await response.aread()
        except Exception as exc:
            raise as_transport_error(exc) from exc
        finally:
            await response.aclose()

        try:
            body: Any = json.loads(raw)
        except ValueError as exc:
            raise DecodeError(f'invalid JSON response: {exc}') from exc
        if not isinstance(body, dict) or not isinstance(body.get('response'), str):
            raise DecodeError('response object has no text')
        return body['response']

    async def aclose(self) -> None:
        await self.http.aclose()
