import asyncio
import json
from typing import Any, AsyncIterator, Callable, Iterable, Optional

import httpx
import pytest

from llamatalk.core.client import OllamaClient, StreamHandle

BASE_URL = "http://ollama.test"
MODEL = "llama3.2"


def record(text: str, done: bool = False) -> bytes:
    return (json.dumps({"model": MODEL, "response": text, "done": done}) + "\n").encode("utf-8")


def ndjson(fragments: Iterable[str], final: Optional[str] = "") -> bytes:
    """Body of a streamed reply; `final=None` leaves out the done record."""
    body = b"".join(record(f) for f in fragments)
    if final is not None:
        body += record(final, done=True)
    return body


def stream_handler(body: bytes) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body)
    return handler


class CountingHandle(StreamHandle):
    def __init__(self, response: httpx.Response) -> None:
        super().__init__(response)
        self.close_calls = 0

    async def aclose(self) -> None:
        self.close_calls += 1
        await super().aclose()


class RecordingClient(OllamaClient):
    """OllamaClient on a MockTransport that keeps every request and handle."""

    def __init__(self, handler: Callable[[httpx.Request], Any], **kwargs) -> None:
        self.requests: list[httpx.Request] = []

        def recording(request: httpx.Request):
            self.requests.append(request)
            return handler(request)

        super().__init__(BASE_URL, MODEL, transport=httpx.MockTransport(recording), **kwargs)
        self.handles: list[CountingHandle] = []

    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    async def open_stream(self, prompt: str) -> StreamHandle:
        response = await self._send(prompt, stream=True)
        handle = CountingHandle(response)
        self.handles.append(handle)
        return handle


class StalledStream:
    """Streamed body that sends some records and then never finishes."""

    def __init__(self, *chunks: bytes) -> None:
        self.chunks = chunks
        self.sent = asyncio.Event()

    async def body(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk
        self.sent.set()
        await asyncio.Event().wait()

    def handler(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=self.body())


@pytest.fixture
def make_client():
    return RecordingClient
