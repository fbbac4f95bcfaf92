"""
Decodes the newline-delimited JSON body of a streamed /api/generate response.
"""

import json
from typing import Any

from llamatalk.core.client import StreamHandle, as_transport_error
from llamatalk.core.domain import DoneUnit, StreamUnit, TokenUnit
from llamatalk.core.errors import DecodeError, TransportError


def _decode_record(line: str) -> StreamUnit:
    try:
        record: Any = json.loads(line)
    except json.JSONDecodeError as exc:
        raise DecodeError(f'malformed record: {exc.msg}') from exc

    if not isinstance(record, dict):
        raise DecodeError('record is not an object')

    if isinstance(record.get('error'), str):
        raise TransportError(record['error'])

    text = record.get('response', '')
    done = record.get('done', False)
    if not isinstance(text, str) or not isinstance(done, bool):
        raise DecodeError('record has invalid response/done fields')

    if done:
        return DoneUnit(type='done', text=text)
    return TokenUnit(type='token', text=text)


class StreamDecoder:
    """
    Forward-only reader over a StreamHandle.

    Each `next_unit` call reads exactly one record from the socket and returns
    it. A done unit or any error finishes the decoder for good.
    """

    def __init__(self, handle: StreamHandle) -> None:
        self.handle = handle
        self.finished = False

    async def next_unit(self) -> StreamUnit:
        if self.finished:
            raise RuntimeError('stream already finished')

        try:
            unit = await self._pump()
        except BaseException:
            self.finished = True
            raise

        if unit['type'] == 'done':
            self.finished = True
        return unit

    async def _pump(self) -> StreamUnit:
        while True:
            try:
                line = await anext(self.handle.lines)
            except StopAsyncIteration:
                raise TransportError('stream ended before completion') from None
            except Exception as exc:
                raise as_transport_error(exc) from exc

            if line.strip():
                return _decode_record(line)
