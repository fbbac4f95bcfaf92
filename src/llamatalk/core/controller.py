"""
Session controller: runs one chat request at a time and applies its streamed
reply to the transcript.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from llamatalk.core.client import OllamaClient, StreamHandle
from llamatalk.core.domain import SessionState, StreamUnit
from llamatalk.core.errors import ChatError
from llamatalk.core.formatter import format_fragment
from llamatalk.core.scroll import ScrollPolicy, ScrollState
from llamatalk.core.stream_decoder import StreamDecoder
from llamatalk.core.transcript import Transcript
from llamatalk.models import Role

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 80
DEFAULT_HEIGHT = 10


def error_text(exc: Exception) -> str:
    return f'Error - {exc}'


@dataclass
class Session:
    """State owned by the controller. The UI only reads it."""
    transcript: Transcript = field(default_factory=Transcript)
    state: SessionState = SessionState.IDLE
    scroll: ScrollState = field(default_factory=ScrollState)

    @property
    def waiting(self) -> bool:
        return self.state in (SessionState.AWAITING_RESPONSE, SessionState.STREAMING)


class SessionController:
    def __init__(
        self,
        client: OllamaClient,
        scroll_policy: Optional[ScrollPolicy] = None,
        stream: bool = True,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.client = client
        self.scroll_policy = scroll_policy or ScrollPolicy()
        self.stream = stream
        self.on_change = on_change

        self.session = Session()
        self.width = DEFAULT_WIDTH
        self.height = DEFAULT_HEIGHT
        self.terminated = False

        self._cancelled = False
        self._handle: Optional[StreamHandle] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def transcript(self) -> Transcript:
        return self.session.transcript

    def _set_state(self, state: SessionState) -> None:
        if state is not self.session.state:
            logger.debug("session %s -> %s", self.session.state.value, state.value)
        self.session.state = state
        self._notify()

    def _notify(self) -> None:
        if self.on_change:
            self.on_change()

    def _line_count(self) -> int:
        return self.transcript.line_count(self.width)

    def _mutate(self, change: Callable[[], None]) -> None:
        """Apply a transcript change and let the scroll policy follow it."""
        scroll = self.session.scroll
        near_bottom = self.scroll_policy.is_near_bottom(scroll, self._line_count(), self.height)
        change()
        self.scroll_policy.follow(scroll, near_bottom, self._line_count(), self.height)
        self._notify()

    # ------------------------------------------------------------------ submit

    def begin(self, prompt: str) -> bool:
        """
        Accept a prompt and open the assistant turn for its reply.

        Returns False (and changes nothing) for empty input, when a request is
        already outstanding, or after cancellation.
        """
        text = prompt.strip()
        if not text or self.terminated or self.state is not SessionState.IDLE:
            return False

        def add_turns() -> None:
            self.transcript.append(Role.USER, text)
            self.transcript.open_assistant()

        self._mutate(add_turns)
        self._set_state(SessionState.AWAITING_RESPONSE)
        logger.info("prompt submitted model=%s chars=%d", self.client.model, len(text))
        return True

    async def run(self, prompt: str) -> None:
        """Issue the request for a prompt accepted by `begin` and consume it."""
        if self._cancelled:
            return
        self._task = asyncio.current_task()
        try:
            if self.stream:
                await self._run_streaming(prompt.strip())
            else:
                await self._run_single(prompt.strip())
        except Exception as exc:
            logger.exception("request aborted")
            self._abandon(exc)
        finally:
            await self._release()
            self._task = None

    def _abandon(self, exc: Exception) -> None:
        """Put the session back to Idle after an unexpected failure."""
        if self._cancelled or self.state is SessionState.IDLE:
            return
        turn = self.transcript.open_turn
        if turn is not None:
            suffix = ('\n' if turn.text else '') + error_text(exc)
            self._mutate(lambda: self.transcript.extend_open(suffix))
            self.transcript.close_open()
        self._set_state(SessionState.IDLE)

    async def submit(self, prompt: str) -> bool:
        if not self.begin(prompt):
            return False
        await self.run(prompt)
        return True

    # ---------------------------------------------------------------- requests

    async def _run_single(self, prompt: str) -> None:
        try:
            reply = await self.client.send_prompt(prompt)
        except ChatError as exc:
            self._fail_request(exc)
            return

        self._mutate(lambda: self.transcript.replace_open(reply))
        self.transcript.close_open()
        self._set_state(SessionState.IDLE)
        logger.info("reply received chars=%d", len(reply))

    async def _run_streaming(self, prompt: str) -> None:
        try:
            self._handle = await self.client.open_stream(prompt)
        except ChatError as exc:
            self._fail_request(exc)
            return

        if self._cancelled:
            return
        self._set_state(SessionState.STREAMING)
        decoder = StreamDecoder(self._handle)

        while not self._cancelled:
            try:
                unit = await decoder.next_unit()
            except ChatError as exc:
                await self._fail_stream(exc)
                return

            self._apply(unit)
            if unit['type'] == 'done':
                self.transcript.close_open()
                await self._release()
                self._set_state(SessionState.IDLE)
                logger.info("stream finished chars=%d", len(self.transcript.last.text))
                return

    def _apply(self, unit: StreamUnit) -> None:
        fragment = unit['text']
        if not fragment:
            return
        turn = self.transcript.open_turn
        addition = format_fragment(turn.text, fragment)
        self._mutate(lambda: self.transcript.extend_open(addition))

    def _fail_request(self, exc: ChatError) -> None:
        logger.warning("request failed: %s", exc)
        self._mutate(lambda: self.transcript.replace_open(error_text(exc)))
        self.transcript.close_open()
        self._set_state(SessionState.IDLE)

    async def _fail_stream(self, exc: ChatError) -> None:
        logger.warning("stream failed: %s", exc)
        turn = self.transcript.open_turn
        suffix = ('\n' if turn.text else '') + error_text(exc)
        self._mutate(lambda: self.transcript.extend_open(suffix))
        self.transcript.close_open()
        await self._release()
        self._set_state(SessionState.FAILED)
        self._set_state(SessionState.IDLE)

    async def _release(self) -> None:
        if self._handle is not None:
            await self._handle.aclose()
            self._handle = None

    # ------------------------------------------------------------ cancellation

    async def cancel(self) -> None:
        """
        Stop any outstanding request and release its stream. The controller
        accepts no further prompts afterwards.
        """
        self._cancelled = True
        self.terminated = True

        task = self._task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            await asyncio.wait([task])

        await self._release()
        self.transcript.close_open()
        self._set_state(SessionState.IDLE)
        logger.info("session cancelled")

    # --------------------------------------------------------------- viewport

    def resize(self, width: int, height: int) -> None:
        self.width = max(width, 1)
        self.height = max(height, 1)
        scroll = self.session.scroll
        self.scroll_policy.follow(scroll, scroll.at_bottom, self._line_count(), self.height)
        self._notify()

    def scroll(self, delta: int) -> bool:
        """Scroll by `delta` lines on user request. False when suppressed."""
        moved = self.scroll_policy.scroll(
            self.session.scroll,
            delta,
            self._line_count(),
            self.height,
            streaming=self.state is SessionState.STREAMING,
        )
        if moved:
            self._notify()
        return moved

    def page(self, pages: int) -> bool:
        return self.scroll(pages * self.height)
