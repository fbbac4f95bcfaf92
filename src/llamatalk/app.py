"""
llamatalk: terminal chat with a local inference server.
"""

import logging
import sys
from typing import Optional

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal

from llamatalk.config import Settings, configure_logging
from llamatalk.core import OllamaClient, SessionController
from llamatalk.core.scroll import ScrollPolicy
from llamatalk.widgets import InputArea, InputPrompt, ChatLog

logger = logging.getLogger(__name__)


class ChatApp(App):
    CSS = """
#chat_log {
    height: 1fr;
}
#input_bar {
    dock: bottom;
    height: 3;
}
#input_text {
    width: 1fr;
}
    """
    BINDINGS = [
        Binding("ctrl+c", "quit_chat", "Quit", priority=True),
        Binding("escape", "quit_chat", "Quit", priority=True),
        Binding("up", "scroll_lines(-1)", "Up", show=False, priority=True),
        Binding("down", "scroll_lines(1)", "Down", show=False, priority=True),
        Binding("pageup", "scroll_pages(-1)", "Page up", show=False, priority=True),
        Binding("pagedown", "scroll_pages(1)", "Page down", show=False, priority=True),
    ]

    def __init__(self, settings: Optional[Settings] = None, client: Optional[OllamaClient] = None):
        """Initialize the chat application with its session controller."""
        super().__init__()
        self.settings = settings or Settings()
        self.client = client or OllamaClient(
            self.settings.base_url,
            self.settings.model,
            timeout=self.settings.timeout,
        )
        self.controller = SessionController(
            self.client,
            scroll_policy=ScrollPolicy(lock_while_streaming=self.settings.scroll_lock),
            stream=self.settings.stream,
            on_change=self._redraw,
        )

    def compose(self) -> ComposeResult:
        """
        Create the main UI layout.
        """
        yield ChatLog(self.controller.session, id="chat_log")
        with Horizontal(id="input_bar"):
            yield InputPrompt(id="prompt")
            yield InputArea(id="input_text")

    async def on_mount(self) -> None:
        self.set_focus(self.query_one('#input_text', InputArea))

    def _redraw(self) -> None:
        if self.is_running:
            self.query_one("#chat_log", ChatLog).refresh()

    async def on_input_area_submit(self, message: InputArea.Submit) -> None:
        """
        Start a request for the submitted prompt. Ignored for empty input or
        while a previous request is still running.
        """
        if self.controller.begin(message.value):
            self.run_infer(message.value)

    @work(exclusive=True, group='infer')
    async def run_infer(self, user_input: str):
        """
        Issue the request and pump its reply into the transcript.
        """
        await self.controller.run(user_input)

    def on_chat_log_viewport_changed(self, message: ChatLog.ViewportChanged) -> None:
        self.controller.resize(message.width, message.height)

    def on_chat_log_scroll_request(self, message: ChatLog.ScrollRequest) -> None:
        self.controller.scroll(message.delta)

    def action_scroll_lines(self, delta: int) -> None:
        self.controller.scroll(delta)

    def action_scroll_pages(self, pages: int) -> None:
        self.controller.page(pages)

    async def action_quit_chat(self) -> None:
        """Release the open stream before leaving."""
        await self.controller.cancel()
        await self.client.aclose()
        self.exit(return_code=0)


def main() -> int:
    settings = Settings.from_env()
    configure_logging(settings)
    app = ChatApp(settings)
    try:
        app.run()
    except Exception as exc:
        logger.exception("terminal UI failed")
        print(f"Alas, there's been an error: {exc}")
        return 1
    return app.return_code or 0


if __name__ == "__main__":
    sys.exit(main())
