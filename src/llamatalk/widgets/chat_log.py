"""
Transcript viewport widget.
"""
from rich.text import Text
from textual import events
from textual.message import Message
from textual.widget import Widget

from llamatalk.core.controller import Session

SPINNER_FRAMES = ["✨.", "✨.", "✨.."]
SPINNER_INTERVAL = 0.5
MARGIN = 4
WHEEL_LINES = 3


class ChatLog(Widget):
    """
    Draws the window of transcript lines chosen by the session's scroll
    state. Scrolling itself is decided by the controller; this widget only
    reports wheel input and size changes.
    """

    class ScrollRequest(Message, bubble=True):
        def __init__(self, delta: int) -> None:
            super().__init__()
            self.delta = delta

    class ViewportChanged(Message, bubble=True):
        def __init__(self, width: int, height: int) -> None:
            super().__init__()
            self.width = width
            self.height = height

    def __init__(self, session: Session, id: str | None = None) -> None:
        super().__init__(id=id)
        self.session = session
        self.spinner_index = 0

    def on_mount(self) -> None:
        self.set_interval(SPINNER_INTERVAL, self._tick)

    def _tick(self) -> None:
        if self.session.waiting:
            self.spinner_index = (self.spinner_index + 1) % len(SPINNER_FRAMES)
            self.refresh()
        else:
            self.spinner_index = 0

    @property
    def text_width(self) -> int:
        return max(self.size.width - MARGIN, 1)

    @property
    def text_height(self) -> int:
        # last row is kept for the spinner
        return max(self.size.height - 1, 1)

    def on_resize(self, event: events.Resize) -> None:
        self.post_message(self.ViewportChanged(self.text_width, self.text_height))

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        event.stop()
        self.post_message(self.ScrollRequest(-WHEEL_LINES))

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        event.stop()
        self.post_message(self.ScrollRequest(WHEEL_LINES))

    def visible_lines(self) -> list[str]:
        lines = self.session.transcript.render(self.text_width)
        offset = self.session.scroll.offset
        return lines[offset:offset + self.text_height]

    def render(self) -> Text:
        lines = self.visible_lines()
        if self.session.waiting:
            lines.append(SPINNER_FRAMES[self.spinner_index])
        return Text("\n".join(lines))
