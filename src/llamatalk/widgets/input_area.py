"""
Prompt entry widget.
"""
from rich.text import Text
from textual.widget import Widget
from textual.widgets import Input
from textual.message import Message

PLACEHOLDER = "What's going on?"
CHAR_LIMIT = 256
PROMPT = " > "


class InputPrompt(Widget):
    """Marker drawn to the left of the input box."""
    DEFAULT_CSS = """
InputPrompt {
    width: auto;
    height: 3;
    content-align: left middle;
}
    """

    def render(self) -> Text:
        return Text(PROMPT)


class InputArea(Input):
    class Submit(Message, bubble=True):
        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, id: str | None = None) -> None:
        super().__init__(id=id, placeholder=PLACEHOLDER, max_length=CHAR_LIMIT)

    async def on_key(self, event) -> None:
        if event.key == "enter":
            event.stop()
            event.prevent_default()
            self.post_message(self.Submit(self.value))
            self.value = ""
