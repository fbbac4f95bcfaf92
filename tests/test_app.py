import pytest

from llamatalk.app import ChatApp, main
from llamatalk.config import Settings
from llamatalk.core.domain import SessionState
from llamatalk.widgets import ChatLog, InputPrompt
from llamatalk.widgets.input_area import PROMPT

from .conftest import RecordingClient, StalledStream, ndjson, record, stream_handler


async def wait_for(pilot, predicate, attempts: int = 200) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await pilot.pause(0.01)
    raise AssertionError("condition not reached")


@pytest.mark.asyncio
async def test_enter_submits_and_reply_is_drawn():
    client = RecordingClient(stream_handler(ndjson(["Hel", "lo!"])))
    app = ChatApp(Settings(), client=client)

    async with app.run_test() as pilot:
        await pilot.press("h", "i", "enter")
        await wait_for(pilot, lambda: app.controller.state is SessionState.IDLE
                       and len(app.controller.transcript) == 2)

        assert app.controller.transcript.last.text == "Hello!"
        chat_log = app.query_one("#chat_log", ChatLog)
        assert chat_log.visible_lines() == ["🧋 hi", "", "🦙 Hello!", ""]

        await pilot.press("escape")

    assert app.return_code == 0


@pytest.mark.asyncio
async def test_empty_enter_is_ignored():
    client = RecordingClient(stream_handler(ndjson(["x"])))
    app = ChatApp(Settings(), client=client)

    async with app.run_test() as pilot:
        await pilot.press("enter")
        await pilot.pause()
        assert len(app.controller.transcript) == 0
        assert client.requests == []
        await pilot.press("ctrl+c")

    assert app.return_code == 0


@pytest.mark.asyncio
async def test_quit_mid_stream_releases_connection():
    stalled = StalledStream(record("Hel"))
    client = RecordingClient(stalled.handler)
    app = ChatApp(Settings(), client=client)

    async with app.run_test() as pilot:
        await pilot.press("h", "i", "enter")
        await wait_for(pilot, stalled.sent.is_set)
        assert app.controller.state is SessionState.STREAMING

        await pilot.press("escape")

    [handle] = client.handles
    assert handle.closed
    assert handle.close_calls == 1
    assert app.return_code == 0


@pytest.mark.asyncio
async def test_prompt_is_drawn_beside_input():
    client = RecordingClient(stream_handler(ndjson(["x"])))
    app = ChatApp(Settings(), client=client)

    async with app.run_test() as pilot:
        prompt = app.query_one("#prompt", InputPrompt)
        assert str(prompt.render()) == PROMPT == " > "
        assert prompt.region.right <= app.query_one("#input_text").region.x
        await pilot.press("escape")


@pytest.fixture
def quiet_settings(monkeypatch):
    monkeypatch.setattr(Settings, "from_env", classmethod(lambda cls, env=None: Settings()))


def test_main_reports_terminal_failure(monkeypatch, capsys, quiet_settings):
    def broken_run(self, *args, **kwargs):
        raise RuntimeError("no tty")

    monkeypatch.setattr(ChatApp, "run", broken_run)

    assert main() == 1
    assert "Alas, there's been an error: no tty" in capsys.readouterr().out


def test_main_passes_on_return_code(monkeypatch, quiet_settings):
    monkeypatch.setattr(ChatApp, "run", lambda self, *args, **kwargs: None)

    monkeypatch.setattr(ChatApp, "return_code", property(lambda self: 2))
    assert main() == 2

    monkeypatch.setattr(ChatApp, "return_code", property(lambda self: None))
    assert main() == 0
