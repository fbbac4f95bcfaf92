"""
Ordered log of conversation turns and its line rendering.
"""

from typing import Optional

from llamatalk.models import Role, Turn

ROLE_PREFIX = {
    Role.USER: '🧋 ',
    Role.ASSISTANT: '🦙 ',
}


def wrap_text(text: str, width: int) -> list[str]:
    """Greedy word wrap. A line that already fits is returned untouched."""
    if len(text) <= width:
        return [text]

    words = text.split()
    if not words:
        return ['']

    wrapped: list[str] = []
    current = words[0]
    for word in words[1:]:
        if len(current) + len(word) + 1 > width:
            wrapped.append(current)
            current = word
        else:
            current += ' ' + word
    wrapped.append(current)
    return wrapped


class Transcript:
    """
    Chronological list of turns. Only the last turn may be open; an open turn
    is the assistant reply currently being written.
    """

    def __init__(self) -> None:
        self.turns: list[Turn] = []
        self._open: Optional[Turn] = None
        # wrapped lines of the closed turns, for one width
        self._cache_width = 0
        self._cache_turns = 0
        self._cache_lines: list[str] = []

    def __len__(self) -> int:
        return len(self.turns)

    @property
    def last(self) -> Optional[Turn]:
        return self.turns[-1] if self.turns else None

    @property
    def open_turn(self) -> Optional[Turn]:
        return self._open

    def append(self, role: Role, text: str = '') -> Turn:
        if self._open is not None:
            raise RuntimeError('cannot append while a turn is open')
        turn = Turn(role=role, text=text)
        self.turns.append(turn)
        return turn

    def open_assistant(self) -> Turn:
        turn = self.append(Role.ASSISTANT)
        self._open = turn
        return turn

    def _require_open(self) -> Turn:
        if self._open is None:
            raise RuntimeError('no open turn')
        return self._open

    def extend_open(self, text: str) -> None:
        self._require_open().text += text

    def replace_open(self, text: str) -> None:
        self._require_open().text = text

    def close_open(self) -> None:
        self._open = None

    def render(self, width: int) -> list[str]:
        """
        Flatten the transcript to display lines wrapped to `width`, keeping
        explicit line breaks and a blank line after every turn.
        """
        width = max(width, 1)
        return self._closed_lines(width) + self._open_lines(width)

    def line_count(self, width: int) -> int:
        width = max(width, 1)
        return len(self._closed_lines(width)) + len(self._open_lines(width))

    def _closed_lines(self, width: int) -> list[str]:
        if width != self._cache_width:
            self._cache_width = width
            self._cache_turns = 0
            self._cache_lines = []

        closed = len(self.turns) - (1 if self._open is not None else 0)
        for turn in self.turns[self._cache_turns:closed]:
            self._cache_lines.extend(_turn_lines(turn, width))
        self._cache_turns = closed
        return self._cache_lines

    def _open_lines(self, width: int) -> list[str]:
        if self._open is None:
            return []
        return _turn_lines(self._open, width)


def _turn_lines(turn: Turn, width: int) -> list[str]:
    lines: list[str] = []
    content = ROLE_PREFIX[turn.role] + turn.text
    for paragraph in content.split('\n'):
        lines.extend(wrap_text(paragraph, width))
    lines.append('')
    return lines
