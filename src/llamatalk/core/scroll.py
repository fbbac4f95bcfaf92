"""
Viewport scrolling rules.
"""

from dataclasses import dataclass

NEAR_BOTTOM_SLACK = 3


@dataclass
class ScrollState:
    offset: int = 0
    at_bottom: bool = True


def max_offset(total_lines: int, height: int) -> int:
    return max(0, total_lines - height)


class ScrollPolicy:
    """
    Decides where the viewport goes when content grows or the user scrolls.

    New content only pulls the view down when it was already at, or within a
    few lines of, the bottom. A reader who scrolled back stays where they are.
    """

    def __init__(self, lock_while_streaming: bool = False) -> None:
        self.lock_while_streaming = lock_while_streaming

    def is_near_bottom(self, state: ScrollState, total_lines: int, height: int) -> bool:
        return state.offset >= total_lines - height - NEAR_BOTTOM_SLACK

    def snap_to_bottom(self, state: ScrollState, total_lines: int, height: int) -> None:
        state.offset = max_offset(total_lines, height)
        state.at_bottom = True

    def follow(self, state: ScrollState, was_near_bottom: bool, total_lines: int, height: int) -> None:
        """Apply the auto-follow rule after a content mutation."""
        if was_near_bottom:
            self.snap_to_bottom(state, total_lines, height)
        else:
            self._place(state, state.offset, total_lines, height)

    def scroll(self, state: ScrollState, delta: int, total_lines: int, height: int,
               streaming: bool = False) -> bool:
        """
        Move the viewport by `delta` lines on user request.

        Returns False when the request is suppressed while streaming.
        """
        if streaming and self.lock_while_streaming:
            return False
        self._place(state, state.offset + delta, total_lines, height)
        return True

    def _place(self, state: ScrollState, offset: int, total_lines: int, height: int) -> None:
        bottom = max_offset(total_lines, height)
        state.offset = min(max(offset, 0), bottom)
        state.at_bottom = state.offset >= bottom
