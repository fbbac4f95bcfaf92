"""
Display shaping for streamed fragments.

`format_fragment` looks only at the newly arrived fragment (and whether the
text before it ends a line). It must be applied once per fragment: running it
again over already formatted text would insert the breaks twice.
"""

LIST_MARKERS = ('1. ', '2. ', '3. ', '4. ', '5. ', '* ', '- ')


def format_fragment(accumulated: str, fragment: str) -> str:
    """
    Return the text to append to `accumulated` for `fragment`.

    A fragment opening a list item starts on a new line; otherwise every
    ". " sentence break becomes ".\\n", unless the fragment holds an ellipsis.
    """
    if fragment.strip().startswith(LIST_MARKERS):
        if accumulated and not accumulated.endswith('\n'):
            return '\n' + fragment
        return fragment

    if '. ' in fragment and '..' not in fragment:
        return fragment.replace('. ', '.\n')

    return fragment
