"""
Errors raised while talking to the inference server.

Both kinds are recovered by the session controller: they end the current
request and are shown on the assistant turn, they never stop the app.
"""


class ChatError(Exception):
    """Base class for request and stream failures."""


class TransportError(ChatError):
    """The request could not be sent, or the stream connection dropped."""


class DecodeError(ChatError):
    """A response record could not be decoded."""
