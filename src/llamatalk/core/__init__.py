"""
Chat session core: request encoding, stream decoding, transcript and the
session controller.
"""
from .client import OllamaClient, StreamHandle
from .controller import Session, SessionController
from .domain import SessionState
from .errors import ChatError, DecodeError, TransportError

__all__ = [
    "ChatError",
    "DecodeError",
    "OllamaClient",
    "Session",
    "SessionController",
    "SessionState",
    "StreamHandle",
    "TransportError",
]
