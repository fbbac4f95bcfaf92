"""
Units decoded from the /api/generate stream, and the session states the
controller moves through.
"""

from enum import Enum
from typing import Literal, TypedDict, Union


class GenerateRequest(TypedDict):
    model: str
    prompt: str
    stream: bool


class TokenUnit(TypedDict):
    type: Literal['token']
    text: str


class DoneUnit(TypedDict):
    type: Literal['done']
    text: str


StreamUnit = Union[TokenUnit, DoneUnit]


class SessionState(str, Enum):
    IDLE = 'idle'
    AWAITING_RESPONSE = 'awaiting_response'
    STREAMING = 'streaming'
    FAILED = 'failed'
