"""
Data models for the llamatalk application.
"""
from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    USER = 'user'
    ASSISTANT = 'assistant'


@dataclass
class Turn:
    """
    Represents a single message in the conversation, written either by the
    user or by the assistant.
    """
    role: Role
    text: str = ""
