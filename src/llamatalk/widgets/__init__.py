"""
Custom UI widgets for the llamatalk application.
"""
from .input_area import InputArea, InputPrompt
from .chat_log import ChatLog

__all__ = ["InputArea", "InputPrompt", "ChatLog"]
