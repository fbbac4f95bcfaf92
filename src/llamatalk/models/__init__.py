"""
Data models for the llamatalk application.
"""
from .turn import Role, Turn

__all__ = ["Role", "Turn"]
