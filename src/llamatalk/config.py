"""
Runtime settings, read from the environment (and a .env file if present).
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

import httpx
from dotenv import load_dotenv

DEFAULT_BASE_URL = 'http://localhost:11434'
DEFAULT_MODEL = 'llama3.2'

_TRUE = {'1', 'true', 'yes', 'on'}
_FALSE = {'0', 'false', 'no', 'off'}


def _parse_bool(raw: Optional[str], default: bool) -> bool:
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return default


def _parse_base_url(raw: Optional[str]) -> str:
    """Accept OLLAMA_HOST with or without a scheme; anything unusable falls back."""
    value = (raw or '').strip()
    if not value:
        return DEFAULT_BASE_URL
    if '://' not in value:
        value = f'http://{value}'
    try:
        url = httpx.URL(value)
        port = url.port
    except (httpx.InvalidURL, ValueError):
        return DEFAULT_BASE_URL
    if url.scheme not in ('http', 'https') or not url.host:
        return DEFAULT_BASE_URL
    if port is not None and not 0 < port < 65536:
        return DEFAULT_BASE_URL
    return value


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


@dataclass
class Settings:
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    stream: bool = True
    timeout: Optional[float] = None     # None: wait forever
    scroll_lock: bool = False           # suppress user scrolling while streaming
    log_file: Optional[str] = None
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'Settings':
        if env is None:
            load_dotenv()
            env = os.environ

        return cls(
            base_url=_parse_base_url(env.get('OLLAMA_HOST')),
            model=env.get('LLAMATALK_MODEL', '').strip() or DEFAULT_MODEL,
            stream=_parse_bool(env.get('LLAMATALK_STREAM'), True),
            timeout=_parse_timeout(env.get('LLAMATALK_TIMEOUT')),
            scroll_lock=_parse_bool(env.get('LLAMATALK_SCROLL_LOCK'), False),
            log_file=env.get('LLAMATALK_LOG_FILE', '').strip() or None,
            log_level=env.get('LLAMATALK_LOG_LEVEL', '').strip().upper() or 'INFO',
        )


def configure_logging(settings: Settings) -> None:
    """
    The terminal belongs to the UI, so logs only go to a file when one is
    configured.
    """
    logger = logging.getLogger('llamatalk')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if not settings.log_file:
        logger.addHandler(logging.NullHandler())
        return

    handler = logging.FileHandler(settings.log_file, encoding='utf-8')
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
    logger.addHandler(handler)

    level = logging.getLevelName(settings.log_level)
    logger.setLevel(level if isinstance(level, int) else logging.INFO)
    logger.propagate = False
