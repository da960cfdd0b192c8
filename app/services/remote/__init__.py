"""
Remote Mirror Factory

Provides a single entry point for obtaining the remote mirror, or None when
remote sync is disabled and clients run in local-only mode.

Environment Switching:
    - REMOTE_SYNC_ENABLED=false → None (local-only)
    - ENV_MODE=development → InMemoryRemoteMirror (shared within the process)
    - ENV_MODE=staging/production → RedisRemoteMirror

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
from functools import lru_cache
from typing import Optional

from app.core.config import get_settings
from app.services.remote.base import (
    BaseRemoteMirror,
    DocumentListener,
    ErrorListener,
    Unsubscribe,
)
from app.services.remote.memory import InMemoryRemoteMirror
from app.services.remote.redis_store import RedisRemoteMirror

logger = logging.getLogger(__name__)


@lru_cache()
def get_remote_mirror() -> Optional[BaseRemoteMirror]:
    """
    Get the configured remote mirror instance.

    Returns:
        BaseRemoteMirror or None when remote sync is disabled

    Raises:
        ValueError: If remote sync is enabled outside development without REDIS_URL
    """
    settings = get_settings()

    if not settings.remote_sync_enabled:
        logger.info("Remote Mirror: disabled (local-only mode)")
        return None

    if settings.is_development:
        logger.info("Remote Mirror: Using InMemoryRemoteMirror (development mode)")
        return InMemoryRemoteMirror()

    logger.info(
        f"Remote Mirror: Using RedisRemoteMirror "
        f"({settings.env_mode.value} mode)"
    )
    return RedisRemoteMirror()


def reset_remote_mirror() -> None:
    """
    Clear the cached mirror instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_remote_mirror.cache_clear()
    logger.debug("Remote mirror cache cleared")


__all__ = [
    "get_remote_mirror",
    "reset_remote_mirror",
    "BaseRemoteMirror",
    "DocumentListener",
    "ErrorListener",
    "Unsubscribe",
    "InMemoryRemoteMirror",
    "RedisRemoteMirror",
]
