"""
Core module initialization.
Exports configuration, logging utilities and the state layer exceptions.
"""

from app.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from app.core.exceptions import (
    StateError,
    StateValidationError,
    NotFoundError,
    AuthorizationError,
    AuthenticationRequired,
    LocalStoreError,
    RemoteMirrorError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "StateError",
    "StateValidationError",
    "NotFoundError",
    "AuthorizationError",
    "AuthenticationRequired",
    "LocalStoreError",
    "RemoteMirrorError",
]
