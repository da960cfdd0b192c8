"""
State Layer Exceptions

Typed errors raised at the mutator boundary and by the storage services.

Storage and network errors (LocalStoreError, RemoteMirrorError) are always
caught and logged by the gateway and reconciler; they never reach the user.
The remaining errors carry a user-facing message and are raised before any
state change happens.

Author: Khalil Bannouri
Version: 4.0.0
"""

from typing import Optional


class StateError(Exception):
    """Base class for all state layer errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StateValidationError(StateError):
    """A mutation was rejected because its input is invalid."""


class NotFoundError(StateError):
    """An entity referenced by id does not exist in the current snapshot."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} '{entity_id}' not found")
        self.entity = entity
        self.entity_id = entity_id


class AuthorizationError(StateError):
    """The acting user lacks the right required by a mutation."""

    def __init__(self, message: str, required_right: Optional[str] = None):
        super().__init__(message)
        self.required_right = required_right


class AuthenticationRequired(AuthorizationError):
    """A mutation was attempted without an active session."""

    def __init__(self, message: str = "Please log in to continue"):
        super().__init__(message)


class LocalStoreError(StateError):
    """Reading or writing the local key-value store failed."""


class RemoteMirrorError(StateError):
    """Talking to the remote document store failed."""
