"""
Remote Mirror Abstract Base Class

Defines the interface contract for the optional remote document store that
mirrors the master snapshot between clients. Both InMemoryRemoteMirror and
RedisRemoteMirror implement these methods.

The store holds exactly one document at a fixed logical path. A missing
document is a valid state meaning "not yet bootstrapped"; the first client
that notices it writes its own snapshot there.

Author: Khalil Bannouri
Version: 4.0.0
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional


# Called with the current document (or None) on subscribe and after every write.
DocumentListener = Callable[[Optional[dict]], None]

# Called when a standing subscription breaks after it was opened.
ErrorListener = Callable[[Exception], None]

Unsubscribe = Callable[[], Awaitable[None]]


class BaseRemoteMirror(ABC):
    """
    Abstract base class for remote mirror implementations.

    Example:
        >>> mirror = get_remote_mirror()
        >>> unsubscribe = await mirror.subscribe(on_document)
        >>> await mirror.write(snapshot.to_document())
        >>> await unsubscribe()
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the mirror provider.

        Returns:
            str: Provider name (e.g., "memory", "redis")
        """
        pass

    @abstractmethod
    async def read(self) -> Optional[dict]:
        """
        Fetch the shared document.

        Returns:
            The document, or None if it was never written

        Raises:
            RemoteMirrorError: The store could not be reached
        """
        pass

    @abstractmethod
    async def write(self, document: dict) -> None:
        """
        Overwrite the shared document and notify subscribers.

        Raises:
            RemoteMirrorError: The store could not be reached
        """
        pass

    @abstractmethod
    async def subscribe(
        self,
        listener: DocumentListener,
        on_error: Optional[ErrorListener] = None,
    ) -> Unsubscribe:
        """
        Open a standing subscription to the shared document.

        The listener receives the current document right away (None when
        absent) and then every document written afterwards, including the
        subscriber's own writes.

        Args:
            listener: Receives each document
            on_error: Receives errors that break the subscription later on

        Returns:
            Coroutine function that closes the subscription

        Raises:
            RemoteMirrorError: The subscription could not be opened
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the remote store.

        Returns:
            bool: True if the store is reachable
        """
        pass

    async def close(self) -> None:
        """Release connections held by the mirror."""
        return None
