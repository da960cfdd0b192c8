"""
In-Memory Remote Mirror Implementation

Keeps the shared document in process memory. Used in development mode
(ENV_MODE=development) and by the tests: every client container created in
the same process sees the same document, which is enough to exercise
bootstrap, echo suppression and last-writer-wins between two clients.

Behavior:
    - Listeners are called synchronously after each write, with a deep copy
    - ``available = False`` makes every call raise RemoteMirrorError
    - Optional simulated latency and random failure rate

Author: Khalil Bannouri
Version: 4.0.0
"""

import asyncio
import copy
import logging
import random
from typing import Optional

from app.core.exceptions import RemoteMirrorError
from app.services.remote.base import (
    BaseRemoteMirror,
    DocumentListener,
    ErrorListener,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


class InMemoryRemoteMirror(BaseRemoteMirror):
    """
    In-process implementation of the remote mirror.

    Attributes:
        failure_rate: Probability of simulated failure (0.0-1.0)
        min_latency: Minimum response time in seconds
        max_latency: Maximum response time in seconds
        available: When False every operation fails
        write_count: Number of successful writes
    """

    def __init__(
        self,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
        document: Optional[dict] = None,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.available = True
        self.write_count = 0

        self._document = copy.deepcopy(document)
        self._listeners: list[DocumentListener] = []

        logger.info(f"InMemoryRemoteMirror initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "memory"

    @property
    def document(self) -> Optional[dict]:
        """Current document, for inspection."""
        return copy.deepcopy(self._document)

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    async def _simulate_latency(self) -> None:
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _check_available(self) -> None:
        if not self.available:
            raise RemoteMirrorError("Remote mirror unavailable")
        if self.failure_rate and random.random() < self.failure_rate:
            raise RemoteMirrorError("Simulated remote mirror failure")

    def _deliver(self, listener: DocumentListener) -> None:
        try:
            listener(copy.deepcopy(self._document))
        except Exception as e:
            logger.exception(f"Remote listener raised: {e}")

    async def read(self) -> Optional[dict]:
        await self._simulate_latency()
        self._check_available()
        return copy.deepcopy(self._document)

    async def write(self, document: dict) -> None:
        await self._simulate_latency()
        self._check_available()

        self._document = copy.deepcopy(document)
        self.write_count += 1
        logger.debug(f"Memory mirror write #{self.write_count} (ts={document.get('_timestamp')})")

        for listener in list(self._listeners):
            self._deliver(listener)

    async def subscribe(
        self,
        listener: DocumentListener,
        on_error: Optional[ErrorListener] = None,
    ) -> Unsubscribe:
        await self._simulate_latency()
        self._check_available()

        self._listeners.append(listener)
        self._deliver(listener)

        async def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def health_check(self) -> bool:
        return self.available
