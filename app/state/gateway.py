"""
Mutation Gateway

The single funnel every accepted mutation passes through. ``commit``:

    1. stamps the snapshot with a strictly increasing millisecond timestamp
    2. swaps it into the live slot (readers see it immediately)
    3. persists it to the local store
    4. schedules an overwrite of the remote document, if a mirror is set

Steps 1-3 are synchronous. Step 4 is fire-and-forget: a failed remote write
is logged, never retried, and never rolls back the local commit.

Author: Khalil Bannouri
Version: 4.0.0
"""

import asyncio
import logging
from typing import Callable, Optional

from app.core.exceptions import LocalStoreError, RemoteMirrorError
from app.schemas import MasterState
from app.services.local_store import LocalStore
from app.services.remote.base import BaseRemoteMirror
from app.state.defaults import now_ms
from app.state.live import LiveSnapshot

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


class MutationGateway:
    """Timestamps, persists and republishes snapshots."""

    def __init__(
        self,
        live: LiveSnapshot,
        store: LocalStore,
        storage_key: str,
        remote: Optional[BaseRemoteMirror] = None,
        clock: Clock = now_ms,
    ):
        self._live = live
        self._store = store
        self._storage_key = storage_key
        self._remote = remote
        self._clock = clock
        self._pending: set[asyncio.Task] = set()

    @property
    def pending_remote_writes(self) -> int:
        return len(self._pending)

    def next_timestamp(self) -> int:
        """Wall clock, bumped past the current snapshot when the clock has not moved."""
        return max(self._clock(), self._live.current.timestamp + 1)

    def commit(self, snapshot: MasterState) -> MasterState:
        """
        Accept a new snapshot.

        Args:
            snapshot: Next state computed by a mutator; its timestamp is ignored

        Returns:
            The stamped snapshot now held in the live slot
        """
        stamped = snapshot.model_copy(update={"timestamp": self.next_timestamp()})

        self._live.replace(stamped)
        self.persist_local(stamped)

        if self._remote is not None:
            self.push_remote(stamped)

        logger.debug(f"Committed snapshot ts={stamped.timestamp}")
        return stamped

    def persist_local(self, snapshot: MasterState) -> None:
        try:
            self._store.set(self._storage_key, snapshot.to_document())
        except LocalStoreError as e:
            logger.error(f"Local persist failed (ts={snapshot.timestamp}): {e}")

    def push_remote(self, snapshot: MasterState) -> None:
        """Schedule a remote overwrite without waiting for it."""
        if self._remote is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Called outside the event loop (scripts, shells): write in-line.
            asyncio.run(self._write_remote(snapshot))
            return

        task = loop.create_task(self._write_remote(snapshot))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_remote(self, snapshot: MasterState) -> None:
        try:
            await self._remote.write(snapshot.to_document())
            logger.debug(f"Remote mirror updated (ts={snapshot.timestamp})")
        except RemoteMirrorError as e:
            logger.error(f"Cloud sync failed (ts={snapshot.timestamp}): {e}")
        except Exception as e:
            logger.exception(f"Unexpected error writing remote mirror: {e}")

    async def flush(self) -> None:
        """Wait for scheduled remote writes to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
