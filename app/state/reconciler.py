"""
State Reconciler

Decides which snapshot is authoritative at startup and folds remote changes
into the live slot afterwards.

Rules:
    - Startup: the stored local snapshot, or the seed stamped with "now"
    - Remote document absent: bootstrap it from the local snapshot
    - Remote document present: adopt it only if its timestamp is strictly
      greater than the live one (this also drops our own echoes)
    - Any remote failure: log it and carry on in local-only mode

``initializing`` starts True and flips to False exactly once: on the first
remote event, on a remote error, when the startup window times out, or
immediately when there is no remote mirror.

Author: Khalil Bannouri
Version: 4.0.0
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from pydantic import ValidationError

from app.core.config import Settings
from app.core.exceptions import LocalStoreError
from app.schemas import MasterState
from app.services.local_store import LocalStore
from app.services.remote.base import BaseRemoteMirror, Unsubscribe
from app.state.defaults import default_snapshot, restore_snapshot
from app.state.gateway import MutationGateway
from app.state.live import LiveSnapshot

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    LOCAL = "local"
    CONNECTING = "connecting"
    CLOUD_ACTIVE = "cloud-active"
    ERROR = "error"


def load_local_snapshot(
    store: LocalStore,
    storage_key: str,
    clock: Callable[[], int],
    settings: Optional[Settings] = None,
) -> MasterState:
    """Last stored snapshot, or the seed when nothing usable is stored."""
    try:
        document = store.get(storage_key)
    except LocalStoreError as e:
        logger.warning(f"Could not read local snapshot, starting from seed: {e}")
        document = None

    if isinstance(document, dict):
        try:
            snapshot = restore_snapshot(document, fallback_timestamp=clock(), settings=settings)
            logger.info(f"Loaded local snapshot (ts={snapshot.timestamp})")
            return snapshot
        except ValidationError as e:
            logger.warning(f"Stored snapshot is invalid, starting from seed: {e}")

    snapshot = default_snapshot(timestamp=clock(), settings=settings)
    logger.info(f"Starting from seed snapshot (ts={snapshot.timestamp})")
    return snapshot


class StateReconciler:
    """Keeps the live slot in step with the remote mirror."""

    def __init__(
        self,
        live: LiveSnapshot,
        gateway: MutationGateway,
        remote: Optional[BaseRemoteMirror] = None,
        init_timeout: float = 5.0,
        settings: Optional[Settings] = None,
    ):
        self._live = live
        self._gateway = gateway
        self._remote = remote
        self._init_timeout = init_timeout
        self._settings = settings
        self._initializing = True
        self._ready = asyncio.Event()
        self._unsubscribe: Optional[Unsubscribe] = None
        self.sync_status = SyncStatus.CONNECTING if remote is not None else SyncStatus.LOCAL

    @property
    def initializing(self) -> bool:
        return self._initializing

    async def start(self) -> None:
        """Open the remote subscription and wait, bounded, for the first event."""
        if self._remote is None:
            if self.sync_status != SyncStatus.ERROR:
                logger.info("No remote mirror configured; running local-only")
            self._finish_initializing()
            return

        try:
            self._unsubscribe = await asyncio.wait_for(
                self._remote.subscribe(self.handle_remote_document, self.handle_remote_error),
                timeout=self._init_timeout,
            )
        except Exception as e:
            self.mark_remote_failed(f"subscribe failed: {e!r}")
            return

        if self._initializing:
            try:
                await asyncio.wait_for(self._ready.wait(), timeout=self._init_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"No remote event within {self._init_timeout}s; continuing with local snapshot"
                )
                self._finish_initializing()

    def handle_remote_document(self, document: Optional[dict]) -> None:
        """Fold one remote notification into the live slot."""
        if document is None:
            logger.info("Remote document missing; bootstrapping it from the local snapshot")
            self._gateway.push_remote(self._live.current)
        else:
            self._adopt_if_newer(document)

        self.sync_status = SyncStatus.CLOUD_ACTIVE
        self._finish_initializing()

    def _adopt_if_newer(self, document: dict) -> None:
        try:
            incoming = restore_snapshot(document, fallback_timestamp=0, settings=self._settings)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid remote document: {e}")
            return

        current = self._live.current
        if incoming.timestamp <= current.timestamp:
            logger.debug(
                f"Remote snapshot ts={incoming.timestamp} not newer than ts={current.timestamp}; ignored"
            )
            return

        self._live.replace(incoming)
        self._gateway.persist_local(incoming)
        logger.info(f"Adopted remote snapshot (ts={incoming.timestamp}, was {current.timestamp})")

    def handle_remote_error(self, error: Exception) -> None:
        logger.error(f"Remote subscription error: {error}")
        self.sync_status = SyncStatus.ERROR
        self._finish_initializing()

    def mark_remote_failed(self, reason: str) -> None:
        """Record a remote setup failure and fall back to local-only mode."""
        logger.warning(f"Remote mirror unavailable ({reason}); running local-only")
        self.sync_status = SyncStatus.ERROR
        self._finish_initializing()

    def _finish_initializing(self) -> None:
        if self._initializing:
            self._initializing = False
            self._ready.set()
            logger.info(f"State ready (sync={self.sync_status.value})")

    async def stop(self) -> None:
        if self._unsubscribe is None:
            return
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        try:
            await unsubscribe()
        except Exception as e:
            logger.warning(f"Error closing remote subscription: {e}")
