"""Live snapshot slot shared by the gateway and the reconciler."""

import logging
from typing import Callable

from app.schemas import MasterState

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[MasterState], None]


class LiveSnapshot:
    """
    Holds the authoritative in-memory snapshot.

    ``replace`` swaps the reference in one step, so readers only ever see a
    complete snapshot, then republishes it to listeners.
    """

    def __init__(self, snapshot: MasterState):
        self._snapshot = snapshot
        self._listeners: list[SnapshotListener] = []

    @property
    def current(self) -> MasterState:
        return self._snapshot

    def replace(self, snapshot: MasterState) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.exception(f"Snapshot listener raised: {e}")

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
