"""
State layer: the master snapshot, its mutators and the sync machinery.
"""

from app.state.container import AppState
from app.state.gateway import MutationGateway
from app.state.live import LiveSnapshot
from app.state.reconciler import StateReconciler, SyncStatus, load_local_snapshot
from app.state.session import Session

__all__ = [
    "AppState",
    "LiveSnapshot",
    "MutationGateway",
    "Session",
    "StateReconciler",
    "SyncStatus",
    "load_local_snapshot",
]
