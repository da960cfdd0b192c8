"""Shared fixtures: isolated settings, a controllable clock and client factories."""

from pathlib import Path
from typing import Optional

import pytest

from app.core.config import Settings
from app.services.local_store import LocalStore
from app.services.remote.memory import InMemoryRemoteMirror
from app.state import AppState

START_MS = 1_700_000_000_000
ADMIN_USERNAME = "Ansar"
ADMIN_PASSWORD = "Anudada@007"


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 1) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        data_directory=str(tmp_path / "data"),
        sync_init_timeout_seconds=0.2,
        storage_lock_timeout=2,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(settings: Settings) -> LocalStore:
    return LocalStore(directory=settings.data_path, lock_timeout=settings.storage_lock_timeout)


@pytest.fixture
def mirror() -> InMemoryRemoteMirror:
    return InMemoryRemoteMirror()


@pytest.fixture
def make_state(settings: Settings, clock: FakeClock, tmp_path: Path):
    """Build a client container with its own data directory."""

    def factory(name: str = "client", remote: Optional[InMemoryRemoteMirror] = None) -> AppState:
        return AppState(
            settings=settings,
            store=LocalStore(directory=tmp_path / name, lock_timeout=settings.storage_lock_timeout),
            remote=remote,
            clock=clock,
        )

    return factory


@pytest.fixture
def state(settings: Settings, store: LocalStore, clock: FakeClock) -> AppState:
    """Local-only client."""
    return AppState(settings=settings, store=store, remote=None, clock=clock)


@pytest.fixture
def admin_state(state: AppState) -> AppState:
    assert state.login_staff(ADMIN_USERNAME, ADMIN_PASSWORD)
    return state
