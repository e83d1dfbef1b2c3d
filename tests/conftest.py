"""Pytest configuration and fixtures for acona tests.

Every store is built on directories under pytest's tmp_path; staging files
live next to the store root so commits stay on one filesystem.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from acona.storage.local_store import LocalStore, LocalStoreConfig
from acona.storage.root_store import RootStore

TRACING_ENV_VARS = (
    "ACONA_OTEL_ENABLED",
    "ACONA_OTEL_TEST_CAPTURE",
    "ACONA_REQUIRE_OTEL",
)


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep process environment from leaking configuration into tests."""
    for key in (
        "ACONA_CONFIG",
        "ACONA_LOCAL_ROOT_DIR",
        "ACONA_TEMP_DIR",
        "ACONA_CHECK_INPUT_HASH",
        *TRACING_ENV_VARS,
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    """Directory for staging files."""
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def make_local_store(tmp_path: Path, staging_dir: Path) -> Callable[..., LocalStore]:
    """Factory for local stores, each with its own root directory."""

    def _make(name: str, *, check_input_hash: bool = False) -> LocalStore:
        root_dir = tmp_path / "roots" / name
        root_dir.mkdir(parents=True)
        config = LocalStoreConfig(
            root_dir=str(root_dir),
            temp_dir=str(staging_dir),
            check_input_hash=check_input_hash,
        )
        return LocalStore(name, "", config)

    return _make


@pytest.fixture
def local_store(make_local_store: Callable[..., LocalStore]) -> LocalStore:
    """Local store named "local" with checksum verification enabled."""
    return make_local_store("local", check_input_hash=True)


@pytest.fixture
def photos(make_local_store: Callable[..., LocalStore]) -> LocalStore:
    return make_local_store("photos")


@pytest.fixture
def docs(make_local_store: Callable[..., LocalStore]) -> LocalStore:
    return make_local_store("docs")


@pytest.fixture
def root_store(photos: LocalStore, docs: LocalStore) -> RootStore:
    """Composite store over "photos" and "docs"."""
    return RootStore("root", "", [photos, docs])
