"""
Root conftest for tests.

Provides isolated SafeIO components: every test gets its own settings
(temporary backups under tmp_path), guard, registry and scope, and the
process-wide caches and operation ID are reset around each test.
"""

import os
from pathlib import Path

import pytest

from libs.common.logging.context import clear_operation_id
from libs.safe_io.api import get_file_guard, get_registry
from libs.safe_io.config import Settings, get_settings
from libs.safe_io.guard import FileGuard
from libs.safe_io.registry import BindingRegistry
from libs.safe_io.scope import Scope


@pytest.fixture(autouse=True)
def reset_safe_io_state(monkeypatch: pytest.MonkeyPatch):
    """Clear cached settings/components and the operation ID for each test."""
    for var in list(os.environ):
        if var.upper().startswith("SAFEIO_"):
            monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    get_file_guard.cache_clear()
    get_registry.cache_clear()
    clear_operation_id()
    yield
    get_settings.cache_clear()
    get_file_guard.cache_clear()
    get_registry.cache_clear()
    clear_operation_id()


@pytest.fixture
def backup_dir(tmp_path: Path) -> Path:
    """Directory for the guard's temporary backups, apart from the data."""
    return tmp_path / "backups"


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def settings(backup_dir: Path) -> Settings:
    return Settings(backup_dir=backup_dir, display_timezone="UTC")


@pytest.fixture
def guard(settings: Settings) -> FileGuard:
    return FileGuard(settings)


@pytest.fixture
def registry(settings: Settings) -> BindingRegistry:
    return BindingRegistry(settings)


@pytest.fixture
def scope() -> Scope:
    return Scope("Main")
