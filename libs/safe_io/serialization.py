"""
Object serialization collaborators.

The guard and the registry only depend on two operations, ``store(value,
path)`` and ``load(path)``. This module provides:
- Serializer: the protocol both sides consume
- PickleSerializer / JsonSerializer implementations
- Atomic writes using temp file + rename
- unsafe_store / unsafe_load that bypass protection with a warning
"""

from __future__ import annotations

import json
import logging
import os
import pickle
import shutil
import stat
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from libs.safe_io.config import get_settings
from libs.safe_io.exceptions import DeserializationError, PartialWriteError

logger = logging.getLogger(__name__)


@runtime_checkable
class Serializer(Protocol):
    """Two-operation storage contract."""

    extension: str

    def store(self, value: Any, path: Path) -> None: ...

    def load(self, path: Path) -> Any: ...


# =============================================================================
# Atomic Write Utilities
# =============================================================================


def _atomic_write_bytes(path: Path, data: bytes) -> None:
    """Atomically write bytes to file using temp + rename.

    An existing target keeps its permission bits; the temp file is created
    0600 by mkstemp and gets the old mode before the rename.

    Args:
        path: Target path.
        data: Bytes to write.

    Raises:
        PartialWriteError: If write fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        previous_mode: int | None = stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        previous_mode = None

    # Temp file in the same directory so the rename stays on one filesystem
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_")
    try:
        # fdopen owns the descriptor from here; the buffered write loops until done
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if previous_mode is not None:
            os.chmod(temp_path, previous_mode)
        shutil.move(temp_path, path)
    except Exception as e:
        try:
            os.unlink(temp_path)
        except OSError as unlink_err:
            logger.warning(
                "Failed to unlink temp file during cleanup",
                extra={"temp_path": temp_path, "error": str(unlink_err)},
            )
        raise PartialWriteError(path, str(e)) from e


# =============================================================================
# Serializers
# =============================================================================


class PickleSerializer:
    """Pickle-backed serializer for arbitrary Python objects."""

    extension = ".pkl"

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL) -> None:
        self.protocol = protocol

    def store(self, value: Any, path: Path) -> None:
        _atomic_write_bytes(Path(path), pickle.dumps(value, protocol=self.protocol))

    def load(self, path: Path) -> Any:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Stored object not found: {path}")
        try:
            with open(path, "rb") as f:
                return pickle.load(f)  # noqa: S301 (loading caller-owned files)
        except Exception as e:
            raise DeserializationError(path, str(e)) from e

    def __repr__(self) -> str:
        return f"PickleSerializer(protocol={self.protocol})"


class JsonSerializer:
    """JSON serializer for plain data (dicts, lists, strings, numbers)."""

    extension = ".json"

    def __init__(self, indent: int | None = 2) -> None:
        self.indent = indent

    def store(self, value: Any, path: Path) -> None:
        content = json.dumps(value, indent=self.indent, sort_keys=True)
        _atomic_write_bytes(Path(path), content.encode("utf-8"))

    def load(self, path: Path) -> Any:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Stored object not found: {path}")
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DeserializationError(path, str(e)) from e

    def __repr__(self) -> str:
        return f"JsonSerializer(indent={self.indent})"


_SERIALIZERS: dict[str, type[PickleSerializer] | type[JsonSerializer]] = {
    "pickle": PickleSerializer,
    "json": JsonSerializer,
}


def get_serializer(fmt: str | None = None) -> Serializer:
    """Resolve a serializer by format name.

    Args:
        fmt: "pickle" or "json". Defaults to Settings.default_format.

    Raises:
        ValueError: If the format is unknown.
    """
    fmt = fmt or get_settings().default_format
    try:
        return _SERIALIZERS[fmt]()
    except KeyError:
        raise ValueError(
            f"Unknown serialization format {fmt!r}; expected one of {sorted(_SERIALIZERS)}"
        ) from None


def unsafe_store(
    value: Any, path: str | os.PathLike[str], serializer: Serializer | None = None, *, quiet: bool = False
) -> Path:
    """Store ``value`` at ``path`` without protecting an existing file."""
    if not quiet:
        logger.warning("`unsafe_store` may overwrite existing files. Use `protected_store` instead.")
    path = Path(path)
    (serializer or get_serializer()).store(value, path)
    return path


def unsafe_load(
    path: str | os.PathLike[str], serializer: Serializer | None = None, *, quiet: bool = False
) -> Any:
    """Load the object at ``path`` for binding outside the registry."""
    if not quiet:
        logger.warning("`unsafe_load` could overwrite existing variables. Use `protected_load` instead.")
    return (serializer or get_serializer()).load(Path(path))
