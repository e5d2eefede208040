"""
Process-wide entry points.

Thin wrappers over a cached FileGuard and BindingRegistry built from
get_settings(). Code that needs isolated state (tests, multiple
configurations) should construct its own FileGuard / BindingRegistry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Any, TypeVar

from pydantic import ValidationError

from libs.common.exceptions import ConfigurationError
from libs.common.logging.config import configure_logging
from libs.safe_io.config import Settings, get_settings
from libs.safe_io.guard import FileGuard, PathArg
from libs.safe_io.registry import BindingRegistry, Refugee, Safehouse
from libs.safe_io.scope import Scope
from libs.safe_io.serialization import Serializer

T = TypeVar("T")


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid SafeIO settings: {e}") from e


def setup_logging(service_name: str = "safe_io") -> logging.Logger:
    """Configure JSON logging at the level given by ``Settings.log_level``.

    Example:
        >>> # SAFEIO_LOG_LEVEL=DEBUG
        >>> setup_logging("nightly_export").level == logging.DEBUG
        True
    """
    return configure_logging(service_name=service_name, log_level=_load_settings().log_level)


@lru_cache
def get_file_guard() -> FileGuard:
    return FileGuard(_load_settings())


@lru_cache
def get_registry() -> BindingRegistry:
    return BindingRegistry(_load_settings())


def protect(path: PathArg, operation: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run ``operation(path, ...)`` with the existing file at ``path`` backed up.

    Example:
        >>> protect("notes.txt", lambda p: p.write_text("new notes"))
        9
    """
    return get_file_guard().protect(path, operation, *args, **kwargs)


def protected_call(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call ``func`` with the file named by its single ``Protected`` argument backed up."""
    return get_file_guard().protected_call(func, *args, **kwargs)


def protected_store(
    value: Any, path: PathArg | None = None, serializer: Serializer | None = None
) -> Path:
    """Store ``value`` at ``path`` without losing a previous file there."""
    return get_file_guard().protected_store(value, path, serializer)


def assign(
    name: str,
    value: Any,
    scope: Scope,
    house_name: str | None = None,
    allow_constant_overwrite: bool = False,
    constant: bool = False,
) -> Any:
    """Bind ``name`` in ``scope``, housing any previous value in its Safehouse."""
    return get_registry().assign(
        name,
        value,
        scope,
        house_name=house_name,
        allow_constant_overwrite=allow_constant_overwrite,
        constant=constant,
    )


def protected_load(
    name: str,
    path: PathArg,
    scope: Scope,
    serializer: Serializer | None = None,
    house_name: str | None = None,
) -> Any:
    """Load the object stored at ``path`` into ``name`` through ``assign``."""
    return get_registry().protected_load(name, Path(path), scope, serializer, house_name)


def safehouse(scope: Scope, name: str | None = None) -> Safehouse:
    """Get or create the Safehouse bound at ``name`` in ``scope``."""
    return get_registry().get_or_create_safehouse(scope, name)


def retrieve(key: int | str, house: Safehouse) -> Refugee | list[Refugee]:
    """Look up refugees in ``house`` by unique ID or variable name."""
    return get_registry().retrieve(key, house)
