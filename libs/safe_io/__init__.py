"""
Overwrite protection for files and variable bindings.

This package provides:
- FileGuard: snapshot, verify and back up files around caller-supplied writes
- BindingRegistry: guarded assignment with Safehouse/Refugee value history
- Scope: explicit binding namespace used by the registry
- Serializers: pickle/JSON store and load collaborators
- Module-level entry points bound to process-wide defaults

Example Usage:

    from libs.safe_io import Scope, assign, protect, protected_store, retrieve, safehouse

    # Files: the old results.pkl is kept as results_<8 hex>.pkl if it changes
    protected_store({"sharpe": 1.2}, "results.pkl")

    # Bindings: the displaced value lands in scope.SAFEHOUSE
    scope = Scope("session")
    assign("weights", [0.5, 0.5], scope)
    assign("weights", [0.6, 0.4], scope)
    [old] = retrieve("weights", safehouse(scope))
    old.value  # [0.5, 0.5]
"""

from libs.safe_io.api import (
    assign,
    get_file_guard,
    get_registry,
    protect,
    protected_call,
    protected_load,
    protected_store,
    retrieve,
    safehouse,
    setup_logging,
)
from libs.safe_io.config import Settings, get_settings
from libs.safe_io.exceptions import (
    BackupError,
    ConstantBindingError,
    DeserializationError,
    InvalidNameError,
    NotFoundError,
    PartialWriteError,
    ProtectedArgumentError,
    RefugeeNotFoundError,
    UnboundVariableError,
    VariableNotHousedError,
)
from libs.safe_io.guard import FileGuard, Protected
from libs.safe_io.identity import UniqueIDGenerator, reprhex, unique_id
from libs.safe_io.registry import BindingRegistry, Refugee, Safehouse
from libs.safe_io.scope import Scope
from libs.safe_io.serialization import (
    JsonSerializer,
    PickleSerializer,
    Serializer,
    get_serializer,
    unsafe_load,
    unsafe_store,
)
from libs.safe_io.types import BackupRecord

__all__ = [
    # Entry points
    "protect",
    "protected_call",
    "protected_store",
    "assign",
    "protected_load",
    "safehouse",
    "retrieve",
    "get_file_guard",
    "get_registry",
    "setup_logging",
    # File guard
    "FileGuard",
    "Protected",
    "BackupRecord",
    # Binding registry
    "BindingRegistry",
    "Safehouse",
    "Refugee",
    "Scope",
    # Identity
    "UniqueIDGenerator",
    "unique_id",
    "reprhex",
    # Serialization
    "Serializer",
    "PickleSerializer",
    "JsonSerializer",
    "get_serializer",
    "unsafe_store",
    "unsafe_load",
    # Configuration
    "Settings",
    "get_settings",
    # Exceptions
    "NotFoundError",
    "RefugeeNotFoundError",
    "VariableNotHousedError",
    "UnboundVariableError",
    "InvalidNameError",
    "ConstantBindingError",
    "BackupError",
    "ProtectedArgumentError",
    "PartialWriteError",
    "DeserializationError",
]
