"""
Variable protection.

This module provides:
- Refugee: immutable deep copy of a displaced value, tagged with a unique ID
- Safehouse: per-scope store of refugees, bound inside the scope it protects
- BindingRegistry: guarded assignment that houses the old value before rebinding

State machine of one ``assign`` call:

    validate name -> check constant -> check existing -> bind
         |                 |                  |
    InvalidNameError  ConstantBindingError   house + notice
                      (or warn when forced)

Validation errors are raised before anything is mutated.
"""

from __future__ import annotations

import copy
import keyword
import logging
import weakref
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from libs.safe_io.config import Settings, get_settings
from libs.safe_io.exceptions import (
    ConstantBindingError,
    InvalidNameError,
    RefugeeNotFoundError,
    VariableNotHousedError,
)
from libs.safe_io.identity import IDGenerator, reprhex, unique_id
from libs.safe_io.scope import Scope
from libs.safe_io.serialization import Serializer, get_serializer

logger = logging.getLogger(__name__)


def _validate_name(name: object) -> None:
    if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
        raise InvalidNameError(name)


@dataclass(frozen=True, repr=False)
class Refugee:
    """A displaced value held by a Safehouse.

    Attributes:
        scope_name: Name of the scope the value was displaced from.
        variable: Name the value was bound to.
        id: Unique 32-bit ID.
        housed_at: When the value was captured (local, timezone-aware).
        value: Deep copy of the value at capture time.
    """

    scope_name: str
    variable: str
    id: int
    housed_at: datetime
    value: Any

    @classmethod
    def capture(cls, scope: Scope, variable: str, refugee_id: int) -> Refugee:
        """Deep-copy the current value of ``variable`` out of ``scope``."""
        value = copy.deepcopy(scope.get(variable))
        return cls(
            scope_name=scope.name,
            variable=variable,
            id=refugee_id,
            housed_at=datetime.now().astimezone(),
            value=value,
        )

    @property
    def label(self) -> str:
        return f"{self.variable}#{reprhex(self.id)}"

    def __repr__(self) -> str:
        return f"Refugee({self.label} = {self.value!r})"

    def describe(self) -> str:
        """Multi-line rendering with the capture time."""
        body = "\n  ".join(repr(self.value).splitlines())
        return f"Refugee({self.label}) housed at {self.housed_at.isoformat()}:\n  {body}"


class Safehouse:
    """Store of refugees for one scope.

    ``variables`` maps a variable name to its refugee IDs, oldest first;
    ``refugees`` maps each ID to its Refugee. Every ID in one map appears
    exactly once in the other.

    The Safehouse is bound in the scope it protects, so clearing the scope
    drops it too. It only holds a weak reference back to the scope.
    """

    def __init__(self, scope: Scope, name: str) -> None:
        self.name = name
        self.scope_name = scope.name
        self._scope_ref = weakref.ref(scope)
        self.variables: dict[str, list[int]] = {}
        self.refugees: dict[int, Refugee] = {}

    @property
    def scope(self) -> Scope | None:
        """The protected scope, or None once it has been garbage collected."""
        return self._scope_ref()

    @property
    def qualified_name(self) -> str:
        return f"{self.scope_name}.{self.name}"

    def belongs_to(self, scope: Scope) -> bool:
        return self._scope_ref() is scope

    def admit(self, refugee: Refugee) -> None:
        self.variables.setdefault(refugee.variable, []).append(refugee.id)
        self.refugees[refugee.id] = refugee

    def retrieve(self, key: int | str) -> Refugee | list[Refugee]:
        """Look up one refugee by ID, or every refugee of a variable by name.

        Raises:
            RefugeeNotFoundError: Unknown ID.
            VariableNotHousedError: Name never housed here.
            TypeError: Key is neither an int nor a str.
        """
        if isinstance(key, str):
            if key not in self.variables:
                raise VariableNotHousedError(key, self.qualified_name)
            return [self.refugees[i] for i in self.variables[key]]
        if isinstance(key, int) and not isinstance(key, bool):
            if key not in self.refugees:
                raise RefugeeNotFoundError(key, self.qualified_name)
            return self.refugees[key]
        raise TypeError(f"Safehouse keys are int IDs or str names, not {type(key).__name__}")

    def clear(self) -> Safehouse:
        self.variables.clear()
        self.refugees.clear()
        return self

    def __len__(self) -> int:
        return len(self.refugees)

    def __contains__(self, key: object) -> bool:
        return key in self.variables or key in self.refugees

    def __repr__(self) -> str:
        counts = ", ".join(f"{len(ids)}@{var}" for var, ids in self.variables.items())
        return f"Safehouse({self.qualified_name}: {counts})"

    def describe(self) -> str:
        lines = [
            f"Safehouse {self.qualified_name} with {len(self.refugees)} refugees "
            f"in {len(self.variables)} variables:"
        ]
        for ids in self.variables.values():
            lines.extend(f"  {self.refugees[i]!r}" for i in ids)
        return "\n".join(lines)


class BindingRegistry:
    """Guarded assignment into explicit scopes.

    Keeps a weak-keyed index of the Safehouses it has created or found per
    scope, so the registry never keeps a scope alive on its own.

    Example:
        registry = BindingRegistry()
        scope = Scope("session")

        registry.assign("x", 1, scope)
        registry.assign("x", 2, scope)  # 1 is housed in scope.SAFEHOUSE

        house = registry.get_or_create_safehouse(scope)
        [refugee] = registry.retrieve("x", house)
        refugee.value  # 1
    """

    def __init__(
        self,
        settings: Settings | None = None,
        id_generator: IDGenerator | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._next_id = id_generator or unique_id
        self._houses: weakref.WeakKeyDictionary[Scope, dict[str, Safehouse]] = (
            weakref.WeakKeyDictionary()
        )

    def safehouses(self, scope: Scope) -> dict[str, Safehouse]:
        """Safehouses known for ``scope`` that are still bound in it."""
        known = self._houses.get(scope, {})
        return {
            name: house
            for name, house in known.items()
            if scope.exists(name) and scope.get(name) is house
        }

    def get_or_create_safehouse(self, scope: Scope, name: str | None = None) -> Safehouse:
        """Return the Safehouse bound at ``name`` in ``scope``, creating it if needed.

        If ``name`` is bound to something that is not a Safehouse of this
        scope, that value is housed in a new Safehouse (under a generated
        internal name) which then takes over the binding.
        """
        name = name or self.settings.house_name
        _validate_name(name)
        if scope.exists(name):
            existing = scope.get(name)
            if isinstance(existing, Safehouse) and existing.belongs_to(scope):
                self._houses.setdefault(scope, {})[name] = existing
                return existing
            house = Safehouse(scope, f"{name}#{reprhex(self._next_id())}")
            self.house(name, house)
            self._bind(scope, name, house)
            logger.warning(
                "A variable named `%s` already exists in scope `%s` but is not a Safehouse. "
                "This variable has been housed in a new Safehouse with the given name `%s`.",
                name,
                scope.name,
                name,
                extra={"variable": name, "scope": scope.name, "safehouse": house.name},
            )
            return house
        house = Safehouse(scope, name)
        self._bind(scope, name, house)
        return house

    def house(self, name: str, safehouse: Safehouse) -> Refugee:
        """Capture the current value of ``name`` into ``safehouse``.

        Raises:
            UnboundVariableError: If ``name`` has no value in the Safehouse's scope.
            LookupError: If the Safehouse's scope no longer exists.
        """
        scope = safehouse.scope
        if scope is None:
            raise LookupError(f"Scope of safehouse `{safehouse.qualified_name}` no longer exists")
        refugee = Refugee.capture(scope, name, self._next_id())
        safehouse.admit(refugee)
        return refugee

    def retrieve(self, key: int | str, safehouse: Safehouse) -> Refugee | list[Refugee]:
        """Look up refugees by unique ID (one) or variable name (all, oldest first)."""
        return safehouse.retrieve(key)

    def assign(
        self,
        name: str,
        value: Any,
        scope: Scope,
        house_name: str | None = None,
        allow_constant_overwrite: bool = False,
        constant: bool = False,
    ) -> Any:
        """Bind ``name`` to ``value`` in ``scope``, housing any previous value first.

        Args:
            name: Target variable; must be a legal, non-reserved identifier.
            value: New value.
            scope: Scope to bind in.
            house_name: Safehouse binding name; Settings.house_name when None.
            allow_constant_overwrite: Permit replacing an immutable binding.
            constant: Bind ``name`` as immutable.

        Returns:
            ``value``.

        Raises:
            InvalidNameError: ``name`` or ``house_name`` is not a valid identifier
                or is a keyword.
            ConstantBindingError: ``name`` is immutable and the override is off.
        """
        _validate_name(name)
        house_name = house_name or self.settings.house_name
        _validate_name(house_name)

        was_constant = scope.is_immutable(name)
        if was_constant:
            if not allow_constant_overwrite:
                raise ConstantBindingError(name, scope.name)
            logger.warning(
                "Assigning to constant variable `%s` in %s.",
                name,
                scope.name,
                extra={"variable": name, "scope": scope.name},
            )

        if scope.exists(name):
            refugee = self.house(name, self.get_or_create_safehouse(scope, house_name))
            logger.warning(
                "Variable `%s` already defined in %s. The existing value has been stored "
                "in safehouse `%s.%s` with ID %s.",
                name,
                scope.name,
                scope.name,
                house_name,
                reprhex(refugee.id, True),
                extra={"variable": name, "scope": scope.name, "refugee_id": refugee.id},
            )

        scope.set(name, value, immutable=was_constant or constant)
        return value

    def protected_load(
        self,
        name: str,
        path: str | Path,
        scope: Scope,
        serializer: Serializer | None = None,
        house_name: str | None = None,
    ) -> Any:
        """Load the object stored at ``path`` and ``assign`` it to ``name``."""
        value = (serializer or get_serializer(self.settings.default_format)).load(Path(path))
        return self.assign(name, value, scope, house_name)

    def _bind(self, scope: Scope, name: str, house: Safehouse) -> None:
        scope.set(name, house, immutable=True)
        self._houses.setdefault(scope, {})[name] = house
