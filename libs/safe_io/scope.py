"""
Explicit binding scopes.

A Scope is the namespace guarded assignment works against: a plain mapping
from names to values plus a set of names that are marked immutable. ``Scope.set``
binds without protection; ``BindingRegistry.assign`` is the guarded way in.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from libs.safe_io.exceptions import UnboundVariableError


class Scope:
    """Named mapping of variable bindings with immutability flags.

    Scopes compare and hash by identity, so they can key weak mappings.

    Example:
        >>> scope = Scope("Main")
        >>> scope.set("x", 1)
        >>> scope.set("PI", 3.14159, immutable=True)
        >>> scope.get("x"), scope.is_immutable("PI")
        (1, True)
    """

    def __init__(self, name: str = "Main", bindings: dict[str, Any] | None = None) -> None:
        self.name = name
        self._values: dict[str, Any] = dict(bindings or {})
        self._immutable: set[str] = set()

    def exists(self, name: str) -> bool:
        return name in self._values

    def get(self, name: str) -> Any:
        """Return the value bound to ``name``.

        Raises:
            UnboundVariableError: If ``name`` has no binding.
        """
        try:
            return self._values[name]
        except KeyError:
            raise UnboundVariableError(name, self.name) from None

    def set(self, name: str, value: Any, *, immutable: bool = False) -> None:
        """Bind ``name`` to ``value`` without any protection."""
        self._values[name] = value
        if immutable:
            self._immutable.add(name)
        else:
            self._immutable.discard(name)

    def is_immutable(self, name: str) -> bool:
        return name in self._immutable

    def delete(self, name: str) -> None:
        if name not in self._values:
            raise UnboundVariableError(name, self.name)
        del self._values[name]
        self._immutable.discard(name)

    def clear(self) -> None:
        """Drop every binding, including any Safehouse living in this scope."""
        self._values.clear()
        self._immutable.clear()

    def names(self) -> list[str]:
        return list(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Scope({self.name!r}, {len(self._values)} bindings)"

    def __str__(self) -> str:
        return self.name
