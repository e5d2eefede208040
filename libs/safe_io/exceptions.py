"""
Custom exceptions for the file guard and the binding registry.

These exceptions extend SafeIOError from libs.common.exceptions. Validation
errors (InvalidNameError, ConstantBindingError) are raised before anything is
mutated; BackupError covers filesystem failures of the guard's own
bookkeeping. Failures raised by a caller's write or read logic are never
wrapped: they propagate as the original exception object.
"""

from __future__ import annotations

from pathlib import Path

from libs.common.exceptions import SafeIOError


class NotFoundError(SafeIOError, LookupError):
    """Raised when a requested refugee or binding does not exist."""

    pass


class RefugeeNotFoundError(NotFoundError):
    """Raised when no refugee with the given unique ID is housed.

    Attributes:
        refugee_id: The unique ID that was looked up.
        house: Qualified name of the Safehouse searched.
    """

    def __init__(self, refugee_id: int, house: str) -> None:
        self.refugee_id = refugee_id
        self.house = house
        super().__init__(f"No refugee with ID 0x{refugee_id:08x} in safehouse `{house}`")


class VariableNotHousedError(NotFoundError):
    """Raised when a variable name was never housed in a Safehouse.

    Attributes:
        variable: The variable name that was looked up.
        house: Qualified name of the Safehouse searched.
    """

    def __init__(self, variable: str, house: str) -> None:
        self.variable = variable
        self.house = house
        super().__init__(f"Variable `{variable}` has never been housed in safehouse `{house}`")


class UnboundVariableError(NotFoundError):
    """Raised when a name has no value in a scope.

    Attributes:
        variable: The unbound name.
        scope: Name of the scope searched.
    """

    def __init__(self, variable: str, scope: str) -> None:
        self.variable = variable
        self.scope = scope
        super().__init__(f"Variable `{variable}` is not defined in {scope}")


class InvalidNameError(SafeIOError, ValueError):
    """Raised when a target name is not a legal, non-reserved identifier."""

    def __init__(self, variable: object) -> None:
        self.variable = variable
        super().__init__(f"'{variable}' is not a valid variable name.")


class ConstantBindingError(SafeIOError):
    """Raised when overwriting an immutable binding without the explicit override.

    Attributes:
        variable: The immutable name.
        scope: Name of the scope holding it.
    """

    def __init__(self, variable: str, scope: str) -> None:
        self.variable = variable
        self.scope = scope
        super().__init__(
            f"Variable `{variable}` in {scope} is a constant. "
            "Use allow_constant_overwrite=True to overwrite it."
        )


class BackupError(SafeIOError, OSError):
    """Raised when snapshotting or backing up a protected file fails.

    Raised before the caller's operation runs when the snapshot cannot be
    taken, or after a successful operation when the backup cannot be
    promoted or discarded.

    Attributes:
        path: The protected path.
        reason: Description of the underlying filesystem failure.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Backup of {path} failed: {reason}")


class ProtectedArgumentError(SafeIOError, ValueError):
    """Raised when a marked-argument call has zero or several Protected markers."""

    pass


class PartialWriteError(SafeIOError):
    """Raised when an atomic write is incomplete."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"Partial write to {path}: {message}")


class DeserializationError(SafeIOError):
    """Raised when a stored object cannot be deserialized."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"Failed to deserialize {path}: {message}")
