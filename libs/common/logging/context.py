"""Operation ID generation and context propagation.

An operation ID ties together every log record produced during one protected
write or one guarded assignment. ``FileGuard.protect`` uses the backup's
unique ID (``0x``-prefixed hex) so the notices can be matched to the backup
file on disk; anything else may use a random UUIDv4.

Example:
    >>> from libs.common.logging.context import LogContext, get_operation_id
    >>> with LogContext("0xa8de13fa"):
    ...     get_operation_id()
    '0xa8de13fa'
"""

import contextvars
import uuid
from types import TracebackType

_operation_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation_id", default=None
)


def generate_operation_id() -> str:
    """Generate a new unique operation ID.

    Returns:
        A unique operation ID string (UUID v4 format)

    Example:
        >>> len(generate_operation_id())
        36
    """
    return str(uuid.uuid4())


def get_operation_id() -> str | None:
    """Get the current operation ID from context, or None if unset."""
    return _operation_id_var.get()


def set_operation_id(operation_id: str) -> None:
    """Set the operation ID for the current context.

    Args:
        operation_id: The operation ID to set

    Raises:
        ValueError: If operation_id is empty or None
    """
    if not operation_id:
        raise ValueError("Operation ID cannot be empty")
    _operation_id_var.set(operation_id)


def clear_operation_id() -> None:
    """Clear the operation ID from the current context."""
    _operation_id_var.set(None)


def get_or_create_operation_id() -> str:
    """Get existing operation ID or generate and set a new one.

    Example:
        >>> clear_operation_id()
        >>> operation_id = get_or_create_operation_id()
        >>> operation_id == get_or_create_operation_id()
        True
    """
    operation_id = get_operation_id()
    if operation_id is None:
        operation_id = generate_operation_id()
        set_operation_id(operation_id)
    return operation_id


class LogContext:
    """Context manager for scoped operation ID management.

    Sets an operation ID for a block of code and restores the previous value
    (or clears it) when the block exits, whether normally or by exception.

    Args:
        operation_id: The operation ID to set. If None, generates a new one.

    Example:
        >>> with LogContext("0xa8de13fa") as operation_id:
        ...     print(operation_id)
        0xa8de13fa
    """

    def __init__(self, operation_id: str | None = None) -> None:
        self.operation_id = operation_id or generate_operation_id()
        self.previous_operation_id: str | None = None

    def __enter__(self) -> str:
        self.previous_operation_id = get_operation_id()
        set_operation_id(self.operation_id)
        return self.operation_id

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self.previous_operation_id is not None:
            set_operation_id(self.previous_operation_id)
        else:
            clear_operation_id()
