"""
File protection.

FileGuard wraps any write against a path with snapshot-before-mutate,
verify-after-mutate and recover-on-failure:

1. If the file exists, fingerprint it (CRC-32) and copy it to a private
   temp file. One unique ID is drawn for the eventual permanent backup name,
   ``{stem}_{8 hex digits}{suffix}`` next to the original.
2. Run the caller's operation.
3. Re-fingerprint. Changed content promotes the temp copy to the permanent
   backup; unchanged content discards it, unless the operation failed, in
   which case the temp copy is kept as the recovery artifact.
4. An operation failure is re-raised unchanged after the bookkeeping.

Nothing here locks the path; concurrent writers must serialize themselves.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, TypeVar

from libs.common.file_utils import hash_file_crc32
from libs.common.logging.context import LogContext
from libs.safe_io.config import Settings, get_settings
from libs.safe_io.exceptions import BackupError, ProtectedArgumentError
from libs.safe_io.identity import IDGenerator, reprhex, unique_id
from libs.safe_io.serialization import Serializer, get_serializer
from libs.safe_io.types import BackupRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

PathArg = str | os.PathLike[str]


class Protected(os.PathLike):
    """Marks the argument of a call that names the file to protect.

    Example:
        >>> guard.protected_call(Path.write_text, Protected("out.txt"), "hello")
    """

    __slots__ = ("path",)

    def __init__(self, path: PathArg) -> None:
        self.path = Path(path)

    def __fspath__(self) -> str:
        return os.fspath(self.path)

    def __repr__(self) -> str:
        return f"Protected({str(self.path)!r})"


class FileGuard:
    """Runs file writes so that prior content is never silently lost.

    Example:
        guard = FileGuard()

        # Backs up results.csv first if it exists and the write changes it
        guard.protect("results.csv", lambda p: frame.write_csv(p))

        # Store an object through the serialization collaborator
        guard.protected_store(model, "model.pkl")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        id_generator: IDGenerator | None = None,
    ) -> None:
        """Initialize the guard.

        Args:
            settings: Configuration; the cached process settings when None.
            id_generator: Source of backup IDs; the process-wide generator when None.
        """
        self.settings = settings or get_settings()
        self._next_id = id_generator or unique_id

    # -------------------------------------------------------------------------
    # Protocol
    # -------------------------------------------------------------------------

    def snapshot(self, path: PathArg) -> BackupRecord | None:
        """Copy an existing file aside before it is written.

        Args:
            path: File about to be written.

        Returns:
            BackupRecord describing the private copy, or None if there is no
            regular file at ``path`` (nothing to protect).

        Raises:
            BackupError: If the file cannot be read or copied. Any partial
                temp copy is removed first.
        """
        path = Path(path)
        if not path.is_file():
            return None

        backup_dir = self.settings.backup_dir
        temp_path: str | None = None
        try:
            stat = path.stat()
            checksum = hash_file_crc32(path, self.settings.checksum_chunk_size)
            backup_id = self._next_id()
            while self._backup_path(path, backup_id).exists():
                backup_id = self._next_id()
            if backup_dir is not None:
                backup_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                prefix=f"{path.stem}_", suffix=path.suffix, dir=backup_dir
            )
            os.close(fd)
            shutil.copy2(path, temp_path)
        except OSError as e:
            if temp_path is not None:
                Path(temp_path).unlink(missing_ok=True)
            raise BackupError(path, str(e)) from e

        return BackupRecord(
            path=path,
            temp_path=Path(temp_path),
            backup_path=self._backup_path(path, backup_id),
            backup_id=backup_id,
            checksum=checksum,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
        )

    def protect(
        self,
        path: PathArg,
        operation: Callable[..., T],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Run ``operation(path, *args, **kwargs)`` with the file at ``path`` protected.

        Args:
            path: File the operation writes.
            operation: Callable receiving the path as a ``Path`` first.
            *args: Extra positional arguments forwarded to ``operation``.
            **kwargs: Extra keyword arguments forwarded to ``operation``.

        Returns:
            Whatever ``operation`` returns.

        Raises:
            BackupError: If the snapshot fails (``operation`` is not run), or
                if promoting/discarding the backup fails after success.
            BaseException: Anything ``operation`` raises (interrupts included),
                re-raised unchanged after the backup has been settled.
        """
        path = Path(path)
        record = self.snapshot(path)
        if record is None:
            return operation(path, *args, **kwargs)

        with LogContext(record.operation_id):
            try:
                result = operation(path, *args, **kwargs)
            except BaseException as err:
                self._recover(record, err)
                raise
            try:
                self._settle(record)
            except OSError as e:
                raise BackupError(path, str(e)) from e
        return result

    def protected_call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call ``func`` with the single ``Protected`` argument's file protected.

        The marker may appear among positional or keyword arguments; it is
        replaced by the plain ``Path`` when ``func`` runs.

        Raises:
            ProtectedArgumentError: If there is not exactly one marker.
        """
        markers = [a for a in args if isinstance(a, Protected)]
        markers += [v for v in kwargs.values() if isinstance(v, Protected)]
        if not markers:
            raise ProtectedArgumentError("No Protected found in the call arguments.")
        if len(markers) > 1:
            raise ProtectedArgumentError(
                "Multiple Protected found in the call arguments. Only one is allowed."
            )
        marker = markers[0]

        def run(resolved: Path) -> T:
            call_args = [resolved if a is marker else a for a in args]
            call_kwargs = {k: resolved if v is marker else v for k, v in kwargs.items()}
            return func(*call_args, **call_kwargs)

        return self.protect(marker.path, run)

    def protected_store(
        self,
        value: Any,
        path: PathArg | None = None,
        serializer: Serializer | None = None,
    ) -> Path:
        """Store ``value`` at ``path`` through ``protect``.

        Args:
            value: Object to store.
            path: Target file; a fresh ``{8 hex}{extension}`` name in the
                current directory when None.
            serializer: Storage collaborator; Settings.default_format when None.

        Returns:
            The path written.
        """
        serializer = serializer or get_serializer(self.settings.default_format)
        if path is None:
            path = Path.cwd() / f"{reprhex(self._next_id())}{serializer.extension}"
        path = Path(path)
        self.protect(path, lambda p: serializer.store(value, p))
        return path

    # -------------------------------------------------------------------------
    # Bookkeeping
    # -------------------------------------------------------------------------

    @staticmethod
    def _backup_path(path: Path, backup_id: int) -> Path:
        return path.with_name(f"{path.stem}_{reprhex(backup_id)}{path.suffix}")

    def _has_changed(self, record: BackupRecord) -> bool:
        try:
            current = hash_file_crc32(record.path, self.settings.checksum_chunk_size)
        except FileNotFoundError:
            return True
        return current != record.checksum

    def _promote(self, record: BackupRecord) -> None:
        shutil.move(record.temp_path, record.backup_path)
        record.temp_path.unlink(missing_ok=True)
        logger.warning(
            "File %s already exists. Last modified %s. "
            "The EXISTING file has been renamed to %s.",
            record.path,
            record.modified_label(self.settings.display_timezone),
            record.backup_path,
            extra={
                "path": str(record.path),
                "backup_path": str(record.backup_path),
                "modified_at": record.modified_at.isoformat(),
            },
        )

    def _settle(self, record: BackupRecord) -> None:
        """Keep the backup if the operation changed the file, drop it otherwise."""
        if self._has_changed(record):
            self._promote(record)
        else:
            record.temp_path.unlink(missing_ok=True)
            logger.debug(
                "File unchanged, temporary backup discarded",
                extra={"path": str(record.path), "temp_path": str(record.temp_path)},
            )

    def _recover(self, record: BackupRecord, error: BaseException) -> None:
        """Settle the backup after a failed operation without masking ``error``."""
        try:
            changed = self._has_changed(record)
            if changed:
                self._promote(record)
        except OSError:
            # The operation's error is the one the caller sees; the temp copy stays put
            logger.critical(
                "Backup bookkeeping failed after an operation error. "
                "The pre-operation copy of %s remains at %s.",
                record.path,
                record.temp_path,
                exc_info=True,
                extra={"path": str(record.path), "temp_path": str(record.temp_path)},
            )
            return

        if changed:
            detail = (
                "The file has been MODIFIED. The existing file has been backed up "
                f"to {record.backup_path}. Retrieve timely if needed."
            )
            kept = record.backup_path
        else:
            detail = (
                "The file remains unchanged. However, a backup copy has been saved "
                f"to {record.temp_path}."
            )
            kept = record.temp_path
        logger.warning(
            "An error occurred during executing the operation, and a file exists "
            "at the given path. %s",
            detail,
            extra={
                "path": str(record.path),
                "kept_copy": str(kept),
                "modified": changed,
                "error_type": type(error).__name__,
            },
        )
