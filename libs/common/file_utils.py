"""File utility helpers shared across the guard and its tests."""

from __future__ import annotations

import zlib
from pathlib import Path


def hash_file_crc32(path: Path, chunk_size: int = 65536) -> int:
    """Compute the CRC-32 checksum of a file as an unsigned 32-bit int."""
    checksum = 0
    with open(path, "rb") as file_handle:
        for chunk in iter(lambda: file_handle.read(chunk_size), b""):
            checksum = zlib.crc32(chunk, checksum)
    return checksum & 0xFFFFFFFF
