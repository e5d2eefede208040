"""Common utilities and exceptions."""

from libs.common.exceptions import ConfigurationError, SafeIOError
from libs.common.file_utils import hash_file_crc32

__all__ = [
    "SafeIOError",
    "ConfigurationError",
    "hash_file_crc32",
]
