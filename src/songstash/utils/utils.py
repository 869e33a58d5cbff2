"""Utility functions for songstash.

This module provides common utility functions used throughout the application,
including hashing, HTTP session management and blob file operations.
"""

import errno
import hashlib
import logging
import os
import tempfile
from pathlib import Path

import aiohttp

from .exceptions import InvalidHashTypeError

logger = logging.getLogger(__name__)

SUPPORTED_HASH_TYPES = ["BLAKE2B", "SHA256", "MD5"]


def hash_bytes(data: bytes, hash_type: str = "BLAKE2B") -> str:
    """Hashes a byte buffer using the specified hash algorithm.

    Args:
        data: The bytes to hash.
        hash_type: The hash algorithm to use. Defaults to "BLAKE2B".
            Supported: "BLAKE2B" (recommended, fast & secure), "SHA256",
                      "MD5" (legacy, matches stores built with md5 paths).

    Returns:
        The hexadecimal digest of the hash.

    Raises:
        InvalidHashTypeError: If an invalid hash type is selected.
    """
    hash_type_upper = hash_type.upper()
    if hash_type_upper == "BLAKE2B":
        return hashlib.blake2b(data).hexdigest()
    elif hash_type_upper == "SHA256":
        return hashlib.sha256(data).hexdigest()
    elif hash_type_upper == "MD5":
        return hashlib.md5(data).hexdigest()
    else:
        raise InvalidHashTypeError(hash_type, supported_types=SUPPORTED_HASH_TYPES)


def create_aiohttp_session(
    timeout: int = 30,
    connector_limit: int = 100,
    headers: dict[str, str] | None = None,
) -> aiohttp.ClientSession:
    """Creates an aiohttp ClientSession with connection pool settings.

    Args:
        timeout: Total request timeout in seconds.
        connector_limit: Maximum number of concurrent connections.
        headers: Default headers sent with every request.

    Returns:
        A configured aiohttp ClientSession.
    """
    timeout_config = aiohttp.ClientTimeout(total=timeout)
    connector = aiohttp.TCPConnector(
        limit=connector_limit,
        enable_cleanup_closed=True,
    )
    return aiohttp.ClientSession(
        timeout=timeout_config,
        connector=connector,
        headers=headers,
    )


def silentremove(filename: str) -> None:
    """Removes a file silently, ignoring errors if the file doesn't exist.

    Args:
        filename: Path to the file to remove.
    """
    try:
        os.remove(filename)
    except OSError as e:
        if e.errno != errno.ENOENT:
            raise


def write_blob(data_dir: str | Path, relative_path: str, data: bytes) -> bool:
    """Writes bytes to the blob store at a content-addressed path.

    The write is idempotent: an existing target is left untouched, since a
    content-addressed path always holds identical bytes. New blobs are
    written to a temporary file in the target directory, fsynced and then
    atomically renamed into place.

    Args:
        data_dir: Root directory of the blob store.
        relative_path: Path relative to data_dir (POSIX separators).
        data: The blob content.

    Returns:
        True if a new blob was written, False if it already existed.

    Raises:
        OSError: If the directory or file cannot be written.
    """
    target = Path(data_dir).joinpath(*relative_path.split("/"))
    if target.is_file():
        logger.debug("Blob already stored: %s", relative_path)
        return False

    target.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(
        dir=target.parent, prefix=".songstash_", suffix=".part"
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_name, target)
    except BaseException:
        silentremove(temp_name)
        raise

    logger.debug("Stored blob %s (%d bytes)", relative_path, len(data))
    return True
