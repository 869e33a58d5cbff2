"""Custom exception hierarchy for songstash.

This module defines the structured exception hierarchy used throughout
songstash:
- A single base class for unified handling
- Acquisition errors raised while driving a song to a downloaded resource
- Configuration, plugin and import errors
- Rich context information via attributes and exception chaining
"""

from typing import NoReturn

# =============================================================================
# Base Exception Classes
# =============================================================================


class SongStashError(Exception):
    """Base exception for all songstash errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str = "An error occurred in songstash") -> None:
        """Initializes the base exception.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)


# =============================================================================
# Acquisition Errors
# =============================================================================


class AcquisitionError(SongStashError):
    """Base exception for failures while acquiring a song resource.

    Any subclass raised by the acquisition pipeline marks the song as
    errored for the current pass.
    """

    pass


class SearchFailed(AcquisitionError):
    """Exception raised when the provider search reports failure.

    Attributes:
        keywords: The search keywords.
        reason: Reason for the failure.
    """

    def __init__(self, keywords: str, reason: str = "search song failed") -> None:
        """Initializes the search failure.

        Args:
            keywords: The search keywords.
            reason: Reason for the failure.
        """
        self.keywords = keywords
        self.reason = reason
        super().__init__(f"Search for '{keywords}' failed: {reason}")


class NoMatchFound(AcquisitionError):
    """Exception raised when no candidate matches the catalog entry.

    Attributes:
        artist_name: Target artist name.
        song_name: Target song name.
        candidates: Number of candidates that were inspected.
    """

    def __init__(self, artist_name: str, song_name: str, candidates: int = 0) -> None:
        """Initializes the no match error.

        Args:
            artist_name: Target artist name.
            song_name: Target song name.
            candidates: Number of candidates that were inspected.
        """
        self.artist_name = artist_name
        self.song_name = song_name
        self.candidates = candidates
        super().__init__(
            f"No match for ({artist_name}, {song_name}) "
            f"among {candidates} candidates"
        )


class ResolveFailed(AcquisitionError):
    """Exception raised when a provider cannot produce a download URL.

    Attributes:
        source: Provider tag.
        song_id: Provider-native song id.
        reason: Reason for the failure.
    """

    def __init__(
        self, source: str, song_id: str, reason: str = "fetch song failed"
    ) -> None:
        """Initializes the resolve failure.

        Args:
            source: Provider tag.
            song_id: Provider-native song id.
            reason: Reason for the failure.
        """
        self.source = source
        self.song_id = song_id
        self.reason = reason
        super().__init__(f"Cannot resolve URL for {source}:{song_id}: {reason}")


class FetchFailed(AcquisitionError):
    """Exception raised when downloading the audio bytes fails.

    Attributes:
        url: The URL being fetched.
        reason: Reason for the failure (HTTP error, process stderr, ...).
    """

    def __init__(self, url: str, reason: str = "Unknown error") -> None:
        """Initializes the fetch failure.

        Args:
            url: The URL being fetched.
            reason: Reason for the failure.
        """
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch '{url}': {reason}")


class UnknownFileType(AcquisitionError):
    """Exception raised when content sniffing finds no known signature.

    Attributes:
        header: The leading bytes that were inspected.
    """

    def __init__(self, header: bytes = b"") -> None:
        """Initializes the unknown file type error.

        Args:
            header: The leading bytes that were inspected.
        """
        self.header = header
        super().__init__(f"Unknown file type (header: {header[:16].hex() or 'empty'})")


class StoreFailed(AcquisitionError):
    """Exception raised when writing a blob or a database row fails.

    Attributes:
        target: The blob path or record that failed to persist.
        reason: Reason for the failure.
    """

    def __init__(self, target: str, reason: str = "Unknown error") -> None:
        """Initializes the store failure.

        Args:
            target: The blob path or record that failed to persist.
            reason: Reason for the failure.
        """
        self.target = target
        self.reason = reason
        super().__init__(f"Failed to store {target}: {reason}")


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(SongStashError):
    """Base exception for configuration-related errors."""

    pass


class InvalidPluginError(ConfigurationError):
    """Exception raised when a gateway or transport cannot be loaded.

    Attributes:
        group: Entry point group searched.
        plugin_name: Name of the missing plugin.
    """

    def __init__(self, group: str, plugin_name: str) -> None:
        """Initializes the invalid plugin error.

        Args:
            group: Entry point group searched.
            plugin_name: Name of the missing plugin.
        """
        self.group = group
        self.plugin_name = plugin_name
        super().__init__(
            f'Plugin "{plugin_name}" does not exist in "{group}" or cannot be loaded'
        )


# =============================================================================
# Input/Validation Errors
# =============================================================================


class ValidationError(SongStashError):
    """Base exception for validation-related errors."""

    pass


class InvalidHashTypeError(ValidationError):
    """Exception raised when an invalid hash type is specified.

    Attributes:
        hash_type: The invalid hash type.
        supported_types: List of supported hash types.
    """

    def __init__(
        self,
        hash_type: str,
        supported_types: list[str] | None = None,
    ) -> None:
        """Initializes the invalid hash type error.

        Args:
            hash_type: The invalid hash type.
            supported_types: List of supported hash types.
        """
        self.hash_type = hash_type
        self.supported_types = supported_types or []
        msg = f"Invalid hash type '{hash_type}'"
        if self.supported_types:
            msg += f", supported types: {', '.join(self.supported_types)}"
        super().__init__(msg)


class CatalogImportError(ValidationError):
    """Exception raised when a bootstrap catalog file cannot be imported.

    Attributes:
        file_path: Path of the offending file.
        reason: Reason for the failure.
    """

    def __init__(self, file_path: str, reason: str = "Malformed catalog file") -> None:
        """Initializes the catalog import error.

        Args:
            file_path: Path of the offending file.
            reason: Reason for the failure.
        """
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"Cannot import '{file_path}': {reason}")


# =============================================================================
# Utility Functions
# =============================================================================


def raise_with_context(
    new_exception: Exception,
    original_exception: Exception | None = None,
) -> NoReturn:
    """Raises an exception with proper chaining.

    Args:
        new_exception: The new exception to raise.
        original_exception: The original exception to chain from.

    Raises:
        The new_exception with original_exception as its cause.

    Example:
        >>> try:
        ...     await session.get(url)
        ... except aiohttp.ClientError as e:
        ...     raise_with_context(FetchFailed(url, str(e)), e)
    """
    raise new_exception from original_exception
