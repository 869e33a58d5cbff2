from enum import Enum
from typing import Any

import msgspec


class FileTypeEnum(Enum):
    """Audio file types recognised from stored content.

    The value is the extension used for the stored blob.
    """

    FLAC = "flac"
    WAV = "wav"
    APE = "ape"
    OGG = "ogg"
    OPUS = "opus"
    M4A = "m4a"
    MP3 = "mp3"
    AAC = "aac"

    @property
    def extension(self) -> str:
        """Get the file extension of the type."""
        return self.value


class QualityEnum(Enum):
    """Quality tier stored on a song resource."""

    LOSSLESS = "lossless"
    KBPS_320 = "320kbps"
    KBPS_192 = "192kbps"
    UNKNOWN = "unknown"


class SongStatus(Enum):
    """Lifecycle status of a catalog song.

    ``VALID`` is the pending default; a song counts as resolved once it owns
    a resource, so there is no explicit resolved status.
    """

    VALID = "valid"
    ERRORED = "errored"


class AcquisitionOutcome(Enum):
    ACQUIRED = "acquired"
    ALREADY_PRESENT = "already_present"


class Candidate(msgspec.Struct, kw_only=True):
    """Provider search hit normalised to a uniform shape.

    Attributes:
        source: Originating provider tag (qq, xiami, netease, ...).
        id: Provider-native song id.
        album_name: Album name reported by the provider.
        artist_name: Artist names reported by the provider, space-joined.
        song_name: Song name reported by the provider.
        lossless: Lossless quality available.
        kbps_320: 320kbps quality available.
        kbps_192: 192kbps quality available.
        copyrighted: Provider copy permission flag.
        downloadable: Provider download permission flag.
    """

    source: str
    id: str
    album_name: str
    artist_name: str
    song_name: str
    lossless: bool = False
    kbps_320: bool = False
    kbps_192: bool = False
    copyrighted: bool = False
    downloadable: bool = False


class SearchResponse(msgspec.Struct, kw_only=True):
    """Aggregated search response from a provider gateway.

    Attributes:
        status: Whether the gateway reports success.
        data: Raw provider song payloads keyed by provider tag, in provider order.
    """

    status: bool
    data: dict[str, list[dict[str, Any]]] = msgspec.field(default_factory=dict)


class UrlResponse(msgspec.Struct, kw_only=True):
    """Download URL resolution response from a provider gateway."""

    status: bool
    url: str | None = None


class ResourceIdentity(msgspec.Struct, frozen=True, kw_only=True):
    """Uniqueness key of a song resource.

    Attributes:
        source: Provider tag.
        album_name: Album name as reported by the provider.
        artist_name: Artist name as reported by the provider.
        song_name: Song name as reported by the provider.
        quality: Quality tier label.
    """

    source: str
    album_name: str
    artist_name: str
    song_name: str
    quality: QualityEnum


class PassSummary(msgspec.Struct, kw_only=True):
    """Result of one acquisition pass.

    Attributes:
        total: Number of pending songs selected.
        acquired: Songs that gained a new resource.
        existing: Songs whose best match was already stored.
        errored: Songs marked errored.
        failures: (song id, error message) for each errored song.
    """

    total: int = 0
    acquired: int = 0
    existing: int = 0
    errored: int = 0
    failures: list[tuple[int, str]] = msgspec.field(default_factory=list)


class CatalogCounts(msgspec.Struct, frozen=True):
    """Song counts by acquisition state."""

    pending: int
    resolved: int
    errored: int
    resources: int


class ImportSummary(msgspec.Struct, kw_only=True):
    """Result of a bootstrap catalog import."""

    files: int = 0
    added: int = 0
    skipped: int = 0
