"""Settings data structures for songstash.

This module defines all settings as msgspec.Struct classes for type-safe
configuration management. Settings are organized hierarchically and support
TOML serialization/deserialization via msgspec.
"""

from pathlib import Path

import msgspec
import platformdirs

from .exceptions import ConfigurationError, raise_with_context

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_13_6) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/73.0.3683.103 Safari/537.36"
)

# =============================================================================
# Settings Structures
# =============================================================================


class GeneralSettings(msgspec.Struct, kw_only=True):
    """General application settings.

    Attributes:
        data_dir: Root directory of the content-addressed blob store.
        database_url: SQLAlchemy async URL of the catalog database.
        debug_mode: Enable debug logging.
    """

    data_dir: str = "./data"
    database_url: str = "sqlite+aiosqlite:///songstash.db"
    debug_mode: bool = False


class AcquisitionSettings(msgspec.Struct, kw_only=True):
    """Acquisition pipeline settings.

    Attributes:
        pacing_delay: Seconds to wait between two songs of a pass.
        hash_type: Content hash used for blob paths (BLAKE2B/SHA256/MD5).
    """

    pacing_delay: float = 10.0
    hash_type: str = "BLAKE2B"


class GatewaySettings(msgspec.Struct, kw_only=True):
    """Provider gateway settings.

    Attributes:
        name: Entry point name of the gateway implementation.
        base_url: Base URL of the multi-provider search service.
        timeout: Request timeout in seconds.
    """

    name: str = "music_api"
    base_url: str = "http://127.0.0.1:3000"
    timeout: int = 30


class TransportSettings(msgspec.Struct, kw_only=True):
    """Download transport settings.

    Attributes:
        default: Transport used for providers without an override.
        providers: Provider tag to transport name overrides.
        user_agent: User-Agent header sent by the HTTP transport.
        timeout: Total request timeout of the HTTP transport in seconds.
        curl_command: Command line of the external-process transport; the
            URL is appended as last argument.
    """

    default: str = "http"
    providers: dict[str, str] = msgspec.field(
        default_factory=lambda: {"netease": "curl"}
    )
    user_agent: str = DEFAULT_USER_AGENT
    timeout: int = 30
    curl_command: list[str] = msgspec.field(
        default_factory=lambda: ["curl", "--silent", "--show-error", "--location"]
    )


class BootstrapSettings(msgspec.Struct, kw_only=True):
    """Catalog bootstrap import settings.

    Attributes:
        directory: Directory holding raw catalog export files.
        raw_source: Origin tag stored on imported songs.
    """

    directory: str = "./bootstrap"
    raw_source: str = "xiami"


class AppSettings(msgspec.Struct, kw_only=True):
    """Complete application settings."""

    general: GeneralSettings = msgspec.field(default_factory=GeneralSettings)
    acquisition: AcquisitionSettings = msgspec.field(
        default_factory=AcquisitionSettings
    )
    gateway: GatewaySettings = msgspec.field(default_factory=GatewaySettings)
    transports: TransportSettings = msgspec.field(default_factory=TransportSettings)
    bootstrap: BootstrapSettings = msgspec.field(default_factory=BootstrapSettings)


# =============================================================================
# Settings I/O Utilities
# =============================================================================


def default_config_dir() -> Path:
    """Returns the per-user configuration directory."""
    return Path(platformdirs.user_config_dir("songstash", ensure_exists=True))


def load_settings(path: Path) -> AppSettings:
    """Loads settings from a TOML file.

    Args:
        path: Path to the settings TOML file.

    Returns:
        AppSettings instance. Returns defaults if file doesn't exist.

    Raises:
        ConfigurationError: If the file is not valid settings TOML.
    """
    if not path.exists():
        return AppSettings()
    try:
        return msgspec.toml.decode(path.read_bytes(), type=AppSettings)
    except msgspec.DecodeError as e:
        raise_with_context(ConfigurationError(f"Invalid settings file {path}: {e}"), e)


def save_settings(path: Path, settings: AppSettings) -> None:
    """Saves settings to a TOML file.

    Args:
        path: Path to save the settings file.
        settings: AppSettings instance to save.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = msgspec.toml.encode(settings)
    path.write_bytes(data)
