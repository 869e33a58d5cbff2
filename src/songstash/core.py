"""Core module for songstash.

This module provides the orchestration layer: it loads settings, configures
logging and wires the catalog store, the provider gateway, the download
transports and the acquisition pipeline together.
"""

import logging
import random
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from rich.logging import RichHandler

from .bootstrap import import_catalog
from .database import CatalogStore
from .pipeline import AcquisitionPipeline
from .plugins.base import GatewayBase, TransportBase
from .plugins.loader import load_gateway, load_transport
from .transports import TransportRegistry
from .utils.models import CatalogCounts, ImportSummary, PassSummary
from .utils.settings import (
    AppSettings,
    TransportSettings,
    default_config_dir,
    load_settings,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class SettingsLoaderProtocol(Protocol):
    """Protocol for loading settings."""

    def load(self, path: Path) -> AppSettings:
        """Loads settings from a file."""
        ...


class TomlSettingsLoader:
    """TOML-based settings loader implementation."""

    def load(self, path: Path) -> AppSettings:
        """Loads settings from a TOML file."""
        return load_settings(path)


def configure_logging(debug_mode: bool) -> None:
    """Configures logging using the Rich handler.

    Args:
        debug_mode: Log at DEBUG level instead of INFO.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug_mode else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def build_transports(settings: TransportSettings) -> TransportRegistry:
    """Instantiates the configured transports.

    One instance is created per transport name, shared by every provider
    mapped to it.

    Args:
        settings: Transport settings.

    Returns:
        TransportRegistry with the default transport and provider overrides.
    """
    instances: dict[str, TransportBase] = {}

    def get(name: str) -> TransportBase:
        if name not in instances:
            instances[name] = load_transport(name)(settings)
            logger.debug("Transport loaded: %s", name)
        return instances[name]

    default = get(settings.default)
    overrides = {provider: get(name) for provider, name in settings.providers.items()}
    return TransportRegistry(default, overrides)


class SongStash:
    """Main orchestrator for catalog acquisition operations."""

    __slots__ = (
        "_config_dir",
        "_settings_path",
        "_settings_loader",
        "settings",
        "store",
        "gateway",
        "transports",
        "pipeline",
    )

    def __init__(
        self,
        config_dir: Path | None = None,
        settings_loader: SettingsLoaderProtocol | None = None,
        debug_mode: bool | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initializes the orchestrator.

        Args:
            config_dir: Directory holding settings.toml. Defaults to the
                per-user configuration directory.
            settings_loader: Settings loader, TOML by default.
            debug_mode: Overrides the debug_mode setting when not None.
            rng: Random source used to shuffle passes.
        """
        self._config_dir = config_dir or default_config_dir()
        self._settings_path = self._config_dir / "settings.toml"
        self._settings_loader = settings_loader or TomlSettingsLoader()

        self.settings: AppSettings = self._settings_loader.load(self._settings_path)
        if debug_mode is not None:
            self.settings.general.debug_mode = debug_mode
        configure_logging(self.settings.general.debug_mode)

        self.store = CatalogStore(self.settings.general.database_url)
        self.gateway: GatewayBase = load_gateway(self.settings.gateway.name)(
            self.settings.gateway
        )
        self.transports = build_transports(self.settings.transports)
        self.pipeline = AcquisitionPipeline(
            self.store,
            self.gateway,
            self.transports,
            data_dir=self.settings.general.data_dir,
            hash_type=self.settings.acquisition.hash_type,
            rng=rng,
        )

    async def __aenter__(self) -> "SongStash":
        """Enter async context manager and make sure the schema exists."""
        await self.store.create_all()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit async context manager and cleanup resources."""
        await self.close()

    async def close(self) -> None:
        await self.transports.close()
        await self.gateway.close()
        await self.store.close()

    async def run_pass(self, delay: float | None = None) -> PassSummary:
        """Runs one acquisition pass.

        Args:
            delay: Pause between songs; defaults to the pacing_delay setting.

        Returns:
            PassSummary of the pass.
        """
        if delay is None:
            delay = self.settings.acquisition.pacing_delay
        return await self.pipeline.run_pass(delay)

    async def bootstrap(self, directory: str | Path | None = None) -> ImportSummary:
        """Seeds the catalog from raw export files.

        Args:
            directory: Export directory; defaults to the bootstrap setting.

        Returns:
            ImportSummary of the import.
        """
        bootstrap = self.settings.bootstrap
        return await import_catalog(
            self.store, directory or bootstrap.directory, bootstrap.raw_source
        )

    async def status(self) -> CatalogCounts:
        return await self.store.count_by_state()

    async def reset_errored(self) -> int:
        count = await self.store.reset_errored()
        logger.info("%d errored songs reset to pending", count)
        return count
