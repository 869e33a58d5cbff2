"""Plugin discovery and loading using entry points.

This module provides functions to discover and load gateways and transports
registered via Python entry points (PEP 621).
"""

import logging
from importlib.metadata import entry_points

from songstash.plugins.base import GatewayBase, TransportBase
from songstash.utils.exceptions import InvalidPluginError

logger = logging.getLogger(__name__)

# Entry point group names
GATEWAYS_GROUP = "songstash.gateways"
TRANSPORTS_GROUP = "songstash.transports"


def _discover(group: str) -> list[str]:
    names = sorted(ep.name for ep in entry_points(group=group))
    for name in names:
        logger.debug("Discovered %s plugin: %s", group, name)
    return names


def discover_gateways() -> list[str]:
    """Discover all installed gateway plugins.

    Returns:
        Sorted gateway names.

    Example:
        >>> discover_gateways()
        ['music_api']
    """
    return _discover(GATEWAYS_GROUP)


def discover_transports() -> list[str]:
    """Discover all installed transport plugins.

    Returns:
        Sorted transport names.
    """
    return _discover(TRANSPORTS_GROUP)


def _load_plugin_class(plugin_name: str, group: str, base_class: type) -> type:
    """Generic plugin class loader.

    Args:
        plugin_name: Name of the plugin to load.
        group: Entry point group name.
        base_class: Base class the plugin must inherit from.

    Returns:
        The plugin class.

    Raises:
        InvalidPluginError: If the plugin is missing, fails to import or
            does not inherit from base_class.
    """
    for ep in entry_points(group=group):
        if ep.name != plugin_name:
            continue
        try:
            obj = ep.load()
        except Exception as e:
            logger.exception("Failed to load plugin '%s' from %s", plugin_name, group)
            raise InvalidPluginError(group, plugin_name) from e
        if isinstance(obj, type) and issubclass(obj, base_class):
            return obj
        logger.error(
            "Plugin '%s' (%s) is not a %s", plugin_name, ep.value, base_class.__name__
        )
        break
    raise InvalidPluginError(group, plugin_name)


def load_gateway(gateway_name: str) -> type[GatewayBase]:
    """Load a gateway class by name.

    Args:
        gateway_name: Entry point name of the gateway.

    Returns:
        The GatewayBase subclass.

    Example:
        >>> GatewayClass = load_gateway('music_api')
        >>> gateway = GatewayClass(settings.gateway)
    """
    return _load_plugin_class(gateway_name, GATEWAYS_GROUP, GatewayBase)


def load_transport(transport_name: str) -> type[TransportBase]:
    """Load a transport class by name.

    Args:
        transport_name: Entry point name of the transport.

    Returns:
        The TransportBase subclass.
    """
    return _load_plugin_class(transport_name, TRANSPORTS_GROUP, TransportBase)
