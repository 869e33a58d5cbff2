"""Plugin system for songstash using entry points.

This module provides the plugin discovery and loading mechanism using
Python's entry points system (PEP 621).

Entry point groups:
    - songstash.gateways: Multi-provider search gateways
    - songstash.transports: Download transports (HTTP, external process, ...)

Example pyproject.toml for a transport plugin:
    [project.entry-points."songstash.transports"]
    aria2 = "songstash_aria2:Aria2Transport"
"""

from .base import GatewayBase, TransportBase
from .loader import (
    discover_gateways,
    discover_transports,
    load_gateway,
    load_transport,
)

__all__ = [
    "GatewayBase",
    "TransportBase",
    "discover_gateways",
    "discover_transports",
    "load_gateway",
    "load_transport",
]
