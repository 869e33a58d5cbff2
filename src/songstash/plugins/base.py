"""Base classes for songstash plugins.

This module defines the abstract base classes that provider gateways and
download transports must implement to be loadable by songstash.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from songstash.utils.models import SearchResponse, UrlResponse
    from songstash.utils.settings import GatewaySettings, TransportSettings


class GatewayBase(ABC):
    """Abstract base class for multi-provider search gateways.

    A gateway searches several music providers at once and resolves
    provider-native song ids to downloadable URLs.
    """

    def __init__(self, settings: "GatewaySettings") -> None:
        """Initialize the gateway.

        Args:
            settings: Gateway configuration.
        """
        self.settings = settings

    async def close(self) -> None:
        """Close the gateway and release resources."""
        return None

    @abstractmethod
    async def search_song(self, keywords: str) -> "SearchResponse":
        """Search every provider for a song.

        Args:
            keywords: Free-text query, usually "<artist> <song>".

        Returns:
            SearchResponse with raw song payloads keyed by provider tag.

        Raises:
            SearchFailed: If the gateway cannot be reached.
        """
        ...

    @abstractmethod
    async def get_song_url(self, source: str, song_id: str) -> "UrlResponse":
        """Resolve a provider-native song id to a download URL.

        Args:
            source: Provider tag the song belongs to.
            song_id: Provider-native song id.

        Returns:
            UrlResponse with the download URL.

        Raises:
            ResolveFailed: If the gateway cannot be reached.
        """
        ...


class TransportBase(ABC):
    """Abstract base class for download transports.

    Transports fetch the bytes behind a resolved URL. Providers that need a
    different way of downloading get their own transport, selected through
    a TransportRegistry.
    """

    def __init__(self, settings: "TransportSettings") -> None:
        """Initialize the transport.

        Args:
            settings: Transport configuration.
        """
        self.settings = settings

    async def close(self) -> None:
        """Close the transport and release resources."""
        return None

    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        """Download the content behind a URL.

        Args:
            url: The resolved download URL.

        Returns:
            The downloaded bytes.

        Raises:
            FetchFailed: If the download fails.
        """
        ...
