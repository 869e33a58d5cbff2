"""Gateway for a multi-provider music-api aggregation service.

The service searches several providers (qq, xiami, netease, ...) with one
request and resolves provider-native ids to download URLs:

    GET {base_url}/search?keywords=...
        {"status": true, "data": {"qq": {"songs": [...]}, "netease": {...}}}
    GET {base_url}/url?vendor=<provider>&id=<id>
        {"status": true, "data": {"url": "https://..."}}
"""

import logging
from typing import Any

import aiohttp
import msgspec

from ..plugins.base import GatewayBase
from ..utils.exceptions import ResolveFailed, SearchFailed, raise_with_context
from ..utils.models import SearchResponse, UrlResponse
from ..utils.settings import GatewaySettings
from ..utils.utils import create_aiohttp_session

logger = logging.getLogger(__name__)


class _ProviderSongs(msgspec.Struct):
    songs: list[dict[str, Any]] = msgspec.field(default_factory=list)


class _SearchPayload(msgspec.Struct):
    status: bool
    data: dict[str, _ProviderSongs] | None = None


class _UrlData(msgspec.Struct):
    url: str | None = None


class _UrlPayload(msgspec.Struct):
    status: bool
    data: _UrlData | None = None


class MusicApiGateway(GatewayBase):
    """aiohttp client of the music-api aggregation service."""

    def __init__(self, settings: GatewaySettings) -> None:
        super().__init__(settings)
        self._base_url = settings.base_url.rstrip("/")
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = create_aiohttp_session(timeout=self.settings.timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def _get_json(self, endpoint: str, params: dict[str, str]) -> bytes:
        url = f"{self._base_url}/{endpoint}"
        logger.debug("GET %s %s", url, params)
        async with self._get_session().get(url, params=params) as response:
            response.raise_for_status()
            return await response.read()

    async def search_song(self, keywords: str) -> SearchResponse:
        """Searches every provider known to the service.

        Args:
            keywords: Free-text query.

        Returns:
            SearchResponse keeping the provider order of the service reply.

        Raises:
            SearchFailed: If the service is unreachable or replies garbage.
        """
        try:
            body = await self._get_json("search", {"keywords": keywords})
            payload = msgspec.json.decode(body, type=_SearchPayload)
        except (aiohttp.ClientError, TimeoutError, msgspec.DecodeError) as e:
            raise_with_context(SearchFailed(keywords, repr(e)), e)

        data = {
            provider: result.songs for provider, result in (payload.data or {}).items()
        }
        return SearchResponse(status=payload.status, data=data)

    async def get_song_url(self, source: str, song_id: str) -> UrlResponse:
        """Resolves a provider-native id to a download URL.

        Args:
            source: Provider tag.
            song_id: Provider-native song id.

        Returns:
            UrlResponse with the URL, if the service found one.

        Raises:
            ResolveFailed: If the service is unreachable or replies garbage.
        """
        try:
            body = await self._get_json("url", {"vendor": source, "id": song_id})
            payload = msgspec.json.decode(body, type=_UrlPayload)
        except (aiohttp.ClientError, TimeoutError, msgspec.DecodeError) as e:
            raise_with_context(ResolveFailed(source, song_id, repr(e)), e)

        url = payload.data.url if payload.data else None
        return UrlResponse(status=payload.status, url=url)
