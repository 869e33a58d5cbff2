from __future__ import annotations

import itertools
import struct
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest

from songstash.database import CatalogStore
from songstash.plugins.base import GatewayBase, TransportBase
from songstash.utils.exceptions import FetchFailed
from songstash.utils.models import SearchResponse, UrlResponse
from songstash.utils.settings import GatewaySettings, TransportSettings

_counter = itertools.count()


def flac_bytes(tag: bytes | None = None) -> bytes:
    """Minimal valid FLAC stream; distinct tags give distinct content.

    A single STREAMINFO block (44.1kHz, stereo, 16 bit) followed by the tag
    as frame data.
    """
    if tag is None:
        tag = str(next(_counter)).encode()
    stream_info = struct.pack(
        ">HH3s3sQ16s",
        4096,
        4096,
        b"\x00" * 3,
        b"\x00" * 3,
        (44100 << 44) | (1 << 41) | (15 << 36),
        b"\x00" * 16,
    )
    header = bytes([0x80]) + len(stream_info).to_bytes(3, "big")
    return b"fLaC" + header + stream_info + tag


def provider_song(
    song_id: int | str,
    name: str,
    artists: list[str],
    album: str = "Album",
    lossless: bool = False,
    kbps_320: bool = False,
    kbps_192: bool = False,
) -> dict[str, Any]:
    """Raw song payload shaped like the music-api search reply."""
    return {
        "id": song_id,
        "name": name,
        "album": {"name": album},
        "artists": [{"name": artist} for artist in artists],
        "cp": False,
        "dl": True,
        "quality": {"999": lossless, "320": kbps_320, "192": kbps_192},
    }


class FakeGateway(GatewayBase):
    """In-memory gateway keyed by search keywords."""

    def __init__(
        self,
        results: dict[str, SearchResponse | Exception] | None = None,
        urls: dict[str, UrlResponse] | None = None,
    ) -> None:
        super().__init__(GatewaySettings())
        self.results = results or {}
        self.urls = urls or {}
        self.searches: list[str] = []
        self.resolved: list[tuple[str, str]] = []

    async def search_song(self, keywords: str) -> SearchResponse:
        self.searches.append(keywords)
        result = self.results.get(keywords, SearchResponse(status=True, data={}))
        if isinstance(result, Exception):
            raise result
        return result

    async def get_song_url(self, source: str, song_id: str) -> UrlResponse:
        self.resolved.append((source, song_id))
        key = f"{source}:{song_id}"
        return self.urls.get(
            key, UrlResponse(status=True, url=f"http://cdn.test/{source}/{song_id}")
        )


class FakeTransport(TransportBase):
    """Returns canned payloads per URL and records every fetch."""

    def __init__(self, payloads: dict[str, bytes | Exception] | None = None) -> None:
        super().__init__(TransportSettings())
        self.payloads = payloads or {}
        self.fetched: list[str] = []
        self.closed = 0

    async def fetch(self, url: str) -> bytes:
        self.fetched.append(url)
        payload = self.payloads.get(url)
        if payload is None:
            return flac_bytes(url.encode())
        if isinstance(payload, Exception):
            raise payload
        return payload

    async def close(self) -> None:
        self.closed += 1


class FailingTransport(FakeTransport):
    async def fetch(self, url: str) -> bytes:
        self.fetched.append(url)
        raise FetchFailed(url, "connection reset")


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def store(tmp_path: Path, anyio_backend: str) -> AsyncIterator[CatalogStore]:
    catalog = CatalogStore(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    await catalog.create_all()
    try:
        yield catalog
    finally:
        await catalog.close()
