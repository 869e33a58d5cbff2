"""Resource acquisition pipeline.

Drives pending catalog songs to a stored resource: search every provider,
pick the best match, skip already stored resources, download through the
provider's transport, write the content-addressed blob and record the
resource. Songs are processed one at a time with a fixed pause between them
to keep load on the upstream providers low.
"""

import logging
import random
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import anyio
from asyncer import asyncify

from .database import CatalogStore, Song
from .plugins.base import GatewayBase
from .quality import pick_best, quality_of
from .transports import TransportRegistry
from .utils.exceptions import (
    NoMatchFound,
    ResolveFailed,
    SearchFailed,
    StoreFailed,
)
from .utils.models import (
    AcquisitionOutcome,
    Candidate,
    PassSummary,
    ResourceIdentity,
)
from .utils.path_builder import build_content_path
from .utils.utils import write_blob

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


def normalize_song(source: str, raw: dict[str, Any]) -> Candidate:
    """Converts a raw provider song payload into a Candidate.

    Args:
        source: Provider tag the payload came from.
        raw: Provider song payload (id, name, album, artists, cp, dl, quality).

    Returns:
        The normalised Candidate.
    """
    album = raw.get("album") or {}
    artists = raw.get("artists") or []
    quality = raw.get("quality") or {}
    return Candidate(
        source=source,
        id=str(raw.get("id", "")),
        album_name=album.get("name") or "",
        artist_name=" ".join(artist.get("name") or "" for artist in artists),
        song_name=raw.get("name") or "",
        copyrighted=bool(raw.get("cp")),
        downloadable=bool(raw.get("dl")),
        lossless=bool(quality.get("999")),
        kbps_320=bool(quality.get("320")),
        kbps_192=bool(quality.get("192")),
    )


def flatten_search_results(
    results: dict[str, list[dict[str, Any]]],
) -> list[Candidate]:
    """Flattens per-provider results, keeping provider and result order."""
    return [
        normalize_song(source, raw) for source, songs in results.items() for raw in songs
    ]


class AcquisitionPipeline:
    """Sequential worker acquiring resources for pending songs.

    Assumes a single pipeline instance per catalog store: the duplicate
    check and the resource insert are not atomic across instances.
    """

    def __init__(
        self,
        store: CatalogStore,
        gateway: GatewayBase,
        transports: TransportRegistry,
        data_dir: str | Path,
        hash_type: str = "BLAKE2B",
        rng: random.Random | None = None,
        sleep: SleepFunc = anyio.sleep,
    ) -> None:
        """Initialize the pipeline.

        Args:
            store: Catalog store holding songs and resources.
            gateway: Multi-provider search gateway.
            transports: Per-provider download transports.
            data_dir: Root directory of the blob store.
            hash_type: Content hash algorithm for blob paths.
            rng: Random source used to shuffle each pass.
            sleep: Awaitable sleep used for pacing.
        """
        self._store = store
        self._gateway = gateway
        self._transports = transports
        self._data_dir = Path(data_dir)
        self._hash_type = hash_type
        self._rng = rng or random.Random()
        self._sleep = sleep

    async def run_pass(self, delay: float) -> PassSummary:
        """Processes every pending song once.

        A failing song is marked errored and never aborts the pass. Between
        two songs the pipeline waits ``delay`` seconds, whatever the outcome.
        No wait follows the last song, so a pass ends as soon as its final
        song is handled.

        Args:
            delay: Pause between two songs, in seconds.

        Returns:
            PassSummary of the pass.
        """
        songs = await self._store.find_pending_songs()
        self._rng.shuffle(songs)
        logger.info("%d songs pending", len(songs))

        summary = PassSummary(total=len(songs))
        for index, song in enumerate(songs):
            if index > 0 and delay > 0:
                await self._sleep(delay)

            try:
                outcome = await self.acquire_one(song)
            except Exception as e:
                logger.exception("Acquisition failed for %r", song)
                await self._mark_errored(song)
                summary.errored += 1
                summary.failures.append((song.id, str(e)))
                continue

            if outcome is AcquisitionOutcome.ACQUIRED:
                summary.acquired += 1
            else:
                summary.existing += 1

        logger.info(
            "Pass finished: %d acquired, %d already stored, %d errored",
            summary.acquired,
            summary.existing,
            summary.errored,
        )
        return summary

    async def acquire_one(self, song: Song) -> AcquisitionOutcome:
        """Acquires a resource for one song.

        Args:
            song: The catalog song.

        Returns:
            ACQUIRED if a new resource was stored, ALREADY_PRESENT if the best
            match was stored before (nothing fetched or written).

        Raises:
            SearchFailed: If the gateway search is unsuccessful.
            NoMatchFound: If no candidate matches the song exactly.
            ResolveFailed: If no download URL can be obtained.
            FetchFailed: If the transport download fails.
            UnknownFileType: If the downloaded content is not recognised.
            StoreFailed: If the blob or the resource row cannot be written.
        """
        logger.debug(
            "Handling (%s, %s, %s)", song.raw_source, song.artist_name, song.song_name
        )

        keywords = f"{song.artist_name} {song.song_name}"
        search = await self._gateway.search_song(keywords)
        if not search.status:
            raise SearchFailed(keywords)

        candidates = flatten_search_results(search.data)
        best = pick_best(candidates, song.artist_name, song.song_name)
        if best is None:
            raise NoMatchFound(song.artist_name, song.song_name, len(candidates))
        logger.info("Best match for song %s: %s", song.id, best)

        identity = _identity_of(best)
        if await self._store.count_resources(identity) > 0:
            logger.info("Song resource exists: %s", _describe(identity))
            return AcquisitionOutcome.ALREADY_PRESENT

        resolved = await self._gateway.get_song_url(best.source, best.id)
        if not resolved.status or not resolved.url:
            raise ResolveFailed(best.source, best.id)

        transport = self._transports.for_provider(best.source)
        data = await transport.fetch(resolved.url)

        path = await asyncify(build_content_path)(data, self._hash_type)
        await self._write_blob(path, data)
        await self._store.add_resource(song, identity, path)

        logger.info("Song resource added: %s -> %s", _describe(identity), path)
        return AcquisitionOutcome.ACQUIRED

    async def _mark_errored(self, song: Song) -> None:
        try:
            await self._store.mark_errored(song)
        except StoreFailed:
            logger.exception("Cannot persist errored status of song %s", song.id)

    async def _write_blob(self, path: str, data: bytes) -> None:
        try:
            await asyncify(write_blob)(self._data_dir, path, data)
        except OSError as e:
            raise StoreFailed(path, str(e)) from e


def _identity_of(candidate: Candidate) -> ResourceIdentity:
    return ResourceIdentity(
        source=candidate.source,
        album_name=candidate.album_name,
        artist_name=candidate.artist_name,
        song_name=candidate.song_name,
        quality=quality_of(candidate),
    )


def _describe(identity: ResourceIdentity) -> str:
    return (
        f"({identity.source}, {identity.artist_name}, {identity.song_name}, "
        f"{identity.quality.value})"
    )

