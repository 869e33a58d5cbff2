"""One-time catalog seeding from raw favourites export files.

Each ``*.json`` file holds an export of the shape::

    {"result": {"data": {"songs": [
        {"songName": ..., "albumName": ..., "artistName": ...,
         "artistVOs": [{"artistName": ...}], ...}
    ]}}}
"""

import logging
from pathlib import Path
from typing import Any

import anyio
import msgspec

from .database import CatalogStore
from .utils.exceptions import CatalogImportError
from .utils.models import ImportSummary

logger = logging.getLogger(__name__)


class _ExportData(msgspec.Struct):
    songs: list[dict[str, Any]]


class _ExportResult(msgspec.Struct):
    data: _ExportData


class _ExportFile(msgspec.Struct):
    result: _ExportResult


def _artist_name(record: dict[str, Any]) -> str:
    # the first credited artist is more precise than the display string
    artists = record.get("artistVOs") or []
    if artists and artists[0].get("artistName"):
        return artists[0]["artistName"]
    return record.get("artistName") or ""


async def _read_export(path: Path) -> list[dict[str, Any]]:
    content = await anyio.Path(path).read_bytes()
    try:
        return msgspec.json.decode(content, type=_ExportFile).result.data.songs
    except msgspec.DecodeError as e:
        raise CatalogImportError(str(path), str(e)) from e


async def import_catalog(
    store: CatalogStore, directory: str | Path, raw_source: str = "xiami"
) -> ImportSummary:
    """Imports every export file of a directory into the catalog.

    Songs already present for the same (raw_source, artist, album, song) are
    skipped, so the import can be re-run safely.

    Args:
        store: Catalog store to fill.
        directory: Directory holding ``*.json`` export files.
        raw_source: Origin tag stored on the imported songs.

    Returns:
        ImportSummary with file, added and skipped counts.

    Raises:
        CatalogImportError: If a file is not a valid export.
    """
    summary = ImportSummary()
    for path in sorted(Path(directory).glob("*.json")):
        summary.files += 1
        for record in await _read_export(path):
            artist_name = _artist_name(record)
            album_name = record.get("albumName") or ""
            song_name = record.get("songName") or ""
            key = f"({raw_source}, {artist_name}, {album_name}, {song_name})"

            if await store.count_songs(raw_source, artist_name, album_name, song_name):
                logger.debug("%s exists", key)
                summary.skipped += 1
                continue

            await store.add_song(
                album_name=album_name,
                artist_name=artist_name,
                song_name=song_name,
                raw_source=raw_source,
                raw_data=record,
            )
            logger.debug("%s added", key)
            summary.added += 1

    logger.info(
        "Imported %d songs from %d files (%d already present)",
        summary.added,
        summary.files,
        summary.skipped,
    )
    return summary
