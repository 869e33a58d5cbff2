"""Catalog database: ORM models and the async catalog store.

Songs are the catalog entries the system wants a playable resource for;
song resources are downloaded assets matched to a song. Artist is part of
the schema but not populated by songstash itself.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
    select,
    update,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .utils.exceptions import StoreFailed
from .utils.models import CatalogCounts, ResourceIdentity, SongStatus

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


class Artist(Base):
    __tablename__ = "artist"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    aliases: Mapped[str] = mapped_column(String(1024), default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )


class Song(Base):
    """A catalog entry.

    Pending while status is ``valid`` and no resource exists; resolved once
    it owns a resource; ``errored`` after a failed acquisition.
    """

    __tablename__ = "song"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    album_name: Mapped[str] = mapped_column(String(255))
    artist_name: Mapped[str] = mapped_column(String(255), index=True)
    song_name: Mapped[str] = mapped_column(String(255))
    raw_source: Mapped[str] = mapped_column(String(50))
    raw_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=SongStatus.VALID.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    resources: Mapped[list["SongResource"]] = relationship(back_populates="song")

    def __repr__(self) -> str:
        return (
            f"<Song {self.id} ({self.raw_source}, {self.artist_name}, "
            f"{self.song_name}) {self.status}>"
        )


class SongResource(Base):
    """A downloaded audio asset matched to a song.

    Name fields are the ones reported by the matched provider. ``path`` is
    relative to the blob store root.
    """

    __tablename__ = "song_resource"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    album_name: Mapped[str] = mapped_column(String(255))
    artist_name: Mapped[str] = mapped_column(String(255))
    song_name: Mapped[str] = mapped_column(String(255))
    source: Mapped[str] = mapped_column(String(50))
    quality: Mapped[str] = mapped_column(String(20))
    path: Mapped[str] = mapped_column(String(512))
    song_id: Mapped[int | None] = mapped_column(
        ForeignKey("song.id"), nullable=True, index=True
    )
    status: Mapped[str] = mapped_column(String(20), default=SongStatus.VALID.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    song: Mapped[Song | None] = relationship(back_populates="resources")


class CatalogStore:
    """Async CRUD access to songs and song resources.

    Returned ORM objects are detached from their session; only scalar
    columns may be read from them.
    """

    def __init__(self, database_url: str, echo: bool = False) -> None:
        """Initialize the store.

        Args:
            database_url: SQLAlchemy async database URL.
            echo: Log every SQL statement.
        """
        self._engine = create_async_engine(database_url, echo=echo)
        self._sessionmaker = async_sessionmaker(self._engine, expire_on_commit=False)

    async def create_all(self) -> None:
        """Creates missing tables."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def _transaction(self, target: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessionmaker() as session, session.begin():
                yield session
        except SQLAlchemyError as e:
            raise StoreFailed(target, str(e)) from e

    # ------------------------------------------------------------------
    # Songs
    # ------------------------------------------------------------------

    async def add_song(
        self,
        album_name: str,
        artist_name: str,
        song_name: str,
        raw_source: str,
        raw_data: dict[str, Any] | None = None,
    ) -> Song:
        song = Song(
            album_name=album_name,
            artist_name=artist_name,
            song_name=song_name,
            raw_source=raw_source,
            raw_data=raw_data,
        )
        async with self._transaction(f"song ({artist_name}, {song_name})") as session:
            session.add(song)
        return song

    async def count_songs(
        self, raw_source: str, artist_name: str, album_name: str, song_name: str
    ) -> int:
        stmt = select(func.count(Song.id)).where(
            Song.raw_source == raw_source,
            Song.artist_name == artist_name,
            Song.album_name == album_name,
            Song.song_name == song_name,
        )
        async with self._transaction("song count") as session:
            return (await session.execute(stmt)).scalar_one()

    async def get_song(self, song_id: int) -> Song | None:
        async with self._transaction(f"song {song_id}") as session:
            return await session.get(Song, song_id)

    async def find_pending_songs(self) -> list[Song]:
        """Returns songs with status ``valid`` that own no resource.

        Returns:
            Pending songs ordered by id.
        """
        stmt = (
            select(Song)
            .where(Song.status == SongStatus.VALID.value, ~Song.resources.any())
            .order_by(Song.id)
        )
        async with self._transaction("pending songs") as session:
            return list((await session.execute(stmt)).scalars())

    async def mark_errored(self, song: Song) -> None:
        """Persists the ``errored`` status of a song.

        Args:
            song: The song that failed; its status attribute is updated too.
        """
        stmt = (
            update(Song)
            .where(Song.id == song.id)
            .values(status=SongStatus.ERRORED.value)
        )
        async with self._transaction(f"song {song.id}") as session:
            await session.execute(stmt)
        song.status = SongStatus.ERRORED.value

    async def reset_errored(self) -> int:
        """Makes every errored song pending again.

        Returns:
            Number of songs reset.
        """
        stmt = (
            update(Song)
            .where(Song.status == SongStatus.ERRORED.value)
            .values(status=SongStatus.VALID.value)
        )
        async with self._transaction("errored songs") as session:
            result = await session.execute(stmt)
        return result.rowcount or 0

    async def count_by_state(self) -> CatalogCounts:
        """Counts songs by acquisition state.

        Returns:
            CatalogCounts with pending, resolved, errored songs and resources.
        """
        has_resource = Song.resources.any()
        async with self._transaction("catalog counts") as session:
            pending = await session.scalar(
                select(func.count(Song.id)).where(
                    Song.status == SongStatus.VALID.value, ~has_resource
                )
            )
            resolved = await session.scalar(
                select(func.count(Song.id)).where(has_resource)
            )
            errored = await session.scalar(
                select(func.count(Song.id)).where(
                    Song.status == SongStatus.ERRORED.value
                )
            )
            resources = await session.scalar(select(func.count(SongResource.id)))
        return CatalogCounts(
            pending=pending or 0,
            resolved=resolved or 0,
            errored=errored or 0,
            resources=resources or 0,
        )

    # ------------------------------------------------------------------
    # Song resources
    # ------------------------------------------------------------------

    async def count_resources(self, identity: ResourceIdentity) -> int:
        """Counts resources sharing a uniqueness key.

        Args:
            identity: (source, album, artist, song, quality) key.

        Returns:
            Number of matching resources.
        """
        stmt = select(func.count(SongResource.id)).where(
            SongResource.source == identity.source,
            SongResource.album_name == identity.album_name,
            SongResource.artist_name == identity.artist_name,
            SongResource.song_name == identity.song_name,
            SongResource.quality == identity.quality.value,
        )
        async with self._transaction("resource count") as session:
            return (await session.execute(stmt)).scalar_one()

    async def add_resource(
        self, song: Song, identity: ResourceIdentity, path: str
    ) -> SongResource:
        """Persists a new resource for a song.

        Args:
            song: The song the resource belongs to.
            identity: Provider-reported identity of the resource.
            path: Relative blob path; the blob must already be written.

        Returns:
            The stored SongResource.
        """
        resource = SongResource(
            album_name=identity.album_name,
            artist_name=identity.artist_name,
            song_name=identity.song_name,
            source=identity.source,
            quality=identity.quality.value,
            path=path,
            song_id=song.id,
        )
        async with self._transaction(f"resource {path}") as session:
            session.add(resource)
        return resource

    async def list_resources(self, song_id: int | None = None) -> list[SongResource]:
        stmt = select(SongResource).order_by(SongResource.id)
        if song_id is not None:
            stmt = stmt.where(SongResource.song_id == song_id)
        async with self._transaction("resources") as session:
            return list((await session.execute(stmt)).scalars())
