"""
Song archive reads and writes against the ``song`` table.

``SongStore`` is the storage handle injected into the API routes and CLIs.
It owns one SQLAlchemy engine; each call opens and closes its own session,
so a store can serve concurrent requests without shared session state.

Writes accept only the canonical ``\\x`` hex form produced by
:func:`core.mxl.ingest.ingest_bytes`.  Reads return the column value
untouched: the caller sniffs and decodes it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Engine, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models import COMPOSITE_UNIQUE_CONSTRAINT, FILE_NAME_UNIQUE_CONSTRAINT, Base, Song
from db.session import build_engine, build_session_factory

logger = logging.getLogger(__name__)


class DuplicateSongError(Exception):
    """Another file already holds this title/composer/level combination.

    Args:
        song_title: Title of the rejected upload.
        file_name: File name of the rejected upload.
    """

    code = "duplicate_song_metadata"

    def __init__(self, song_title: str, file_name: str) -> None:
        self.song_title = song_title
        self.file_name = file_name
        super().__init__(
            f"A song with the same Title/Composer/Level already exists ({song_title!r})."
        )


class DuplicateFileNameError(Exception):
    """A concurrent writer inserted a row with the same ``file_name`` first.

    Args:
        file_name: File name of the rejected upload.
    """

    code = "duplicate_file_name"

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(f"File name already used ({file_name!r}).")


def _violates(exc: IntegrityError, constraint: str, column: str) -> bool:
    # PostgreSQL names the constraint; SQLite names the column ("song.file_name")
    message = str(exc.orig)
    return constraint in message or f"song.{column}" in message


@dataclass(frozen=True)
class SongMetadata:
    """Catalog fields stored alongside an archive."""

    song_title: str
    composer_first_name: str
    composer_last_name: str
    skill_level_name: str
    file_name: str


@dataclass(frozen=True)
class StoredSong:
    """Archive column as returned by the driver, plus the title.

    Attributes:
        song_mxl: Raw column value: hex text, base64 text, bytes, a list
            of byte values, or None.
        song_title: Title used for the download filename.
    """

    song_mxl: object
    song_title: str | None


class SongStore:
    """Storage handle for song archives.

    Args:
        engine: SQLAlchemy engine.  The store disposes of it in
            :meth:`close`.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._session_factory = build_session_factory(engine)

    @classmethod
    def from_url(cls, url: str | None = None) -> SongStore:
        """Build a store from a database URL (default: ``DATABASE_URL``)."""
        return cls(build_engine(url))

    def create_schema(self) -> None:
        """Create the ``song`` table if it does not exist."""
        Base.metadata.create_all(bind=self._engine)

    def close(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()

    # ------------------------------------------------------------------ #
    # Writes                                                               #
    # ------------------------------------------------------------------ #

    def upsert_song(self, meta: SongMetadata, song_mxl: str) -> int:
        """Insert a song, or replace the row that already has ``meta.file_name``.

        Args:
            meta: Catalog fields.
            song_mxl: Canonical ``\\x`` hex archive value.

        Returns:
            The ``song_id`` of the inserted or updated row.

        Raises:
            DuplicateSongError: If a *different* file already has the same
                title, composer and skill level.
            DuplicateFileNameError: If another writer inserted the same
                ``file_name`` between the lookup and the commit.
        """
        with self._session_factory() as session:
            clash = session.scalar(
                select(Song.song_id).where(
                    Song.song_title == meta.song_title,
                    Song.composer_first_name == meta.composer_first_name,
                    Song.composer_last_name == meta.composer_last_name,
                    Song.skill_level_name == meta.skill_level_name,
                    Song.file_name != meta.file_name,
                )
            )
            if clash is not None:
                raise DuplicateSongError(meta.song_title, meta.file_name)

            song = self._find_by_file_name(session, meta.file_name)
            if song is None:
                song = Song(file_name=meta.file_name)
                session.add(song)
            song.song_title = meta.song_title
            song.composer_first_name = meta.composer_first_name
            song.composer_last_name = meta.composer_last_name
            song.skill_level_name = meta.skill_level_name
            song.song_mxl = song_mxl
            song.updated_datetime = func.now()  # type: ignore[assignment]
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if _violates(exc, FILE_NAME_UNIQUE_CONSTRAINT, "file_name"):
                    raise DuplicateFileNameError(meta.file_name) from exc
                if _violates(exc, COMPOSITE_UNIQUE_CONSTRAINT, "song_title"):
                    raise DuplicateSongError(meta.song_title, meta.file_name) from exc
                raise
            logger.info("Stored song %d (%s)", song.song_id, meta.file_name)
            return song.song_id

    @staticmethod
    def _find_by_file_name(session: Session, file_name: str) -> Song | None:
        return session.scalar(select(Song).where(Song.file_name == file_name))

    def update_song_mxl(self, song_id: int, song_mxl: str) -> bool:
        """Replace the archive of an existing song.

        Args:
            song_id: Row to update.
            song_mxl: Canonical ``\\x`` hex archive value.

        Returns:
            True if a row was updated, False if ``song_id`` does not exist.
        """
        with self._session_factory() as session:
            result = session.execute(
                update(Song)
                .where(Song.song_id == song_id)
                .values(song_mxl=song_mxl, updated_datetime=func.now())
            )
            session.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------ #
    # Reads                                                                #
    # ------------------------------------------------------------------ #

    def get_song_mxl(self, song_id: int) -> StoredSong | None:
        """Fetch the raw archive value and title of one song.

        Returns:
            StoredSong, or None if ``song_id`` does not exist.
        """
        with self._session_factory() as session:
            row = session.execute(
                select(Song.song_mxl, Song.song_title).where(Song.song_id == song_id)
            ).first()
        if row is None:
            return None
        return StoredSong(song_mxl=row.song_mxl, song_title=row.song_title)
