"""
Replace the archive of one existing song from a local .mxl file.

The file goes through the same gate as an HTTP upload (size ceiling, ZIP
magic number, EOCD check) and is stored in the canonical ``\\x`` hex form.

CLI entry point::

    python -m ingestion.update_song --song-id 2 --file gymnopedie-no-1.mxl
"""

from __future__ import annotations

import argparse
import logging
import pathlib

from dotenv import load_dotenv

from core.config import TransportConfig
from core.mxl.errors import ArtifactError
from core.mxl.ingest import ingest_bytes
from db.songs import SongStore

logger = logging.getLogger(__name__)


def update_song(
    store: SongStore,
    song_id: int,
    path: pathlib.Path,
    config: TransportConfig,
) -> int:
    """
    Validate *path* and write it into ``song.song_mxl`` for *song_id*.

    Args:
        store: Storage handle.
        song_id: Row to update.
        path: Local .mxl file.
        config: Transport configuration.

    Returns:
        Number of bytes stored.

    Raises:
        ArtifactError: If the file fails validation.
        LookupError: If no row has *song_id*.
    """
    result = ingest_bytes(path.read_bytes(), config)
    if not store.update_song_mxl(song_id, result.stored_value):
        raise LookupError(f"No row updated for song_id={song_id}")
    return result.byte_length


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid song id: {raw!r}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError(f"song id must be positive, got {value}")
    return value


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and run the update."""
    parser = argparse.ArgumentParser(
        description="Replace one song's .mxl archive in the catalog database.",
    )
    parser.add_argument(
        "--song-id", type=_positive_int, required=True, help="song_id of the row to fix."
    )
    parser.add_argument(
        "--file", type=pathlib.Path, required=True, help="Path to the .mxl file on disk."
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL (default: DATABASE_URL environment variable).",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if not args.file.is_file():
        logger.error("Not a file: %s", args.file)
        return 2

    load_dotenv()
    store = SongStore.from_url(args.database_url)
    try:
        size = update_song(store, args.song_id, args.file, TransportConfig.from_env())
    except (ArtifactError, LookupError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    finally:
        store.close()

    print(f"Updated song_id={args.song_id} with {size} bytes.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
