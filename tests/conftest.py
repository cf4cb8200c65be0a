"""
Shared fixtures for the test suite.

Centralizes archive builders and storage/app overrides so individual test
files don't need to repeat ZIP or dependency boilerplate.
"""

import io
import struct
import zipfile
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from api.deps import get_song_store, get_transport_config
from api.main import app
from core.config import DEFAULT_CONFIG, TransportConfig
from db.songs import SongStore

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMPTY_ZIP: bytes = b"PK\x05\x06" + b"\x00" * 18
"""Smallest valid ZIP: an EOCD record with no entries and no comment."""

CONTAINER_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    "<container><rootfiles>"
    '<rootfile full-path="score.musicxml" media-type="application/vnd.recordare.musicxml+xml"/>'
    "</rootfiles></container>"
)

FIXED_DATE_TIME = (2025, 1, 1, 0, 0, 0)

SCORE_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<score-partwise version="4.0"><part-list><score-part id="P1">'
    "<part-name>Piano</part-name></score-part></part-list>"
    '<part id="P1"><measure number="1"/></part></score-partwise>'
)


# ---------------------------------------------------------------------------
# Archive builders
# ---------------------------------------------------------------------------


def build_mxl(comment: bytes = b"", xml: str = SCORE_XML) -> bytes:
    """Build a real .mxl archive (container.xml + one MusicXML file).

    Entry timestamps are fixed so repeated calls return identical bytes.
    """
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, text in (("META-INF/container.xml", CONTAINER_XML), ("score.musicxml", xml)):
            info = zipfile.ZipInfo(name, date_time=FIXED_DATE_TIME)
            info.compress_type = zipfile.ZIP_DEFLATED
            zf.writestr(info, text)
        zf.comment = comment
    return buf.getvalue()


def build_eocd_buffer(body: bytes, comment: bytes) -> bytes:
    """``<body><EOCD signature><16 fixed bytes><comment>``.

    The fixed bytes are zero except the trailing comment-length field.
    """
    return body + b"PK\x05\x06" + b"\x00" * 16 + struct.pack("<H", len(comment)) + comment


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mxl_bytes() -> bytes:
    return build_mxl()


@pytest.fixture()
def song_store() -> Iterator[SongStore]:
    """``SongStore`` on a private in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    store = SongStore(engine)
    store.create_schema()
    yield store
    store.close()


@pytest.fixture()
def transport_config() -> TransportConfig:
    return DEFAULT_CONFIG


@pytest.fixture()
def api_client(song_store: SongStore, transport_config: TransportConfig) -> Iterator[TestClient]:
    """FastAPI ``TestClient`` wired to the in-memory store.

    Not entered as a context manager, so the lifespan (which would connect
    to ``DATABASE_URL``) does not run.
    """
    app.dependency_overrides[get_song_store] = lambda: song_store
    app.dependency_overrides[get_transport_config] = lambda: transport_config
    yield TestClient(app)
    app.dependency_overrides.clear()
