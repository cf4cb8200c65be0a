"""Tests for the ingestion.check_zip and ingestion.update_song command-line tools."""

from __future__ import annotations

import json
import pathlib

import pytest

from conftest import EMPTY_ZIP, build_mxl
from core.config import DEFAULT_CONFIG, STRICT_CONFIG
from core.mxl.codec import decode_stored
from core.mxl.errors import NotAZipArchiveError, TruncatedArchiveError
from db.songs import SongMetadata, SongStore
from ingestion import check_zip, update_song


def _write(tmp_path: pathlib.Path, name: str, data: bytes) -> pathlib.Path:
    path = tmp_path / name
    path.write_bytes(data)
    return path


@pytest.fixture()
def db_url(tmp_path: pathlib.Path) -> str:
    return f"sqlite:///{tmp_path / 'scores.db'}"


@pytest.fixture()
def seeded_song(db_url: str) -> int:
    store = SongStore.from_url(db_url)
    store.create_schema()
    meta = SongMetadata(
        song_title="Clair de lune",
        composer_first_name="Claude",
        composer_last_name="Debussy",
        skill_level_name="Advanced",
        file_name="clair-de-lune.mxl",
    )
    song_id = store.upsert_song(meta, "\\x504b0506" + "00" * 18)
    store.close()
    return song_id


# ---------------------------------------------------------------------------
# check_zip
# ---------------------------------------------------------------------------


class TestInspectFile:
    def test_complete_archive(self, tmp_path: pathlib.Path) -> None:
        data = build_mxl(comment=b"ok")
        summary = check_zip.inspect_file(_write(tmp_path, "a.mxl", data))
        assert summary["bytes"] == len(data)
        assert summary["head_hex"] == "504b0304"
        assert summary["zip_magic"] is True
        assert summary["zip_ok"] is True
        assert summary["comment_length"] == 2
        assert summary["missing_bytes"] == 0

    def test_truncated_archive(self, tmp_path: pathlib.Path) -> None:
        summary = check_zip.inspect_file(
            _write(tmp_path, "cut.mxl", build_mxl(comment=b"abcdef")[:-4])
        )
        assert summary["zip_magic"] is True
        assert summary["zip_ok"] is False
        assert summary["missing_bytes"] == 4

    def test_not_a_zip(self, tmp_path: pathlib.Path) -> None:
        summary = check_zip.inspect_file(_write(tmp_path, "img.gif", b"GIF89a" + EMPTY_ZIP))
        assert summary["head_hex"] == "47494638"
        assert summary["zip_magic"] is False
        assert summary["zip_ok"] is False


class TestCheckZipMain:
    def test_exit_zero_and_json_for_complete_archive(
        self, tmp_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = _write(tmp_path, "a.mxl", EMPTY_ZIP)
        assert check_zip.main([str(path)]) == 0
        printed = json.loads(capsys.readouterr().out)
        assert printed["path"] == str(path)
        assert printed["bytes"] == 22
        assert printed["eocd_offset"] == 0

    def test_exit_one_for_truncated_archive(self, tmp_path: pathlib.Path) -> None:
        path = _write(tmp_path, "cut.mxl", EMPTY_ZIP[:-1])
        assert check_zip.main([str(path)]) == 1

    def test_exit_two_for_missing_file(self, tmp_path: pathlib.Path) -> None:
        assert check_zip.main([str(tmp_path / "nope.mxl")]) == 2


# ---------------------------------------------------------------------------
# update_song
# ---------------------------------------------------------------------------


class TestUpdateSong:
    def test_replaces_archive(self, db_url: str, seeded_song: int, tmp_path: pathlib.Path) -> None:
        data = build_mxl(comment=b"fixed")
        store = SongStore.from_url(db_url)
        try:
            size = update_song.update_song(
                store, seeded_song, _write(tmp_path, "fixed.mxl", data), DEFAULT_CONFIG
            )
            stored = store.get_song_mxl(seeded_song)
        finally:
            store.close()
        assert size == len(data)
        assert stored is not None
        assert stored.song_mxl == "\\x" + data.hex()
        assert decode_stored(stored.song_mxl).data == data

    def test_unknown_song_raises_lookup_error(
        self, db_url: str, seeded_song: int, tmp_path: pathlib.Path
    ) -> None:
        store = SongStore.from_url(db_url)
        try:
            with pytest.raises(LookupError, match="song_id=999"):
                update_song.update_song(
                    store, 999, _write(tmp_path, "a.mxl", EMPTY_ZIP), DEFAULT_CONFIG
                )
        finally:
            store.close()

    def test_rejects_non_zip_file(
        self, db_url: str, seeded_song: int, tmp_path: pathlib.Path
    ) -> None:
        store = SongStore.from_url(db_url)
        try:
            with pytest.raises(NotAZipArchiveError):
                update_song.update_song(
                    store, seeded_song, _write(tmp_path, "x.pdf", b"%PDF-1.7"), DEFAULT_CONFIG
                )
        finally:
            store.close()

    def test_strict_config_rejects_truncated_file(
        self, db_url: str, seeded_song: int, tmp_path: pathlib.Path
    ) -> None:
        store = SongStore.from_url(db_url)
        try:
            with pytest.raises(TruncatedArchiveError):
                update_song.update_song(
                    store,
                    seeded_song,
                    _write(tmp_path, "cut.mxl", build_mxl(comment=b"xyz")[:-1]),
                    STRICT_CONFIG,
                )
        finally:
            store.close()


class TestUpdateSongMain:
    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("MXL_MAX_PAYLOAD_BYTES", "MXL_DEFAULT_TITLE", "MXL_REQUIRE_COMPLETE_ARCHIVE"):
            monkeypatch.delenv(name, raising=False)

    def test_success_prints_summary(
        self,
        db_url: str,
        seeded_song: int,
        tmp_path: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = _write(tmp_path, "a.mxl", EMPTY_ZIP)
        argv = ["--song-id", str(seeded_song), "--file", str(path), "--database-url", db_url]
        assert update_song.main(argv) == 0
        assert f"Updated song_id={seeded_song} with 22 bytes." in capsys.readouterr().out

    def test_missing_row_exits_one(
        self, db_url: str, seeded_song: int, tmp_path: pathlib.Path
    ) -> None:
        path = _write(tmp_path, "a.mxl", EMPTY_ZIP)
        argv = ["--song-id", "999", "--file", str(path), "--database-url", db_url]
        assert update_song.main(argv) == 1

    def test_invalid_file_exits_one(
        self, db_url: str, seeded_song: int, tmp_path: pathlib.Path
    ) -> None:
        path = _write(tmp_path, "a.gif", b"GIF89a")
        argv = ["--song-id", str(seeded_song), "--file", str(path), "--database-url", db_url]
        assert update_song.main(argv) == 1

    def test_missing_file_exits_two(
        self,
        db_url: str,
        seeded_song: int,
        tmp_path: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        missing = tmp_path / "nope.mxl"
        argv = ["--song-id", str(seeded_song), "--file", str(missing), "--database-url", db_url]
        assert update_song.main(argv) == 2
        assert "Updated" not in capsys.readouterr().out

    @pytest.mark.parametrize("raw_id", ["0", "-3", "two"])
    def test_non_positive_song_id_rejected_by_parser(
        self, db_url: str, tmp_path: pathlib.Path, raw_id: str
    ) -> None:
        path = _write(tmp_path, "a.mxl", EMPTY_ZIP)
        argv = ["--song-id", raw_id, "--file", str(path), "--database-url", db_url]
        with pytest.raises(SystemExit) as exc_info:
            update_song.main(argv)
        assert exc_info.value.code == 2
