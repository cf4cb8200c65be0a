"""
Song archive routes.

``POST /song``: upload a score (base64 .mxl) with its catalog metadata.
``GET /song/{song_id}/mxl``: download the stored archive as raw bytes.

Upload pipeline:
    1. Decode base64                  -> 400 invalid_base64
    2. Size ceiling                   -> 413 payload_too_large
    3. ZIP magic number               -> 400 payload_not_mxl_zip
    4. EOCD check (advisory)          -> 400 payload_truncated_zip only if enforced
    5. Re-encode as ``\\x`` hex, upsert -> 409 duplicate_song_metadata / duplicate_file_name
                                         / 500 server_error

Download pipeline:
    1. Validate id                    -> 400 bad_request
    2. Read row                       -> 404 not_found / 500 server_error
    3. Sniff + decode column value    -> 500 server_error
    4. Serve exact bytes, ``Cache-Control: no-store``

Every error body is ``{"ok": false, "error": <code>, "message": <text>}``.
"""

import logging
import re
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError

from api.deps import get_song_store, get_transport_config
from api.schemas.song import (
    ArchiveDebugResponse,
    CreateSongRequest,
    CreateSongResponse,
    ErrorResponse,
    ZipIntegrityResponse,
)
from core.config import TransportConfig
from core.mxl.errors import (
    ArtifactError,
    DecodeError,
    EmptyPayloadError,
    NotAZipArchiveError,
    PayloadTooLargeError,
    TruncatedArchiveError,
)
from core.mxl.ingest import ingest_base64
from core.mxl.retrieval import retrieve
from db.songs import DuplicateFileNameError, DuplicateSongError, SongMetadata, SongStore
from infrastructure.metrics import (
    LatencyTimer,
    record_ingest,
    record_integrity_failure,
    record_retrieval,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/song", tags=["song"])

Store = Annotated[SongStore, Depends(get_song_store)]
Config = Annotated[TransportConfig, Depends(get_transport_config)]

# ASCII digits only, bounded below the BIGINT range: rejects "1e3", "-1", " 7", "0x10"
_SONG_ID_PATTERN = re.compile(r"[0-9]{1,18}")

CACHE_CONTROL_NO_STORE = "no-store"

_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    """Build the JSON error body shared by all song routes."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=code, message=message).model_dump(),
    )


def _parse_song_id(raw: str) -> int | None:
    if not _SONG_ID_PATTERN.fullmatch(raw):
        return None
    song_id = int(raw)
    return song_id if song_id > 0 else None


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------


def _store_upload(
    body: CreateSongRequest,
    store: SongStore,
    config: TransportConfig,
) -> tuple[Response | CreateSongResponse, str, int | None]:
    """Run the upload pipeline.

    Returns:
        ``(response, metric_status, archive_size)``.
    """
    try:
        result = ingest_base64(body.song_mxl_base64, config)
    except (DecodeError, EmptyPayloadError) as exc:
        return (
            error_response(400, "invalid_base64", f"song_mxl_base64 is not valid base64: {exc}"),
            "invalid_base64",
            None,
        )
    except (NotAZipArchiveError, TruncatedArchiveError) as exc:
        return error_response(400, exc.code, str(exc)), exc.code, None
    except PayloadTooLargeError as exc:
        return error_response(413, exc.code, str(exc)), exc.code, exc.size

    if not result.integrity.ok:
        record_integrity_failure("ingest")

    meta = SongMetadata(
        song_title=body.song_title,
        composer_first_name=body.composer_first_name,
        composer_last_name=body.composer_last_name,
        skill_level_name=body.skill_level_name,
        file_name=body.file_name,
    )
    try:
        song_id = store.upsert_song(meta, result.stored_value)
    except (DuplicateSongError, DuplicateFileNameError) as exc:
        return error_response(409, exc.code, str(exc)), exc.code, result.byte_length
    except SQLAlchemyError as exc:
        logger.exception("Storing song %r failed", body.file_name)
        return error_response(500, "server_error", str(exc)), "server_error", result.byte_length

    response = CreateSongResponse(
        song_id=song_id,
        byte_length=result.byte_length,
        zip_complete=result.integrity.ok,
    )
    return response, "stored", result.byte_length


@router.post("", response_model=CreateSongResponse, responses=_ERROR_RESPONSES)
def create_song(
    body: CreateSongRequest,
    store: Store,
    config: Config,
) -> Response | CreateSongResponse:
    """Validate an uploaded .mxl archive and store it with its metadata.

    The archive must start with a ZIP signature.  It is stored as
    ``\\x``-prefixed lowercase hex whatever whitespace or padding the
    upload used.
    """
    with LatencyTimer() as timer:
        response, status, size = _store_upload(body, store, config)
    record_ingest(status=status, size_bytes=size, latency_seconds=timer.elapsed)
    return response


# ---------------------------------------------------------------------------
# Download
# ---------------------------------------------------------------------------


def _serve_archive(
    raw_id: str,
    debug: str | None,
    store: SongStore,
    config: TransportConfig,
) -> tuple[Response, str, int | None]:
    """Run the download pipeline.

    Returns:
        ``(response, metric_status, archive_size)``.
    """
    song_id = _parse_song_id(raw_id)
    if song_id is None:
        response = error_response(400, "bad_request", "id must be a positive integer")
        return response, "bad_request", None

    try:
        stored = store.get_song_mxl(song_id)
    except SQLAlchemyError as exc:
        logger.exception("Reading song %d failed", song_id)
        return error_response(500, "server_error", str(exc)), "server_error", None
    if stored is None:
        return error_response(404, "not_found", "Song not found"), "not_found", None

    try:
        retrieved = retrieve(stored.song_mxl, stored.song_title, config)
    except ArtifactError as exc:
        logger.error("Song %d archive could not be decoded (%s): %s", song_id, exc.code, exc)
        return error_response(500, "server_error", str(exc)), exc.code, None

    size = len(retrieved.artifact)
    if not retrieved.integrity.ok:
        record_integrity_failure("retrieval")

    if debug == "1":
        payload = ArchiveDebugResponse(
            byte_length=size,
            zip=ZipIntegrityResponse(**retrieved.integrity.to_dict()),
        )
        return JSONResponse(content=payload.model_dump()), "debug", size

    response = Response(
        content=retrieved.artifact.data,
        media_type=retrieved.descriptor.mime_type,
        headers={
            "Content-Disposition": retrieved.descriptor.content_disposition,
            "Cache-Control": CACHE_CONTROL_NO_STORE,
        },
    )
    return response, "served", size


@router.get(
    "/{song_id}/mxl",
    response_class=Response,
    responses={
        200: {"content": {"application/vnd.recordare.musicxml+zip": {}}},
        **_ERROR_RESPONSES,
    },
)
def get_song_mxl(
    song_id: str,
    store: Store,
    config: Config,
    debug: str | None = None,
) -> Response:
    """Serve the stored archive byte-for-byte.

    ``?debug=1`` returns the decoded length and the ZIP integrity report
    as JSON instead of the archive.
    """
    with LatencyTimer() as timer:
        response, status, size = _serve_archive(song_id, debug, store, config)
    record_retrieval(status=status, size_bytes=size, latency_seconds=timer.elapsed)
    return response
