"""Pydantic schemas for /song endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CreateSongRequest(BaseModel):
    """Upload of one score with its catalog metadata.

    ``song_mxl_base64`` carries the .mxl archive bytes; whitespace and line
    breaks inside it are ignored.
    """

    song_title: str = Field(..., min_length=1, max_length=256)
    composer_first_name: str = Field(..., min_length=1, max_length=128)
    composer_last_name: str = Field(..., min_length=1, max_length=128)
    skill_level_name: str = Field(..., min_length=1, max_length=64)
    file_name: str = Field(..., min_length=1, max_length=512)
    song_mxl_base64: str = Field(..., min_length=1)


class CreateSongResponse(BaseModel):
    ok: bool = True
    song_id: int
    byte_length: int
    zip_complete: bool


class ZipIntegrityResponse(BaseModel):
    ok: bool
    eocd_found: bool
    eocd_offset: int | None
    comment_length: int
    missing_bytes: int
    trailing_bytes: int
    total_length: int


class ArchiveDebugResponse(BaseModel):
    """Returned by ``GET /song/{id}/mxl?debug=1`` instead of the archive."""

    ok: bool = True
    byte_length: int
    zip: ZipIntegrityResponse


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    message: str
