"""
Retrieval pipeline: storage value -> exact archive bytes + content descriptor.

The storage layer may hand back ``\\x`` hex text, base64 text, a native
byte sequence, a list of byte values, or None.  :func:`retrieve` sniffs the
shape, decodes it, and never returns partially decoded bytes: any failure
propagates as an :class:`~core.mxl.errors.ArtifactError`.
"""

from __future__ import annotations

import logging

from core.config import DEFAULT_CONFIG, TransportConfig
from core.mxl.codec import decode_stored
from core.mxl.types import ContentDescriptor, RetrievedArtifact
from core.mxl.zip_integrity import check_eocd

logger = logging.getLogger(__name__)


def build_descriptor(
    title: str | None, config: TransportConfig = DEFAULT_CONFIG
) -> ContentDescriptor:
    """
    Derive the MIME type and download filename for a song.

    Args:
        title: Song title from the catalog; None or blank falls back to
            ``config.default_title``.
        config: Transport configuration.

    Returns:
        ContentDescriptor, e.g. ``("application/vnd.recordare.musicxml+zip",
        "Gymnopedie No. 1.mxl")``.
    """
    stem = (title or "").strip() or config.default_title
    return ContentDescriptor(
        mime_type=config.mime_type,
        suggested_filename=f"{stem}{config.filename_extension}",
    )


def retrieve(
    stored_value: object,
    title: str | None,
    config: TransportConfig = DEFAULT_CONFIG,
) -> RetrievedArtifact:
    """
    Decode one stored archive for serving.

    Args:
        stored_value: Raw value of the archive column, any supported shape.
        title: Song title used for the download filename.
        config: Transport configuration.

    Returns:
        RetrievedArtifact carrying the bytes, descriptor and an advisory
        EOCD report.

    Raises:
        EmptyPayloadError: If the value is None or decodes to zero bytes.
        DecodeError: If hex/base64 text or a byte array is malformed.
        UnsupportedEncodingError: If the value shape is not recognised.
    """
    artifact = decode_stored(stored_value)
    report = check_eocd(artifact.data)
    if not report.ok:
        logger.warning(
            "Serving archive that fails the EOCD check "
            "(eocd_offset=%s, missing_bytes=%d, size=%d)",
            report.eocd_offset,
            report.missing_bytes,
            report.total_length,
        )
    return RetrievedArtifact(
        artifact=artifact,
        descriptor=build_descriptor(title, config),
        integrity=report,
    )
