"""
Ingest pipeline: client text -> validated archive -> canonical storage value.

Steps::

    base64 text ──decode──→ RawArtifact ──size──→ magic ──EOCD──→ "\\x…" hex

Only the size ceiling and the magic number block ingest by default.  The
EOCD check runs on every upload and is logged when it fails; it blocks
only when ``config.require_complete_archive`` is set.

Pure functions: nothing is written here.  The caller hands
``IngestResult.stored_value`` to the storage layer.
"""

from __future__ import annotations

import logging

from core.config import DEFAULT_CONFIG, TransportConfig
from core.mxl.codec import decode, to_canonical
from core.mxl.errors import PayloadTooLargeError, TruncatedArchiveError
from core.mxl.types import Base64Text, IngestResult, RawArtifact
from core.mxl.zip_integrity import verify_archive

logger = logging.getLogger(__name__)


def ingest_bytes(data: bytes, config: TransportConfig = DEFAULT_CONFIG) -> IngestResult:
    """
    Validate raw archive bytes and produce the canonical storage value.

    Args:
        data: Archive bytes as read from disk or decoded from a client.
        config: Transport configuration.

    Returns:
        IngestResult with the ``\\x``-prefixed lowercase hex value.

    Raises:
        EmptyPayloadError: If *data* is empty.
        PayloadTooLargeError: If *data* exceeds ``config.max_payload_bytes``.
        NotAZipArchiveError: If the magic number is wrong.
        TruncatedArchiveError: If the EOCD check fails and
            ``config.require_complete_archive`` is set.
    """
    artifact = RawArtifact(data)
    if len(artifact) > config.max_payload_bytes:
        raise PayloadTooLargeError(len(artifact), config.max_payload_bytes)

    report = verify_archive(artifact.data)
    if not report.ok:
        if config.require_complete_archive:
            raise TruncatedArchiveError(report)
        logger.warning(
            "Accepting archive that fails the EOCD check "
            "(eocd_offset=%s, missing_bytes=%d, size=%d)",
            report.eocd_offset,
            report.missing_bytes,
            report.total_length,
        )

    return IngestResult(
        stored_value=to_canonical(artifact),
        byte_length=len(artifact),
        integrity=report,
    )


def ingest_base64(text: str, config: TransportConfig = DEFAULT_CONFIG) -> IngestResult:
    """
    Decode a client-supplied base64 archive and validate it for storage.

    Args:
        text: Base64 text; embedded whitespace is ignored.
        config: Transport configuration.

    Returns:
        IngestResult ready for the storage layer.

    Raises:
        DecodeError: If *text* is not valid base64.
        EmptyPayloadError: If *text* decodes to zero bytes.
        PayloadTooLargeError, NotAZipArchiveError, TruncatedArchiveError:
            See :func:`ingest_bytes`.
    """
    artifact = decode(Base64Text(text))
    return ingest_bytes(artifact.data, config)
