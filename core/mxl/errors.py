"""Exceptions raised by the score archive transport layer.

Every exception carries a stable, machine-readable ``code`` that the HTTP
boundary puts into JSON error bodies.  HTTP status codes are *not* decided
here: the same ``DecodeError`` is a client error at ingest and a server
error at retrieval.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.mxl.types import ZipIntegrityReport


class ArtifactError(Exception):
    """Base class for all transport-layer failures."""

    code = "artifact_error"


class DecodeError(ArtifactError):
    """Text (hex, base64) or a byte-value array could not be decoded."""

    code = "invalid_encoding"


class EmptyPayloadError(ArtifactError):
    """The stored value was null or decoded to zero bytes."""

    code = "empty_payload"


class UnsupportedEncodingError(ArtifactError):
    """The storage layer returned a value shape no sniffing rule recognises.

    Args:
        value_type: Name of the offending Python type.
    """

    code = "unsupported_encoding"

    def __init__(self, value_type: str) -> None:
        self.value_type = value_type
        super().__init__(f"Unsupported song_mxl type: {value_type}")


class NotAZipArchiveError(ArtifactError):
    """Leading bytes are not a recognised ZIP signature.

    Args:
        head: The first (up to four) bytes of the rejected buffer.
    """

    code = "payload_not_mxl_zip"

    def __init__(self, head: bytes) -> None:
        self.head = head
        super().__init__(
            "Song bytes must be compressed .mxl (ZIP) format "
            f"(leading bytes: {head.hex() or 'none'})."
        )


class TruncatedArchiveError(ArtifactError):
    """EOCD completeness check failed while enforcement is enabled.

    Args:
        report: The failing integrity report.
    """

    code = "payload_truncated_zip"

    def __init__(self, report: ZipIntegrityReport) -> None:
        self.report = report
        if report.eocd_offset is None:
            detail = "no end-of-central-directory record found"
        else:
            detail = f"{report.missing_bytes} bytes missing"
        super().__init__(f"ZIP archive is incomplete: {detail}.")


class PayloadTooLargeError(ArtifactError):
    """Decoded archive exceeds the configured size ceiling.

    Args:
        size: Decoded size in bytes.
        limit: Configured ceiling in bytes.
    """

    code = "payload_too_large"

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Archive is {size} bytes, limit is {limit} bytes.")
