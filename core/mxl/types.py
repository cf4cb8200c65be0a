"""Score archive value objects.

Pure data contracts for the transport layer.  No I/O, no imports from
db/, api/ or ingestion/.

Naming conventions:
- RawArtifact: the exact binary content of one MXL archive
- EncodedText: one of the shapes an archive takes at a system boundary
  (HexText | Base64Text | NativeBytes | ByteValues)
- ZipIntegrityReport: per-call diagnostic from the verifier, never stored
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from core.mxl.errors import EmptyPayloadError

HEX_MARKER = "\\x"
"""Two-character prefix of the PostgreSQL ``bytea`` hex output format."""

# Characters encodeURIComponent leaves untouched, beyond alphanumerics and "_.-~".
_FILENAME_SAFE = "!*'()"


@dataclass(frozen=True)
class RawArtifact:
    """Exact, immutable bytes of one score archive.

    Attributes:
        data: The archive bytes.  Always non-empty.

    Raises:
        EmptyPayloadError: If ``data`` is empty.
    """

    data: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.data, bytes):
            # bytearray / memoryview: take an owned, immutable copy
            object.__setattr__(self, "data", bytes(self.data))
        if len(self.data) == 0:
            raise EmptyPayloadError("Archive payload is empty (zero bytes)")

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class HexText:
    """``\\x``-prefixed hex text, as written and read by the storage layer."""

    text: str


@dataclass(frozen=True)
class Base64Text:
    """Standard-alphabet base64 text, possibly with embedded whitespace."""

    text: str


@dataclass(frozen=True)
class NativeBytes:
    """A byte sequence returned by the driver as-is."""

    data: bytes


@dataclass(frozen=True)
class ByteValues:
    """An array of integers, one per byte (JSON-decoded ``bytea``)."""

    values: tuple[object, ...]


EncodedText = HexText | Base64Text | NativeBytes | ByteValues


@dataclass(frozen=True)
class ZipIntegrityReport:
    """Outcome of the EOCD completeness check.

    Attributes:
        ok: True when an EOCD record was found and the buffer reaches its
            declared end.
        eocd_offset: Offset of the EOCD signature, or None if absent.
        comment_length: Archive comment length declared by the EOCD.
        missing_bytes: Bytes needed to reach the declared end (truncation).
        trailing_bytes: Bytes present past the declared end.
        total_length: Length of the inspected buffer.
    """

    ok: bool
    eocd_offset: int | None
    comment_length: int = 0
    missing_bytes: int = 0
    trailing_bytes: int = 0
    total_length: int = 0

    @property
    def exact(self) -> bool:
        """True when the archive ends exactly at its declared end."""
        return self.ok and self.trailing_bytes == 0

    def to_dict(self) -> dict[str, object]:
        return {
            "ok": self.ok,
            "eocd_found": self.eocd_offset is not None,
            "eocd_offset": self.eocd_offset,
            "comment_length": self.comment_length,
            "missing_bytes": self.missing_bytes,
            "trailing_bytes": self.trailing_bytes,
            "total_length": self.total_length,
        }


@dataclass(frozen=True)
class ContentDescriptor:
    """MIME type and download name attached at the HTTP boundary."""

    mime_type: str
    suggested_filename: str

    @property
    def content_disposition(self) -> str:
        """Inline disposition with a percent-encoded filename."""
        encoded = quote(self.suggested_filename, safe=_FILENAME_SAFE)
        return f'inline; filename="{encoded}"'


@dataclass(frozen=True)
class IngestResult:
    """Value ready to hand to the storage layer.

    Attributes:
        stored_value: Canonical ``\\x``-prefixed lowercase hex.
        byte_length: Size of the validated archive.
        integrity: Advisory EOCD report for the archive.
    """

    stored_value: str
    byte_length: int
    integrity: ZipIntegrityReport


@dataclass(frozen=True)
class RetrievedArtifact:
    """Decoded archive plus what the HTTP layer needs to serve it."""

    artifact: RawArtifact
    descriptor: ContentDescriptor
    integrity: ZipIntegrityReport
