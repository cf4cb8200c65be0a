"""
core/mxl/: Pure score archive transport engine.

Exports:
    Types:     RawArtifact, HexText, Base64Text, NativeBytes, ByteValues,
               EncodedText, ZipIntegrityReport, ContentDescriptor,
               IngestResult, RetrievedArtifact
    Codec:     decode, encode, sniff, decode_stored, to_canonical
    Verifier:  check_magic, has_zip_magic, check_eocd, verify_archive
    Pipelines: ingest_base64, ingest_bytes, retrieve, build_descriptor
    Errors:    ArtifactError and subclasses
"""

from core.config import MXL_MIME_TYPE
from core.mxl.codec import decode, decode_stored, encode, sniff, to_canonical
from core.mxl.errors import (
    ArtifactError,
    DecodeError,
    EmptyPayloadError,
    NotAZipArchiveError,
    PayloadTooLargeError,
    TruncatedArchiveError,
    UnsupportedEncodingError,
)
from core.mxl.ingest import ingest_base64, ingest_bytes
from core.mxl.retrieval import build_descriptor, retrieve
from core.mxl.types import (
    HEX_MARKER,
    Base64Text,
    ByteValues,
    ContentDescriptor,
    EncodedText,
    HexText,
    IngestResult,
    NativeBytes,
    RawArtifact,
    RetrievedArtifact,
    ZipIntegrityReport,
)
from core.mxl.zip_integrity import check_eocd, check_magic, has_zip_magic, verify_archive

__all__ = [
    # Types
    "HEX_MARKER",
    "MXL_MIME_TYPE",
    "Base64Text",
    "ByteValues",
    "ContentDescriptor",
    "EncodedText",
    "HexText",
    "IngestResult",
    "NativeBytes",
    "RawArtifact",
    "RetrievedArtifact",
    "ZipIntegrityReport",
    # Codec
    "decode",
    "decode_stored",
    "encode",
    "sniff",
    "to_canonical",
    # Verifier
    "check_eocd",
    "check_magic",
    "has_zip_magic",
    "verify_archive",
    # Pipelines
    "build_descriptor",
    "ingest_base64",
    "ingest_bytes",
    "retrieve",
    # Errors
    "ArtifactError",
    "DecodeError",
    "EmptyPayloadError",
    "NotAZipArchiveError",
    "PayloadTooLargeError",
    "TruncatedArchiveError",
    "UnsupportedEncodingError",
]
