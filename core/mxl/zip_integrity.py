"""
Structural ZIP checks for score archives.

Two checks, neither of which parses the central directory:

1. Magic number: the first four bytes must be a recognised ZIP signature.
   Cheap and decisive; this is the gate at ingest.
2. EOCD completeness: locate the End-Of-Central-Directory record and make
   sure the buffer reaches the end the record declares.  Catches truncated
   uploads and truncated storage reads.

EOCD layout (22 bytes + comment)::

    offset  size  field
    0       4     signature 0x06054b50 ("PK\\x05\\x06")
    4       2     number of this disk
    6       2     disk where central directory starts
    8       2     central directory records on this disk
    10      2     total central directory records
    12      4     size of central directory
    16      4     offset of central directory
    20      2     comment length (n)
    22      n     comment

The EOCD signature is searched for *forward* from the start of the last
``22 + 65535`` bytes, so the earliest candidate in that window wins.  A
spurious signature inside compressed data before the real record would be
reported instead of the real one.
"""

from __future__ import annotations

import logging
import struct

from core.mxl.errors import NotAZipArchiveError
from core.mxl.types import ZipIntegrityReport

logger = logging.getLogger(__name__)

ZIP_SIGNATURES: frozenset[bytes] = frozenset(
    {
        b"PK\x03\x04",  # local file header
        b"PK\x05\x06",  # end of central directory (empty archive)
        b"PK\x07\x08",  # spanned / data descriptor marker
    }
)

EOCD_SIGNATURE = b"PK\x05\x06"
EOCD_FIXED_SIZE = 22
MAX_COMMENT_LENGTH = 0xFFFF
_COMMENT_LENGTH_OFFSET = 20


def has_zip_magic(data: bytes) -> bool:
    """Return True if *data* starts with a recognised ZIP signature."""
    return bytes(data[:4]) in ZIP_SIGNATURES


def check_magic(data: bytes) -> None:
    """
    Reject buffers that do not start with a ZIP signature.

    Args:
        data: Candidate archive bytes.

    Raises:
        NotAZipArchiveError: If the first four bytes are not one of
            ``PK\\x03\\x04``, ``PK\\x05\\x06`` or ``PK\\x07\\x08``.
    """
    if not has_zip_magic(data):
        raise NotAZipArchiveError(bytes(data[:4]))


def find_eocd(data: bytes) -> int | None:
    """Return the offset of the first EOCD signature in the trailing window."""
    window_start = max(0, len(data) - (EOCD_FIXED_SIZE + MAX_COMMENT_LENGTH))
    offset = data.find(EOCD_SIGNATURE, window_start)
    return offset if offset >= 0 else None


def check_eocd(data: bytes) -> ZipIntegrityReport:
    """
    Check that *data* is a complete ZIP container.

    Args:
        data: Candidate archive bytes.

    Returns:
        A report.  ``ok`` is False when no EOCD record exists in the
        trailing window or when the buffer ends before the declared end of
        the archive comment.  Bytes past the declared end are tolerated
        and counted in ``trailing_bytes``.
    """
    total = len(data)
    offset = find_eocd(data)
    if offset is None:
        return ZipIntegrityReport(ok=False, eocd_offset=None, total_length=total)

    fixed_end = offset + EOCD_FIXED_SIZE
    if fixed_end > total:
        # comment length field itself is cut off
        return ZipIntegrityReport(
            ok=False,
            eocd_offset=offset,
            missing_bytes=fixed_end - total,
            total_length=total,
        )

    (comment_length,) = struct.unpack_from("<H", data, offset + _COMMENT_LENGTH_OFFSET)
    expected_end = fixed_end + comment_length

    if expected_end > total:
        return ZipIntegrityReport(
            ok=False,
            eocd_offset=offset,
            comment_length=comment_length,
            missing_bytes=expected_end - total,
            total_length=total,
        )
    return ZipIntegrityReport(
        ok=True,
        eocd_offset=offset,
        comment_length=comment_length,
        trailing_bytes=total - expected_end,
        total_length=total,
    )


def verify_archive(data: bytes) -> ZipIntegrityReport:
    """
    Run the magic-number check, then the EOCD check.

    Raises:
        NotAZipArchiveError: If the magic number is wrong.
    """
    check_magic(data)
    report = check_eocd(data)
    if report.ok and report.trailing_bytes:
        logger.debug(
            "ZIP archive has %d trailing bytes past its EOCD comment", report.trailing_bytes
        )
    return report
