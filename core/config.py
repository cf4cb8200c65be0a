"""
Configuration dataclasses for the score archive transport layer.

These immutable config objects decouple parameter passing from function
signatures, so the ingest and retrieval pipelines stay pure and the HTTP
layer decides which configuration applies.

Environment variables (read by :meth:`TransportConfig.from_env`)
----------------------------------------------------------------
``MXL_MAX_PAYLOAD_BYTES``
    Largest decoded archive accepted at ingest (default 16 MiB).

``MXL_DEFAULT_TITLE``
    Download name used when a song has no title (default ``score``).

``MXL_REQUIRE_COMPLETE_ARCHIVE``
    ``1``/``true``/``yes`` rejects uploads whose EOCD record is missing or
    truncated.  Off by default: only the magic number gates ingest.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

MXL_MIME_TYPE = "application/vnd.recordare.musicxml+zip"

_TRUTHY: frozenset[str] = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class TransportConfig:
    """
    Configuration for archive ingest and retrieval.

    Attributes:
        max_payload_bytes: Ceiling on decoded archive size.  Score files
            are a few megabytes; 16 MiB leaves headroom for large
            orchestral scores without letting a request hold unbounded
            memory.
        mime_type: Content-Type served with archives.
        default_title: Filename stem used when the title is missing.
        filename_extension: Suffix appended to the title.
        require_complete_archive: Reject uploads failing the EOCD check.

    Example:
        >>> config = TransportConfig(max_payload_bytes=4 * 1024 * 1024)
        >>> from core.mxl.ingest import ingest_base64
        >>> result = ingest_base64(text, config=config)
    """

    max_payload_bytes: int = 16 * 1024 * 1024
    mime_type: str = MXL_MIME_TYPE
    default_title: str = "score"
    filename_extension: str = ".mxl"
    require_complete_archive: bool = False

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.max_payload_bytes <= 0:
            raise ValueError(f"max_payload_bytes must be positive, got {self.max_payload_bytes}")
        if not self.mime_type.strip():
            raise ValueError("mime_type must not be empty")
        if not self.default_title.strip():
            raise ValueError("default_title must not be empty")
        if not self.filename_extension.startswith("."):
            raise ValueError(
                f"filename_extension must start with '.', got {self.filename_extension!r}"
            )

    @classmethod
    def from_env(cls) -> TransportConfig:
        """Build a config from ``MXL_*`` environment variables."""
        return cls(
            max_payload_bytes=int(
                os.getenv("MXL_MAX_PAYLOAD_BYTES", str(DEFAULT_CONFIG.max_payload_bytes))
            ),
            default_title=os.getenv("MXL_DEFAULT_TITLE", DEFAULT_CONFIG.default_title),
            require_complete_archive=(
                os.getenv("MXL_REQUIRE_COMPLETE_ARCHIVE", "").strip().lower() in _TRUTHY
            ),
        )


# Pre-defined configurations

DEFAULT_CONFIG = TransportConfig()
"""Default configuration: 16 MiB ceiling, magic-number gate only."""

STRICT_CONFIG = TransportConfig(require_complete_archive=True)
"""Also rejects uploads whose EOCD record is missing or truncated."""
