"""
Lossless conversion between archive bytes and their boundary encodings.

Two textual encodings are supported: ``\\x``-prefixed hex (the canonical
form written to storage) and base64 (the form clients upload).  Values read
back from storage are classified by :func:`sniff`, because the storage
layer does not declare which shape it returned.

Sniffing priority (first match wins)::

    None                            -> EmptyPayloadError
    bytes / bytearray / memoryview  -> NativeBytes
    str starting with "\\x"          -> HexText
    other str                       -> Base64Text
    list / tuple                    -> ByteValues
    anything else                   -> UnsupportedEncodingError

Pure functions: no I/O.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Literal

from core.mxl.errors import DecodeError, EmptyPayloadError, UnsupportedEncodingError
from core.mxl.types import (
    HEX_MARKER,
    Base64Text,
    ByteValues,
    EncodedText,
    HexText,
    NativeBytes,
    RawArtifact,
)

logger = logging.getLogger(__name__)

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]*")
_BASE64_ALPHABET = re.compile(r"[A-Za-z0-9+/]*={0,2}")
_WHITESPACE = re.compile(r"\s+")


def _decode_hex(text: str) -> bytes:
    if not text.startswith(HEX_MARKER):
        raise DecodeError(f"hex payload must start with {HEX_MARKER!r}")
    digits = text[len(HEX_MARKER) :]
    if not _HEX_DIGITS.fullmatch(digits):
        raise DecodeError("hex payload contains non-hex characters")
    if len(digits) % 2 != 0:
        raise DecodeError(f"hex payload has odd digit count ({len(digits)})")
    return bytes.fromhex(digits)


def _decode_base64(text: str) -> bytes:
    compact = _WHITESPACE.sub("", text)
    if not compact:
        raise DecodeError("base64 payload is empty")
    if not _BASE64_ALPHABET.fullmatch(compact):
        raise DecodeError("base64 payload contains characters outside the base64 alphabet")
    remainder = len(compact) % 4
    if remainder == 1:
        raise DecodeError(f"base64 payload has impossible length ({len(compact)})")
    if remainder:
        # tolerate stripped padding
        compact += "=" * (4 - remainder)
    try:
        return base64.b64decode(compact, validate=True)
    except binascii.Error as exc:
        raise DecodeError(f"base64 payload is malformed: {exc}") from exc


def _decode_byte_values(values: tuple[object, ...]) -> bytes:
    for index, value in enumerate(values):
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
            raise DecodeError(f"byte array element {index} is not a byte value: {value!r}")
    return bytes(values)  # type: ignore[arg-type]


def decode(encoded: EncodedText) -> RawArtifact:
    """
    Decode one boundary value into a :class:`RawArtifact`.

    Args:
        encoded: A tagged value produced by :func:`sniff` or built directly.

    Returns:
        The decoded archive bytes.

    Raises:
        DecodeError: If the text or array is malformed.
        EmptyPayloadError: If decoding yields zero bytes.
    """
    if isinstance(encoded, NativeBytes):
        data = encoded.data
    elif isinstance(encoded, HexText):
        data = _decode_hex(encoded.text)
    elif isinstance(encoded, Base64Text):
        data = _decode_base64(encoded.text)
    elif isinstance(encoded, ByteValues):
        data = _decode_byte_values(encoded.values)
    else:
        raise UnsupportedEncodingError(type(encoded).__name__)
    return RawArtifact(data)


def encode(artifact: RawArtifact, target: Literal["hex", "base64"] = "hex") -> EncodedText:
    """
    Encode archive bytes for a boundary.

    The default ``"hex"`` target is the canonical storage form: ``\\x``
    followed by lowercase hex digits.

    Args:
        artifact: Archive to encode.
        target: ``"hex"`` or ``"base64"``.

    Returns:
        ``HexText`` or ``Base64Text``.

    Raises:
        ValueError: If *target* is unknown.
    """
    if target == "hex":
        return HexText(HEX_MARKER + artifact.data.hex())
    if target == "base64":
        return Base64Text(base64.b64encode(artifact.data).decode("ascii"))
    raise ValueError(f"Unknown encoding target {target!r}, valid options: ['base64', 'hex']")


def to_canonical(artifact: RawArtifact) -> str:
    """Return the canonical storage string for *artifact*."""
    return encode(artifact, "hex").text  # type: ignore[union-attr]


def sniff(value: object) -> EncodedText:
    """
    Classify a storage-layer value whose shape is not declared.

    Args:
        value: Whatever the driver returned for the archive column.

    Returns:
        The tagged value to pass to :func:`decode`.

    Raises:
        EmptyPayloadError: If *value* is None.
        UnsupportedEncodingError: If no rule recognises the shape.
    """
    if value is None:
        raise EmptyPayloadError("song_mxl is null")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return NativeBytes(bytes(value))
    if isinstance(value, str):
        if value.startswith(HEX_MARKER):
            return HexText(value)
        return Base64Text(value)
    if isinstance(value, (list, tuple)):
        return ByteValues(tuple(value))
    logger.error("Storage returned an unsupported archive value type: %s", type(value).__name__)
    raise UnsupportedEncodingError(type(value).__name__)


def decode_stored(value: object) -> RawArtifact:
    """Sniff and decode a storage-layer value in one step."""
    return decode(sniff(value))
