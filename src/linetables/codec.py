"""Row metadata codec.

A row descriptor (``{"tblId": ..., "row": ..., "cols": ...}`` plus any extra
fields) travels inside a class marker, so it is serialized to compact JSON and
base64-encoded with the URL-safe alphabet (``+`` becomes ``-``, ``/`` becomes
``_``). Padding is left as produced by the encoder.

Decoding is tolerant: invalid base64 or UTF-8 yields ``None``, while text
that is not valid JSON yields a ``DecodedMetadata`` with ``metadata=None``.
Use ``decode_strict`` where an exception is wanted instead.

Example:
    >>> token = encode({"tblId": "a1b2c3", "row": 0, "cols": 2})
    >>> decode(token).metadata
    {'tblId': 'a1b2c3', 'row': 0, 'cols': 2}

Thread Safety:
    All functions are pure.

"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any

from linetables.errors import MetadataError
from linetables.utils.logger import get_logger

logger = get_logger(__name__)

_TO_URLSAFE = str.maketrans("+/", "-_")
_FROM_URLSAFE = str.maketrans("-_", "+/")


@dataclass(frozen=True, slots=True)
class DecodedMetadata:
    """Result of decoding one token.

    Attributes:
        encoded: The token that was decoded
        json: Decoded JSON text, exactly as it was encoded
        metadata: Parsed JSON value, or None if parsing failed
        is_well_formed: True when metadata is a usable row descriptor
        error: The JSON parse error, if any

    """

    encoded: str
    json: str
    metadata: Any
    is_well_formed: bool
    error: ValueError | None = None


def is_well_formed_metadata(metadata: Any) -> bool:
    """Check that a parsed value describes a table row.

    ``tblId`` and ``row`` must be present (any value, null included) and
    ``cols`` must be a number.
    """
    if not isinstance(metadata, dict):
        return False
    if "tblId" not in metadata or "row" not in metadata:
        return False
    cols = metadata.get("cols")
    return isinstance(cols, (int, float)) and not isinstance(cols, bool)


def dumps(metadata: Any) -> str:
    """Serialize to the compact JSON form used inside tokens and attributes."""
    return json.dumps(metadata, separators=(",", ":"), ensure_ascii=False)


def encode(metadata: Any) -> str:
    """Encode a JSON-serializable value as a URL-safe token."""
    raw = dumps(metadata).encode("utf-8")
    return base64.b64encode(raw).decode("ascii").translate(_TO_URLSAFE)


def encode_json(text: str) -> str:
    """Encode already-serialized JSON text without re-serializing it."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii").translate(_TO_URLSAFE)


def decode_text(token: str) -> str | None:
    """Reverse the URL-safe mapping and base64 layer.

    Missing ``=`` padding is restored before decoding, so a token whose
    padding was dropped by class extraction still decodes to the same text.

    Returns:
        The decoded text, or None if the token is not valid base64/UTF-8
    """
    standard = token.strip().translate(_FROM_URLSAFE)
    standard += "=" * (-len(standard) % 4)
    try:
        return base64.b64decode(standard, validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as e:
        logger.debug("Could not decode token %r: %s", token, e)
        return None


def decode(token: str) -> DecodedMetadata | None:
    """Decode a token into row metadata.

    Never raises. Returns None when the token is not decodable at all;
    otherwise a DecodedMetadata whose ``metadata`` is None if the decoded
    text is not JSON.
    """
    text = decode_text(token)
    if text is None:
        return None

    metadata: Any = None
    error: ValueError | None = None
    try:
        metadata = json.loads(text)
    except ValueError as e:
        error = e

    return DecodedMetadata(
        encoded=token,
        json=text,
        metadata=metadata,
        is_well_formed=is_well_formed_metadata(metadata),
        error=error,
    )


def decode_strict(token: str) -> dict[str, Any]:
    """Decode a token and require a well-formed row descriptor.

    Raises:
        MetadataError: If the token does not decode to a row descriptor
    """
    result = decode(token)
    if result is None:
        raise MetadataError("token is not valid URL-safe base64", token=token)
    if result.error is not None:
        raise MetadataError(f"decoded text is not JSON: {result.error}", token=token)
    if not result.is_well_formed:
        raise MetadataError("metadata is missing tblId, row or numeric cols", token=token)
    return result.metadata
