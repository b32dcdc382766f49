"""Class marker extraction and line payload helpers.

A table line is recognized by one class token of the form
``tbljson-<token>`` (the prefix comes from the active TableConfig). Hosts
hand over class information in several shapes: a whitespace-delimited
``class`` attribute, a list of strings, or a DOM-like token list. All of them
are normalized by ``to_class_tokens`` first.

The capture class is ``[A-Za-z0-9_-]``, which does not include ``=``: base64
padding written by the encoder is not part of the extracted token.
``codec.decode_text`` restores the padding, so the round trip is lossless.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache
from typing import Any

from linetables.codec import DecodedMetadata, decode, encode
from linetables.config import get_table_config

_WHITESPACE = re.compile(r"\s+")


@lru_cache(maxsize=8)
def _marker_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(prefix)}-([A-Za-z0-9_-]+)")


def to_class_tokens(source: Any) -> list[str]:
    """Normalize a class source into an ordered list of non-empty tokens.

    Args:
        source: A class string, a sequence of strings, or a sized iterable
            whose items are coerced with ``str()``

    Returns:
        Tokens in their original order; ``[]`` for anything unrecognized

    Examples:
        >>> to_class_tokens("  ace-line  tbljson-eyJ9 ")
        ['ace-line', 'tbljson-eyJ9']
        >>> to_class_tokens(["a", "", "b"])
        ['a', 'b']
    """
    if not source:
        return []
    if isinstance(source, str):
        return [t for t in _WHITESPACE.split(source.strip()) if t]
    if isinstance(source, Iterable) and hasattr(source, "__len__"):
        return [token for token in map(str, source) if token]
    return []


def extract_encoded(source: Any, prefix: str | None = None) -> str | None:
    """Return the encoded payload of the first table marker, if any."""
    pattern = _marker_pattern(prefix or get_table_config().class_prefix)
    for token in to_class_tokens(source):
        match = pattern.search(token)
        if match:
            return match.group(1)
    return None


def decode_class(source: Any, prefix: str | None = None) -> DecodedMetadata | None:
    """Extract and decode the table marker from a class source.

    Returns None both when no marker is present and when the marker does not
    decode; use ``extract_encoded`` to tell those apart.
    """
    encoded = extract_encoded(source, prefix)
    if encoded is None:
        return None
    return decode(encoded)


def class_for(metadata: Any, prefix: str | None = None) -> str:
    """Build the class marker carrying ``metadata``."""
    return f"{prefix or get_table_config().class_prefix}-{encode(metadata)}"


def escape_delimiter(markup: str) -> str:
    """Replace literal delimiters inside one cell's markup."""
    config = get_table_config()
    return markup.replace(config.delimiter, config.escaped_delimiter)


def split_cells(text: str, delimiter: str | None = None) -> list[str]:
    """Split a line payload into cells.

    Only literal delimiters separate cells. Escaped delimiters, written by
    the importer as an entity, are turned back into the delimiter character
    inside the cell they belong to.

    Examples:
        >>> split_cells("a&vert;b|c")
        ['a|b', 'c']
    """
    config = get_table_config()
    delimiter = delimiter or config.delimiter
    escaped = config.escaped_delimiter
    cells = text.split(delimiter)
    if escaped and escaped != delimiter:
        cells = [cell.replace(escaped, delimiter) for cell in cells]
    return cells
