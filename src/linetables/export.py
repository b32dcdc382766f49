"""Export hook: render table lines as HTML tables.

For every exported line the host passes the line's text, its attribute run
and the attribute pool. A line is a table line when one of the ``*<n>``
markers of its run resolves to a table attribute (``tbljson``, or the
legacy ``tblProp``). Table lines are replaced with the renderer's markup;
everything else is left to the host's default export.

Cell text comes from the line itself: the text is split on the delimiter,
each cell keeps the inline formatting of its slice of the attribute run, and
the attribute value supplies row identity and property overrides.

Example:
    >>> pool = {5: ["tbljson", '{"tblId":"t1","row":0,"cols":2}']}
    >>> ctx = ExportLineContext(text="a|b", attrib_line="*5+3", apool=pool)
    >>> get_line_html_for_export(ctx)
    True
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from linetables.attributes import PoolLike, attribute_markers, attributes_of, iter_ops, lookup, subattribution
from linetables.codec import is_well_formed_metadata
from linetables.config import get_table_config
from linetables.markup import escape_text
from linetables.renderer import EXPORT, render
from linetables.utils.logger import get_logger

logger = get_logger(__name__)

# Attribute name -> wrapping tag, innermost first
_FORMAT_TAGS: tuple[tuple[str, str], ...] = (
    ("bold", "b"),
    ("italic", "i"),
    ("underline", "u"),
    ("strikethrough", "s"),
)


@dataclass(slots=True)
class ExportLineContext:
    """Arguments of one getLineHTMLForExport call.

    ``line_content`` is replaced with the table markup when the line is
    rendered as a table row.
    """

    text: str
    attrib_line: str
    apool: PoolLike
    line_content: str = ""
    line_number: int | None = None


def retrieve_table_attribute(attrib_line: str, pool: PoolLike) -> tuple[int, str, str] | None:
    """Find the table attribute referenced by an attribute run.

    Markers are checked in order; the first one whose pool entry has a
    table attribute name wins.

    Returns:
        ``(pool_index, name, value)``, or None for non-table lines
    """
    if not attrib_line or not isinstance(attrib_line, str):
        return None
    names = get_table_config().table_attribute_names
    for num in attribute_markers(attrib_line):
        entry = lookup(pool, num)
        if entry is None:
            logger.debug("Attribute index %d not found in pool", num)
            continue
        if entry[0] in names:
            return num, entry[0], entry[1]
    return None


def render_cell_rich_text(text: str, attrib_line: str, pool: PoolLike) -> str:
    """Render one cell's text with its inline formatting as escaped HTML."""
    config = get_table_config()
    parts: list[str] = []
    pos = 0
    for op in iter_ops(attrib_line):
        chars = max(op.chars, 0)
        segment = text[pos:pos + chars]
        pos += chars
        if not segment:
            continue
        html = escape_text(segment.replace(config.escaped_delimiter, config.delimiter))
        attrs = attributes_of(op.attribs, pool) if op.attribs else {}
        for name, tag in _FORMAT_TAGS:
            if attrs.get(name):
                html = f"<{tag}>{html}</{tag}>"
        parts.append(html)
    if pos < len(text):
        parts.append(escape_text(text[pos:].replace(config.escaped_delimiter, config.delimiter)))
    return "".join(parts)


def _legacy_row(text: str) -> dict[str, Any] | None:
    """Rows from before the attribute design stored their JSON in the text."""
    stripped = text.strip()
    if not stripped.startswith("{"):
        return None
    try:
        value = json.loads(stripped)
    except ValueError:
        return None
    if isinstance(value, dict) and "payload" in value:
        return value
    return None


def _cell_attribs(attrib_line: str, offset: int, length: int) -> str:
    """Slice of the attribute run for one cell; unformatted if the run is unreadable."""
    try:
        return subattribution(attrib_line, offset, length)
    except ValueError as e:
        logger.debug("Ignoring inline formatting: %s", e)
        return ""


def _column_count(metadata: dict[str, Any], text: str) -> int | None:
    """``cols`` as a usable cell count, or None when the row cannot be reshaped to it."""
    cols = metadata["cols"]
    if isinstance(cols, float):
        if not cols.is_integer():
            logger.warning("Ignoring fractional cols %r in line %r", cols, text)
            return None
        cols = int(cols)
    if cols < 0:
        logger.warning("Ignoring negative cols %r in line %r", cols, text)
        return None
    limit = get_table_config().max_columns
    if cols > limit:
        logger.warning("Ignoring cols %d above the limit of %d in line %r", cols, limit, text)
        return None
    return cols


def build_export_row(text: str, attrib_line: str, pool: PoolLike, attribute_value: str) -> dict[str, Any]:
    """Build the renderer payload for one table line."""
    legacy = _legacy_row(text)
    if legacy is not None:
        return legacy

    try:
        metadata = json.loads(attribute_value)
    except ValueError:
        metadata = None

    delimiter = get_table_config().delimiter
    raw_cells = text.split(delimiter)
    cells: list[str] = []
    offset = 0
    for raw in raw_cells:
        cells.append(render_cell_rich_text(raw, _cell_attribs(attrib_line, offset, len(raw)), pool))
        offset += len(raw) + len(delimiter)

    row: dict[str, Any] = {"payload": [cells]}
    if is_well_formed_metadata(metadata):
        cols = _column_count(metadata, text)
        if cols is not None and len(cells) != cols:
            logger.warning(
                "Cell count (%d) and metadata cols (%d) mismatch in line %r",
                len(cells),
                cols,
                text,
            )
            cells[:] = (cells + [""] * cols)[:cols]
        row["tblId"] = metadata["tblId"]
        row["row"] = metadata["row"]
        if isinstance(metadata.get("tblProperties"), dict):
            row["tblProperties"] = metadata["tblProperties"]
    return row


def get_line_html_for_export(context: ExportLineContext) -> bool:
    """Render a table line for export.

    Returns:
        True when ``context.line_content`` was replaced with table markup;
        False to let the host export the line normally
    """
    found = retrieve_table_attribute(context.attrib_line, context.apool)
    if found is None:
        return False
    num, name, value = found
    if not value:
        logger.debug("Table attribute %s at index %d has an empty value", name, num)
        return False

    try:
        row = build_export_row(context.text or "", context.attrib_line, context.apool, value)
        markup = render(EXPORT, row, value)
    except Exception:
        logger.warning("Export of table line %s failed", context.line_number, exc_info=True)
        return False

    if not markup:
        logger.debug("Renderer returned nothing for line %s; using default export", context.line_number)
        return False
    context.line_content = markup.strip()
    return True


def export_lines(lines: Iterable[tuple[str, str]], pool: PoolLike) -> list[str]:
    """Export ``(text, attrib_line)`` pairs to one HTML fragment per line.

    Table lines become table markup; other lines are HTML-escaped text.
    """
    out: list[str] = []
    for number, (text, attrib_line) in enumerate(lines):
        context = ExportLineContext(
            text=text,
            attrib_line=attrib_line,
            apool=pool,
            line_content=escape_text(text),
            line_number=number,
        )
        get_line_html_for_export(context)
        out.append(context.line_content)
    return out
