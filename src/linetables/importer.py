"""HTML import: turn ``<table>`` elements into token-bearing lines.

Every source table gets one fresh table id. Each of its rows becomes one
line container::

    <div><span class="tbljson-<token>">cell 1|cell 2|...</span></div>

where the token encodes ``{"tblId": ..., "row": ..., "cols": ...}`` and the
cells' inner markup is joined with the delimiter. Delimiters that occur
inside a cell are written as ``&vert;`` so they never read as a cell
boundary. Tables that end up with no lines are replaced by a placeholder
paragraph naming the table id.

Flow of ``import_file`` (sequential awaits, one document per call):
    read source -> detect encoding -> convert -> write back if modified
    (UTF-8, via a temporary file) -> copy to destination

On an unexpected failure the original bytes are copied to the destination
before ``TableImportError`` is raised, so the host's default import still
has a usable file.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import secrets
import shutil
import string
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from bs4 import BeautifulSoup, Comment, Tag, UnicodeDammit

from linetables.config import get_table_config
from linetables.errors import TableImportError
from linetables.tokens import class_for, escape_delimiter
from linetables.utils.logger import get_logger

logger = get_logger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase

PLACEHOLDER_NO_ROWS = "[Empty table (ID: {tbl_id}) was removed during import as it had no rows]"
PLACEHOLDER_ONLY_ROW_EMPTY = (
    "[Table (ID: {tbl_id}) was removed during import as its only row was empty and had no cells]"
)
PLACEHOLDER_ALL_ROWS_EMPTY = (
    "[Table (ID: {tbl_id}) was removed during import as all its rows were empty or had no content]"
)


def new_table_id(length: int | None = None) -> str:
    """Random base-36 table id."""
    length = length or get_table_config().table_id_length
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


class TableIdAllocator:
    """Hands out table ids that are unique within one conversion pass.

    Random ids are drawn again on collision; ids from a custom factory must
    be unique by themselves.
    """

    __slots__ = ("_factory", "_seen")

    def __init__(self, factory: Callable[[], str] | None = None) -> None:
        self._factory = factory
        self._seen: set[str] = set()

    def __call__(self) -> str:
        if self._factory is not None:
            tbl_id = self._factory()
        else:
            tbl_id = new_table_id()
            while tbl_id in self._seen:
                tbl_id = new_table_id()
        self._seen.add(tbl_id)
        return tbl_id


@dataclass(frozen=True, slots=True)
class Conversion:
    """Outcome of ``convert_tables``.

    Attributes:
        html: The serialized document (unchanged input when not modified)
        modified: True if at least one table was replaced
        tables: Number of tables replaced
        rows: Number of line containers emitted
    """

    html: str
    modified: bool
    tables: int = 0
    rows: int = 0


def _is_attached(node: Tag, root: BeautifulSoup) -> bool:
    """True if ``node`` is still part of the document tree."""
    parent = node.parent
    while parent is not None:
        if parent is root:
            return True
        parent = parent.parent
    return False


def _own_rows(table: Tag) -> list[Tag]:
    """Rows of this table, excluding rows of nested tables."""
    return [tr for tr in table.find_all("tr") if tr.find_parent("table") is table]


def _own_cells(row: Tag) -> list[Tag]:
    return row.find_all(["td", "th"], recursive=False)


def _placeholder(soup: BeautifulSoup, template: str, tbl_id: str) -> Tag:
    p = soup.new_tag("p")
    p.string = template.format(tbl_id=tbl_id)
    return p


class _RowSlots:
    """Carries row markup past the tree serializer.

    The serializer would turn ``&vert;`` back into a literal delimiter, so
    each row's span holds a comment that is swapped for the joined markup
    after serialization.
    """

    __slots__ = ("_nonce", "_markup")

    def __init__(self) -> None:
        self._nonce = secrets.token_hex(4)
        self._markup: list[str] = []

    def slot(self, markup: str) -> Comment:
        self._markup.append(markup)
        return Comment(self._key(len(self._markup) - 1))

    def _key(self, index: int) -> str:
        return f"linetables:{self._nonce}:{index}"

    def fill(self, html: str) -> str:
        for index, markup in enumerate(self._markup):
            html = html.replace(f"<!--{self._key(index)}-->", markup, 1)
        return html


def _convert_table(table: Tag, soup: BeautifulSoup, tbl_id: str, slots: _RowSlots) -> list[Tag]:
    """Build the replacement elements for one table."""
    delimiter = get_table_config().delimiter
    rows = _own_rows(table)
    replacement: list[Tag] = []

    if not rows:
        logger.debug("Table %s has no rows; using a placeholder", tbl_id)
        return [_placeholder(soup, PLACEHOLDER_NO_ROWS, tbl_id)]

    logger.debug("Processing table %s with %d rows", tbl_id, len(rows))
    for index, row in enumerate(rows):
        cells = _own_cells(row)
        if not cells and not row.get_text().strip():
            logger.debug("Skipping empty row %d of table %s", index, tbl_id)
            if len(rows) == 1 and not replacement:
                replacement.append(_placeholder(soup, PLACEHOLDER_ONLY_ROW_EMPTY, tbl_id))
            continue

        metadata = {"tblId": tbl_id, "row": index, "cols": len(cells)}
        joined = delimiter.join(escape_delimiter(cell.decode_contents() or "&nbsp;") for cell in cells)

        wrapper = soup.new_tag("div")
        span = soup.new_tag("span", attrs={"class": class_for(metadata)})
        span.append(slots.slot(joined))
        wrapper.append(span)
        replacement.append(wrapper)

    if not replacement:
        replacement.append(_placeholder(soup, PLACEHOLDER_ALL_ROWS_EMPTY, tbl_id))
    return replacement


def convert_tables(html: str, *, id_factory: Callable[[], str] | None = None) -> Conversion:
    """Replace every table of an HTML document with table lines.

    Tables are handled in document order and independently of each other.
    A nested table is carried inside its outer table's cell markup.

    Args:
        html: Source document
        id_factory: Optional table id generator (random base-36 by default)

    Returns:
        Conversion with the resulting document and counters
    """
    soup = BeautifulSoup(html, "html.parser")
    tables = soup.find_all("table")
    if not tables:
        return Conversion(html=html, modified=False)

    logger.debug("Found %d table(s)", len(tables))
    allocate = TableIdAllocator(id_factory)
    slots = _RowSlots()
    replaced = 0
    emitted = 0

    for table in tables:
        if table.parent is None or not _is_attached(table, soup):
            logger.debug("Table is detached from the document (nested in a converted table); leaving it as is")
            continue

        tbl_id = allocate()
        replacement = _convert_table(table, soup, tbl_id, slots)
        table.replace_with(*replacement)
        replaced += 1
        emitted += sum(1 for el in replacement if el.name == "div")
        logger.debug("Replaced table %s with %d element(s)", tbl_id, len(replacement))

    if not replaced:
        return Conversion(html=html, modified=False)
    return Conversion(html=slots.fill(str(soup)), modified=True, tables=replaced, rows=emitted)


def _same_file(a: Path, b: Path) -> bool:
    return a.resolve() == b.resolve()


def _decode_html(data: bytes) -> str:
    """Decode an uploaded document, detecting its encoding."""
    dammit = UnicodeDammit(data, is_html=True)
    if dammit.unicode_markup is None:
        logger.warning("Could not detect the encoding of the document; replacing undecodable bytes")
        return data.decode("utf-8", errors="replace")
    logger.debug("Document decoded as %s", dammit.original_encoding)
    return dammit.unicode_markup


def _write_atomic(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` so readers never see a partial file."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


async def import_file(src_file: str | Path, file_ending: str, dest_file: str | Path) -> bool:
    """Import hook: convert tables of an HTML file.

    Args:
        src_file: Uploaded file; rewritten in place when tables were converted
        file_ending: Extension including the dot (".html", ".htm")
        dest_file: Where the host expects the content to import

    Returns:
        True if tables were converted, False if the file was left as is
        (including files this hook does not handle)

    Raises:
        TableImportError: If conversion fails; the destination then holds
            a copy of the original file when the copy succeeded
    """
    config = get_table_config()
    if (file_ending or "").lower() not in config.import_extensions:
        logger.debug("Not an HTML file (%r); leaving it to other importers", file_ending)
        return False

    src, dest = Path(src_file), Path(dest_file)
    original: bytes | None = None
    try:
        original = await asyncio.to_thread(src.read_bytes)
        result = convert_tables(_decode_html(original))

        if result.modified:
            await asyncio.to_thread(_write_atomic, src, result.html)
            logger.debug("Converted %d table(s) in %s", result.tables, src)
        else:
            logger.debug("No tables converted in %s", src)

        if not _same_file(src, dest):
            try:
                await asyncio.to_thread(shutil.copyfile, src, dest)
            except OSError as e:
                raise TableImportError("htmlProcessingFailed", f"Failed to copy file: {e}") from e
        return result.modified

    except Exception as e:
        logger.error("Table import of %s failed: %s", src, e, exc_info=True)
        if not _same_file(src, dest):
            try:
                if original is not None:
                    await asyncio.to_thread(dest.write_bytes, original)
                else:
                    await asyncio.to_thread(shutil.copyfile, src, dest)
            except OSError:
                logger.exception("Could not copy original %s to %s", src, dest)
        if isinstance(e, TableImportError):
            raise
        raise TableImportError("tableImportFailed", f"Table plugin error: {e}") from e
