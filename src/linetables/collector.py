"""Line attribute collection during content scans.

When the host scans document content (an import, a paste, a reload), every
element's classes pass through ``collect_content_pre``. An element carrying
a ``tbljson-<token>`` class turns its line into a table line by applying the
``tbljson`` line attribute, whose value is the decoded JSON text exactly as
it was encoded (unknown fields included).

Failures stay local to one line:
- no marker: nothing happens
- marker that does not decode: skipped, logged at debug level
- decoded but malformed metadata: warning, attribute applied anyway
- the host rejects the attribute: logged, the scan goes on

``collect_lines`` is a small content scan over HTML for callers without a
host collector (tests, command-line conversions, export previews).
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Protocol

from bs4 import BeautifulSoup, NavigableString, Tag

from linetables.config import get_table_config
from linetables.codec import decode
from linetables.tokens import extract_encoded, split_cells
from linetables.utils.logger import get_logger

logger = get_logger(__name__)

# Stands in for escaped delimiters while the markup is parsed
_ESCAPE_SENTINEL = "\ue000"


@dataclass(slots=True)
class LineState:
    """Collection state of the line being scanned."""

    line_attributes: list[tuple[str, str]] = field(default_factory=list)

    def set_line_attribute(self, name: str, value: str) -> None:
        """Set a line attribute, replacing an earlier value of the same name."""
        self.line_attributes = [a for a in self.line_attributes if a[0] != name]
        self.line_attributes.append((name, value))

    def get_line_attribute(self, name: str) -> str | None:
        for attr_name, value in self.line_attributes:
            if attr_name == name:
                return value
        return None


class AttributeApplier(Protocol):
    """The host's attribute-application primitive."""

    def do_attrib(self, state: LineState, attrib: str) -> None:
        """Apply ``"name::value"`` to the line described by ``state``."""
        ...


class ContentCollector:
    """Default applier recording line attributes on the state."""

    def do_attrib(self, state: LineState, attrib: str) -> None:
        name, sep, value = attrib.partition("::")
        if not sep or not name:
            raise ValueError(f"attribute must look like 'name::value', got {attrib!r}")
        state.set_line_attribute(name, value)


@dataclass(slots=True)
class CollectContext:
    """Arguments of one collectContentPre call.

    Attributes:
        cls: Class source of the element (string, list or token list)
        state: Collection state of the current line
        cc: Object providing ``do_attrib``
        tname: Tag name, when the host passes one
    """

    cls: Any
    state: LineState
    cc: AttributeApplier
    tname: str | None = None


def collect_content_pre(context: CollectContext) -> None:
    """Apply the table attribute if the element carries a table marker."""
    encoded = extract_encoded(context.cls)
    if encoded is None:
        return

    info = decode(encoded)
    if info is None:
        logger.debug("Could not decode table marker on <%s>: %s", context.tname, encoded)
        return

    if not info.is_well_formed:
        if info.error is not None:
            logger.warning("Table marker decoded but is not JSON: %s", info.error)
        else:
            logger.warning("Table metadata is missing required fields: %r", info.metadata)

    attribute_name = get_table_config().attribute_name
    try:
        context.cc.do_attrib(context.state, f"{attribute_name}::{info.json}")
    except Exception:
        logger.exception("Failed to apply %s attribute on <%s>", attribute_name, context.tname)


# =============================================================================
# Content scan over HTML
# =============================================================================


@dataclass(frozen=True, slots=True)
class CollectedLine:
    """One document line produced by ``collect_lines``.

    For table lines, literal delimiters inside cells stay escaped in
    ``text``, so ``cells()`` splits only at real cell boundaries.
    """

    text: str
    attributes: tuple[tuple[str, str], ...] = ()

    @property
    def table_json(self) -> str | None:
        """Value of the table line attribute, if this is a table line."""
        name = get_table_config().attribute_name
        for attr_name, value in self.attributes:
            if attr_name == name:
                return value
        return None

    @property
    def is_table_line(self) -> bool:
        return self.table_json is not None

    def cells(self) -> list[str]:
        return split_cells(self.text)


def _iter_elements(tag: Tag) -> Iterator[Tag]:
    yield tag
    yield from tag.find_all(True)


def _collect_element(tag: Tag, cc: AttributeApplier) -> CollectedLine:
    state = LineState()
    for element in _iter_elements(tag):
        collect_content_pre(CollectContext(cls=element.get("class"), state=state, cc=cc, tname=element.name))

    config = get_table_config()
    is_table = state.get_line_attribute(config.attribute_name) is not None
    restore = config.escaped_delimiter if is_table else config.delimiter
    text = tag.get_text().replace(_ESCAPE_SENTINEL, restore)
    return CollectedLine(text=text, attributes=tuple(state.line_attributes))


def collect_lines(html: str, cc: AttributeApplier | None = None) -> list[CollectedLine]:
    """Scan HTML into lines, applying table attributes from class markers.

    Every top-level element of ``<body>`` (or of the fragment) is one line;
    bare top-level text is a line of its own.
    """
    cc = cc or ContentCollector()
    escaped = get_table_config().escaped_delimiter
    if escaped:
        html = html.replace(escaped, _ESCAPE_SENTINEL)

    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup.find("html") or soup
    lines: list[CollectedLine] = []
    for child in root.children:
        if isinstance(child, Tag):
            if child.name == "head":
                continue
            lines.append(_collect_element(child, cc))
        elif type(child) is NavigableString and child.strip():
            text = str(child).strip().replace(_ESCAPE_SENTINEL, get_table_config().delimiter)
            lines.append(CollectedLine(text=text))
    return lines
