"""Row renderer for export and timeslider replay.

Turns one row payload into a one-row ``<table>``. A document with a table of
N rows is rendered by N calls, one per line; this module never reconstructs
multi-row tables.

Payload shape:
    {"payload": [["cell 1", "cell 2"]], "tblProperties": {...}, "tblId": ..., "row": ...}

Property precedence, lowest first:
    built-in defaults < payload["tblProperties"] < attribs

Contexts:
    "export"      returns the markup, no side effects
    "timeslider"  writes the markup into the target element when it changed

Anything else is not a supported context and renders nothing.

Thread Safety:
    ``render`` touches no shared state; the replay element belongs to the caller.

"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final, Protocol

from bs4 import BeautifulSoup

from linetables.config import get_table_config
from linetables.errors import RenderError
from linetables.markup import MarkupBuilder, style
from linetables.utils.logger import get_logger

logger = get_logger(__name__)

EXPORT: Final = "export"
TIMESLIDER: Final = "timeslider"
RENDER_CONTEXTS: Final = frozenset((EXPORT, TIMESLIDER))


class ReplayTarget(Protocol):
    """Element whose markup a timeslider frame rewrites."""

    inner_html: str


@dataclass(slots=True)
class ReplayElement:
    """Minimal in-memory replay target."""

    inner_html: str = ""


def _load_object(source: Any, what: str) -> dict[str, Any]:
    if isinstance(source, Mapping):
        return dict(source)
    if not isinstance(source, str):
        raise RenderError(f"{what} must be a mapping or JSON text, got {type(source).__name__}")
    try:
        value = json.loads(source)
    except ValueError as e:
        raise RenderError(f"{what} is not valid JSON: {e}") from e
    if not isinstance(value, dict):
        raise RenderError(f"{what} must be a JSON object")
    return value


def _load_attribs(attribs: Any) -> dict[str, Any]:
    if attribs is None or attribs == "":
        return {}
    return _load_object(attribs, "attribs")


def merge_properties(row: Mapping[str, Any], attribs: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Merge row properties key by key: defaults < tblProperties < attribs."""
    props = get_table_config().default_properties()
    table_props = row.get("tblProperties")
    if isinstance(table_props, Mapping):
        props.update(table_props)
    if attribs:
        props.update(attribs)
    return props


def _first_row(row: Mapping[str, Any]) -> list[Any] | None:
    payload = row.get("payload")
    if isinstance(payload, list) and payload and isinstance(payload[0], list):
        return payload[0]
    return None


def _cell_markup(cell: Any) -> str:
    if cell is None:
        return ""
    return cell if isinstance(cell, str) else str(cell)


def _column_width(widths: Any, index: int) -> Any:
    if isinstance(widths, list) and index < len(widths):
        width = widths[index]
        if isinstance(width, (int, float)) and not isinstance(width, bool):
            return f"{width}%"
    return None


def build_row_html(row: Mapping[str, Any], props: Mapping[str, Any]) -> str:
    """Build the markup for one row from merged properties.

    Cells are markup fragments and are inserted as they are; empty cells
    become ``&nbsp;``.
    """
    config = get_table_config()
    border = f"{props.get('borderWidth', config.border_width)}px solid {props.get('borderColor') or config.border_color}"

    table_attrs: dict[str, Any] = {"class": "dataTable"}
    if "tblId" in row and "row" in row:
        if row["row"] == 0:
            table_attrs["class"] = "dataTable dataTable-first-row"
        table_attrs["data-tblId"] = row["tblId"]
        table_attrs["data-row"] = row["row"]
    table_attrs["style"] = style((("border-collapse", "collapse"), ("width", f"{props.get('width', config.width)}%")))

    mb = MarkupBuilder()
    mb.open("table", table_attrs).open("tbody").open("tr")

    cells = _first_row(row)
    if cells is None:
        mb.open("td").text("Error: Invalid payload structure").close("td")
    else:
        widths = props.get("columnWidths")
        for i, cell in enumerate(cells):
            td_style = style((
                ("border", border),
                ("padding", config.cell_padding),
                ("word-wrap", "break-word"),
                ("width", _column_width(widths, i)),
            ))
            mb.open("td", style=td_style).raw(_cell_markup(cell) or "&nbsp;").close("td")

    mb.close("tr").close("tbody").close("table")
    return mb.build()


def _replay_text(element: ReplayTarget) -> str:
    """Text of the element with markup stripped."""
    return BeautifulSoup(element.inner_html or "", "html.parser").get_text()


def render(
    context: str,
    payload: Mapping[str, Any] | str | None = None,
    attribs: Mapping[str, Any] | str | None = None,
    *,
    element: ReplayTarget | None = None,
) -> str | None:
    """Render one row.

    Args:
        context: "export" or "timeslider"; other values render nothing
        payload: Parsed row, or row JSON text. For the timeslider, None means
            "read the JSON from the element's text"
        attribs: Call-site property overrides (JSON text or mapping)
        element: Replay target, required for the timeslider

    Returns:
        The markup, or None when the context is unsupported or the payload
        could not be parsed

    """
    if context not in RENDER_CONTEXTS:
        logger.debug("render: unsupported context %r", context)
        return None

    try:
        if context == TIMESLIDER and element is None:
            raise RenderError("timeslider rendering needs a target element")
        if payload is None:
            if element is None:
                raise RenderError("no payload to render")
            payload = _replay_text(element)
        row = _load_object(payload, "row payload")
        props = merge_properties(row, _load_attribs(attribs))
        markup = build_row_html(row, props)
    except RenderError as e:
        logger.warning("render (%s): %s", context, e)
        return None

    if context == TIMESLIDER:
        assert element is not None
        if element.inner_html != markup:
            element.inner_html = markup
        else:
            logger.debug("render (timeslider): content unchanged, skipping update")
    return markup
