"""Markup builder for row rendering.

Appends fragments to a list and joins once at the end, with helpers for
opening tags with escaped attributes and inline styles.

Thread Safety:
    MarkupBuilder instances are local to each render() call.

"""

from __future__ import annotations

import html
from collections.abc import Iterable, Mapping


def escape_text(text: str) -> str:
    """Escape text content: ``&``, ``<``, ``>``, ``"`` and ``'``."""
    return html.escape(str(text), quote=True)


def escape_attr(value: object) -> str:
    """Escape a value for a double-quoted attribute."""
    return html.escape(str(value), quote=True)


def style(declarations: Iterable[tuple[str, object]]) -> str:
    """Join CSS declarations, skipping those whose value is None."""
    return ";".join(f"{prop}:{value}" for prop, value in declarations if value is not None)


class MarkupBuilder:
    """Efficient markup accumulator.

    Usage:
        >>> mb = MarkupBuilder()
        >>> _ = mb.open("td", style="padding:4px").text("a < b").close("td")
        >>> mb.build()
        '<td style="padding:4px">a &lt; b</td>'

    """

    __slots__ = ("_parts",)

    def __init__(self) -> None:
        self._parts: list[str] = []

    def open(self, tag: str, attrs: Mapping[str, object] | None = None, **kw: object) -> MarkupBuilder:
        """Append an opening tag.

        Attributes from ``attrs`` come first, then keyword attributes
        (``class_`` is written as ``class``). None values are skipped.
        """
        merged = dict(attrs or {})
        merged.update((k.rstrip("_"), v) for k, v in kw.items())
        self._parts.append(f"<{tag}")
        for name, value in merged.items():
            if value is not None:
                self._parts.append(f' {name}="{escape_attr(value)}"')
        self._parts.append(">")
        return self

    def close(self, tag: str) -> MarkupBuilder:
        self._parts.append(f"</{tag}>")
        return self

    def raw(self, markup: str) -> MarkupBuilder:
        """Append trusted markup as is (empty strings are skipped)."""
        if markup:
            self._parts.append(markup)
        return self

    def text(self, content: str) -> MarkupBuilder:
        """Append escaped text content."""
        if content:
            self._parts.append(escape_text(content))
        return self

    def build(self) -> str:
        return "".join(self._parts)

    def __bool__(self) -> bool:
        return bool(self._parts)
