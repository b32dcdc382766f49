"""Attribute pool and attribute-run helpers.

The host document stores formatting as attribute runs: a string of ops such
as ``*0*3+5|1+1`` where every ``*<n>`` references an entry of the attribute
pool by base-36 index and ``+<n>`` gives the number of characters the
attributes cover. This module reads those runs; it does not allocate or
rebase pools the way the host does.

Example:
    >>> pool = AttributePool()
    >>> pool.put_attrib(("bold", "true"))
    0
    >>> [op.attribs for op in iter_ops("*0+3+2")]
    ['*0', '']
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

_OP_PATTERN = re.compile(r"((?:\*[0-9a-z]+)*)(?:\|([0-9a-z]+))?([-+=])([0-9a-z]+)")
_MARKER_PATTERN = re.compile(r"\*([0-9a-z]+)")


def to_base36(value: int) -> str:
    """Format a non-negative integer in lowercase base 36."""
    if value < 0:
        raise ValueError(f"negative value: {value}")
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while True:
        value, rem = divmod(value, 36)
        out = digits[rem] + out
        if not value:
            return out


@dataclass(frozen=True, slots=True)
class Op:
    """One operation of an attribute run."""

    opcode: str
    chars: int
    lines: int
    attribs: str

    def attrib_numbers(self) -> list[int]:
        return [int(n, 36) for n in _MARKER_PATTERN.findall(self.attribs)]


def iter_ops(attrib_line: str) -> Iterator[Op]:
    """Yield the ops of an attribute run in order.

    Raises:
        ValueError: If the run contains something that is not an op
    """
    pos = 0
    while pos < len(attrib_line):
        match = _OP_PATTERN.match(attrib_line, pos)
        if not match:
            raise ValueError(f"invalid attribute run at offset {pos}: {attrib_line!r}")
        attribs, lines, opcode, chars = match.groups()
        yield Op(
            opcode=opcode,
            chars=int(chars, 36),
            lines=int(lines, 36) if lines else 0,
            attribs=attribs,
        )
        pos = match.end()


def attribute_markers(attrib_line: str) -> list[int]:
    """Pool indices referenced by ``*<n>`` markers, in order of appearance."""
    return [int(n, 36) for n in _MARKER_PATTERN.findall(attrib_line or "")]


def subattribution(attrib_line: str, start: int, length: int) -> str:
    """Cut the part of an attribute run covering ``[start, start + length)``.

    Line counts are dropped; cell text never spans a line break.
    """
    end = start + length
    pos = 0
    parts: list[str] = []
    for op in iter_ops(attrib_line):
        op_start, op_end = pos, pos + op.chars
        pos = op_end
        if op_end <= start:
            continue
        if op_start >= end:
            break
        covered = min(op_end, end) - max(op_start, start)
        if covered > 0:
            parts.append(f"{op.attribs}+{to_base36(covered)}")
    return "".join(parts)


class AttributePool:
    """Mapping from small integers to ``(name, value)`` attribute pairs.

    Mirrors the host's pool closely enough to resolve attribute runs;
    ``put_attrib`` reuses the index of an attribute already in the pool.
    """

    __slots__ = ("num_to_attrib", "attrib_to_num", "next_num")

    def __init__(self) -> None:
        self.num_to_attrib: dict[int, tuple[str, str]] = {}
        self.attrib_to_num: dict[tuple[str, str], int] = {}
        self.next_num = 0

    def put_attrib(self, attrib: Sequence[str], dont_add: bool = False) -> int:
        """Return the index of ``attrib``, adding it unless ``dont_add``.

        Returns -1 when the attribute is missing and ``dont_add`` is set.
        """
        key = (str(attrib[0]), str(attrib[1]))
        if key in self.attrib_to_num:
            return self.attrib_to_num[key]
        if dont_add:
            return -1
        num = self.next_num
        self.next_num += 1
        self.attrib_to_num[key] = num
        self.num_to_attrib[num] = key
        return num

    def get_attrib(self, num: int) -> tuple[str, str] | None:
        return self.num_to_attrib.get(num)

    def __len__(self) -> int:
        return len(self.num_to_attrib)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> AttributePool:
        """Load the host's JSON form: ``{"numToAttrib": {"0": [k, v]}, "nextNum": 1}``."""
        pool = cls()
        for key, attrib in data.get("numToAttrib", {}).items():
            num = int(key)
            pair = (str(attrib[0]), str(attrib[1]))
            pool.num_to_attrib[num] = pair
            pool.attrib_to_num[pair] = num
        pool.next_num = int(data.get("nextNum", max(pool.num_to_attrib, default=-1) + 1))
        return pool

    def to_json(self) -> dict[str, Any]:
        return {
            "numToAttrib": {str(k): list(v) for k, v in sorted(self.num_to_attrib.items())},
            "nextNum": self.next_num,
        }


PoolLike = AttributePool | Mapping[Any, Sequence[str]]


def lookup(pool: PoolLike, num: int) -> tuple[str, str] | None:
    """Resolve a pool index against an AttributePool or a plain mapping.

    Plain mappings may be keyed by int or by the decimal string, as in the
    host's JSON form.
    """
    if isinstance(pool, AttributePool):
        return pool.get_attrib(num)
    entry = pool.get(num)
    if entry is None:
        entry = pool.get(str(num))
    if entry is None or len(entry) < 2:
        return None
    return str(entry[0]), str(entry[1])


def attributes_of(attribs: str, pool: PoolLike) -> dict[str, str]:
    """Resolve an op's ``*n*m`` string to a name -> value dict."""
    result: dict[str, str] = {}
    for num in attribute_markers(attribs):
        entry = lookup(pool, num)
        if entry is not None:
            result[entry[0]] = entry[1]
    return result


def build_attrib_line(
    segments: Sequence[tuple[str, Sequence[tuple[str, str]]]],
    pool: AttributePool,
) -> str:
    """Encode ``(text, attributes)`` segments as an attribute run."""
    parts: list[str] = []
    for text, attribs in segments:
        if not text:
            continue
        markers = "".join(f"*{to_base36(pool.put_attrib(a))}" for a in attribs)
        parts.append(f"{markers}+{to_base36(len(text))}")
    return "".join(parts)
