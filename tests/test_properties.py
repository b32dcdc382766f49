"""Property-based tests using Hypothesis.

These tests verify invariants that hold for any row descriptor or cell text:
1. Tokens decode back to the exact JSON that was encoded
2. Tokens only use the URL-safe alphabet
3. Class extraction never loses information, padding included
4. Cells survive import and collection, literal delimiters included
"""

import json
import re

from hypothesis import given, settings
from hypothesis import strategies as st

from linetables import class_for, collect_lines, convert_tables, decode, decode_class, encode
from linetables.codec import dumps

json_scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(2**53), max_value=2**53),
    st.text(max_size=20),
)
descriptors = st.fixed_dictionaries(
    {
        "tblId": st.text(alphabet="0123456789abcdefghijklmnopqrstuvwxyz", min_size=1, max_size=8),
        "row": st.integers(min_value=0, max_value=10_000),
        "cols": st.integers(min_value=1, max_value=50),
    },
    optional={"tblProperties": st.dictionaries(st.text(max_size=10), json_scalars, max_size=4)},
)
cell_texts = st.text(alphabet="ab|xy z", min_size=1, max_size=8)


class TestCodecProperties:
    @given(metadata=descriptors)
    @settings(max_examples=200)
    def test_decode_restores_metadata(self, metadata: dict) -> None:
        result = decode(encode(metadata))
        assert result is not None
        assert result.metadata == metadata
        assert result.json == dumps(metadata)
        assert result.is_well_formed

    @given(metadata=st.dictionaries(st.text(max_size=10), json_scalars, max_size=6))
    @settings(max_examples=200)
    def test_tokens_are_url_safe(self, metadata: dict) -> None:
        assert re.fullmatch(r"[A-Za-z0-9_=-]*", encode(metadata))

    @given(metadata=descriptors)
    @settings(max_examples=200)
    def test_class_marker_round_trip(self, metadata: dict) -> None:
        marker = class_for(metadata)
        result = decode_class(f"ace-line {marker} other")
        assert result is not None
        assert result.metadata == metadata


class TestImportProperties:
    @given(rows=st.lists(st.lists(cell_texts, min_size=1, max_size=5), min_size=1, max_size=4))
    @settings(max_examples=100)
    def test_cells_survive_import(self, rows: list[list[str]]) -> None:
        body = "".join("<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>" for row in rows)
        result = convert_tables(f"<table>{body}</table>")

        lines = collect_lines(result.html)
        assert [line.cells() for line in lines] == rows

        metadata = [json.loads(line.table_json) for line in lines]
        assert [m["row"] for m in metadata] == list(range(len(rows)))
        assert [m["cols"] for m in metadata] == [len(row) for row in rows]
        assert len({m["tblId"] for m in metadata}) == 1
