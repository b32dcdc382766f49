"""Tests for the row metadata codec."""

import base64
import json

import pytest

from linetables.codec import (
    DecodedMetadata,
    decode,
    decode_strict,
    decode_text,
    dumps,
    encode,
    encode_json,
    is_well_formed_metadata,
)
from linetables.errors import LinetablesError, MetadataError
from linetables.tokens import class_for, extract_encoded


class TestEncode:
    def test_matches_urlsafe_base64_of_compact_json(self) -> None:
        meta = {"tblId": "k3x9qz", "row": 2, "cols": 4}
        expected = base64.urlsafe_b64encode(
            json.dumps(meta, separators=(",", ":")).encode("utf-8")
        ).decode("ascii")
        assert encode(meta) == expected

    def test_compact_serialization(self) -> None:
        assert dumps({"tblId": "a", "row": 0, "cols": 1}) == '{"tblId":"a","row":0,"cols":1}'

    def test_non_ascii_is_utf8(self) -> None:
        token = encode({"tblId": "é", "row": 0, "cols": 1})
        assert decode(token).metadata["tblId"] == "é"

    def test_padding_is_kept(self) -> None:
        # 31 bytes of JSON -> two padding characters
        meta = {"tblId": "ab", "row": 0, "cols": 1}
        assert len(dumps(meta)) == 31
        assert encode(meta).endswith("==")

    def test_no_padding_when_length_is_multiple_of_three(self) -> None:
        meta = {"tblId": "a", "row": 0, "cols": 1}
        assert len(dumps(meta)) == 30
        assert not encode(meta).endswith("=")


class TestPaddingBoundary:
    """Class extraction drops '=' padding; decoding must not depend on it."""

    def test_extraction_drops_padding(self) -> None:
        meta = {"tblId": "ab", "row": 0, "cols": 1}
        token = encode(meta)
        extracted = extract_encoded(class_for(meta))
        assert extracted == token.rstrip("=")
        assert extracted != token

    def test_unpadded_token_still_decodes(self) -> None:
        meta = {"tblId": "ab", "row": 0, "cols": 1}
        extracted = extract_encoded(class_for(meta))
        result = decode(extracted)
        assert result is not None
        assert result.metadata == meta
        assert result.is_well_formed

    def test_padded_token_decodes(self) -> None:
        meta = {"tblId": "ab", "row": 0, "cols": 1}
        assert decode(encode(meta)).metadata == meta


class TestDecode:
    def test_round_trip_preserves_extra_fields(self) -> None:
        meta = {"tblId": "t", "row": 1, "cols": 3, "tblProperties": {"width": 50}, "x": [1, 2]}
        result = decode(encode(meta))
        assert isinstance(result, DecodedMetadata)
        assert result.metadata == meta
        assert result.json == dumps(meta)
        assert result.error is None

    def test_keeps_original_json_text(self) -> None:
        text = '{"tblId": "t",  "row": 0, "cols": 2}'
        assert decode(encode_json(text)).json == text

    def test_invalid_base64_returns_none(self) -> None:
        assert decode("!!!!") is None

    def test_invalid_utf8_returns_none(self) -> None:
        # "abc" -> b"i\xb7", not UTF-8
        assert decode_text("abc") is None
        assert decode("abc") is None

    def test_not_json_yields_result_without_metadata(self) -> None:
        result = decode(encode_json("not json"))
        assert result is not None
        assert result.json == "not json"
        assert result.metadata is None
        assert result.is_well_formed is False
        assert isinstance(result.error, ValueError)

    def test_decode_never_raises_on_garbage(self) -> None:
        for token in ("", "-", "____", "a-b_c", "=" * 8):
            decode(token)


class TestWellFormed:
    def test_valid(self) -> None:
        assert is_well_formed_metadata({"tblId": "t", "row": 0, "cols": 2})

    def test_missing_row(self) -> None:
        assert not is_well_formed_metadata({"tblId": "t", "cols": 2})

    def test_missing_tbl_id(self) -> None:
        assert not is_well_formed_metadata({"row": 0, "cols": 2})

    def test_non_numeric_cols(self) -> None:
        assert not is_well_formed_metadata({"tblId": "t", "row": 0, "cols": "2"})

    def test_boolean_cols(self) -> None:
        assert not is_well_formed_metadata({"tblId": "t", "row": 0, "cols": True})

    def test_float_cols(self) -> None:
        assert is_well_formed_metadata({"tblId": "t", "row": 0, "cols": 2.0})

    def test_null_values_count_as_defined(self) -> None:
        assert is_well_formed_metadata({"tblId": None, "row": None, "cols": 0})

    def test_non_object(self) -> None:
        assert not is_well_formed_metadata(None)
        assert not is_well_formed_metadata([1, 2, 3])

    def test_flag_on_decoded_result(self) -> None:
        assert decode(encode({"tblId": "t", "row": 0})).is_well_formed is False
        assert decode(encode({"tblId": "t", "row": 0, "cols": 1})).is_well_formed is True


class TestDecodeStrict:
    def test_returns_metadata(self) -> None:
        meta = {"tblId": "t", "row": 0, "cols": 1}
        assert decode_strict(encode(meta)) == meta

    def test_undecodable(self) -> None:
        with pytest.raises(MetadataError, match="base64"):
            decode_strict("!!!!")

    def test_not_json(self) -> None:
        with pytest.raises(MetadataError, match="not JSON"):
            decode_strict(encode_json("{oops"))

    def test_malformed(self) -> None:
        with pytest.raises(MetadataError, match="missing"):
            decode_strict(encode({"tblId": "t"}))

    def test_is_linetables_error(self) -> None:
        with pytest.raises(LinetablesError):
            decode_strict("!!!!")
