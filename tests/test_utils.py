"""Tests for linetables utility modules."""


class TestGetLogger:
    def test_prefixes_name(self) -> None:
        from linetables.utils.logger import get_logger

        assert get_logger("import").name == "linetables.import"

    def test_keeps_package_names(self) -> None:
        from linetables.utils.logger import get_logger

        assert get_logger("linetables.codec").name == "linetables.codec"
        assert get_logger("linetables").name == "linetables"

    def test_similar_prefix_is_namespaced(self) -> None:
        from linetables.utils.logger import get_logger

        assert get_logger("linetablesx").name == "linetables.linetablesx"


class TestStyle:
    def test_joins_declarations(self) -> None:
        from linetables.markup import style

        assert style((("border", "1px solid #ccc"), ("padding", "4px"))) == "border:1px solid #ccc;padding:4px"

    def test_skips_none(self) -> None:
        from linetables.markup import style

        assert style((("width", None), ("padding", "4px"))) == "padding:4px"
        assert style(()) == ""


class TestMarkupBuilder:
    def test_attributes_are_escaped(self) -> None:
        from linetables.markup import MarkupBuilder

        mb = MarkupBuilder()
        mb.open("table", {"data-tblId": 'a"b'}, class_="dataTable").close("table")
        assert mb.build() == '<table data-tblId="a&quot;b" class="dataTable"></table>'

    def test_none_attributes_skipped(self) -> None:
        from linetables.markup import MarkupBuilder

        assert MarkupBuilder().open("td", style=None).build() == "<td>"

    def test_raw_and_text(self) -> None:
        from linetables.markup import MarkupBuilder

        mb = MarkupBuilder().raw("<b>x</b>").text("<y>")
        assert mb.build() == "<b>x</b>&lt;y&gt;"

    def test_bool(self) -> None:
        from linetables.markup import MarkupBuilder

        mb = MarkupBuilder()
        assert not mb
        mb.raw("")
        assert not mb
        mb.text("a")
        assert mb
