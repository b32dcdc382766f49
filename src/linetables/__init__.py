"""
linetables: tables inside line-oriented documents

Each table row is one document line: the cells' contents joined by a
delimiter, plus a ``tbljson-<token>`` class marker whose URL-safe token
encodes the row's table id, row index and column count.

Quick Start:
    >>> from linetables import convert_tables, collect_lines, export_lines, AttributePool
    >>> result = convert_tables("<table><tr><td>A</td><td>B</td></tr></table>")
    >>> lines = collect_lines(result.html)
    >>> lines[0].cells()
    ['A', 'B']

Pipeline:
    import   convert_tables / import_file   HTML tables -> token-bearing lines
    scan     collect_content_pre            class marker -> tbljson line attribute
    export   get_line_html_for_export       tbljson line -> <table> markup
    replay   render("timeslider", ...)      row JSON -> <table> markup in place

Installation:
    pip install linetables
"""

from linetables.attributes import AttributePool, build_attrib_line
from linetables.codec import DecodedMetadata, decode, decode_strict, encode, is_well_formed_metadata
from linetables.collector import (
    CollectContext,
    CollectedLine,
    ContentCollector,
    LineState,
    collect_content_pre,
    collect_lines,
)
from linetables.config import (
    TableConfig,
    get_table_config,
    reset_table_config,
    set_table_config,
    table_config_context,
)
from linetables.errors import LinetablesError, MetadataError, RenderError, TableImportError
from linetables.export import (
    ExportLineContext,
    export_lines,
    get_line_html_for_export,
    retrieve_table_attribute,
)
from linetables.importer import Conversion, convert_tables, import_file
from linetables.renderer import EXPORT, TIMESLIDER, ReplayElement, render
from linetables.tokens import class_for, decode_class, extract_encoded, split_cells, to_class_tokens

__version__ = "0.1.0"

__all__ = [
    # Codec
    "DecodedMetadata",
    "decode",
    "decode_strict",
    "encode",
    "is_well_formed_metadata",
    # Class markers
    "class_for",
    "decode_class",
    "extract_encoded",
    "split_cells",
    "to_class_tokens",
    # Collection
    "CollectContext",
    "CollectedLine",
    "ContentCollector",
    "LineState",
    "collect_content_pre",
    "collect_lines",
    # Rendering and export
    "EXPORT",
    "TIMESLIDER",
    "ReplayElement",
    "render",
    "AttributePool",
    "build_attrib_line",
    "ExportLineContext",
    "export_lines",
    "get_line_html_for_export",
    "retrieve_table_attribute",
    # Import
    "Conversion",
    "convert_tables",
    "import_file",
    # Configuration
    "TableConfig",
    "get_table_config",
    "reset_table_config",
    "set_table_config",
    "table_config_context",
    # Errors
    "LinetablesError",
    "MetadataError",
    "RenderError",
    "TableImportError",
    "__version__",
]
