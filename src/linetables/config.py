"""ContextVar-based table configuration for linetables.

Provides context-local configuration using Python's ContextVars (PEP 567).
Every codec, collector, renderer and importer call reads the active
configuration instead of module constants, so a host can rename the class
marker or the line attribute without patching the package.

Usage:
    from linetables.config import TableConfig, table_config_context

    with table_config_context(TableConfig(delimiter="\\u241f")):
        lines = collect_lines(html)

"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class TableConfig:
    """Immutable table configuration.

    Attributes:
        class_prefix: Class marker prefix; tokens look like ``<prefix>-<token>``
        attribute_name: Line attribute written by the collector
        legacy_attribute_name: Older attribute name still accepted on export
        delimiter: Cell delimiter inside a line's text
        escaped_delimiter: Entity used for literal delimiters inside a cell
        table_id_length: Length of generated table ids
        border_width: Default cell border width in pixels
        width: Default table width in percent
        border_color: Cell border color when no property sets one
        cell_padding: CSS padding applied to every cell
        import_extensions: File endings the importer handles
        max_columns: Largest column count a row may be padded to on export

    """

    class_prefix: str = "tbljson"
    attribute_name: str = "tbljson"
    legacy_attribute_name: str = "tblProp"
    delimiter: str = "|"
    escaped_delimiter: str = "&vert;"
    table_id_length: int = 6
    border_width: int = 1
    width: int = 100
    border_color: str = "#ccc"
    cell_padding: str = "4px"
    import_extensions: tuple[str, ...] = (".html", ".htm")
    max_columns: int = 1000

    @property
    def table_attribute_names(self) -> frozenset[str]:
        """Attribute names recognized as table attributes on export."""
        return frozenset((self.attribute_name, self.legacy_attribute_name))

    def default_properties(self) -> dict[str, Any]:
        """Built-in row properties, lowest precedence in the merge."""
        return {"borderWidth": self.border_width, "width": self.width}

    @classmethod
    def from_dict(cls, config_dict: dict) -> "TableConfig":
        """Create TableConfig from dictionary.

        Only includes keys that are valid TableConfig fields; unknown keys
        are silently ignored. Lists are accepted for ``import_extensions``.

        Example:
            >>> config = TableConfig.from_dict({"delimiter": ";", "other": 1})
            >>> config.delimiter
            ';'

        """
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in config_dict.items() if k in valid_fields}
        if "import_extensions" in filtered:
            filtered["import_extensions"] = tuple(filtered["import_extensions"])
        return cls(**filtered)


# Module-level default config (reused, never recreated)
_DEFAULT_CONFIG: TableConfig = TableConfig()

_table_config: ContextVar[TableConfig] = ContextVar(
    "table_config",
    default=_DEFAULT_CONFIG,
)


def get_table_config() -> TableConfig:
    """Get the active table configuration for this context."""
    return _table_config.get()


def set_table_config(config: TableConfig) -> None:
    """Set table configuration for the current context."""
    _table_config.set(config)


def reset_table_config() -> None:
    """Reset to the default configuration."""
    _table_config.set(_DEFAULT_CONFIG)


@contextmanager
def table_config_context(config: TableConfig) -> Iterator[None]:
    """Context manager for temporary config changes.

    Restores the previous config even if an exception is raised.

    Example:
        >>> with table_config_context(TableConfig(delimiter=";")):
        ...     get_table_config().delimiter
        ';'

    """
    previous = _table_config.get()
    _table_config.set(config)
    try:
        yield
    finally:
        _table_config.set(previous)


__all__ = [
    "TableConfig",
    "get_table_config",
    "set_table_config",
    "reset_table_config",
    "table_config_context",
]
