"""Exception classes for linetables.

Most failures in this package are contained at the smallest unit (one line,
one render call) and reported through logging. The exceptions below are the
ones that do cross a public boundary.
"""

from __future__ import annotations


class LinetablesError(Exception):
    """Base exception for all linetables errors."""

    pass


class MetadataError(LinetablesError):
    """Row metadata could not be decoded or is not a row descriptor.

    Only raised by the strict decoding helpers; the tolerant path reports
    problems through ``DecodedMetadata.is_well_formed`` instead.
    """

    def __init__(self, message: str, token: str | None = None) -> None:
        self.token = token
        if token:
            preview = token if len(token) <= 24 else f"{token[:24]}..."
            message = f"{message} (token {preview!r})"
        super().__init__(message)


class RenderError(LinetablesError):
    """Error while turning a row payload into markup.

    Raised inside the renderer and caught at its boundary, so callers of
    ``render()`` see ``None`` rather than this exception.
    """

    pass


class TableImportError(LinetablesError):
    """HTML import failed while converting tables.

    Attributes:
        reason: Machine-readable failure code (e.g. "tableImportFailed")
    """

    def __init__(self, reason: str, message: str) -> None:
        """Initialize import error.

        Args:
            reason: Machine-readable failure code
            message: Human-readable description
        """
        self.reason = reason
        self.message = message
        super().__init__(f"{reason}: {message}")
