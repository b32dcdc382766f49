"""Verify package imports work correctly."""


def test_import_linetables() -> None:
    """Test that linetables can be imported and version matches pyproject."""
    import tomllib
    from pathlib import Path

    import linetables

    with (Path(__file__).resolve().parent.parent / "pyproject.toml").open("rb") as f:
        expected = tomllib.load(f)["project"]["version"]
    assert linetables.__version__ == expected


def test_version_format() -> None:
    """Test version string format."""
    from linetables import __version__

    parts = __version__.split(".")
    assert len(parts) == 3
    assert all(part.isdigit() for part in parts)


def test_public_names_resolve() -> None:
    """Everything in __all__ is importable from the package root."""
    import linetables

    for name in linetables.__all__:
        assert hasattr(linetables, name), name
