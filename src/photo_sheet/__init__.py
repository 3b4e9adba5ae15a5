"""Top-level package for the Photo Sheet Builder.

Provides subpackages:
- photo_sheet.core – data models, unit conversion and the error taxonomy
- photo_sheet.transform – raster transforms and the per-item transform queue
- photo_sheet.layout – sheet packing and manual arrangement
- photo_sheet.output – shared page renderer and PDF exporter
- photo_sheet.session – in-memory editing session tying it all together
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            content = pyproject.read_text()
            for line in content.splitlines():
                if line.strip().startswith("version"):
                    # Parse: version = "0.3.0"
                    return line.split("=")[1].strip().strip('"').strip("'")
        except OSError:
            pass

    try:
        from importlib.metadata import version as pkg_version, PackageNotFoundError
        return pkg_version("photo-sheet-builder")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()
__all__: list[str] = ["__version__"]
