"""Version utilities for reading application version."""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def get_version() -> str:
    """Read the version from the VERSION file, falling back to package metadata."""
    # backend/taskflow/core/version.py -> ../../../../VERSION
    version_file = Path(__file__).resolve().parents[3] / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    try:
        return version("taskflow")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = get_version()
