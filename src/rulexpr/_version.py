"""Version lookup for rulexpr.

A source checkout reports the version in its pyproject.toml; an installed
distribution reports its metadata version.
"""

import re
from functools import lru_cache
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _metadata_version
from pathlib import Path

DIST_NAME = "rulexpr"
UNKNOWN_VERSION = "0.0.0"

_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"
_VERSION_LINE = re.compile(r'^version\s*=\s*["\']([^"\']+)["\']', re.MULTILINE)


def _checkout_version() -> str | None:
    if not _PYPROJECT.is_file():
        return None
    match = _VERSION_LINE.search(_PYPROJECT.read_text())
    return match.group(1) if match else None


@lru_cache(maxsize=1)
def get_version() -> str:
    """Return the rulexpr version, or 0.0.0 when it cannot be determined."""
    checkout = _checkout_version()
    if checkout:
        return checkout
    try:
        return _metadata_version(DIST_NAME)
    except PackageNotFoundError:
        return UNKNOWN_VERSION
