"""Keyward - API key issuance, hashing and validation."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

_PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def _resolve_version() -> str:
    # Installed distribution metadata first; a source checkout reads pyproject
    try:
        return version("keyward")
    except PackageNotFoundError:
        pass
    try:
        with _PYPROJECT.open("rb") as f:
            return tomllib.load(f)["project"]["version"]
    except (OSError, KeyError, tomllib.TOMLDecodeError):
        return "0+unknown"


__version__ = _resolve_version()
