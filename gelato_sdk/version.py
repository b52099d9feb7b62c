"""
Version information for the Gelato relay SDK.

Installed distributions report the version from their metadata. A source
checkout without metadata reads it from ``pyproject.toml``.
"""
import importlib.metadata
import pathlib

import tomli

DISTRIBUTION = "gelato-relay-sdk"
FALLBACK_VERSION = "0.1.0"
PYPROJECT = pathlib.Path(__file__).resolve().parent.parent / "pyproject.toml"


def pyproject_version(path: pathlib.Path = PYPROJECT) -> str:
    with path.open("rb") as f:
        return tomli.load(f)["project"]["version"]


def resolve_version() -> str:
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        pass
    try:
        return pyproject_version()
    except (OSError, KeyError, tomli.TOMLDecodeError):
        return FALLBACK_VERSION


__version__ = resolve_version()
