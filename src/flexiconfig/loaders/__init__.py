# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Loaders turning configuration sources into trees.

Available formats:
- json: JSON objects (.json)
- yaml: YAML mappings (.yaml, .yml)
- lua: Lua scripts returning a table (.lua)

Example:
    >>> from flexiconfig.loaders import parse
    >>> parse(b'{"debug": true}', 'json')
    {'debug': True}
    >>> parse('return { debug = true }', '.lua')
    {'debug': True}
"""

from __future__ import annotations

from collections.abc import Mapping
from os import PathLike
from pathlib import Path
from typing import Any

from ..exceptions import ConfigFileNotFoundError, UnknownFormatError
from .data import parse_json, parse_yaml

# kind or suffix (without dot) -> format name
FORMATS = {
    'json': 'json',
    'yaml': 'yaml',
    'yml': 'yaml',
    'lua': 'lua',
}


def normalize_kind(kind: str) -> str:
    """Return the format name for a kind such as 'json', '.yml' or 'LUA'.

    Raises:
        UnknownFormatError: If no loader handles kind.
    """
    key = kind.lower().lstrip('.')
    try:
        return FORMATS[key]
    except KeyError:
        raise UnknownFormatError(f"Unknown config type '{kind}'") from None


def format_for_path(path: str | PathLike[str]) -> str:
    """Return the format name for a file path, based on its suffix.

    Raises:
        UnknownFormatError: If the suffix is missing or not recognized.
    """
    suffix = Path(path).suffix
    if suffix.lower().lstrip('.') not in FORMATS:
        raise UnknownFormatError(
            f"Unable to determine config file type for path {path}"
        )
    return normalize_kind(suffix)


def read_source(path: str | PathLike[str]) -> bytes:
    """Read a configuration file.

    Raises:
        ConfigFileNotFoundError: If the file is missing or unreadable.
    """
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise ConfigFileNotFoundError(
            f"Cannot read config file {path}: {exc.strerror or exc}"
        ) from exc


def parse(
    data: str | bytes,
    kind: str,
    name: str | None = None,
    lua_modules: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Parse data with the loader for kind.

    Args:
        data: Source text or bytes.
        kind: Format name or file suffix ('json', '.yaml', 'lua', ...).
        name: Source name used in error messages.
        lua_modules: Custom modules for Lua sources.

    Returns:
        The parsed tree.
    """
    fmt = normalize_kind(kind)
    if fmt == 'json':
        return parse_json(data, name)
    if fmt == 'yaml':
        return parse_yaml(data, name)

    # Lazy import: lupa is only needed for Lua sources
    from .lua import evaluate
    return evaluate(data, lua_modules, chunk_name=name)


__all__ = [
    'FORMATS',
    'format_for_path',
    'normalize_kind',
    'parse',
    'parse_json',
    'parse_yaml',
    'read_source',
]
