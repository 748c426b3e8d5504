# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Settings - A layered hierarchical configuration store.

This module provides the Settings class, the container that accumulates
configuration from several sources and answers path-addressed queries.

Key Features:
    - **Layering**: Each load is merged over the previous ones. Nested
      mappings accumulate keys, any other value is replaced
    - **Formats**: JSON, YAML and Lua scripts (a chunk returning a table)
    - **Colon paths**: 'database:primary:host'
    - **Typed access**: get_bool, get_string, get_int, get_float and a
      generic get() decoding into dataclasses or pydantic models
    - **Defaults**: Every accessor takes an optional default returned on
      any failure; without it, the failure raises

Example:
    Basic usage::

        settings = Settings()
        settings.load_file('defaults.json')
        settings.load_file('local.lua')

        host = settings.get_string('database:host', 'localhost')
        port = settings.get_int('database:port', 5432)

        settings.raw_set('database:pool:size', 10)
        print(settings['database:pool:size'])  # 10

    Decoding into a dataclass::

        @dataclass
        class Api:
            baseurl: str = ''
            timeout: int = 30

        api = settings.get('api', Api)
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from copy import deepcopy
from os import PathLike
from typing import IO, Any, Callable, Iterator

import yaml

from .. import accessors
from ..exceptions import FlexiConfigError, LoaderError
from ..loaders import format_for_path, parse, read_source
from ..merge import merge_trees
from ..paths import PATH_SEPARATOR, is_tree, lookup, resolve

logger = logging.getLogger(__name__)

_MISSING: Any = object()


class Settings:
    """A hierarchical configuration store fed by successive loads.

    Settings provides:
    - load_*(...) / merge_settings(mapping): Merge a source over the current tree
    - raw_get(path) / raw_set(path, value, timid): Untyped access
    - get_bool/get_string/get_int/get_float(path, default): Typed access
    - get(path, target, default): Decode into an arbitrary target
    - get_json() / get_pretty_json() / to_yaml() / print(): Diagnostics

    A Settings instance is not thread safe: it must be used by one writer
    at a time.

    Example:
        >>> settings = Settings({'a': {'x': 1}})
        >>> settings.merge_settings({'a': {'y': 2}})
        >>> settings.as_dict()
        {'a': {'x': 1, 'y': 2}}
    """

    __slots__ = ('_settings', '_lua_modules')

    def __init__(self, source: Mapping[str, Any] | None = None) -> None:
        """Initialize an empty Settings, optionally merging source into it.

        Args:
            source: Optional initial tree.
        """
        self._settings: dict[str, Any] = {}
        self._lua_modules: dict[str, Callable[..., Any]] = {}

        if source is not None:
            self.merge_settings(source)

    # ==================== Special Methods ====================

    def __repr__(self) -> str:
        """Return string representation showing top-level keys."""
        return f"Settings({list(self._settings.keys())})"

    def __len__(self) -> int:
        """Return the number of top-level keys."""
        return len(self._settings)

    def __iter__(self) -> Iterator[str]:
        """Iterate over top-level keys."""
        return iter(self._settings)

    def __contains__(self, path: str) -> bool:
        """Check if a colon path resolves to a value."""
        try:
            lookup(self._settings, path)
            return True
        except KeyError:
            return False

    def __getitem__(self, path: str) -> Any:
        """Get the raw value at path.

        Raises:
            PathNotFoundError: If path does not resolve.
        """
        return lookup(self._settings, path)

    def __setitem__(self, path: str, value: Any) -> None:
        """Set the value at path, replacing conflicting intermediate values."""
        self.raw_set(path, value, timid=False)

    # ==================== Loading ====================

    def merge_settings(self, new_settings: Mapping[str, Any]) -> None:
        """Merge an already parsed tree over the current settings.

        Args:
            new_settings: Tree whose values win on conflicts.

        Raises:
            TypeError: If new_settings is not a mapping.
        """
        if not isinstance(new_settings, Mapping):
            raise TypeError(
                f"settings must be a mapping, not {type(new_settings).__name__}"
            )
        merge_trees(self._settings, new_settings)

    def load(self, data: str | bytes, kind: str) -> None:
        """Parse data in the given format and merge it.

        Args:
            data: Source text or bytes.
            kind: 'json', 'yaml', 'yml' or 'lua' (a leading dot is accepted).

        Raises:
            UnknownFormatError: If kind is not a known format.
            LoaderError: If data cannot be parsed. Settings are unchanged.
        """
        self._load(data, kind)

    def load_file(self, path: str | PathLike[str]) -> None:
        """Load a file, choosing the loader from its suffix.

        '.json' files are parsed as JSON, '.yaml'/'.yml' as YAML and
        '.lua' files are run as Lua scripts.

        Raises:
            UnknownFormatError: If the suffix is not recognized.
            LoaderError: If the file is missing or cannot be parsed.
        """
        kind = format_for_path(path)
        self._load_path(path, kind)

    def load_json(self, data: str | bytes) -> None:
        """Parse a JSON object and merge it."""
        self._load(data, 'json')

    def load_json_file(self, path: str | PathLike[str]) -> None:
        """Load a JSON file regardless of its suffix."""
        self._load_path(path, 'json')

    def load_yaml(self, data: str | bytes) -> None:
        """Parse a YAML mapping and merge it."""
        self._load(data, 'yaml')

    def load_yaml_file(self, path: str | PathLike[str]) -> None:
        """Load a YAML file regardless of its suffix."""
        self._load_path(path, 'yaml')

    def load_lua_string(self, code: str) -> None:
        """Run a Lua chunk and merge the table it returns."""
        self._load(code, 'lua')

    def load_lua_file(self, path: str | PathLike[str]) -> None:
        """Run a Lua file and merge the table it returns."""
        self._load_path(path, 'lua')

    def add_lua_loader(self, name: str, loader: Callable[..., Any]) -> None:
        """Register a custom Lua module available to later Lua loads.

        Every Lua load runs in a new runtime; the module is preloaded in
        each of them and scripts obtain it with ``require(name)``.

        Args:
            name: Module name used with require().
            loader: Callable receiving the ``lupa.LuaRuntime`` and returning
                the module: a Lua table, or a mapping of values and Python
                callables converted to one.

        Example:
            >>> settings.add_lua_loader('paths', lambda lua: {'home': '/srv'})
            >>> settings.load_lua_string(
            ...     "local paths = require('paths') return { root = paths.home }")
        """
        self._lua_modules[name] = loader

    def _load_path(self, path: str | PathLike[str], kind: str) -> None:
        try:
            data = read_source(path)
        except LoaderError:
            logger.warning("Failed to read config file %s", path)
            raise
        self._load(data, kind, name=f"@{path}" if kind == 'lua' else str(path))

    def _load(self, data: str | bytes, kind: str, name: str | None = None) -> None:
        """Parse data completely, then merge it. Nothing is merged on failure."""
        try:
            tree = parse(data, kind, name=name, lua_modules=self._lua_modules)
        except LoaderError:
            logger.warning("Failed to load %s config from %s", kind, name or 'data')
            raise
        logger.debug(
            "Loaded %s config from %s (%d top-level keys)",
            kind, name or 'data', len(tree),
        )
        merge_trees(self._settings, tree)

    # ==================== Raw Access ====================

    def raw_get(self, path: str, default: Any = _MISSING) -> Any:
        """Get the untyped value at path.

        A key holding None is present: raw_get returns None for it rather
        than reporting the path as missing.

        Args:
            path: Colon path (e.g., 'database:host').
            default: Returned if path does not resolve. If omitted, the
                error is raised.

        Raises:
            PathNotFoundError: If path does not resolve and no default is given.
        """
        try:
            return lookup(self._settings, path)
        except FlexiConfigError as exc:
            return self._fallback(exc, default)

    def raw_set(self, path: str, value: Any, timid: bool = False) -> None:
        """Set the value at path, creating intermediate mappings.

        ``timid`` decides what happens when an intermediate segment holds
        a non-mapping value. Given ``{'root': {'intermediate': 22}}`` and
        ``raw_set('root:intermediate:value', 'Hello')``:

        - timid=False replaces 22 with ``{'value': 'Hello'}``
        - timid=True raises PathNotFoundError and changes nothing

        Raises:
            PathNotFoundError: On a conflicting segment when timid is True.
        """
        container, final = resolve(
            self._settings, path, create_missing=True, timid=timid
        )
        container[final] = value

    # ==================== Typed Access ====================

    def get_bool(self, path: str, default: Any = _MISSING) -> bool:
        """Get a bool stored at path.

        No coercion: any value that is not a bool is a type mismatch.

        Args:
            path: Colon path.
            default: Returned on any failure. If omitted, the error is raised.

        Raises:
            PathNotFoundError: If path does not resolve.
            TypeMismatchError: If the value is not a bool.
        """
        return self._typed(path, accessors.coerce_bool, default)

    def get_string(self, path: str, default: Any = _MISSING) -> str:
        """Get a string stored at path. Numbers are not stringified."""
        return self._typed(path, accessors.coerce_str, default)

    def get_int(self, path: str, default: Any = _MISSING) -> int:
        """Get an int stored at path.

        Floats are truncated toward zero; strings, booleans and non-finite
        floats are type mismatches.
        """
        return self._typed(path, accessors.coerce_int, default)

    def get_float(self, path: str, default: Any = _MISSING) -> float:
        """Get a float stored at path. Ints are converted."""
        return self._typed(path, accessors.coerce_float, default)

    def get(self, path: str, target: Any, default: Any = _MISSING) -> Any:
        """Decode the value at path into target.

        Args:
            path: Colon path.
            target: A type or typing form (dataclass, BaseModel subclass,
                ``list[int]``...) to build, or a dataclass/BaseModel instance
                to update. Fields missing from the stored value keep their
                current value; the instance is untouched if decoding fails.
            default: Returned on any failure. If omitted, the error is raised.

        Returns:
            The decoded value (the updated instance for instance targets).

        Example:
            >>> settings.get('unmarshal:test', A)
            A(value=10, others=[B(name='b1')])
        """
        return self._typed(
            path, lambda raw, p: accessors.decode(raw, target, path=p), default
        )

    def _typed(
        self,
        path: str,
        coerce: Callable[[Any, str], Any],
        default: Any,
    ) -> Any:
        try:
            return coerce(lookup(self._settings, path), path)
        except FlexiConfigError as exc:
            return self._fallback(exc, default)

    def _fallback(self, exc: FlexiConfigError, default: Any) -> Any:
        if default is _MISSING:
            raise exc
        logger.debug("Using default for setting: %s", exc)
        return default

    # ==================== Walk ====================

    def walk(self) -> Iterator[tuple[str, Any]]:
        """Yield (path, value) for every leaf, depth first.

        Example:
            >>> for path, value in Settings({'a': {'b': 1}, 'c': 2}).walk():
            ...     print(path, value)
            a:b 1
            c 2
        """
        def _walk_gen(tree: dict[str, Any], prefix: str) -> Iterator[tuple[str, Any]]:
            for key, value in tree.items():
                path = f"{prefix}{PATH_SEPARATOR}{key}" if prefix else key
                if is_tree(value):
                    yield from _walk_gen(value, path)
                else:
                    yield path, value

        return _walk_gen(self._settings, '')

    # ==================== Conversion ====================

    def as_dict(self) -> dict[str, Any]:
        """Return a deep copy of the whole tree."""
        return deepcopy(self._settings)

    def get_json(self) -> bytes:
        """Return the compact JSON representation of the settings.

        Useful to keep a static copy of the settings for later.

        Raises:
            TypeError: If a value stored with raw_set is not JSON serializable.
        """
        return json.dumps(
            self._settings, ensure_ascii=False, separators=(',', ':')
        ).encode('utf-8')

    def get_pretty_json(self, prefix: str = '', indent: str = '  ') -> bytes:
        """Return indented JSON; every line after the first starts with prefix."""
        text = json.dumps(self._settings, ensure_ascii=False, indent=indent)
        if prefix:
            text = text.replace('\n', '\n' + prefix)
        return text.encode('utf-8')

    def to_yaml(self) -> str:
        """Return the settings as a YAML document, keys in insertion order."""
        return yaml.safe_dump(self._settings, sort_keys=False, allow_unicode=True)

    def print(self, file: IO[str] | None = None) -> None:
        """Write the settings as pretty JSON to file (stdout by default)."""
        print(self.get_pretty_json().decode('utf-8'), file=file or sys.stdout)
