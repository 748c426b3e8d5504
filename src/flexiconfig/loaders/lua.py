# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Lua configuration scripts.

A Lua config is a chunk that returns a table::

    local env = os.getenv('APP_ENV') or 'dev'
    return {
        env = env,
        database = { host = 'db.' .. env, port = 5432 },
        replicas = { 'a', 'b' },
    }

Each evaluation runs in a fresh ``lupa.LuaRuntime`` that is discarded once
the returned value has been converted. Every runtime preloads a ``json``
module (``json.encode`` / ``json.decode``) and the custom modules passed
by the caller, so scripts can ``require`` them.

Conversion of the returned value:
    - tables with keys 1..n become lists
    - tables with string keys become dicts
    - the empty table is an empty dict, not the empty array a JSON encoder emits
    - strings and keys must be valid UTF-8
    - integral numbers become ints, other numbers floats
    - functions, coroutines, userdata and mixed-key tables are rejected

The runtime is created without the Lua-to-Python bridge (``python.eval``
and ``python.builtins`` are not registered) and private Python
attributes cannot be reached from Lua. The Lua standard library remains
available.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

import lupa
from lupa import LuaRuntime

from ..exceptions import ScriptError

logger = logging.getLogger(__name__)

# Signature of a custom module loader: receives the runtime, returns the
# module (a Lua table, or a mapping converted to one).
LuaLoader = Callable[[LuaRuntime], Any]

MAX_DEPTH = 100


def _deny_private(obj: Any, attr_name: Any, is_setting: bool) -> Any:
    if isinstance(attr_name, str) and attr_name.startswith('_'):
        raise AttributeError(f"access to '{attr_name}' is not allowed")
    return attr_name


def to_lua(runtime: LuaRuntime, value: Any) -> Any:
    """Convert a Python tree (dicts, lists, scalars) into Lua values."""
    if isinstance(value, Mapping):
        return runtime.table_from({k: to_lua(runtime, v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return runtime.table_from([to_lua(runtime, v) for v in value])
    return value


def _normalize_number(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def from_lua(value: Any, _depth: int = 0) -> Any:
    """Convert a value returned by Lua into a Python tree.

    Raises:
        ScriptError: If the value (or something inside it) has no tree
            representation.
    """
    if _depth > MAX_DEPTH:
        raise ScriptError("Lua table nesting is too deep (recursive table?)")

    kind = lupa.lua_type(value)
    if kind == 'table':
        return _table_from_lua(value, _depth)
    if kind is not None:
        raise ScriptError(f"Cannot convert Lua {kind} to a configuration value")

    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return _normalize_number(value)
    if isinstance(value, bytes):
        return value.decode('utf-8')
    raise ScriptError(
        f"Cannot convert {type(value).__name__} to a configuration value"
    )


def _table_from_lua(table: Any, depth: int) -> Any:
    items = [(_normalize_number(k), v) for k, v in table.items()]
    if not items:
        return {}

    keys = [k for k, _ in items]
    if all(isinstance(k, int) and not isinstance(k, bool) for k in keys):
        if sorted(keys) == list(range(1, len(keys) + 1)):
            ordered = sorted(items, key=lambda item: item[0])
            return [from_lua(v, depth + 1) for _, v in ordered]
        raise ScriptError("Cannot convert sparse Lua array to a list")

    if all(isinstance(k, (str, bytes)) for k in keys):
        return {
            (k.decode('utf-8') if isinstance(k, bytes) else k): from_lua(v, depth + 1)
            for k, v in items
        }
    raise ScriptError("Cannot convert Lua table with mixed or invalid key types")


def _json_module(runtime: LuaRuntime) -> Any:
    return to_lua(runtime, {
        'encode': lambda value: json.dumps(from_lua(value)),
        'decode': lambda text: to_lua(runtime, json.loads(text)),
    })


def new_runtime(modules: Mapping[str, LuaLoader] | None = None) -> LuaRuntime:
    """Create a runtime with the json module and custom modules preloaded."""
    runtime = LuaRuntime(
        register_eval=False,
        register_builtins=False,
        attribute_filter=_deny_private,
    )
    preload = runtime.globals().package.preload
    # require() only accepts Lua functions as loaders
    wrap = runtime.eval('function(f) return function(...) return f(...) end end')

    def _loader(name: str, loader: LuaLoader) -> Any:
        def load_module(*args: Any) -> Any:
            logger.debug("Loading Lua module %r", name)
            return to_lua(runtime, loader(runtime))
        return wrap(load_module)

    preload['json'] = _loader('json', _json_module)
    for name, loader in (modules or {}).items():
        preload[name] = _loader(name, loader)
    return runtime


def evaluate(
    source: str | bytes,
    modules: Mapping[str, LuaLoader] | None = None,
    chunk_name: str | None = None,
) -> dict[str, Any]:
    """Run a Lua chunk and return its result as a tree.

    Args:
        source: Lua source code.
        modules: Custom modules available through ``require``.
        chunk_name: Name used by Lua in error messages.

    Returns:
        The mapping returned by the chunk. With several return values the
        last one is used.

    Raises:
        ScriptError: If the chunk fails, returns something other than a
            table with string keys, or returns unconvertible values.
    """
    runtime = new_runtime(modules)
    label = chunk_name or '<lua string>'
    try:
        chunk = runtime.globals().load(source, chunk_name or '=(string)')
        if lupa.lua_type(chunk) != 'function':
            # load() returns nil plus the message on syntax errors
            message = chunk[-1] if isinstance(chunk, tuple) else chunk
            raise ScriptError(f"Lua syntax error in {label}: {message}")
        result = chunk()
    except ScriptError:
        raise
    except lupa.LuaError as exc:
        raise ScriptError(f"Lua error in {label}: {exc}") from exc
    except Exception as exc:
        # Re-raised by lupa from a Python callback (module loader, json)
        raise ScriptError(
            f"Error in {label}: {type(exc).__name__}: {exc}"
        ) from exc

    if isinstance(result, tuple):
        result = result[-1] if result else None

    if lupa.lua_type(result) != 'table':
        raise ScriptError(
            f"{label} must return a table, "
            f"got {lupa.lua_type(result) or type(result).__name__}"
        )

    try:
        tree = from_lua(result)
    except UnicodeDecodeError as exc:
        raise ScriptError(
            f"{label} returned a string that is not valid UTF-8: {exc}"
        ) from exc

    if not isinstance(tree, dict):
        raise ScriptError(
            f"{label} must return a table with string keys"
        )
    return tree
