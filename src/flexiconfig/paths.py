# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Colon path resolution over nested configuration dicts.

A path such as ``'database:primary:host'`` addresses the key ``host``
inside ``root['database']['primary']``. All segments but the last are
navigation keys and must resolve to nested dicts; the last one is the
target key, returned unresolved so the caller can read or write it.

Example:
    >>> root = {'database': {'primary': {'host': 'localhost'}}}
    >>> lookup(root, 'database:primary:host')
    'localhost'
    >>> container, key = resolve(root, 'cache:ttl', create_missing=True)
    >>> container[key] = 60
    >>> root['cache']
    {'ttl': 60}
"""

from __future__ import annotations

import logging
from typing import Any

from .exceptions import PathNotFoundError

logger = logging.getLogger(__name__)

PATH_SEPARATOR = ':'


def is_tree(value: Any) -> bool:
    """True if value is a nested configuration mapping."""
    return isinstance(value, dict)


def split_path(path: str) -> tuple[list[str], str]:
    """Split a colon path into navigation keys and the final key.

    Args:
        path: Colon-separated path (e.g., 'a:b:c').

    Returns:
        Tuple of (navigation_keys, final_key), e.g. (['a', 'b'], 'c').
    """
    parts = path.split(PATH_SEPARATOR)
    return parts[:-1], parts[-1]


def resolve(
    root: dict[str, Any],
    path: str,
    create_missing: bool = False,
    timid: bool = True,
) -> tuple[dict[str, Any], str]:
    """Walk the navigation keys of path, optionally creating them.

    Args:
        root: The tree to navigate.
        path: Colon-separated path.
        create_missing: If True, absent navigation keys are created as
            empty dicts. If False, the walk is read-only.
        timid: Only used with create_missing. If True, a navigation key
            holding a non-dict value raises; if False, that value is
            replaced by an empty dict.

    Returns:
        Tuple of (container, final_key) where container is the deepest dict.

    Raises:
        PathNotFoundError: If a navigation key is missing (read-only walk)
            or holds a non-dict value (read-only or timid walk).
    """
    parts, final = split_path(path)
    node = root

    for part in parts:
        if part not in node:
            if not create_missing:
                raise PathNotFoundError(path, part)
            node[part] = {}
        elif not is_tree(node[part]):
            if not create_missing or timid:
                raise PathNotFoundError(path, part, reason='not a mapping at')
            logger.debug("Overwriting %r with a mapping while setting %r", part, path)
            node[part] = {}
        node = node[part]

    return node, final


def lookup(root: dict[str, Any], path: str) -> Any:
    """Return the value at path without modifying the tree.

    Raises:
        PathNotFoundError: If any segment is missing or a navigation
            segment is not a dict.
    """
    container, final = resolve(root, path)
    if final not in container:
        raise PathNotFoundError(path, final)
    return container[final]
