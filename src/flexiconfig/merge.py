# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Recursive merge of configuration trees.

Nested mappings accumulate keys across merges; every other value
(scalars, lists, opaque objects) replaces whatever was there. Merging
several sources in order therefore layers them: the last source wins for
any overlapping leaf, at any depth.
"""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import Any

from .paths import is_tree


def merge_trees(existing: dict[str, Any], incoming: Mapping[str, Any]) -> None:
    """Merge incoming into existing in place.

    Args:
        existing: The tree to update. Mutated.
        incoming: The tree whose values win on conflicts. Not modified.

    Example:
        >>> base = {'db': {'host': 'localhost', 'port': 5432}}
        >>> merge_trees(base, {'db': {'port': 3306}, 'debug': True})
        >>> base
        {'db': {'host': 'localhost', 'port': 3306}, 'debug': True}
    """
    for key, value in incoming.items():
        if isinstance(value, Mapping):
            if not is_tree(existing.get(key)):
                # Replaces any leaf at this key
                existing[key] = {}
            merge_trees(existing[key], value)
        elif isinstance(value, list):
            existing[key] = deepcopy(value)
        else:
            existing[key] = value
