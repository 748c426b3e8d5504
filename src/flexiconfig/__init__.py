# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""FlexiConfig - Layered hierarchical configuration.

Loads JSON, YAML and Lua configuration sources, merges them in load order
(later loads win, nested mappings accumulate) and exposes colon-path
typed accessors.
"""

__version__ = "0.1.0"

from .exceptions import (
    ConfigFileNotFoundError,
    ConfigParsingError,
    FlexiConfigError,
    LoaderError,
    PathNotFoundError,
    ScriptError,
    TypeMismatchError,
    UnknownFormatError,
)
from .merge import merge_trees
from .paths import PATH_SEPARATOR
from .store import Settings

__all__ = [
    # Core classes
    "Settings",
    "merge_trees",
    "PATH_SEPARATOR",
    # Exceptions
    "FlexiConfigError",
    "PathNotFoundError",
    "TypeMismatchError",
    "LoaderError",
    "ConfigFileNotFoundError",
    "ConfigParsingError",
    "ScriptError",
    "UnknownFormatError",
]
