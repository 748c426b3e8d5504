# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""FlexiConfig exceptions."""

from __future__ import annotations


class FlexiConfigError(Exception):
    """Base exception for FlexiConfig errors."""

    pass


class PathNotFoundError(FlexiConfigError, KeyError):
    """Raised when a path cannot be resolved.

    Covers both a missing segment and a navigation segment whose value is
    not a mapping (on reads, and on timid writes).

    Attributes:
        path: The full colon path being resolved.
        segment: The segment that could not be resolved.
    """

    def __init__(self, path: str, segment: str, reason: str = 'missing') -> None:
        self.path = path
        self.segment = segment
        self.reason = reason
        super().__init__(f"Could not find '{path}' ({reason} '{segment}')")

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0])


class TypeMismatchError(FlexiConfigError, TypeError):
    """Raised when a value exists but has the wrong type for the request."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)


class LoaderError(FlexiConfigError):
    """Base exception for failures while loading a configuration source."""

    pass


class ConfigFileNotFoundError(LoaderError):
    """Raised when a configuration file is missing or cannot be read."""

    pass


class ConfigParsingError(LoaderError):
    """Raised when a JSON or YAML source cannot be parsed into a mapping."""

    pass


class ScriptError(LoaderError):
    """Raised when a Lua configuration script fails to run or convert."""

    pass


class UnknownFormatError(FlexiConfigError, ValueError):
    """Raised when a source kind or file suffix has no registered loader."""

    pass
