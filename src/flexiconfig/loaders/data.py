# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""JSON and YAML parsers producing configuration trees."""

from __future__ import annotations

import datetime
import json
from typing import Any

import yaml

from ..exceptions import ConfigParsingError


def _source_name(name: str | None, fmt: str) -> str:
    return name or f"<{fmt} data>"


def _yaml_key(key: Any, name: str) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, bool) or key is None:
        # Same spelling as the JSON literals
        return json.dumps(key)
    if isinstance(key, datetime.date):
        return key.isoformat()
    if isinstance(key, (int, float)):
        return str(key)
    raise ConfigParsingError(
        f"Unsupported YAML key of type {type(key).__name__} in {name}"
    )


def _yaml_value(value: Any, name: str) -> Any:
    """Bring a safe_load value back to the JSON data model."""
    if isinstance(value, dict):
        return {_yaml_key(k, name): _yaml_value(v, name) for k, v in value.items()}
    if isinstance(value, list):
        return [_yaml_value(v, name) for v in value]
    if isinstance(value, datetime.date):
        return value.isoformat()
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    raise ConfigParsingError(
        f"Unsupported YAML value of type {type(value).__name__} in {name}"
    )


def parse_json(data: str | bytes, name: str | None = None) -> dict[str, Any]:
    """Parse JSON text into a tree.

    Args:
        data: JSON document (str, or UTF-8/16/32 bytes).
        name: Source name for error messages (e.g., the file path).

    Returns:
        The parsed mapping.

    Raises:
        ConfigParsingError: If data is not valid JSON or its root is not
            an object.
    """
    try:
        content = json.loads(data)
    except ValueError as exc:
        raise ConfigParsingError(
            f"Invalid JSON in {_source_name(name, 'json')}: {exc}"
        ) from exc

    if not isinstance(content, dict):
        raise ConfigParsingError(
            f"{_source_name(name, 'json')} does not contain a JSON object"
        )
    return content


def parse_yaml(data: str | bytes, name: str | None = None) -> dict[str, Any]:
    """Parse a YAML document into a tree.

    An empty document is an empty mapping. Non-string keys are turned into
    strings ('true', '80', '2024-01-01') and dates into ISO 8601 strings;
    other YAML types (sets, binary) are rejected.

    Raises:
        ConfigParsingError: If data is not valid YAML or its root is not
            a mapping.
    """
    try:
        content = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ConfigParsingError(
            f"Invalid YAML in {_source_name(name, 'yaml')}: {exc}"
        ) from exc

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigParsingError(
            f"{_source_name(name, 'yaml')} does not contain a valid YAML dictionary"
        )
    return _yaml_value(content, _source_name(name, 'yaml'))
