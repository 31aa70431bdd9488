# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Configuration reader for workspacekit.

Reads an optional ``workspacekit.toml`` from the workspace root. Its keys
are workspace-wide defaults; options passed by the caller and flags given
on the command line override them (see :func:`workspacekit.options.resolve_options`).

Validation Pipeline::

    workspacekit.toml
    ┌──────────────────────┐
    │ registy_map = {...}  │  ← typo!
    └──────────┬───────────┘
               │
               ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 1. Unknown key   │────→│ WK-CONFIG-INVALID-KEY:       │
    │    detection     │     │ hint: "Did you mean          │
    └────────┬─────────┘     │       'registry_map'?"       │
             │               └──────────────────────────────┘
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 2. Type check    │────→│ WK-CONFIG-INVALID-VALUE:     │
    │    each value    │     │ 'shrinkwrap' must be bool    │
    └────────┬─────────┘     └──────────────────────────────┘
             │
             ▼
    ┌──────────────────┐
    │ WorkspaceConfig  │  ← frozen dataclass, only the keys that were set
    └──────────────────┘

Supported keys::

    additional_paths       = ["../shared"]          # extra discovery roots
    registry_map           = { "@corp/ui" = "https://npm.corp.example" }
    external_packages      = { "tools" = "../tools/tools" }
    prefer_external        = false                  # sibling vs external conflict
    peer_dependency_edges  = false                  # peers affect ordering
    minimize_size_on_disk  = true                   # hoist devDependencies
    shrinkwrap             = true                   # npm shrinkwrap before publish
    continue_on_error      = true                   # keep going past failures
    version_bump           = "patch"                # bump kind or X.Y.Z
    typings_dir            = "typings"              # linked typings folder
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions

from workspacekit.errors import E, WorkspaceKitError
from workspacekit.logging import get_logger

logger = get_logger(__name__)

# The config file name at the workspace root.
CONFIG_FILENAME = 'workspacekit.toml'

_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'additional_paths': list,
    'registry_map': dict,
    'external_packages': dict,
    'prefer_external': bool,
    'peer_dependency_edges': bool,
    'minimize_size_on_disk': bool,
    'shrinkwrap': bool,
    'continue_on_error': bool,
    'version_bump': str,
    'typings_dir': str,
}

VALID_KEYS: frozenset[str] = frozenset(_TYPE_MAP)


@dataclass(frozen=True)
class WorkspaceConfig:
    """Validated contents of ``workspacekit.toml``.

    Attributes:
        settings: The keys that were set in the file, with plain Python
            values. Keys that were not set are absent, so they do not
            shadow built-in defaults.
        config_path: The file that was loaded, or ``None``.
    """

    settings: dict[str, Any] = field(default_factory=dict)
    config_path: Path | None = None


def _suggest_key(unknown: str) -> str | None:
    """Return the closest valid key for a typo, or None."""
    matches = difflib.get_close_matches(unknown, VALID_KEYS, n=1, cutoff=0.6)
    return matches[0] if matches else None


def _validate_value_type(key: str, value: Any) -> None:  # noqa: ANN401 - dynamic config values
    """Raise if a config value has the wrong type."""
    expected = _TYPE_MAP[key]
    if not isinstance(value, expected):
        type_name = expected.__name__ if isinstance(expected, type) else str(expected)
        raise WorkspaceKitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must be {type_name}, got {type(value).__name__}",
            hint=f'Check the value of {key} in {CONFIG_FILENAME}.',
        )


def _validate_string_items(key: str, value: list[Any] | dict[str, Any]) -> None:  # noqa: ANN401
    items = value.values() if isinstance(value, dict) else value
    for item in items:
        if not isinstance(item, str):
            raise WorkspaceKitError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'{key}' entries must be strings, got {type(item).__name__}",
                hint=f'Check the value of {key} in {CONFIG_FILENAME}.',
            )


def parse_config(text: str, *, source: str = CONFIG_FILENAME) -> dict[str, Any]:
    """Parse and validate config text, returning the settings it sets.

    Raises:
        WorkspaceKitError: On TOML syntax errors, unknown keys or wrong
            value types.
    """
    try:
        raw: dict[str, Any] = tomlkit.parse(text).unwrap()
    except tomlkit.exceptions.TOMLKitError as exc:
        raise WorkspaceKitError(
            code=E.CONFIG_PARSE_ERROR,
            message=f'Failed to parse {source}: {exc}',
        ) from exc

    for key in raw:
        if key not in VALID_KEYS:
            suggestion = _suggest_key(key)
            raise WorkspaceKitError(
                code=E.CONFIG_INVALID_KEY,
                message=f"Unknown key '{key}' in {source}",
                hint=f"Did you mean '{suggestion}'?" if suggestion else f'Valid keys: {", ".join(sorted(VALID_KEYS))}',
            )

    for key, value in raw.items():
        _validate_value_type(key, value)
        if isinstance(value, (list, dict)):
            _validate_string_items(key, value)
    return raw


def load_config(workspace_root: Path) -> WorkspaceConfig:
    """Load and validate ``workspacekit.toml`` from ``workspace_root``.

    A missing file is not an error; an empty config is returned.

    Raises:
        WorkspaceKitError: If the file cannot be read or is invalid.
    """
    config_path = workspace_root / CONFIG_FILENAME

    if not config_path.is_file():
        logger.debug('no_workspacekit_config', path=str(config_path))
        return WorkspaceConfig()

    try:
        text = config_path.read_text(encoding='utf-8')
    except OSError as exc:
        raise WorkspaceKitError(
            code=E.CONFIG_PARSE_ERROR,
            message=f'Failed to read {config_path}: {exc}',
        ) from exc

    settings = parse_config(text, source=str(config_path))
    logger.debug('config_loaded', path=str(config_path), keys=sorted(settings))
    return WorkspaceConfig(settings=settings, config_path=config_path)


__all__ = [
    'CONFIG_FILENAME',
    'VALID_KEYS',
    'WorkspaceConfig',
    'load_config',
    'parse_config',
]
