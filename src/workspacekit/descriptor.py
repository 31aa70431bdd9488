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

"""Typed view over a ``package.json`` manifest.

:class:`PackageDescriptor` keeps the parsed JSON object as-is (so fields
workspacekit does not know about survive a rewrite) and exposes the
fields the pipeline reads through properties.

Recognised fields::

    name                   unique key within the workspace
    version                bumped by the publish stage
    isWorkspace/workspace  marks the workspace root manifest (skipped)
    dependencies           name → semver range
    devDependencies        name → semver range
    optionalDependencies   name → semver range
    peerDependencies       name → semver range
    scripts                name → shell command
"""

from __future__ import annotations

import json
from typing import Any

from workspacekit.errors import E, WorkspaceKitError

# The manifest file every workspace member carries.
MANIFEST_FILENAME = 'package.json'


class PackageDescriptor:
    """A parsed ``package.json``.

    Args:
        data: The decoded JSON object.
    """

    def __init__(self, data: dict[str, Any]) -> None:  # noqa: ANN401 - raw JSON
        """Wrap a decoded manifest object."""
        self.data = data

    def __repr__(self) -> str:
        """Return a short representation naming the package."""
        return f'PackageDescriptor(name={self.name!r}, version={self.version!r})'

    @property
    def name(self) -> str:
        """The package name, or empty string for an unnamed manifest."""
        return str(self.data.get('name') or '')

    @property
    def version(self) -> str:
        """The package version, or empty string."""
        return str(self.data.get('version') or '')

    @version.setter
    def version(self, value: str) -> None:
        self.data['version'] = value

    @property
    def is_workspace(self) -> bool:
        """Whether this manifest describes the workspace root itself.

        Both spellings of the marker are honoured.
        """
        return bool(self.data.get('isWorkspace') or self.data.get('workspace'))

    @property
    def dependencies(self) -> dict[str, str]:
        """Runtime dependencies."""
        return self._section('dependencies')

    @property
    def dev_dependencies(self) -> dict[str, str]:
        """Development dependencies."""
        return self._section('devDependencies')

    @property
    def optional_dependencies(self) -> dict[str, str]:
        """Optional dependencies."""
        return self._section('optionalDependencies')

    @property
    def peer_dependencies(self) -> dict[str, str]:
        """Peer dependencies."""
        return self._section('peerDependencies')

    @property
    def scripts(self) -> dict[str, str]:
        """npm scripts."""
        return self._section('scripts')

    def dependency_names(self, *, include_peer: bool = False) -> list[str]:
        """Return the union of dependency names, without duplicates.

        Regular, dev and optional dependencies always take part; peer
        dependencies only when ``include_peer`` is set.
        """
        sections = [self.dependencies, self.dev_dependencies, self.optional_dependencies]
        if include_peer:
            sections.append(self.peer_dependencies)
        names: dict[str, None] = {}
        for section in sections:
            names.update(dict.fromkeys(section))
        return list(names)

    def requires(self, name: str) -> bool:
        """Whether ``name`` appears in ``dependencies`` or ``devDependencies``."""
        return name in self.dependencies or name in self.dev_dependencies

    def dumps(self, *, indent: int = 4) -> str:
        """Serialize the manifest with a trailing newline."""
        return json.dumps(self.data, indent=indent, ensure_ascii=False) + '\n'

    def _section(self, key: str) -> dict[str, str]:
        value = self.data.get(key)
        if not isinstance(value, dict):
            return {}
        return {str(k): str(v) for k, v in value.items()}


def parse_descriptor(contents: bytes | str, source: str = MANIFEST_FILENAME) -> PackageDescriptor:
    """Parse manifest contents into a :class:`PackageDescriptor`.

    Args:
        contents: Raw ``package.json`` contents.
        source: Where the contents came from, for error messages.

    Raises:
        WorkspaceKitError: If the contents are not a JSON object.
    """
    try:
        data = json.loads(contents)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise WorkspaceKitError(
            code=E.WORKSPACE_PARSE_ERROR,
            message=f'Failed to parse {source}: {exc}',
        ) from exc
    if not isinstance(data, dict):
        raise WorkspaceKitError(
            code=E.WORKSPACE_PARSE_ERROR,
            message=f'{source} must contain a JSON object, got {type(data).__name__}',
        )
    return PackageDescriptor(data)


__all__ = [
    'MANIFEST_FILENAME',
    'PackageDescriptor',
    'parse_descriptor',
]
