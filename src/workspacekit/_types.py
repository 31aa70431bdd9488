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

"""Data types shared by the registry, the workspace source and stages.

Pipeline items and their companions::

    PackageFile ──────────────┐  one manifest flowing through the stages
      path      package.json  │
      contents  bytes         │
      context ───→ PackageContext
                     directory
                     options     WorkspaceOptions of the source
                     extensions  WorkspaceExtensions, loaded on first use

    MappedPackage               what a stage remembers about each package
      descriptor                it has seen (sibling linking looks these
      path                      up by name)
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from workspacekit.descriptor import MANIFEST_FILENAME, PackageDescriptor, parse_descriptor
from workspacekit.extensions import WorkspaceExtensions, load_extensions

if TYPE_CHECKING:
    from workspacekit.options import WorkspaceOptions


@dataclass
class PackageFile:
    """A manifest file travelling through a pipeline.

    Attributes:
        path: Path of the ``package.json``.
        contents: The file contents. ``bytes`` when buffered; any other
            value (e.g. an open file object) marks a streaming item,
            which stages reject.
        context: Companion data attached by the workspace source.
    """

    path: Path
    contents: bytes | Any  # noqa: ANN401 - non-bytes contents mark a stream
    context: PackageContext | None = field(default=None, repr=False, compare=False)

    @property
    def is_stream(self) -> bool:
        """Whether the contents are not fully buffered."""
        return not isinstance(self.contents, (bytes, bytearray))

    @property
    def directory(self) -> Path:
        """The package directory."""
        return self.path.parent

    @property
    def is_manifest(self) -> bool:
        """Whether this is a ``package.json`` file."""
        return self.path.name == MANIFEST_FILENAME

    @property
    def extensions(self) -> WorkspaceExtensions:
        """The package's hooks, loaded on first access."""
        if self.context is None:
            self.context = PackageContext(self.directory)
        return self.context.extensions

    def descriptor(self) -> PackageDescriptor:
        """Parse the buffered contents."""
        return parse_descriptor(self.contents, str(self.path))


@dataclass(frozen=True)
class PackageRecord:
    """A discovered workspace member: its name, manifest and file."""

    name: str
    descriptor: PackageDescriptor
    file: PackageFile


class PackageContext:
    """Per-item companion: the run options and the package hooks.

    Args:
        directory: The package directory.
        options: The options the workspace source was resolved with.
    """

    def __init__(
        self,
        directory: Path,
        options: WorkspaceOptions | None = None,
    ) -> None:
        """Create a context whose hooks are loaded lazily."""
        self.directory = directory
        self.options = options

    @functools.cached_property
    def extensions(self) -> WorkspaceExtensions:
        """Hooks from the package's ``workspace_hooks.py`` (loaded once)."""
        return load_extensions(self.directory)


@dataclass(frozen=True)
class MappedPackage:
    """A package a stage has already seen."""

    descriptor: PackageDescriptor
    path: Path


__all__ = [
    'MappedPackage',
    'PackageContext',
    'PackageFile',
    'PackageRecord',
]
