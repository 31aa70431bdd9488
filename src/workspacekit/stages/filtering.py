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

"""The filter stage: keep only the packages a predicate accepts."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from workspacekit._types import PackageFile
from workspacekit.descriptor import PackageDescriptor
from workspacekit.options import WorkspaceOptions
from workspacekit.stage import PackageMap, package_stage

Predicate = Callable[[PackageDescriptor, Path], bool]


def _filter_package(
    options: WorkspaceOptions,
    descriptor: PackageDescriptor,
    package_path: Path,
    package_map: PackageMap,
    item: PackageFile,
    predicate: Predicate,
) -> bool:
    """Keep items for which ``predicate(descriptor, package_path)`` is true.

    Usage::

        pipe(workspace_packages(root), filter_packages(requires_dependency('lodash')))
    """
    return bool(predicate(descriptor, package_path))


filter_packages = package_stage(_filter_package, name='filter')


def requires_dependency(name: str) -> Predicate:
    """Return a predicate accepting packages that depend on ``name``.

    Only ``dependencies`` and ``devDependencies`` are consulted.
    """

    def _requires(descriptor: PackageDescriptor, package_path: Path) -> bool:
        return descriptor.requires(name)

    return _requires


__all__ = [
    'Predicate',
    'filter_packages',
    'requires_dependency',
]
