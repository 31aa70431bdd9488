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

"""The uninstall stage: remove what the install stage created."""

from __future__ import annotations

import shutil
from pathlib import Path

from workspacekit._types import PackageFile
from workspacekit.actions import merge_actions, run_actions
from workspacekit.descriptor import PackageDescriptor
from workspacekit.options import WorkspaceOptions
from workspacekit.stage import PackageMap, package_stage
from workspacekit.stages._common import announce, detail, package_failure


def _remove(path: Path) -> bool:
    if path.is_symlink():
        path.unlink()
        return True
    if path.is_dir():
        shutil.rmtree(path)
        return True
    return False


async def _uninstall_package(
    options: WorkspaceOptions,
    descriptor: PackageDescriptor,
    package_path: Path,
    package_map: PackageMap,
    item: PackageFile,
) -> None:
    """Delete ``node_modules`` and the linked typings folder."""
    announce(options, 'uninstalling', package=descriptor.name)
    with package_failure('uninstalling', descriptor, options):
        removed = [_remove(package_path / 'node_modules')]
        # The typings folder is only generated for packages with a typings.json.
        if (package_path / 'typings.json').is_file():
            removed.append(_remove(package_path / options.typings_dir))
        detail(options, 'removed', folders=sum(removed))

        actions = merge_actions(options.post_uninstall_actions, item.extensions.post_uninstall)
        if actions:
            await run_actions(actions, descriptor, package_path)


npm_uninstall = package_stage(_uninstall_package, name='uninstall')

__all__ = [
    'npm_uninstall',
]
