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

"""The publish stage: pre-publish hooks, shrinkwrap, bump, publish.

Per package::

    1. pre_publish_actions + the package's pre_publish hooks
    2. npm shrinkwrap                    (when shrinkwrap is on)
    3. bump the version in package.json  (when a bump token is set)
    4. npm publish

The bumped manifest is written with an indent of 4 and also replaces
the item's contents, so later stages see the new version.
"""

from __future__ import annotations

from pathlib import Path

from workspacekit._io import write_text
from workspacekit._types import PackageFile
from workspacekit.actions import merge_actions, run_actions
from workspacekit.descriptor import PackageDescriptor
from workspacekit.npm import NpmBinding
from workspacekit.semver import apply_version_bump
from workspacekit.stage import PackageMap, package_stage
from workspacekit.stages._common import announce, detail, package_failure


async def _publish_package(
    binding: NpmBinding,
    descriptor: PackageDescriptor,
    package_path: Path,
    package_map: PackageMap,
    item: PackageFile,
) -> None:
    """Publish one workspace package."""
    options = binding.options
    announce(options, 'publishing', package=descriptor.name)

    with package_failure('publishing', descriptor, options):
        actions = merge_actions(options.pre_publish_actions, item.extensions.pre_publish)
        if actions:
            detail(options, 'pre_publish_actions', count=len(actions))
            await run_actions(actions, descriptor, package_path)

        if options.shrinkwrap:
            await binding.run_npm(package_path, ['shrinkwrap'], package=descriptor.name)

        if options.version_bump:
            previous = descriptor.version
            descriptor.version = apply_version_bump(previous, options.version_bump)
            contents = descriptor.dumps(indent=4)
            if options.dry_run:
                detail(options, 'dry_run_bump', path=str(item.path))
            else:
                await write_text(item.path, contents)
            item.contents = contents.encode('utf-8')
            announce(options, 'version_bumped', package=descriptor.name, old=previous, new=descriptor.version)

        await binding.run_npm(package_path, ['publish'], package=descriptor.name)


npm_publish = package_stage(_publish_package, NpmBinding, name='publish')

__all__ = [
    'npm_publish',
]
