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

"""The test stage: run a package's Cucumber features.

Layout looked up per package::

    core/
    ├── features/               ← ./features, else the first ./*/features
    ├── support/                ← passed with -r
    ├── step_definitions/       ← passed with -r
    └── node_modules/@cucumber/cucumber/bin/cucumber-js   (or the root's)
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from workspacekit._run import check_result, run_command
from workspacekit._types import PackageFile
from workspacekit.descriptor import PackageDescriptor
from workspacekit.errors import PluginFailure
from workspacekit.logging import get_logger
from workspacekit.options import WorkspaceOptions
from workspacekit.stage import PackageMap, package_stage
from workspacekit.stages._common import announce, detail

logger = get_logger(__name__)

CUCUMBER_SCRIPTS: tuple[Path, ...] = (
    Path('node_modules', '@cucumber', 'cucumber', 'bin', 'cucumber-js'),
    Path('node_modules', 'cucumber', 'bin', 'cucumber.js'),
)

SUPPORT_FOLDERS: tuple[str, ...] = ('support', 'step_definitions')


def find_cucumber(package_path: Path, root: Path) -> Path | None:
    """Return the Cucumber entry script, preferring the package's own."""
    for base in (package_path, root):
        for script in CUCUMBER_SCRIPTS:
            if (base / script).is_file():
                return base / script
    return None


def find_features(package_path: Path) -> Path | None:
    """Return the package's features folder, if it has one."""
    if (package_path / 'features').is_dir():
        return package_path / 'features'
    nested = sorted(p for p in package_path.glob('*/features') if p.is_dir())
    return nested[0] if nested else None


def support_paths(package_path: Path) -> list[Path]:
    """Return the support code folders, top level first."""
    paths = [package_path / name for name in SUPPORT_FOLDERS if (package_path / name).is_dir()]
    for name in SUPPORT_FOLDERS:
        paths.extend(sorted(p for p in package_path.glob(f'*/{name}') if p.is_dir()))
    return list(dict.fromkeys(paths))


async def _test_package(
    options: WorkspaceOptions,
    descriptor: PackageDescriptor,
    package_path: Path,
    package_map: PackageMap,
    item: PackageFile,
) -> None:
    """Run Cucumber for one package."""
    cucumber = find_cucumber(package_path, options.root)
    if cucumber is None:
        raise PluginFailure(
            f"Error running Cucumber in workspace package '{descriptor.name}': cucumber is not installed",
            package=descriptor.name,
            continue_on_error=options.continue_on_error,
            details="Add '@cucumber/cucumber' to the workspace 'package.json'.",
        )

    features = find_features(package_path)
    if features is None:
        logger.warning('features_missing', package=descriptor.name)
        return

    cmd = ['node', str(cucumber), str(features)]
    for path in support_paths(package_path):
        cmd.extend(['-r', str(path)])

    announce(options, 'testing', package=descriptor.name)
    result = await asyncio.to_thread(run_command, cmd, cwd=package_path, dry_run=options.dry_run)
    check_result(
        result,
        f"Tests failed in workspace package '{descriptor.name}'",
        package=descriptor.name,
        continue_on_error=options.continue_on_error,
    )
    detail(options, 'tests_passed', output=result.stdout.strip()[-2000:])


run_cucumber = package_stage(_test_package, name='test')

__all__ = [
    'CUCUMBER_SCRIPTS',
    'find_cucumber',
    'find_features',
    'run_cucumber',
    'support_paths',
]
