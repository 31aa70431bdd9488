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

"""npm binding shared by the npm-backed stages.

:class:`NpmBinding` is the per-stage object the install, uninstall,
publish and script stages receive as their binding. It carries the
resolved options and wraps the npm command line::

    npm_install(core, {'*': ['lodash@^4.x.x'],
                       'https://npm.corp.example': ['@corp/ui@~2.1.x']})

    → npm install lodash@^4.x.x                      (cwd: core)
    → npm install @corp/ui@~2.1.x --registry https://npm.corp.example

Package lists are installed in chunks so the command line stays below
platform limits (8191 characters on Windows).
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from pathlib import Path

from workspacekit._run import CommandResult, check_result, executable, run_command
from workspacekit.logging import get_logger
from workspacekit.options import WorkspaceOptions
from workspacekit.semver import to_semver_range

log = get_logger(__name__)

# Registry key for packages without a registry_map entry.
DEFAULT_REGISTRY = '*'

INSTALL_CHUNK_SIZE = 50


class NpmBinding:
    """Options plus npm helpers for one stage invocation.

    Args:
        options: The stage's resolved options.
    """

    def __init__(self, options: WorkspaceOptions) -> None:
        """Bind the helpers to ``options``."""
        self.options = options

    def to_semver_range(self, version: str) -> str:
        """Widen ``version`` the way ``npm install`` should see it."""
        return to_semver_range(version)

    def registry_for(self, package_name: str) -> str:
        """Return the registry ``package_name`` installs from."""
        return self.options.registry_map.get(package_name, DEFAULT_REGISTRY)

    def is_workspace_root(self, package_path: Path) -> bool:
        """Whether ``package_path`` is the workspace root directory."""
        return package_path.resolve() == self.options.root.resolve()

    def create_package_symlink(self, package_path: Path, package_name: str, target_path: Path) -> bool:
        """Link ``target_path`` as ``package_path/node_modules/<package_name>``.

        Scoped names (``@scope/name``) get their scope folder created.
        An existing entry is left alone.

        Returns:
            ``True`` when a link was created.
        """
        link = package_path / 'node_modules' / package_name
        if link.exists() or link.is_symlink():
            log.debug('link_exists', dependency=package_name, link=str(link))
            return False
        link.parent.mkdir(parents=True, exist_ok=True)
        link.symlink_to(target_path.resolve(), target_is_directory=True)
        log.debug('linked', dependency=package_name, target=str(target_path))
        return True

    async def npm_install(
        self,
        package_path: Path,
        registry_packages: Mapping[str, Sequence[str]],
        *,
        package: str = '',
    ) -> list[CommandResult]:
        """Run ``npm install`` for each registry's package list.

        Args:
            package_path: Where to run npm.
            registry_packages: Registry URL (or ``'*'``) to ``name@range``
                specs.
            package: Name of the package being processed, for errors.

        Raises:
            ExternalProcessFailure: On the first failing npm call.
        """
        results: list[CommandResult] = []
        at_root = self.is_workspace_root(package_path)
        for registry, specs in registry_packages.items():
            for start in range(0, len(specs), INSTALL_CHUNK_SIZE):
                args = ['install', *specs[start : start + INSTALL_CHUNK_SIZE]]
                if at_root:
                    args.append('--ignore-scripts')
                if registry != DEFAULT_REGISTRY:
                    args.extend(['--registry', registry])
                results.append(await self.run_npm(package_path, args, package=package))
        return results

    async def run_npm(self, package_path: Path, args: Sequence[str], *, package: str = '') -> CommandResult:
        """Run ``npm <args>`` in ``package_path``.

        Raises:
            ExternalProcessFailure: If npm exits non-zero. The failure
                carries the stage's ``continue_on_error`` flag.
        """
        cmd = [executable('npm'), *args]
        result = await asyncio.to_thread(run_command, cmd, cwd=package_path, dry_run=self.options.dry_run)
        return check_result(
            result,
            f'npm {args[0]} failed' if args else 'npm failed',
            package=package,
            continue_on_error=self.options.continue_on_error,
        )


__all__ = [
    'DEFAULT_REGISTRY',
    'INSTALL_CHUNK_SIZE',
    'NpmBinding',
]
