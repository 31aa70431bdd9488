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

"""The install stage: link workspace siblings, npm-install the rest.

Dependency Resolution::

    for each name in a package's manifest:

    ┌──────────────────────────┐   yes   ┌──────────────────────────────┐
    │ sibling already seen, or │───────→ │ symlink node_modules/<name>  │
    │ external_packages entry? │         └──────────────────────────────┘
    └───────────┬──────────────┘
                │ no
                ▼
    dependencies ─────────────────────→ npm install in the package
    devDependencies / optional:
      minimize_size_on_disk off ──────→ npm install in the package
      not installed at the root ──────→ npm install at the workspace root
      root copy satisfies range ──────→ nothing (the root copy is used)
      root copy too old/new ──────────→ npm install in the package (warn)
    peerDependencies ─────────────────→ linked when a sibling exists,
                                        never installed

Siblings are known because dependencies reach a stage before their
dependants; ``package_map`` holds every package seen so far.
"""

from __future__ import annotations

from pathlib import Path

from workspacekit._io import read_bytes
from workspacekit._types import PackageFile
from workspacekit.actions import merge_actions, run_actions
from workspacekit.descriptor import MANIFEST_FILENAME, PackageDescriptor, parse_descriptor
from workspacekit.logging import get_logger
from workspacekit.npm import DEFAULT_REGISTRY, NpmBinding
from workspacekit.semver import satisfies
from workspacekit.stage import PackageMap, package_stage
from workspacekit.stages._common import announce, detail, package_failure

logger = get_logger(__name__)

RegistryPackages = dict[str, list[str]]


def link_target(binding: NpmBinding, package_map: PackageMap, name: str) -> Path | None:
    """Return the directory ``name`` should be linked to, if any.

    A workspace sibling wins over an ``external_packages`` entry unless
    ``prefer_external`` is set. Either way a conflict is logged.
    """
    options = binding.options
    sibling = package_map.get(name)
    external: Path | None = None
    if not options.disable_external_linking and name in options.external_packages:
        external = (options.root / options.external_packages[name]).resolve()

    if sibling is not None and external is not None:
        logger.warning(
            'link_conflict',
            dependency=name,
            workspace=str(sibling.path),
            external=str(external),
            using='external' if options.prefer_external else 'workspace',
        )
        if options.prefer_external:
            return external

    if sibling is not None:
        if name in options.registry_map:
            logger.warning('registry_map_ignored', dependency=name, reason='workspace package')
        return sibling.path
    return external


def _queue(binding: NpmBinding, packages: RegistryPackages, name: str, version: str) -> None:
    spec = f'{name}@{binding.to_semver_range(version)}'
    packages.setdefault(binding.registry_for(name), []).append(spec)


async def _root_version(root: Path, name: str) -> str | None:
    manifest = root / 'node_modules' / name / MANIFEST_FILENAME
    if not manifest.is_file():
        return None
    return parse_descriptor(await read_bytes(manifest), str(manifest)).version


async def _install_package(
    binding: NpmBinding,
    descriptor: PackageDescriptor,
    package_path: Path,
    package_map: PackageMap,
    item: PackageFile,
) -> None:
    """Install a workspace package's dependencies."""
    options = binding.options
    announce(options, 'installing', package=descriptor.name)

    local: RegistryPackages = {DEFAULT_REGISTRY: []}
    workspace: RegistryPackages = {DEFAULT_REGISTRY: []}

    with package_failure('installing', descriptor, options):
        for name, version in descriptor.dependencies.items():
            target = link_target(binding, package_map, name)
            if target is not None:
                if binding.create_package_symlink(package_path, name, target):
                    detail(options, 'linked', dependency=name, target=str(target))
                continue
            _queue(binding, local, name, version)

        dev = {**descriptor.dev_dependencies, **descriptor.optional_dependencies}
        for name, version in dev.items():
            target = link_target(binding, package_map, name)
            if target is not None:
                if binding.create_package_symlink(package_path, name, target):
                    detail(options, 'linked', dependency=name, target=str(target))
                continue
            if not options.minimize_size_on_disk:
                _queue(binding, local, name, version)
                continue
            installed = await _root_version(options.root, name)
            if installed is None:
                _queue(binding, workspace, name, version)
            elif not satisfies(installed, version):
                logger.warning('root_version_unsatisfied', dependency=name, installed=installed, wanted=version)
                _queue(binding, local, name, version)

        for name in descriptor.peer_dependencies:
            if name in descriptor.dependencies or name in dev:
                continue
            sibling = package_map.get(name)
            if sibling is not None and binding.create_package_symlink(package_path, name, sibling.path):
                detail(options, 'linked_peer', dependency=name, target=str(sibling.path))

        detail(options, 'install_plan', package_level=local, workspace_level=workspace)
        await binding.npm_install(options.root, workspace, package=descriptor.name)
        await binding.npm_install(package_path, local, package=descriptor.name)

        actions = merge_actions(options.post_install_actions, item.extensions.post_install)
        if actions:
            detail(options, 'post_install_actions', count=len(actions))
            await run_actions(actions, descriptor, package_path)


npm_install = package_stage(_install_package, NpmBinding, name='install')

__all__ = [
    'link_target',
    'npm_install',
]
