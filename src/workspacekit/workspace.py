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

"""Workspace discovery and the ordered package source.

Every pipeline starts here::

    root/
    ├── package.json          ← discovered (skipped later if isWorkspace)
    ├── core/package.json     ← discovered
    ├── util/package.json     ← discovered
    └── ../shared/            ← additional_paths entry
        └── ui/package.json   ← discovered

    discover_package_files()  →  PackageRegistry  →  workspace_packages()
    (read every manifest)        (names + edges)     (ordered, with context)

Discovery is drained completely before the first package is yielded.
Ordering needs the whole graph, so there is no partial output.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from pathlib import Path
from typing import Any

from workspacekit._io import read_bytes
from workspacekit._types import PackageContext, PackageFile, PackageRecord
from workspacekit.config import WorkspaceConfig
from workspacekit.descriptor import MANIFEST_FILENAME
from workspacekit.errors import CycleDetected, E, StreamsUnsupported, WorkspaceKitError
from workspacekit.logging import get_logger
from workspacekit.options import CommandLineOptions, WorkspaceOptions, resolve_options
from workspacekit.registry import PackageRegistry

logger = get_logger(__name__)


def _manifest_paths(root: Path, additional_paths: Iterable[str]) -> list[Path]:
    paths: set[Path] = set()
    if (root / MANIFEST_FILENAME).is_file():
        paths.add((root / MANIFEST_FILENAME).resolve())
    paths.update(p.resolve() for p in root.glob(f'*/{MANIFEST_FILENAME}'))
    for extra in additional_paths:
        base = (root / extra).resolve()
        if not base.is_dir():
            logger.warning('additional_path_missing', path=str(base))
            continue
        paths.update(p.resolve() for p in base.glob(f'*/{MANIFEST_FILENAME}'))
    return sorted(paths)


async def discover_package_files(root: Path, additional_paths: Iterable[str] = ()) -> list[PackageFile]:
    """Read every manifest of the workspace rooted at ``root``.

    Looks at ``root/package.json``, ``root/*/package.json`` and
    ``<extra>/*/package.json`` for each additional path (relative to
    ``root``).

    Returns:
        Buffered manifests in sorted path order, without duplicates.

    Raises:
        WorkspaceKitError: If ``root`` is not a directory or a manifest
            cannot be read.
    """
    if not root.is_dir():
        raise WorkspaceKitError(
            code=E.WORKSPACE_NOT_FOUND,
            message=f'Workspace root {root} is not a directory',
            hint="Pass the workspace directory with '--root'.",
        )
    paths = _manifest_paths(root, additional_paths)
    files = [PackageFile(path=path, contents=await read_bytes(path)) for path in paths]
    logger.debug('discovered', root=str(root), manifests=len(files))
    return files


def build_registry(files: Iterable[PackageFile], *, peer_dependency_edges: bool = False) -> PackageRegistry:
    """Parse ``files`` into a filled :class:`PackageRegistry`.

    Raises:
        StreamsUnsupported: If an item is not buffered.
        WorkspaceKitError: If a manifest is malformed or has no name.
    """
    registry = PackageRegistry(peer_dependency_edges=peer_dependency_edges)
    for file in files:
        if file.is_stream:
            raise StreamsUnsupported(str(file.path))
        descriptor = file.descriptor()
        if descriptor.is_workspace:
            registry.add_package(descriptor, file)
            continue
        if not descriptor.name:
            raise WorkspaceKitError(
                code=E.WORKSPACE_MISSING_NAME,
                message=f"{file.path} has no 'name' field",
                hint='Every workspace package needs a unique name.',
            )
        registry.add_package(descriptor, file)
        registry.add_package_dependencies(descriptor)
    return registry


async def workspace_packages(
    root: Path | str | None = None,
    *,
    config: WorkspaceConfig | None = None,
    command_line: CommandLineOptions | None = None,
    **caller_options: Any,  # noqa: ANN401 - forwarded to resolve_options
) -> AsyncIterator[PackageFile]:
    """Yield the workspace's manifests in dependency order.

    With ``package`` set, only that package's dependency closure is
    yielded, followed by the package itself.

    Args:
        root: The workspace root; defaults to the resolved ``root``
            option.
        config: Settings from ``workspacekit.toml``.
        command_line: Parsed CLI flags.
        **caller_options: Any :class:`WorkspaceOptions` field.

    Raises:
        CycleDetected: If the workspace cannot be ordered. Nothing is
            yielded in that case.
    """
    if root is not None:
        caller_options['root'] = root
    options = resolve_options(caller_options, config=config, command_line=command_line)
    files = await discover_package_files(options.root, options.additional_paths)
    registry = build_registry(files, peer_dependency_edges=options.peer_dependency_edges)

    def _attach(record: PackageRecord) -> PackageRecord:
        record.file.context = PackageContext(record.file.directory, options)
        return record

    try:
        records = list(registry.collect(options.package, _attach))
    except CycleDetected as exc:
        logger.error('circular_dependency', cycle=' -> '.join(exc.cycle))
        raise

    logger.info('workspace_ordered', packages=[r.name for r in records])
    for record in records:
        yield record.file


async def ordered_package_names(options: WorkspaceOptions) -> list[str]:
    """Return the names ``workspace_packages`` would yield, in order."""
    files = await discover_package_files(options.root, options.additional_paths)
    registry = build_registry(files, peer_dependency_edges=options.peer_dependency_edges)
    return [record.name for record in registry.collect(options.package)]


__all__ = [
    'build_registry',
    'discover_package_files',
    'ordered_package_names',
    'workspace_packages',
]
