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

"""Pipeline stages over streams of workspace manifests.

A stage is an async generator function that takes a stream of
:class:`~workspacekit._types.PackageFile` items and yields a stream of
them. :func:`package_stage` turns a per-package function into a stage
factory that takes options::

    npm_install = package_stage(_install, NpmBinding)

    await drain(pipe(
        workspace_packages(root),
        npm_install(continue_on_error=False),
        build_typescript(),
    ))

Per item, the generated stage::

    item ──→ buffered? ──no──→ StreamsUnsupported
               │yes
               ▼
             package.json? ──no──→ UnexpectedInput
               │yes
               ▼
             parse, record in package_map
               │
               ▼
             excluded by '-p !name'? ──yes──→ yield item unchanged
               │no
               ▼
             func(binding, descriptor, path, package_map, item, *args)
               │
               ├── None / True  ──→ yield item
               ├── False        ──→ drop item
               └── PluginFailure ─→ log once ──┬─ continue → yield item
                                               └─ halt     → PipelineHalted

Items are processed one at a time, in the order they arrive, so a
package's stage work is finished before its dependants are pulled.
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable
from pathlib import Path
from typing import Any

from workspacekit._types import MappedPackage, PackageFile
from workspacekit.config import WorkspaceConfig
from workspacekit.descriptor import PackageDescriptor
from workspacekit.errors import PipelineHalted, PluginFailure, StreamsUnsupported, UnexpectedInput
from workspacekit.logging import get_logger, package_scope
from workspacekit.options import CommandLineOptions, WorkspaceOptions, resolve_options

logger = get_logger(__name__)

Stage = Callable[[AsyncIterable[PackageFile]], AsyncIterator[PackageFile]]
StageFactory = Callable[..., Stage]
PackageMap = dict[str, MappedPackage]
PackageFunction = Callable[..., Awaitable[bool | None] | bool | None]


def package_stage(
    func: PackageFunction,
    binding_factory: Callable[[WorkspaceOptions], Any] | None = None,
    *,
    name: str = '',
) -> StageFactory:
    """Build a stage factory around a per-package function.

    Args:
        func: Called as ``func(binding, descriptor, package_path,
            package_map, item, *args)``, sync or async. Returning
            ``False`` drops the item; anything else forwards it.
        binding_factory: Builds the per-stage binding from the resolved
            options. Without one, the binding is the options object.
        name: Stage name for log events; defaults to ``func``'s name.

    Returns:
        A factory ``(*args, config=None, command_line=None, **options)``
        returning the stage. Positional ``args`` are passed to ``func``
        after the item.
    """
    stage_name = name or getattr(func, '__name__', 'stage').lstrip('_')

    def factory(
        *args: Any,  # noqa: ANN401 - forwarded to func
        config: WorkspaceConfig | None = None,
        command_line: CommandLineOptions | None = None,
        **caller_options: Any,  # noqa: ANN401 - WorkspaceOptions fields
    ) -> Stage:
        options = resolve_options(caller_options, config=config, command_line=command_line)
        binding = binding_factory(options) if binding_factory is not None else options

        async def stage(items: AsyncIterable[PackageFile]) -> AsyncIterator[PackageFile]:
            package_map: PackageMap = {}
            async for item in items:
                if item.is_stream:
                    raise StreamsUnsupported(str(item.path))
                if not item.is_manifest:
                    raise UnexpectedInput(str(item.path))

                descriptor = item.descriptor()
                package_map[descriptor.name] = MappedPackage(descriptor=descriptor, path=item.directory)

                if _excluded(options, item, descriptor.name):
                    logger.debug('package_passed_through', package=descriptor.name, stage=stage_name)
                    yield item
                    continue

                keep = await _call(stage_name, func, binding, descriptor, package_map, item, args)
                if keep:
                    yield item
                else:
                    logger.debug('package_dropped', package=descriptor.name, stage=stage_name)

        stage.__name__ = stage_name
        return stage

    factory.__name__ = stage_name
    factory.__doc__ = func.__doc__
    return factory


def _excluded(options: WorkspaceOptions, item: PackageFile, name: str) -> bool:
    """True when either the stage or the file's source narrows the run to another package."""
    if options.is_excluded(name):
        return True
    context = item.context
    return bool(context is not None and context.options is not None and context.options.is_excluded(name))


async def _call(
    stage_name: str,
    func: PackageFunction,
    binding: Any,  # noqa: ANN401
    descriptor: PackageDescriptor,
    package_map: PackageMap,
    item: PackageFile,
    args: tuple[Any, ...],
) -> bool:
    package_path: Path = item.directory
    with package_scope(descriptor.name, stage_name):
        try:
            result = func(binding, descriptor, package_path, package_map, item, *args)
            if inspect.isawaitable(result):
                result = await result
        except PluginFailure as exc:
            logger.error(
                'package_failed',
                error=exc.info.message,
                details=exc.details.strip()[:2000],
                continue_on_error=exc.continue_on_error,
            )
            if not exc.continue_on_error:
                raise PipelineHalted(exc) from exc
            return True
    return result is not False


def pipe(source: AsyncIterable[PackageFile], *stages: Stage) -> AsyncIterable[PackageFile]:
    """Chain ``stages`` onto ``source``, left to right."""
    stream = source
    for stage in stages:
        stream = stage(stream)
    return stream


async def drain(stream: AsyncIterable[PackageFile]) -> list[PackageFile]:
    """Consume ``stream`` and return every item it emitted."""
    return [item async for item in stream]


__all__ = [
    'PackageFunction',
    'PackageMap',
    'Stage',
    'StageFactory',
    'drain',
    'package_stage',
    'pipe',
]
