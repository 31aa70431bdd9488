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

"""The compile stage: run ``tsc`` once per TypeScript configuration.

A package's configurations come from its ``get_typescript_compiler_config``
hook when it has one, otherwise from every ``tsconfig*.json`` in the
package directory. Each configuration is turned into a response file
that ``tsc`` reads with ``@file``::

    tsconfig.json                         _0__args.tmp
    {                                     --target es5 --declaration
      "compilerOptions": {                "index.ts"
        "target": "es5",          ──→     "lib/util.ts"
        "declaration": true,
        "noEmit": false
      },
      "exclude": ["test"]
    }

With ``files`` the listed files are compiled. Otherwise every ``*.ts``
at the top level and below each sub-folder is compiled, except in the
folders named by ``exclude`` and in ``node_modules``. Response files
are deleted again whether or not ``tsc`` succeeded.
"""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from workspacekit._io import read_text, write_text
from workspacekit._run import check_result, executable, run_command
from workspacekit._types import PackageFile
from workspacekit.actions import merge_actions, run_actions
from workspacekit.descriptor import PackageDescriptor
from workspacekit.logging import get_logger
from workspacekit.options import WorkspaceOptions
from workspacekit.stage import PackageMap, package_stage
from workspacekit.stages._common import announce, detail, package_failure

logger = get_logger(__name__)

TSC_ARGS_FILENAME = '_args.tmp'


def args_file_name(index: int) -> str:
    """Return the response file name for the ``index``-th configuration."""
    return f'_{index}_{TSC_ARGS_FILENAME}'


def compiler_flags(compiler_options: Mapping[str, Any]) -> list[str]:  # noqa: ANN401
    """Render ``compilerOptions`` as ``tsc`` flags.

    Strings and numbers become ``--name value``; ``true`` becomes
    ``--name``; anything else is left out.
    """
    flags: list[str] = []
    for name, value in compiler_options.items():
        if isinstance(value, bool):
            if value:
                flags.append(f'--{name}')
        elif isinstance(value, (str, int, float)):
            flags.append(f'--{name} {value}')
    return flags


def source_files(package_path: Path, excluded: Iterable[str]) -> list[str]:
    """List the ``.ts`` files compiled when a configuration has no ``files``."""
    skip = {'node_modules', *excluded}
    files = sorted(p for p in package_path.glob('*.ts') if p.is_file())
    folders = [p for p in package_path.iterdir() if p.is_dir() and p.name not in skip and not p.name.startswith('.')]
    for folder in sorted(folders):
        files.extend(sorted(folder.rglob('*.ts')))
    return [f'./{p.relative_to(package_path).as_posix()}' for p in files]


def compiler_arguments(package_path: Path, configuration: Mapping[str, Any]) -> str:  # noqa: ANN401
    """Return the response file contents for one configuration."""
    lines = [' '.join(compiler_flags(configuration.get('compilerOptions') or {}))]
    if configuration.get('files'):
        files = [str(f) for f in configuration['files']]
    else:
        files = source_files(package_path, configuration.get('exclude') or [])
    lines.extend(f'"{f}"' for f in files)
    return os.linesep.join(lines)


class TypeScriptCompiler:
    """Binding for the compile stage.

    Args:
        options: The stage's resolved options.
    """

    def __init__(self, options: WorkspaceOptions) -> None:
        """Bind to ``options``."""
        self.options = options

    async def configurations(self, item: PackageFile, package_path: Path) -> list[dict[str, Any]]:
        """Return the package's TypeScript configurations."""
        hook = item.extensions.get_typescript_compiler_config
        if hook is not None:
            return list(hook() or [])
        return [json.loads(await read_text(p)) for p in sorted(package_path.glob('tsconfig*.json'))]

    def compiler(self, package_path: Path) -> Path:
        """Return the ``tsc`` to run: the package's own, else the workspace's."""
        base = package_path if (package_path / 'node_modules' / 'typescript').is_dir() else self.options.root
        return base / 'node_modules' / '.bin' / executable('tsc')

    async def compile(self, descriptor: PackageDescriptor, package_path: Path, args_file: str) -> None:
        """Run ``tsc @args_file`` in the package directory.

        Raises:
            ExternalProcessFailure: If ``tsc`` reports errors.
        """
        cmd = [str(self.compiler(package_path)), f'@{args_file}']
        result = await asyncio.to_thread(run_command, cmd, cwd=package_path, dry_run=self.options.dry_run)
        check_result(
            result,
            f"Cannot compile workspace package '{descriptor.name}'",
            package=descriptor.name,
            continue_on_error=self.options.continue_on_error,
        )


async def _compile_package(
    compiler: TypeScriptCompiler,
    descriptor: PackageDescriptor,
    package_path: Path,
    package_map: PackageMap,
    item: PackageFile,
) -> None:
    """Compile a workspace package with ``tsc``."""
    options = compiler.options
    with package_failure('compiling', descriptor, options):
        configurations = await compiler.configurations(item, package_path)
        if not configurations:
            logger.warning('tsconfig_missing', package=descriptor.name)
            return

        announce(options, 'compiling', package=descriptor.name, configurations=len(configurations))
        written: list[Path] = []
        try:
            for index, configuration in enumerate(configurations):
                args_path = package_path / args_file_name(index)
                await write_text(args_path, compiler_arguments(package_path, configuration))
                written.append(args_path)
                detail(
                    options,
                    'compiler_options',
                    options=configuration.get('compilerOptions') or {},
                    excluded=configuration.get('exclude') or [],
                )
            for args_path in written:
                await compiler.compile(descriptor, package_path, args_path.name)
        finally:
            for args_path in written:
                args_path.unlink(missing_ok=True)

        actions = merge_actions(options.post_compile_actions, item.extensions.post_typescript_compile)
        if actions:
            detail(options, 'post_compile_actions', count=len(actions))
            await run_actions(actions, descriptor, package_path)


build_typescript = package_stage(_compile_package, TypeScriptCompiler, name='compile')

__all__ = [
    'TSC_ARGS_FILENAME',
    'TypeScriptCompiler',
    'args_file_name',
    'build_typescript',
    'compiler_arguments',
    'compiler_flags',
    'source_files',
]
