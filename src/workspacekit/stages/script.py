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

"""The script stage: run a named ``scripts`` entry in every package."""

from __future__ import annotations

import asyncio
from pathlib import Path

from workspacekit._run import check_result, run_command
from workspacekit._types import PackageFile
from workspacekit.descriptor import PackageDescriptor
from workspacekit.errors import E, PluginFailure
from workspacekit.logging import get_logger
from workspacekit.options import WorkspaceOptions
from workspacekit.stage import PackageMap, package_stage
from workspacekit.stages._common import announce, detail

logger = get_logger(__name__)


async def _run_script(
    options: WorkspaceOptions,
    descriptor: PackageDescriptor,
    package_path: Path,
    package_map: PackageMap,
    item: PackageFile,
    script_name: str,
) -> None:
    """Run ``script_name`` from the package's ``scripts`` through the shell.

    Raises:
        PluginFailure: If the script is missing and missing scripts are
            not ignored. This always halts the run.
        ExternalProcessFailure: If the script exits non-zero.
    """
    command = descriptor.scripts.get(script_name)
    if not command:
        if options.ignore_missing_script:
            detail(options, 'script_missing', package=descriptor.name, script=script_name)
            return
        raise PluginFailure(
            f"Workspace package '{descriptor.name}' does not contain a '{script_name}' script.",
            package=descriptor.name,
            continue_on_error=False,
            code=E.PACKAGE_SCRIPT_MISSING,
        )

    announce(options, 'running_script', package=descriptor.name, script=script_name)
    result = await asyncio.to_thread(run_command, command, cwd=package_path, dry_run=options.dry_run)
    check_result(
        result,
        f"Error running script '{script_name}' for workspace package '{descriptor.name}'",
        package=descriptor.name,
        continue_on_error=options.continue_on_error,
    )
    if result.stdout.strip():
        logger.info('script_output', script=script_name, output=result.stdout.strip()[-4000:])


npm_script = package_stage(_run_script, name='script')

__all__ = [
    'npm_script',
]
