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

"""Central subprocess abstraction for workspacekit.

Every external tool call (``npm``, ``tsc``, ``cucumber-js``, package
scripts) goes through :func:`run_command`. This provides:

- Structured logging of every subprocess invocation.
- Dry-run support: when ``dry_run=True``, the command is logged but not
  executed, and a synthetic success result is returned.
- A consistent return type (:class:`CommandResult`) for every stage.
- :func:`check_result`, which turns a failed result into an
  :class:`~workspacekit.errors.ExternalProcessFailure` with the captured
  output attached.

Stages call these from ``asyncio.to_thread`` so a long ``npm install``
does not block the event loop driving the pipeline.
"""

from __future__ import annotations

import os
import subprocess  # noqa: S404 - subprocess is the core purpose of this module
import sys
import time
from dataclasses import dataclass
from pathlib import Path

from workspacekit.errors import ExternalProcessFailure
from workspacekit.logging import get_logger

log = get_logger('workspacekit.run')

# Default timeout for subprocess calls (10 minutes; npm installs are slow).
DEFAULT_TIMEOUT_SECONDS = 600


@dataclass(frozen=True)
class CommandResult:
    """Result of a subprocess invocation.

    Attributes:
        command: The command that was executed (as a list of strings).
        return_code: Process exit code (0 = success).
        stdout: Captured standard output.
        stderr: Captured standard error.
        duration: Wall-clock duration in milliseconds.
        dry_run: Whether this was a dry-run (command was not actually executed).
    """

    command: list[str]
    return_code: int
    stdout: str = ''
    stderr: str = ''
    duration: float = 0.0
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        """Whether the command succeeded."""
        return self.return_code == 0

    @property
    def command_str(self) -> str:
        """The command as a single shell-style string."""
        return ' '.join(self.command)


def executable(name: str) -> str:
    """Return the platform-specific name of a Node.js tool shim.

    npm installs ``.cmd`` wrappers on Windows (``npm.cmd``, ``tsc.cmd``).
    """
    return f'{name}.cmd' if sys.platform == 'win32' else name


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000


def run_command(
    cmd: list[str] | str,
    *,
    cwd: Path | str | None = None,
    env: dict[str, str] | None = None,
    timeout: int = DEFAULT_TIMEOUT_SECONDS,
    dry_run: bool = False,
) -> CommandResult:
    """Run one external command and capture its output.

    Args:
        cmd: Argument list, or a single string run through the shell
            (package scripts and shell actions).
        cwd: Directory to run in, usually the package directory.
        env: Variables added on top of the current environment.
        timeout: Seconds before the process is killed.
        dry_run: Log the command and return a successful result without
            running it.

    Returns:
        The :class:`CommandResult`. A program that cannot be started
        yields exit code 127 instead of raising.

    Raises:
        subprocess.TimeoutExpired: If the command runs past ``timeout``.
    """
    command = [cmd] if isinstance(cmd, str) else list(cmd)
    bound = log.bind(cmd=' '.join(command), cwd=str(cwd or '.'))

    if dry_run:
        bound.info('dry_run')
        return CommandResult(command=command, return_code=0, dry_run=True)

    bound.debug('run_command')
    start = time.monotonic()
    try:
        completed = subprocess.run(  # noqa: S603 - commands are built by workspacekit stages
            cmd,
            cwd=cwd,
            env={**os.environ, **env} if env else None,
            capture_output=True,
            text=True,
            timeout=timeout,
            shell=isinstance(cmd, str),  # noqa: S602 - package scripts are shell command lines
        )
    except subprocess.TimeoutExpired:
        bound.error('command_timeout', timeout=timeout, duration=_elapsed_ms(start))
        raise
    except OSError as exc:
        bound.warning('command_not_started', error=str(exc))
        return CommandResult(command=command, return_code=127, stderr=str(exc), duration=_elapsed_ms(start))

    result = CommandResult(
        command=command,
        return_code=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
        duration=_elapsed_ms(start),
    )
    if result.ok:
        bound.debug('command_ok', duration=result.duration)
    else:
        bound.warning('command_failed', return_code=result.return_code, stderr=result.stderr[:500])
    return result


def check_result(
    result: CommandResult,
    message: str,
    *,
    package: str = '',
    continue_on_error: bool = True,
) -> CommandResult:
    """Return ``result`` unchanged, or raise if the command failed.

    Args:
        result: The result to check.
        message: Short description used as the failure message.
        package: Name of the package the command ran for.
        continue_on_error: Continuation flag carried by the failure.

    Raises:
        ExternalProcessFailure: If ``result`` has a non-zero exit code.
    """
    if not result.ok:
        raise ExternalProcessFailure(
            result,
            message,
            package=package,
            continue_on_error=continue_on_error,
        )
    return result


__all__ = [
    'DEFAULT_TIMEOUT_SECONDS',
    'CommandResult',
    'check_result',
    'executable',
    'run_command',
]
