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

"""Recording stand-in for :func:`workspacekit._run.run_command`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from workspacekit._run import CommandResult


@dataclass(frozen=True)
class Call:
    """One recorded invocation."""

    command: list[str]
    cwd: Path | None
    dry_run: bool

    @property
    def text(self) -> str:
        """The command as one string."""
        return ' '.join(self.command)


class RecordingRunner:
    """Records every command and returns canned results.

    Args:
        failures: Substring → exit code. A command whose text contains
            the substring fails with that code.
        stdout: Standard output returned by successful commands.
    """

    def __init__(self, *, failures: dict[str, int] | None = None, stdout: str = '') -> None:
        """Initialize with optional failing commands."""
        self.failures = failures or {}
        self.stdout = stdout
        self.calls: list[Call] = []

    def __call__(
        self,
        cmd: list[str] | str,
        *,
        cwd: Path | str | None = None,
        env: dict[str, str] | None = None,
        timeout: int = 600,
        dry_run: bool = False,
    ) -> CommandResult:
        """Record the call and return a result."""
        command = [cmd] if isinstance(cmd, str) else list(cmd)
        call = Call(command=command, cwd=Path(cwd) if cwd is not None else None, dry_run=dry_run)
        self.calls.append(call)
        for needle, return_code in self.failures.items():
            if needle in call.text:
                return CommandResult(command=command, return_code=return_code, stderr=f'{needle}: boom')
        return CommandResult(command=command, return_code=0, stdout=self.stdout, dry_run=dry_run)

    @property
    def commands(self) -> list[str]:
        """Every recorded command as a string, in call order."""
        return [call.text for call in self.calls]
