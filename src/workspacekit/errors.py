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

"""Structured error system for workspacekit.

Every error has a unique ``WK-NAMED-KEY`` code, a human-readable message,
and an optional hint with a suggested fix.

Key Concepts (ELI5)::

    ┌─────────────────────────┬────────────────────────────────────────────┐
    │ Concept                 │ ELI5 Explanation                           │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ ErrorCode               │ A unique named ID like                     │
    │                         │ "WK-GRAPH-CYCLE-DETECTED" for each error.  │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ WorkspaceKitError       │ An exception you can raise. Carries the    │
    │                         │ error card so renderers can display it.    │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ PluginFailure           │ One package failed inside a stage. Has a   │
    │                         │ "keep going?" flag the stage honours.      │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ ExternalProcessFailure  │ npm, tsc or cucumber exited non-zero. A    │
    │                         │ PluginFailure with the output attached.    │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ PipelineHalted          │ A stage gave up on the whole run. Wraps    │
    │                         │ the failure that made it stop.             │
    └─────────────────────────┴────────────────────────────────────────────┘

Failure taxonomy::

    CycleDetected            structural: the workspace cannot be ordered
    StreamsUnsupported       malformed stage input, always fatal
    UnexpectedInput          malformed stage input, always fatal
    PluginFailure            per package, continue or halt per flag
    ExternalProcessFailure   PluginFailure raised from a subprocess
    PipelineHalted           fatal, raised by a stage when not continuing

Code categories::

    WK-CONFIG-*       Configuration errors
    WK-WORKSPACE-*    Workspace discovery errors
    WK-GRAPH-*        Dependency graph errors
    WK-STAGE-*        Pipeline stage errors
    WK-PACKAGE-*      Per-package processing errors
    WK-EXTENSION-*    Per-package hook file errors
    WK-VERSION-*      Versioning errors

Usage::

    from workspacekit.errors import WorkspaceKitError, E

    raise WorkspaceKitError(
        code=E.CONFIG_INVALID_KEY,
        message="Unknown key 'registy_map' in workspacekit.toml",
        hint="Did you mean 'registry_map'?",
    )
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, TextIO

from rich.console import Console
from rich.markup import escape as rich_escape

if TYPE_CHECKING:
    from workspacekit._run import CommandResult


class ErrorCode(str, Enum):
    """Enumeration of all workspacekit diagnostic codes."""

    # Configuration
    CONFIG_PARSE_ERROR = 'WK-CONFIG-PARSE-ERROR'
    CONFIG_INVALID_KEY = 'WK-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'WK-CONFIG-INVALID-VALUE'

    # Workspace discovery
    WORKSPACE_NOT_FOUND = 'WK-WORKSPACE-NOT-FOUND'
    WORKSPACE_PARSE_ERROR = 'WK-WORKSPACE-PARSE-ERROR'
    WORKSPACE_IO_ERROR = 'WK-WORKSPACE-IO-ERROR'
    WORKSPACE_MISSING_NAME = 'WK-WORKSPACE-MISSING-NAME'

    # Dependency graph
    GRAPH_CYCLE_DETECTED = 'WK-GRAPH-CYCLE-DETECTED'
    GRAPH_UNKNOWN_NODE = 'WK-GRAPH-UNKNOWN-NODE'

    # Pipeline stages
    STAGE_STREAMS_UNSUPPORTED = 'WK-STAGE-STREAMS-UNSUPPORTED'
    STAGE_UNEXPECTED_INPUT = 'WK-STAGE-UNEXPECTED-INPUT'
    STAGE_HALTED = 'WK-STAGE-HALTED'

    # Per-package processing
    PACKAGE_FAILED = 'WK-PACKAGE-FAILED'
    PACKAGE_COMMAND_FAILED = 'WK-PACKAGE-COMMAND-FAILED'
    PACKAGE_SCRIPT_MISSING = 'WK-PACKAGE-SCRIPT-MISSING'

    # Per-package hook files
    EXTENSION_LOAD_FAILED = 'WK-EXTENSION-LOAD-FAILED'
    EXTENSION_INVALID_HOOK = 'WK-EXTENSION-INVALID-HOOK'

    # Versioning
    VERSION_INVALID = 'WK-VERSION-INVALID'


# Convenience alias for shorter imports.
E = ErrorCode


@dataclass(frozen=True)
class ErrorInfo:
    """Metadata for a single error code.

    Attributes:
        code: The ``WK-NAMED-KEY`` error code.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class WorkspaceKitError(Exception):
    """Base exception for all workspacekit errors.

    Carries structured diagnostic information (code, message, hint) that
    can be rendered as a rich terminal message.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def hint(self) -> str:
        """Suggestion for fixing this error, or empty string."""
        return self.info.hint


class CycleDetected(WorkspaceKitError):
    """The dependency graph (or the requested part of it) has a cycle.

    Attributes:
        cycle: The offending path, first node repeated at the end
            (``['a', 'b', 'c', 'a']``).
    """

    def __init__(self, cycle: list[str]) -> None:
        """Initialize with the offending cycle path."""
        self.cycle = list(cycle)
        super().__init__(
            code=E.GRAPH_CYCLE_DETECTED,
            message=f'Circular dependency found: {" -> ".join(self.cycle)}',
            hint='Remove one of the dependencies along the cycle.',
        )


class StreamsUnsupported(WorkspaceKitError):
    """A stage received an item whose contents are not fully buffered."""

    def __init__(self, path: str) -> None:
        """Initialize with the offending item path."""
        super().__init__(
            code=E.STAGE_STREAMS_UNSUPPORTED,
            message=f'Streams are not supported: {path}',
            hint='Read manifests into memory before passing them to a stage.',
        )


class UnexpectedInput(WorkspaceKitError):
    """A stage received something other than a ``package.json`` file."""

    def __init__(self, path: str) -> None:
        """Initialize with the offending item path."""
        super().__init__(
            code=E.STAGE_UNEXPECTED_INPUT,
            message=f"Expected a 'package.json' file, got {path}",
            hint='Only feed workspace manifests into workspacekit stages.',
        )


class PluginFailure(WorkspaceKitError):
    """A recoverable failure while processing a single package.

    The stage that catches it logs it once and then either forwards the
    package and moves on (``continue_on_error=True``) or halts the run.

    Args:
        message: Short description of the failure.
        package: Name of the package being processed.
        continue_on_error: Whether the run may proceed past this package.
        details: Longer diagnostic text (captured output, cause).
        code: Error code, defaults to ``WK-PACKAGE-FAILED``.
    """

    def __init__(
        self,
        message: str,
        *,
        package: str = '',
        continue_on_error: bool = True,
        details: str = '',
        code: ErrorCode = E.PACKAGE_FAILED,
    ) -> None:
        """Initialize with a message and continuation flag."""
        self.package = package
        self.continue_on_error = continue_on_error
        self.details = details
        super().__init__(code=code, message=message, hint=details.strip()[:500])


class ExternalProcessFailure(PluginFailure):
    """A spawned process (npm, tsc, cucumber) exited with a non-zero code.

    Attributes:
        command: The command that was executed.
        return_code: The exit code of the process.
        output: Captured stderr, or stdout when stderr was empty.
    """

    def __init__(
        self,
        result: CommandResult,
        message: str,
        *,
        package: str = '',
        continue_on_error: bool = True,
    ) -> None:
        """Initialize from a failed :class:`~workspacekit._run.CommandResult`."""
        self.command = list(result.command)
        self.return_code = result.return_code
        self.output = result.stderr or result.stdout
        super().__init__(
            f'{message} (exit code {result.return_code}): {result.command_str}',
            package=package,
            continue_on_error=continue_on_error,
            details=self.output,
            code=E.PACKAGE_COMMAND_FAILED,
        )


class PipelineHalted(WorkspaceKitError):
    """A stage stopped the whole run because a package failure was fatal.

    Attributes:
        cause: The :class:`PluginFailure` that stopped the run.
    """

    def __init__(self, cause: PluginFailure) -> None:
        """Initialize with the failure that halted the run."""
        self.cause = cause
        super().__init__(
            code=E.STAGE_HALTED,
            message=cause.info.message,
            hint='Set continue_on_error to keep going past failing packages.',
        )


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.CONFIG_INVALID_KEY: ErrorInfo(
        code=E.CONFIG_INVALID_KEY,
        message='workspacekit.toml contains a key workspacekit does not know.',
        hint='Check the spelling against the documented keys.',
    ),
    E.WORKSPACE_PARSE_ERROR: ErrorInfo(
        code=E.WORKSPACE_PARSE_ERROR,
        message='A package.json file in the workspace is not valid JSON.',
        hint='Fix the syntax error reported for the file.',
    ),
    E.GRAPH_CYCLE_DETECTED: ErrorInfo(
        code=E.GRAPH_CYCLE_DETECTED,
        message='Circular dependency detected between workspace packages.',
        hint="Run 'workspacekit order' to see the cycle path.",
    ),
    E.STAGE_STREAMS_UNSUPPORTED: ErrorInfo(
        code=E.STAGE_STREAMS_UNSUPPORTED,
        message='A stage received a manifest whose contents were not read into memory.',
        hint='Use workspace_packages() as the source of every pipeline.',
    ),
    E.STAGE_UNEXPECTED_INPUT: ErrorInfo(
        code=E.STAGE_UNEXPECTED_INPUT,
        message="A stage received a file that is not a 'package.json'.",
        hint='Only feed workspace manifests into workspacekit stages.',
    ),
    E.STAGE_HALTED: ErrorInfo(
        code=E.STAGE_HALTED,
        message='A package failed and continue_on_error was disabled.',
        hint='Fix the failing package or enable continue_on_error.',
    ),
    E.PACKAGE_COMMAND_FAILED: ErrorInfo(
        code=E.PACKAGE_COMMAND_FAILED,
        message='An external command (npm, tsc, cucumber) exited with an error.',
        hint='Re-run with --verbose to see the command and its output.',
    ),
    E.VERSION_INVALID: ErrorInfo(
        code=E.VERSION_INVALID,
        message='A version or version bump token is not valid.',
        hint='Use major, minor, patch, premajor, preminor, prepatch, prerelease or X.Y.Z.',
    ),
}


def explain(code: str) -> str | None:
    """Return the catalog text for ``code`` (``'WK-GRAPH-CYCLE-DETECTED'``).

    Valid codes without a catalog entry get a one-line placeholder;
    unknown codes return ``None``.
    """
    if code not in {c.value for c in ErrorCode}:
        return None
    info = ERRORS.get(ErrorCode(code))
    if info is None:
        return f'{code}: No detailed explanation available.'
    text = f'{code}: {info.message}'
    return f'{text}\n  Hint: {info.hint}' if info.hint else text


def _notes(exc: WorkspaceKitError) -> list[tuple[str, str]]:
    """The ``= label: text`` lines shown under an error."""
    failure = exc.cause if isinstance(exc, PipelineHalted) else exc
    notes: list[tuple[str, str]] = []
    if isinstance(failure, PluginFailure) and failure.package:
        notes.append(('package', failure.package))
    if isinstance(failure, ExternalProcessFailure):
        if failure.output.strip():
            notes.append(('output', failure.output.strip().splitlines()[-1]))
    elif failure is not exc and failure.hint:
        notes.append(('details', failure.hint))
    if exc.hint and not isinstance(exc, ExternalProcessFailure):
        notes.append(('hint', exc.hint))
    return notes


def render_error(exc: WorkspaceKitError, *, file: TextIO | None = None) -> None:
    """Print ``exc`` in compiler style; colored when ``file`` is a TTY.

    Output format::

        error[WK-STAGE-HALTED]: Cannot compile workspace package 'core' (exit code 2): tsc @_0__args.tmp
          |
          = package: core
          = output: index.ts(3,1): error TS2304: Cannot find name 'x'.
          = hint: Set continue_on_error to keep going past failing packages.

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    out = file or sys.stderr
    notes = _notes(exc)

    if not out.isatty():
        print(f'error[{exc.code.value}]: {exc.info.message}', file=out)  # noqa: T201 - CLI output
        if notes:
            print('  |', file=out)  # noqa: T201 - CLI output
        for label, text in notes:
            print(f'  = {label}: {text}', file=out)  # noqa: T201 - CLI output
        print(file=out)  # noqa: T201 - CLI output
        return

    console = Console(file=out, highlight=False)
    console.print(
        f'[bold red]error\\[{exc.code.value}][/bold red][bold]: {rich_escape(exc.info.message)}[/bold]',
    )
    if notes:
        console.print('  [dim]|[/dim]')
    for label, text in notes:
        console.print(f'  [dim]=[/dim] [cyan]{label}[/cyan]: {rich_escape(text)}')
    console.print()


__all__ = [
    'CycleDetected',
    'E',
    'ERRORS',
    'ErrorCode',
    'ErrorInfo',
    'ExternalProcessFailure',
    'PipelineHalted',
    'PluginFailure',
    'StreamsUnsupported',
    'UnexpectedInput',
    'WorkspaceKitError',
    'explain',
    'render_error',
]
