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

"""Conditionable actions and the sequential action executor.

An action is a per-package step supplied by the caller (``npm_install(
post_install_actions=[...])``) or discovered in a package's
``workspace_hooks.py``. Each one may carry a condition; the executor
runs them strictly in list order, one at a time.

Key Concepts (ELI5)::

    ┌─────────────────────────┬────────────────────────────────────────────┐
    │ Concept                 │ ELI5 Explanation                           │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ ConditionableAction     │ "Do X, but only if Y". Y defaults to       │
    │                         │ "always".                                  │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ run_actions()           │ Works down the list. Skips steps whose     │
    │                         │ condition says no. Stops at the first      │
    │                         │ step that fails and hands the failure up.  │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ merge_actions()         │ Caller's steps first, then the package's   │
    │                         │ own hooks. Same order everywhere.          │
    └─────────────────────────┴────────────────────────────────────────────┘

Execution::

    [cond=False: A] ──→ skipped
    [B]             ──→ await B(descriptor, path)   ok
    [C]             ──→ await C(descriptor, path)   raises ──→ propagate
    [D]             ──→ never runs

The executor never decides whether a failure is fatal for the run. That
is the stage's job (see :mod:`workspacekit.stage`).
"""

from __future__ import annotations

import asyncio
import inspect
import json
import re
import shutil
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from workspacekit._io import read_text
from workspacekit._run import check_result, run_command
from workspacekit.descriptor import PackageDescriptor
from workspacekit.logging import get_logger

log = get_logger(__name__)

Action = Callable[[PackageDescriptor, Path], Awaitable[None] | None]
Condition = Callable[[PackageDescriptor, Path], bool]

# Typing references of the form "file:../typings/foo.d.ts".
_FILE_REFERENCE_RE = re.compile(r'file:(.*)')


@dataclass(frozen=True)
class ConditionableAction:
    """An action that only runs when its condition holds.

    Attributes:
        action: Called with ``(descriptor, package_path)``. May return an
            awaitable. Signals failure by raising.
        condition: Called with the same arguments; ``None`` means always.
        name: Label used in log events.
    """

    action: Action
    condition: Condition | None = None
    name: str = ''

    @property
    def label(self) -> str:
        """Name for log events."""
        return self.name or getattr(self.action, '__name__', repr(self.action))

    def applies(self, descriptor: PackageDescriptor, package_path: Path) -> bool:
        """Evaluate the condition (``True`` when there is none)."""
        if self.condition is None:
            return True
        return bool(self.condition(descriptor, package_path))


async def run_actions(
    actions: Iterable[ConditionableAction],
    descriptor: PackageDescriptor,
    package_path: Path,
) -> int:
    """Run ``actions`` for one package, strictly one after another.

    Args:
        actions: The ordered action list.
        descriptor: The package's manifest.
        package_path: The package directory.

    Returns:
        The number of actions that ran (skipped ones are not counted).

    Raises:
        Exception: Whatever the first failing action raised; the
            remaining actions are not run.
    """
    executed = 0
    for index, entry in enumerate(actions):
        if not entry.applies(descriptor, package_path):
            log.debug('action_skipped', action=entry.label, index=index)
            continue
        log.debug('action_start', action=entry.label, index=index)
        result = entry.action(descriptor, package_path)
        if inspect.isawaitable(result):
            await result
        executed += 1
    return executed


def merge_actions(
    caller: Iterable[ConditionableAction],
    discovered: Iterable[ConditionableAction],
) -> list[ConditionableAction]:
    """Merge caller-supplied actions with a package's discovered hooks.

    Caller actions come first, in their given order, followed by the
    discovered hooks. An action object already in the list is not added
    a second time. Every stage merges hooks through this function.
    """
    merged: list[ConditionableAction] = []
    for entry in (*caller, *discovered):
        if not any(entry is existing for existing in merged):
            merged.append(entry)
    return merged


def as_action(value: object) -> ConditionableAction:
    """Wrap a bare callable as an unconditional action.

    Raises:
        TypeError: If ``value`` is neither an action nor callable.
    """
    if isinstance(value, ConditionableAction):
        return value
    if callable(value):
        return ConditionableAction(action=value)
    msg = f'Expected a callable or ConditionableAction, got {type(value).__name__}'
    raise TypeError(msg)


def shell_action(
    command: str,
    *,
    condition: Condition | None = None,
    dry_run: bool = False,
) -> ConditionableAction:
    """Return an action that runs ``command`` through the shell.

    The command runs in the package directory. A non-zero exit raises
    :class:`~workspacekit.errors.ExternalProcessFailure`.
    """

    async def _run(descriptor: PackageDescriptor, package_path: Path) -> None:
        result = await asyncio.to_thread(run_command, command, cwd=package_path, dry_run=dry_run)
        check_result(result, f"Command '{command}' failed", package=descriptor.name)
        if result.stdout:
            log.info('shell_action_output', command=command, output=result.stdout.strip()[:2000])

    return ConditionableAction(action=_run, condition=condition, name=command)


def _has_typings_file(descriptor: PackageDescriptor, package_path: Path) -> bool:
    return (package_path / 'typings.json').is_file()


def typing_file_references(typings: dict[str, object]) -> dict[str, str]:
    """Return ``name -> path`` for every ``file:`` reference in a typings.json.

    Example::

        {"globalDependencies": {"node": "file:../typings/node.d.ts"}}
        → {"node": "../typings/node.d.ts"}
    """
    references: dict[str, str] = {}
    for section in typings.values():
        if not isinstance(section, dict):
            continue
        for name, reference in section.items():
            match = _FILE_REFERENCE_RE.match(str(reference))
            if match:
                references[str(name)] = match.group(1)
    return references


def install_typings(*, dry_run: bool = False) -> ConditionableAction:
    """Return a post-install action running ``typings install``.

    Runs only for packages with a ``typings.json``. The ``typings`` tool
    must be reachable on ``PATH``, usually through the workspace root's
    ``node_modules/.bin``.
    """

    async def _install(descriptor: PackageDescriptor, package_path: Path) -> None:
        log.debug('installing_typings', package=descriptor.name)
        result = await asyncio.to_thread(run_command, 'typings install', cwd=package_path, dry_run=dry_run)
        check_result(result, "'typings install' failed", package=descriptor.name)

    return ConditionableAction(action=_install, condition=_has_typings_file, name='install_typings')


def link_typings(target: str = 'typings') -> ConditionableAction:
    """Return a post-install action linking local typings into ``target``.

    Runs only for packages with a ``typings.json``. Every ``file:``
    reference is symlinked as ``<target>/<name>/<name>.d.ts``. The target
    folder is emptied first so stale links do not survive.
    """

    async def _link(descriptor: PackageDescriptor, package_path: Path) -> None:
        typings = json.loads(await read_text(package_path / 'typings.json'))
        target_dir = package_path / target
        if target_dir.exists():
            shutil.rmtree(target_dir)
        target_dir.mkdir(parents=True)

        log.debug('linking_typings', package=descriptor.name, target=str(target_dir))
        for name, reference in typing_file_references(typings).items():
            source = (package_path / reference).resolve()
            link_dir = target_dir / name
            link_dir.mkdir(parents=True, exist_ok=True)
            (link_dir / f'{name}.d.ts').symlink_to(source)
            log.debug('linked_typing', typing=name, source=str(source))

    return ConditionableAction(action=_link, condition=_has_typings_file, name='link_typings')


__all__ = [
    'Action',
    'Condition',
    'ConditionableAction',
    'as_action',
    'install_typings',
    'link_typings',
    'merge_actions',
    'run_actions',
    'shell_action',
    'typing_file_references',
]
