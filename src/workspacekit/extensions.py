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

"""Per-package hook files.

A package may ship a ``workspace_hooks.py`` next to its ``package.json``.
It is an ordinary Python module; workspacekit looks for these names::

    get_typescript_compiler_config()   → list of tsconfig-like dicts
    post_typescript_compile            → action(s) run after tsc
    post_install                       → action(s) run after install
    pre_publish                        → action(s) run before npm publish
    post_uninstall                     → action(s) run after uninstall

An action hook may be a function ``(descriptor, package_path)`` (sync or
async), a :class:`~workspacekit.actions.ConditionableAction`, or a list
of either. Example::

    from workspacekit.actions import ConditionableAction, shell_action

    post_install = [shell_action('node scripts/generate.js')]

    async def pre_publish(descriptor, package_path):
        ...

Hook files are loaded lazily, at most once per package per pipeline
item, through :class:`~workspacekit._types.PackageContext`.
"""

from __future__ import annotations

import importlib.util
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any

from workspacekit.actions import ConditionableAction, as_action
from workspacekit.errors import E, WorkspaceKitError
from workspacekit.logging import get_logger

log = get_logger(__name__)

EXTENSIONS_FILENAME = 'workspace_hooks.py'

ACTION_HOOKS: tuple[str, ...] = (
    'post_typescript_compile',
    'post_install',
    'pre_publish',
    'post_uninstall',
)


@dataclass(frozen=True)
class WorkspaceExtensions:
    """The hooks one package provides. Empty when it has no hook file."""

    get_typescript_compiler_config: Callable[[], list[dict[str, Any]]] | None = None
    post_typescript_compile: tuple[ConditionableAction, ...] = field(default_factory=tuple)
    post_install: tuple[ConditionableAction, ...] = field(default_factory=tuple)
    pre_publish: tuple[ConditionableAction, ...] = field(default_factory=tuple)
    post_uninstall: tuple[ConditionableAction, ...] = field(default_factory=tuple)
    path: Path | None = None


def _normalize_hook(name: str, value: object, source: Path) -> tuple[ConditionableAction, ...]:
    entries = value if isinstance(value, (list, tuple)) else [value]
    try:
        return tuple(as_action(entry) for entry in entries)
    except TypeError as exc:
        raise WorkspaceKitError(
            code=E.EXTENSION_INVALID_HOOK,
            message=f"Hook '{name}' in {source} is not usable: {exc}",
            hint='Hooks must be functions, ConditionableAction objects, or lists of them.',
        ) from exc


def _import_file(path: Path) -> ModuleType:
    module_name = 'workspacekit_hooks_' + re.sub(r'\W', '_', str(path.parent.resolve()))
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise WorkspaceKitError(
            code=E.EXTENSION_LOAD_FAILED,
            message=f'Cannot load hook file {path}',
        )
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:  # noqa: BLE001 - any error in user code is a load failure
        raise WorkspaceKitError(
            code=E.EXTENSION_LOAD_FAILED,
            message=f'Error while loading {path}: {exc}',
            hint='Fix the error in the hook file or remove it.',
        ) from exc
    return module


def load_extensions(package_dir: Path) -> WorkspaceExtensions:
    """Load the hook file of the package in ``package_dir``.

    Args:
        package_dir: The package directory.

    Returns:
        The package's hooks; empty when there is no hook file.

    Raises:
        WorkspaceKitError: If the file fails to import or a hook has an
            unusable type.
    """
    path = package_dir / EXTENSIONS_FILENAME
    if not path.is_file():
        return WorkspaceExtensions()

    module = _import_file(path)
    hooks: dict[str, Any] = {}
    for name in ACTION_HOOKS:
        value = getattr(module, name, None)
        if value is not None:
            hooks[name] = _normalize_hook(name, value, path)

    compiler_config = getattr(module, 'get_typescript_compiler_config', None)
    if compiler_config is not None and not callable(compiler_config):
        raise WorkspaceKitError(
            code=E.EXTENSION_INVALID_HOOK,
            message=f"'get_typescript_compiler_config' in {path} must be a function",
        )

    log.debug('extensions_loaded', path=str(path), hooks=sorted(hooks))
    return WorkspaceExtensions(get_typescript_compiler_config=compiler_config, path=path, **hooks)


__all__ = [
    'ACTION_HOOKS',
    'EXTENSIONS_FILENAME',
    'WorkspaceExtensions',
    'load_extensions',
]
