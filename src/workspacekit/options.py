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

"""Run options and their precedence.

Every stage resolves one :class:`WorkspaceOptions` when it is created and
uses it for every package it processes. The value is built from four
layers, later layers winning::

    built-in defaults
        ← workspacekit.toml             (WorkspaceConfig)
            ← caller options            (npm_install(continue_on_error=False))
                ← command-line flags    (CommandLineOptions)

Command-line flags only ever override what the user actually passed;
an absent flag never resets a caller or config value.

The ``--package`` flag accepts an exclusive marker::

    -p core     stream 'core' and everything it depends on
    -p !core    stream only 'core'; stages pass every other package
                through untouched
"""

from __future__ import annotations

import dataclasses
import difflib
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from workspacekit.actions import ConditionableAction, as_action
from workspacekit.config import WorkspaceConfig
from workspacekit.errors import E, WorkspaceKitError
from workspacekit.semver import VersionBump

EXCLUSIVE_PACKAGE_MARKER = '!'

_PACKAGE_FILTER_RE = re.compile(r'^(!?)(.+)$')

_ACTION_FIELDS: frozenset[str] = frozenset({
    'post_install_actions',
    'post_compile_actions',
    'pre_publish_actions',
    'post_uninstall_actions',
})


@dataclass(frozen=True)
class WorkspaceOptions:
    """Resolved options for one stage invocation.

    Attributes:
        root: The workspace root directory.
        package: Name of the package to focus on, if any.
        only_named_package: With :attr:`package`, process only that
            package and pass the others through.
        enable_logging: ``False`` silences info-level logging.
        verbose_logging: Log debug-level events (links, commands).
        version_bump: Bump kind or literal version applied on publish;
            empty string disables bumping.
        continue_on_error: Forward a failing package and keep going
            instead of halting the run.
        dry_run: Log external commands instead of running them.
        additional_paths: Extra directories whose children are
            discovered as packages.
        registry_map: Package name → npm registry URL.
        external_packages: Package name → directory of a package that
            lives outside the workspace but should be linked.
        prefer_external: When a dependency is both a workspace sibling
            and an external package, link the external one.
        disable_external_linking: Ignore :attr:`external_packages`.
        peer_dependency_edges: Let peerDependencies affect ordering.
        minimize_size_on_disk: Install devDependencies at the workspace
            root when the root copy satisfies the declared range.
        shrinkwrap: Run ``npm shrinkwrap`` before publishing.
        ignore_missing_script: Skip packages without the requested npm
            script instead of failing.
        typings_dir: Folder (per package) holding linked typings.
        post_install_actions: Run after each package is installed.
        post_compile_actions: Run after each package is compiled.
        pre_publish_actions: Run before each package is published.
        post_uninstall_actions: Run after each package is uninstalled.
    """

    root: Path = field(default_factory=Path.cwd)
    package: str | None = None
    only_named_package: bool = False
    enable_logging: bool = True
    verbose_logging: bool = False
    version_bump: str = VersionBump.PATCH.value
    continue_on_error: bool = True
    dry_run: bool = False
    additional_paths: tuple[str, ...] = ()
    registry_map: Mapping[str, str] = field(default_factory=dict)
    external_packages: Mapping[str, str] = field(default_factory=dict)
    prefer_external: bool = False
    disable_external_linking: bool = False
    peer_dependency_edges: bool = False
    minimize_size_on_disk: bool = True
    shrinkwrap: bool = True
    ignore_missing_script: bool = True
    typings_dir: str = 'typings'
    post_install_actions: tuple[ConditionableAction, ...] = ()
    post_compile_actions: tuple[ConditionableAction, ...] = ()
    pre_publish_actions: tuple[ConditionableAction, ...] = ()
    post_uninstall_actions: tuple[ConditionableAction, ...] = ()

    def is_excluded(self, name: str) -> bool:
        """Whether an exclusive package filter tells stages to skip ``name``."""
        return bool(self.package and self.only_named_package and name != self.package)


VALID_OPTIONS: frozenset[str] = frozenset(f.name for f in dataclasses.fields(WorkspaceOptions))


def parse_package_filter(value: str) -> tuple[str, bool]:
    """Split a ``--package`` value into ``(name, exclusive)``.

    >>> parse_package_filter('!core')
    ('core', True)
    >>> parse_package_filter('core')
    ('core', False)
    """
    match = _PACKAGE_FILTER_RE.match(value.strip())
    if not match:
        raise WorkspaceKitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f'Invalid package filter {value!r}',
            hint="Use '--package NAME' or '--package !NAME'.",
        )
    marker, name = match.groups()
    return name, marker == EXCLUSIVE_PACKAGE_MARKER


@dataclass(frozen=True)
class CommandLineOptions:
    """The options a user can set from the command line.

    Attributes:
        package: Raw ``--package`` value, possibly with the ``!`` marker.
        verbose: ``--verbose`` was given.
        version_bump: ``--bump-version`` token.
        disable_external_linking: ``--no-external-links`` was given.
        dry_run: ``--dry-run`` was given.
    """

    package: str | None = None
    verbose: bool = False
    version_bump: str | None = None
    disable_external_linking: bool = False
    dry_run: bool = False

    def overrides(self) -> dict[str, Any]:
        """Return only the option values the user actually set."""
        values: dict[str, Any] = {}
        if self.package:
            values['package'], values['only_named_package'] = parse_package_filter(self.package)
        if self.verbose:
            values['verbose_logging'] = True
        if self.version_bump:
            values['version_bump'] = self.version_bump
        if self.disable_external_linking:
            values['disable_external_linking'] = True
        if self.dry_run:
            values['dry_run'] = True
        return values


def _coerce(key: str, value: Any) -> Any:  # noqa: ANN401 - option values are heterogeneous
    if key in _ACTION_FIELDS:
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple(as_action(v) for v in value)
        return (as_action(value),)
    if key == 'additional_paths':
        return tuple(value or ())
    if key == 'root':
        return Path(value)
    if key in {'registry_map', 'external_packages'}:
        return dict(value or {})
    return value


def _check_keys(values: Mapping[str, Any], source: str) -> None:
    for key in values:
        if key not in VALID_OPTIONS:
            matches = difflib.get_close_matches(key, VALID_OPTIONS, n=1, cutoff=0.6)
            raise WorkspaceKitError(
                code=E.CONFIG_INVALID_KEY,
                message=f"Unknown option '{key}' in {source}",
                hint=f"Did you mean '{matches[0]}'?" if matches else 'See WorkspaceOptions for valid options.',
            )


def resolve_options(
    caller: Mapping[str, Any] | None = None,  # noqa: ANN401
    *,
    config: WorkspaceConfig | None = None,
    command_line: CommandLineOptions | None = None,
) -> WorkspaceOptions:
    """Merge the option layers into one :class:`WorkspaceOptions`.

    Args:
        caller: Options passed in code (``npm_install(shrinkwrap=False)``).
        config: Settings loaded from ``workspacekit.toml``.
        command_line: Flags parsed by the CLI.

    Returns:
        The resolved options; precedence is command line, then caller,
        then config, then built-in defaults.

    Raises:
        WorkspaceKitError: If ``caller`` names an unknown option.
    """
    values: dict[str, Any] = {}
    if config is not None:
        values.update(config.settings)
        if config.config_path is not None:
            values.setdefault('root', config.config_path.parent)
    if caller:
        _check_keys(caller, 'caller options')
        values.update(caller)
    if command_line is not None:
        values.update(command_line.overrides())

    return WorkspaceOptions(**{key: _coerce(key, value) for key, value in values.items()})


__all__ = [
    'EXCLUSIVE_PACKAGE_MARKER',
    'VALID_OPTIONS',
    'CommandLineOptions',
    'VersionBump',
    'WorkspaceOptions',
    'parse_package_filter',
    'resolve_options',
]
