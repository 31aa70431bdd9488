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

"""Tests for workspacekit.options."""

from __future__ import annotations

from pathlib import Path

import pytest
from workspacekit.actions import ConditionableAction
from workspacekit.config import WorkspaceConfig
from workspacekit.descriptor import PackageDescriptor
from workspacekit.errors import E, WorkspaceKitError
from workspacekit.logging import configure_logging
from workspacekit.options import CommandLineOptions, WorkspaceOptions, parse_package_filter, resolve_options

configure_logging(quiet=True)


class TestDefaults:
    """Built-in defaults."""

    def test_defaults(self) -> None:
        """Logging on, verbose off, patch bump, continue on error."""
        options = resolve_options()
        assert options.enable_logging is True
        assert options.verbose_logging is False
        assert options.version_bump == 'patch'
        assert options.continue_on_error is True
        assert options.package is None
        assert options.prefer_external is False
        assert options.peer_dependency_edges is False


class TestPackageFilter:
    """The '!' exclusive marker."""

    def test_exclusive(self) -> None:
        """A leading '!' marks the filter exclusive."""
        assert parse_package_filter('!core') == ('core', True)

    def test_plain(self) -> None:
        """Without '!' the filter is inclusive."""
        assert parse_package_filter('core') == ('core', False)

    def test_scoped(self) -> None:
        """Scoped names survive."""
        assert parse_package_filter('!@corp/ui') == ('@corp/ui', True)

    def test_empty(self) -> None:
        """An empty value is rejected."""
        with pytest.raises(WorkspaceKitError):
            parse_package_filter('')

    def test_is_excluded(self) -> None:
        """Only an exclusive filter excludes other packages."""
        exclusive = WorkspaceOptions(package='core', only_named_package=True)
        inclusive = WorkspaceOptions(package='core')
        assert exclusive.is_excluded('util') is True
        assert exclusive.is_excluded('core') is False
        assert inclusive.is_excluded('util') is False


class TestResolveOptions:
    """Layer precedence."""

    def test_config_over_defaults(self) -> None:
        """Config values replace defaults."""
        options = resolve_options(config=WorkspaceConfig(settings={'shrinkwrap': False}))
        assert options.shrinkwrap is False

    def test_caller_over_config(self) -> None:
        """Caller values replace config values."""
        config = WorkspaceConfig(settings={'continue_on_error': True})
        options = resolve_options({'continue_on_error': False}, config=config)
        assert options.continue_on_error is False

    def test_command_line_over_caller(self) -> None:
        """Command-line flags replace caller values."""
        options = resolve_options(
            {'version_bump': 'minor', 'package': 'app'},
            command_line=CommandLineOptions(package='!core', version_bump='major', verbose=True),
        )
        assert options.version_bump == 'major'
        assert options.package == 'core'
        assert options.only_named_package is True
        assert options.verbose_logging is True

    def test_unset_flags_do_not_override(self) -> None:
        """Flags the user did not pass leave lower layers alone."""
        options = resolve_options({'dry_run': True, 'version_bump': 'minor'}, command_line=CommandLineOptions())
        assert options.dry_run is True
        assert options.version_bump == 'minor'

    def test_disable_external_linking_flag(self) -> None:
        """--no-external-links maps to disable_external_linking."""
        options = resolve_options(command_line=CommandLineOptions(disable_external_linking=True))
        assert options.disable_external_linking is True

    def test_root_from_config_path(self, tmp_path: Path) -> None:
        """The config file's directory becomes the default root."""
        config = WorkspaceConfig(settings={}, config_path=tmp_path / 'workspacekit.toml')
        assert resolve_options(config=config).root == tmp_path

    def test_actions_coerced(self) -> None:
        """Bare callables become a tuple of actions."""

        def post(descriptor: PackageDescriptor, package_path: Path) -> None:
            pass

        options = resolve_options({'post_install_actions': [post], 'pre_publish_actions': post})
        assert len(options.post_install_actions) == 1
        assert isinstance(options.post_install_actions[0], ConditionableAction)
        assert len(options.pre_publish_actions) == 1

    def test_unknown_caller_key(self) -> None:
        """A misspelt option gets a suggestion."""
        with pytest.raises(WorkspaceKitError) as exc_info:
            resolve_options({'shrinkwarp': False})
        assert exc_info.value.code == E.CONFIG_INVALID_KEY
        assert 'shrinkwrap' in exc_info.value.hint
