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

"""Tests for workspacekit.actions."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from workspacekit.actions import (
    ConditionableAction,
    as_action,
    install_typings,
    link_typings,
    merge_actions,
    run_actions,
    shell_action,
    typing_file_references,
)
from workspacekit.descriptor import PackageDescriptor
from workspacekit.errors import ExternalProcessFailure
from workspacekit.logging import configure_logging

from tests._fakes import RecordingRunner

configure_logging(quiet=True)

_DESCRIPTOR = PackageDescriptor({'name': 'core', 'version': '1.0.0'})


def _recording(log: list[str], label: str) -> ConditionableAction:
    def _action(descriptor: PackageDescriptor, package_path: Path) -> None:
        log.append(label)

    return ConditionableAction(action=_action, name=label)


# ---------------------------------------------------------------------------
# run_actions
# ---------------------------------------------------------------------------


class TestRunActions:
    """The sequential action executor."""

    @pytest.mark.asyncio
    async def test_runs_in_order(self, tmp_path: Path) -> None:
        """Actions run one after another in list order."""
        log: list[str] = []
        count = await run_actions([_recording(log, 'a'), _recording(log, 'b')], _DESCRIPTOR, tmp_path)
        assert log == ['a', 'b']
        assert count == 2

    @pytest.mark.asyncio
    async def test_false_condition_skipped(self, tmp_path: Path) -> None:
        """An action whose condition is false does not run; the rest do."""
        log: list[str] = []

        def _never(descriptor: PackageDescriptor, package_path: Path) -> None:
            log.append('never')

        actions = [
            ConditionableAction(action=_never, condition=lambda d, p: False),
            _recording(log, 'after'),
        ]
        count = await run_actions(actions, _DESCRIPTOR, tmp_path)
        assert log == ['after']
        assert count == 1

    @pytest.mark.asyncio
    async def test_condition_receives_package(self, tmp_path: Path) -> None:
        """Conditions see the descriptor and package path."""
        seen: list[tuple[str, Path]] = []

        def _condition(descriptor: PackageDescriptor, package_path: Path) -> bool:
            seen.append((descriptor.name, package_path))
            return True

        await run_actions([ConditionableAction(action=lambda d, p: None, condition=_condition)], _DESCRIPTOR, tmp_path)
        assert seen == [('core', tmp_path)]

    @pytest.mark.asyncio
    async def test_failure_aborts_and_propagates(self, tmp_path: Path) -> None:
        """The first failure stops the sequence and reaches the caller."""
        log: list[str] = []

        async def _fail(descriptor: PackageDescriptor, package_path: Path) -> None:
            raise ValueError('action failed')

        actions = [_recording(log, 'first'), ConditionableAction(action=_fail), _recording(log, 'third')]
        with pytest.raises(ValueError, match='action failed'):
            await run_actions(actions, _DESCRIPTOR, tmp_path)
        assert log == ['first']

    @pytest.mark.asyncio
    async def test_async_actions_awaited(self, tmp_path: Path) -> None:
        """Coroutine actions finish before the next one starts."""
        log: list[str] = []

        async def _slow(descriptor: PackageDescriptor, package_path: Path) -> None:
            log.append('slow')

        await run_actions([ConditionableAction(action=_slow), _recording(log, 'next')], _DESCRIPTOR, tmp_path)
        assert log == ['slow', 'next']

    @pytest.mark.asyncio
    async def test_empty(self, tmp_path: Path) -> None:
        """No actions is a no-op."""
        assert await run_actions([], _DESCRIPTOR, tmp_path) == 0


# ---------------------------------------------------------------------------
# merge_actions / as_action
# ---------------------------------------------------------------------------


class TestMergeActions:
    """Caller actions come before discovered hooks."""

    def test_caller_first(self) -> None:
        """Caller actions precede discovered ones."""
        log: list[str] = []
        caller = [_recording(log, 'c1'), _recording(log, 'c2')]
        discovered = [_recording(log, 'd1')]
        merged = merge_actions(caller, discovered)
        assert [a.label for a in merged] == ['c1', 'c2', 'd1']

    def test_same_object_once(self) -> None:
        """An action present in both lists is kept once."""
        shared = _recording([], 'shared')
        assert merge_actions([shared], [shared]) == [shared]

    def test_as_action_wraps_callables(self) -> None:
        """Bare callables become unconditional actions."""

        def post(descriptor: PackageDescriptor, package_path: Path) -> None:
            pass

        action = as_action(post)
        assert action.condition is None
        assert action.label == 'post'
        assert as_action(action) is action

    def test_as_action_rejects_values(self) -> None:
        """Non-callables raise TypeError."""
        with pytest.raises(TypeError):
            as_action('echo hi')


# ---------------------------------------------------------------------------
# Built-in actions
# ---------------------------------------------------------------------------


class TestShellAction:
    """shell_action runs a command in the package directory."""

    @pytest.mark.asyncio
    async def test_runs_in_package(self, tmp_path: Path) -> None:
        """The command runs with the package as its working directory."""
        runner = RecordingRunner()
        with patch('workspacekit.actions.run_command', runner):
            await run_actions([shell_action('node build.js')], _DESCRIPTOR, tmp_path)
        assert runner.commands == ['node build.js']
        assert runner.calls[0].cwd == tmp_path

    @pytest.mark.asyncio
    async def test_failure(self, tmp_path: Path) -> None:
        """A non-zero exit raises ExternalProcessFailure."""
        runner = RecordingRunner(failures={'build': 2})
        with patch('workspacekit.actions.run_command', runner), pytest.raises(ExternalProcessFailure) as exc_info:
            await run_actions([shell_action('node build.js')], _DESCRIPTOR, tmp_path)
        assert exc_info.value.return_code == 2
        assert exc_info.value.package == 'core'


class TestInstallTypings:
    """install_typings runs the typings tool."""

    @pytest.mark.asyncio
    async def test_runs_with_typings_json(self, tmp_path: Path) -> None:
        """typings install runs in packages with a typings.json."""
        (tmp_path / 'typings.json').write_text('{}')
        runner = RecordingRunner()
        with patch('workspacekit.actions.run_command', runner):
            assert await run_actions([install_typings()], _DESCRIPTOR, tmp_path) == 1
        assert runner.commands == ['typings install']
        assert runner.calls[0].cwd == tmp_path

    @pytest.mark.asyncio
    async def test_skipped_without_typings_json(self, tmp_path: Path) -> None:
        """Nothing runs when the package has no typings.json."""
        runner = RecordingRunner()
        with patch('workspacekit.actions.run_command', runner):
            assert await run_actions([install_typings()], _DESCRIPTOR, tmp_path) == 0
        assert runner.commands == []

    @pytest.mark.asyncio
    async def test_failure(self, tmp_path: Path) -> None:
        """A failing typings install raises ExternalProcessFailure."""
        (tmp_path / 'typings.json').write_text('{}')
        runner = RecordingRunner(failures={'typings': 1})
        with patch('workspacekit.actions.run_command', runner), pytest.raises(ExternalProcessFailure):
            await run_actions([install_typings()], _DESCRIPTOR, tmp_path)


class TestLinkTypings:
    """link_typings links local typing files."""

    def test_references(self) -> None:
        """Only file: references are returned."""
        typings = {
            'globalDependencies': {'node': 'file:../typings/node.d.ts', 'lodash': 'registry:dt/lodash#4.0.0'},
            'dependencies': {'util': 'file:./local/util.d.ts'},
        }
        assert typing_file_references(typings) == {'node': '../typings/node.d.ts', 'util': './local/util.d.ts'}

    @pytest.mark.asyncio
    async def test_links_files(self, tmp_path: Path) -> None:
        """Each reference is linked as <target>/<name>/<name>.d.ts."""
        shared = tmp_path / 'shared'
        shared.mkdir()
        (shared / 'node.d.ts').write_text('declare var x: number;')
        package = tmp_path / 'core'
        package.mkdir()
        (package / 'typings.json').write_text(json.dumps({'globalDependencies': {'node': 'file:../shared/node.d.ts'}}))
        stale = package / 'typings' / 'old'
        stale.mkdir(parents=True)

        await run_actions([link_typings()], _DESCRIPTOR, package)

        link = package / 'typings' / 'node' / 'node.d.ts'
        assert link.is_symlink()
        assert link.read_text() == 'declare var x: number;'
        assert not stale.exists()

    @pytest.mark.asyncio
    async def test_skipped_without_typings_json(self, tmp_path: Path) -> None:
        """Packages without typings.json are left alone."""
        assert await run_actions([link_typings()], _DESCRIPTOR, tmp_path) == 0
        assert not (tmp_path / 'typings').exists()
