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

"""Tests for the filter, script and test stages."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from workspacekit.errors import E, PipelineHalted
from workspacekit.logging import configure_logging
from workspacekit.stage import drain, pipe
from workspacekit.stages import filter_packages, npm_script, requires_dependency, run_cucumber
from workspacekit.stages.cucumber import find_cucumber, find_features, support_paths

from tests._fakes import RecordingRunner, manifest_file, source

configure_logging(quiet=True)


def _names(items: list) -> list[str]:
    return [item.descriptor().name for item in items]


# ---------------------------------------------------------------------------
# filter_packages
# ---------------------------------------------------------------------------


class TestFilter:
    """filter_packages and requires_dependency."""

    @pytest.mark.asyncio
    async def test_requires_dependency(self, tmp_path: Path) -> None:
        """Packages declaring x in dependencies or devDependencies pass; others are dropped."""
        items = [
            manifest_file(tmp_path, 'runtime', 'runtime', dependencies={'x': '^1.0.0'}),
            manifest_file(tmp_path, 'tooling', 'tooling', devDependencies={'x': '^1.0.0'}),
            manifest_file(tmp_path, 'peer', 'peer', peerDependencies={'x': '^1.0.0'}),
            manifest_file(tmp_path, 'none', 'none', dependencies={'y': '^1.0.0'}),
        ]
        out = await drain(pipe(source(items), filter_packages(requires_dependency('x'), root=tmp_path)))
        assert _names(out) == ['runtime', 'tooling']

    @pytest.mark.asyncio
    async def test_custom_predicate(self, tmp_path: Path) -> None:
        """Any (descriptor, path) predicate works."""
        items = [manifest_file(tmp_path, 'web', 'web'), manifest_file(tmp_path, 'cli', 'cli')]
        out = await drain(pipe(source(items), filter_packages(lambda d, p: p.name == 'cli', root=tmp_path)))
        assert _names(out) == ['cli']


# ---------------------------------------------------------------------------
# npm_script
# ---------------------------------------------------------------------------


class TestScript:
    """npm_script."""

    @pytest.mark.asyncio
    async def test_runs_script_through_shell(self, tmp_path: Path) -> None:
        """The script text runs in the package directory."""
        runner = RecordingRunner(stdout='linted\n')
        items = [manifest_file(tmp_path, 'core', 'core', scripts={'lint': 'eslint src'})]
        with patch('workspacekit.stages.script.run_command', runner):
            out = await drain(pipe(source(items), npm_script('lint', root=tmp_path)))
        assert _names(out) == ['core']
        assert runner.commands == ['eslint src']
        assert runner.calls[0].cwd == tmp_path / 'core'

    @pytest.mark.asyncio
    async def test_missing_script_ignored(self, tmp_path: Path) -> None:
        """Packages without the script are skipped by default."""
        runner = RecordingRunner()
        items = [manifest_file(tmp_path, 'core', 'core')]
        with patch('workspacekit.stages.script.run_command', runner):
            out = await drain(pipe(source(items), npm_script('lint', root=tmp_path)))
        assert _names(out) == ['core']
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_missing_script_halts(self, tmp_path: Path) -> None:
        """With ignore_missing_script off a missing script stops the run."""
        items = [manifest_file(tmp_path, 'core', 'core')]
        with pytest.raises(PipelineHalted) as exc_info:
            await drain(pipe(source(items), npm_script('lint', root=tmp_path, ignore_missing_script=False)))
        assert exc_info.value.cause.code is E.PACKAGE_SCRIPT_MISSING

    @pytest.mark.asyncio
    async def test_failing_script_continues(self, tmp_path: Path) -> None:
        """A failing script is logged and the next package still runs."""
        runner = RecordingRunner(failures={'false': 1})
        items = [
            manifest_file(tmp_path, 'a', 'a', scripts={'check': 'false'}),
            manifest_file(tmp_path, 'b', 'b', scripts={'check': 'true'}),
        ]
        with patch('workspacekit.stages.script.run_command', runner):
            out = await drain(pipe(source(items), npm_script('check', root=tmp_path)))
        assert _names(out) == ['a', 'b']
        assert runner.commands == ['false', 'true']


# ---------------------------------------------------------------------------
# run_cucumber
# ---------------------------------------------------------------------------


def _cucumber(base: Path) -> Path:
    script = base / 'node_modules' / '@cucumber' / 'cucumber' / 'bin' / 'cucumber-js'
    script.parent.mkdir(parents=True)
    script.write_text('', encoding='utf-8')
    return script


class TestCucumberLayout:
    """Lookup helpers."""

    def test_package_cucumber_preferred(self, tmp_path: Path) -> None:
        """The package's own install wins over the root's."""
        package = tmp_path / 'core'
        _cucumber(tmp_path)
        own = _cucumber(package)
        assert find_cucumber(package, tmp_path) == own

    def test_legacy_cucumber(self, tmp_path: Path) -> None:
        """The pre-scope cucumber package is found at the root."""
        legacy = tmp_path / 'node_modules' / 'cucumber' / 'bin' / 'cucumber.js'
        legacy.parent.mkdir(parents=True)
        legacy.write_text('', encoding='utf-8')
        assert find_cucumber(tmp_path / 'core', tmp_path) == legacy

    def test_features_and_support(self, tmp_path: Path) -> None:
        """Nested features folders and support code are found."""
        (tmp_path / 'test' / 'features').mkdir(parents=True)
        (tmp_path / 'test' / 'step_definitions').mkdir()
        (tmp_path / 'support').mkdir()
        assert find_features(tmp_path) == tmp_path / 'test' / 'features'
        assert support_paths(tmp_path) == [tmp_path / 'support', tmp_path / 'test' / 'step_definitions']


class TestRunCucumber:
    """run_cucumber."""

    @pytest.mark.asyncio
    async def test_runs_features(self, tmp_path: Path) -> None:
        """Cucumber runs under node with every support folder."""
        script = _cucumber(tmp_path)
        items = [manifest_file(tmp_path, 'core', 'core')]
        package = tmp_path / 'core'
        (package / 'features').mkdir()
        (package / 'support').mkdir()
        runner = RecordingRunner()

        with patch('workspacekit.stages.cucumber.run_command', runner):
            await drain(pipe(source(items), run_cucumber(root=tmp_path)))

        expected = ['node', str(script), str(package / 'features'), '-r', str(package / 'support')]
        assert runner.calls[0].command == expected
        assert runner.calls[0].cwd == package

    @pytest.mark.asyncio
    async def test_no_features(self, tmp_path: Path) -> None:
        """Packages without features are skipped."""
        _cucumber(tmp_path)
        runner = RecordingRunner()
        with patch('workspacekit.stages.cucumber.run_command', runner):
            out = await drain(pipe(source([manifest_file(tmp_path, 'core', 'core')]), run_cucumber(root=tmp_path)))
        assert _names(out) == ['core']
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_cucumber_missing(self, tmp_path: Path) -> None:
        """A workspace without cucumber fails the package."""
        items = [manifest_file(tmp_path, 'core', 'core')]
        with pytest.raises(PipelineHalted) as exc_info:
            await drain(pipe(source(items), run_cucumber(root=tmp_path, continue_on_error=False)))
        assert 'cucumber is not installed' in str(exc_info.value)
