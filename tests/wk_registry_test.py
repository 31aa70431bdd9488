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

"""Tests for workspacekit.registry."""

from __future__ import annotations

from pathlib import Path

import pytest
from workspacekit._types import PackageFile, PackageRecord
from workspacekit.descriptor import PackageDescriptor
from workspacekit.errors import CycleDetected
from workspacekit.logging import configure_logging
from workspacekit.registry import PackageRegistry

configure_logging(quiet=True)


def _descriptor(name: str, **fields: object) -> PackageDescriptor:
    return PackageDescriptor({'name': name, 'version': '1.0.0', **fields})


def _file(name: str) -> PackageFile:
    return PackageFile(path=Path('/ws') / name / 'package.json', contents=b'{}')


def _registry(*descriptors: PackageDescriptor, peer_dependency_edges: bool = False) -> PackageRegistry:
    registry = PackageRegistry(peer_dependency_edges=peer_dependency_edges)
    for descriptor in descriptors:
        registry.add_package(descriptor, _file(descriptor.name or 'root'))
    for descriptor in descriptors:
        if not descriptor.is_workspace:
            registry.add_package_dependencies(descriptor)
    return registry


class TestAddPackage:
    """Recording packages."""

    def test_records_and_adds_node(self) -> None:
        """A package becomes a record and a graph node."""
        registry = _registry(_descriptor('core'))
        assert 'core' in registry
        assert 'core' in registry.graph
        assert registry.get('core') is not None

    @pytest.mark.parametrize('marker', ['isWorkspace', 'workspace'])
    def test_workspace_root_ignored(self, marker: str) -> None:
        """Either workspace marker keeps a manifest out of the registry."""
        registry = PackageRegistry()
        accepted = registry.add_package(_descriptor('root', **{marker: True}), _file('root'))
        assert accepted is False
        assert 'root' not in registry
        assert 'root' not in registry.graph
        assert list(registry.collect()) == []


class TestDependencies:
    """Dependency edges from manifests."""

    def test_union_of_sections(self) -> None:
        """dependencies, devDependencies and optionalDependencies all add edges."""
        registry = _registry(
            _descriptor(
                'app',
                dependencies={'a': '1'},
                devDependencies={'b': '1'},
                optionalDependencies={'c': '1'},
            ),
        )
        assert registry.graph.direct_dependencies('app') == ['a', 'b', 'c']

    def test_peer_dependencies_not_edges_by_default(self) -> None:
        """peerDependencies do not affect ordering unless enabled."""
        registry = _registry(_descriptor('plugin', peerDependencies={'host': '1'}))
        assert registry.graph.direct_dependencies('plugin') == []

    def test_peer_dependencies_as_edges(self) -> None:
        """peer_dependency_edges turns peers into edges."""
        registry = _registry(_descriptor('plugin', peerDependencies={'host': '1'}), peer_dependency_edges=True)
        assert registry.graph.direct_dependencies('plugin') == ['host']

    def test_single_dependency(self) -> None:
        """add_package_dependency adds the node and the edge."""
        registry = PackageRegistry()
        app = _descriptor('app')
        registry.add_package(app, _file('app'))
        registry.add_package_dependency(app, 'lodash')
        assert registry.graph.direct_dependencies('app') == ['lodash']


class TestCollect:
    """Ordered emission of records."""

    def test_external_dependencies_skipped(self) -> None:
        """Names without a record are not emitted."""
        registry = _registry(
            _descriptor('app', dependencies={'core': '1', 'lodash': '4'}),
            _descriptor('core', dependencies={'left-pad': '1'}),
        )
        assert [r.name for r in registry.collect()] == ['core', 'app']

    def test_starting_package(self) -> None:
        """A starting package yields its closure and then itself."""
        registry = _registry(
            _descriptor('a', dependencies={'b': '1'}),
            _descriptor('b', dependencies={'c': '1'}),
            _descriptor('c'),
            _descriptor('unrelated'),
        )
        assert [r.name for r in registry.collect('a')] == ['c', 'b', 'a']
        assert [r.name for r in registry.collect('c')] == ['c']

    def test_transform_applied(self) -> None:
        """Each record passes through the transform."""
        registry = _registry(_descriptor('core'))
        seen: list[str] = []

        def _transform(record: PackageRecord) -> PackageRecord:
            seen.append(record.name)
            return record

        list(registry.collect(transform=_transform))
        assert seen == ['core']

    def test_cycle_raises_before_yielding(self) -> None:
        """A cycle surfaces from the generator before any record."""
        registry = _registry(
            _descriptor('a', dependencies={'b': '1'}),
            _descriptor('b', dependencies={'a': '1'}),
        )
        with pytest.raises(CycleDetected):
            next(registry.collect())
