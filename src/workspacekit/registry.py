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

"""Package registry and ordering collector.

The registry is filled while the workspace is discovered and drained
once discovery has finished, because an order cannot be computed from a
partial graph.

Data Flow::

    discovery                 PackageRegistry                  stages
    ┌──────────────┐   add_package()   ┌──────────────────┐   collect()
    │ package.json │──────────────────→│ records  (name → │──────────────→ ordered
    │ package.json │  add_package_     │   PackageRecord) │   records
    │ ...          │  dependencies()   │ graph  (names +  │
    └──────────────┘──────────────────→│   edges)         │
                                       └──────────────────┘

External dependencies (``lodash``) become graph nodes without a record;
:meth:`PackageRegistry.collect` skips them. Manifests flagged as the
workspace root are never recorded, so they are never emitted either.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

from workspacekit._types import PackageFile, PackageRecord
from workspacekit.descriptor import PackageDescriptor
from workspacekit.graph import DependencyGraph
from workspacekit.logging import get_logger

logger = get_logger(__name__)


class PackageRegistry:
    """Collects workspace members and the dependencies between them.

    Args:
        peer_dependency_edges: Let ``peerDependencies`` contribute
            ordering edges. Off by default; peers are still linked by
            the install stage.
    """

    def __init__(self, *, peer_dependency_edges: bool = False) -> None:
        """Create an empty registry."""
        self.graph = DependencyGraph()
        self.peer_dependency_edges = peer_dependency_edges
        self._records: dict[str, PackageRecord] = {}

    def __len__(self) -> int:
        """Return the number of recorded packages."""
        return len(self._records)

    def __contains__(self, name: object) -> bool:
        """Return whether ``name`` is a recorded workspace member."""
        return name in self._records

    def get(self, name: str) -> PackageRecord | None:
        """Return the record for ``name``, or ``None``."""
        return self._records.get(name)

    @property
    def names(self) -> list[str]:
        """Recorded package names, in discovery order."""
        return list(self._records)

    def add_package(self, descriptor: PackageDescriptor, file: PackageFile) -> bool:
        """Record a discovered package.

        Returns:
            ``False`` when the descriptor marks the workspace root and was
            ignored, ``True`` otherwise.
        """
        if descriptor.is_workspace:
            logger.debug('workspace_manifest_ignored', path=str(file.path))
            return False
        self.graph.add_node(descriptor.name)
        self._records[descriptor.name] = PackageRecord(name=descriptor.name, descriptor=descriptor, file=file)
        return True

    def add_package_dependency(self, descriptor: PackageDescriptor, dependency_name: str) -> None:
        """Record that ``descriptor``'s package depends on ``dependency_name``."""
        self.graph.add_node(dependency_name)
        self.graph.add_dependency(descriptor.name, dependency_name)

    def add_package_dependencies(self, descriptor: PackageDescriptor) -> None:
        """Record every ordering dependency a manifest declares.

        Regular, dev and optional dependencies always count; peer
        dependencies only with ``peer_dependency_edges``.
        """
        for name in descriptor.dependency_names(include_peer=self.peer_dependency_edges):
            self.add_package_dependency(descriptor, name)

    def ordered_names(self, starting_package: str | None = None) -> list[str]:
        """Return the traversal order, external names included.

        Raises:
            CycleDetected: If the requested order cannot be computed.
        """
        if starting_package:
            return [*self.graph.dependencies_of(starting_package), starting_package]
        return self.graph.overall_order()

    def collect(
        self,
        starting_package: str | None = None,
        transform: Callable[[PackageRecord], PackageRecord] | None = None,
    ) -> Iterator[PackageRecord]:
        """Yield recorded packages in dependency order.

        Args:
            starting_package: Yield only this package's dependency
                closure followed by the package itself.
            transform: Applied to each record before it is yielded.

        Raises:
            CycleDetected: If the requested order cannot be computed. The
                order is computed before anything is yielded.
        """
        order = self.ordered_names(starting_package)
        logger.debug('collect', start=starting_package, nodes=len(order))
        for name in order:
            record = self._records.get(name)
            if record is None:
                continue
            yield transform(record) if transform else record


__all__ = [
    'PackageRegistry',
]
