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

"""Dependency graph over workspace package names.

Nodes are package names; an edge ``A → B`` means "A depends on B". Nodes
are created for every discovered package and for every name a package
depends on, so external packages (``lodash``) are nodes too. They have no
location record in the registry and are skipped when packages are
emitted.

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ ELI5 Explanation                            │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Dependency graph        │ A map of "who needs what". If package A    │
    │                         │ depends on B, draw an arrow A → B.         │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Overall order           │ Every package, each one after everything   │
    │                         │ it depends on. Install the floor before    │
    │                         │ the walls.                                 │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ dependencies_of(A)      │ Everything A needs, directly or through    │
    │                         │ others, in the order they must be built.   │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Cycle                   │ A→B→C→A. Nobody can go first, so ordering  │
    │                         │ fails and the cycle path is reported.      │
    └─────────────────────────┴─────────────────────────────────────────────┘

Ordering (depth-first post-order)::

    add order: a, b, c        edges: a → b, b → c

    visit(a)
      visit(b)
        visit(c)   → emit c
                   → emit b
                   → emit a

    overall_order()     == ['c', 'b', 'a']
    dependencies_of(a)  == ['c', 'b']

Roots are visited in node insertion order and edges in the order they
were added, so the same insertion sequence always yields the same order.
Cycles are found lazily, while ordering, never at insertion time.
"""

from __future__ import annotations

from collections.abc import Iterator

from workspacekit.errors import CycleDetected, E, WorkspaceKitError
from workspacekit.logging import get_logger

logger = get_logger(__name__)


class DependencyGraph:
    """A directed graph of package dependencies.

    Edges point from dependants to their dependencies. Adding a node or
    an edge twice has no further effect. Nodes are never removed.
    """

    def __init__(self) -> None:
        """Create an empty graph."""
        # Dict keys double as insertion-ordered sets.
        self._edges: dict[str, dict[str, None]] = {}

    @property
    def nodes(self) -> list[str]:
        """All node names, in insertion order."""
        return list(self._edges)

    def __contains__(self, name: object) -> bool:
        """Return whether ``name`` is a node of the graph."""
        return name in self._edges

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self._edges)

    def __iter__(self) -> Iterator[str]:
        """Iterate over node names in insertion order."""
        return iter(self._edges)

    def add_node(self, name: str) -> None:
        """Insert ``name`` if it is not already a node."""
        self._edges.setdefault(name, {})

    def add_dependency(self, from_name: str, to_name: str) -> None:
        """Record that ``from_name`` depends on ``to_name``.

        Both nodes are created if missing.
        """
        self.add_node(from_name)
        self.add_node(to_name)
        self._edges[from_name][to_name] = None

    def direct_dependencies(self, name: str) -> list[str]:
        """Return the names ``name`` depends on directly, in insertion order."""
        self._require(name)
        return list(self._edges[name])

    def dependencies_of(self, name: str) -> list[str]:
        """Return every transitive dependency of ``name`` in build order.

        Every dependency of a dependency appears before the thing that
        depends on it. ``name`` itself is not included.

        Args:
            name: The package to start from.

        Returns:
            Transitive dependency names, each exactly once.

        Raises:
            CycleDetected: If a cycle is reachable from ``name``.
            WorkspaceKitError: If ``name`` is not a node.
        """
        self._require(name)
        order: list[str] = []
        self._visit(name, order, set())
        order.pop()
        return order

    def overall_order(self) -> list[str]:
        """Return every node such that each edge ``A → B`` puts B before A.

        Raises:
            CycleDetected: If the graph contains a cycle.
        """
        order: list[str] = []
        done: set[str] = set()
        for name in self._edges:
            if name not in done:
                self._visit(name, order, done)
        logger.debug('overall_order_complete', nodes=len(order))
        return order

    def _require(self, name: str) -> None:
        if name not in self._edges:
            raise WorkspaceKitError(
                code=E.GRAPH_UNKNOWN_NODE,
                message=f"Package '{name}' is not part of the workspace graph",
                hint="Check the package name passed with '--package'.",
            )

    def _visit(self, start: str, order: list[str], done: set[str]) -> None:
        """Depth-first post-order walk from ``start`` with an explicit stack.

        ``path`` mirrors the stack so a back edge can report its cycle.
        Nodes finished in earlier walks (``done``) are not entered again.
        """
        if start in done:
            return
        path = [start]
        on_path = {start}
        pending: list[Iterator[str]] = [iter(self._edges[start])]
        while pending:
            dep = next(pending[-1], None)
            if dep is None:
                pending.pop()
                finished = path.pop()
                on_path.discard(finished)
                done.add(finished)
                order.append(finished)
                continue
            if dep in done:
                continue
            if dep in on_path:
                raise CycleDetected([*path[path.index(dep) :], dep])
            path.append(dep)
            on_path.add(dep)
            pending.append(iter(self._edges[dep]))


__all__ = [
    'DependencyGraph',
]
