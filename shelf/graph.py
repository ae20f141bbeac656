"""Dependency graph construction and deterministic install ordering."""

from __future__ import annotations

import heapq
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Sequence, Set, Tuple

from .logging import get_logger
from .models import Package


class ResolutionError(RuntimeError):
    """Raised when the package set cannot be ordered for installation."""


class UnresolvedDependencyError(ResolutionError):
    """A package references a path that no loaded package lives at."""

    def __init__(self, package: str, path: Path) -> None:
        super().__init__(f"package '{package}' depends on '{path}', which is not a known package")
        self.package = package
        self.path = path


class DependencyCycleError(ResolutionError):
    """The dependency relation contains one or more cycles."""

    def __init__(self, cycles: Sequence[Sequence[str]]) -> None:
        self.cycles = [list(cycle) for cycle in cycles]
        rendered = "; ".join(" -> ".join(cycle + [cycle[0]]) for cycle in self.cycles)
        super().__init__(f"dependency cycle detected: {rendered}")


@dataclass(frozen=True)
class InstallPlan:
    """Package names in install order; every dependency precedes its dependents."""

    order: Tuple[str, ...]

    def __iter__(self) -> Iterator[str]:
        return iter(self.order)

    def __len__(self) -> int:
        return len(self.order)

    def index(self, name: str) -> int:
        return self.order.index(name)


class DependencyGraph:
    """Directed "depends on" graph over packages, keyed by package name.

    Built once per run and read-only afterwards. Declaration order (the order
    packages were handed to :meth:`build`) is the stable tie-break used when
    ordering independent packages.
    """

    def __init__(
        self,
        packages: Dict[str, Package],
        edges: Dict[str, Tuple[str, ...]],
    ) -> None:
        self._packages = packages
        self._edges = edges
        self._rank = {name: index for index, name in enumerate(packages)}
        dependents: Dict[str, List[str]] = {name: [] for name in packages}
        for name, deps in edges.items():
            for dep in deps:
                dependents[dep].append(name)
        self._dependents = {name: tuple(items) for name, items in dependents.items()}
        self.logger = get_logger("graph")

    @classmethod
    def build(cls, packages: Sequence[Package]) -> "DependencyGraph":
        """Index ``packages`` and validate every dependency reference."""
        by_name: Dict[str, Package] = {}
        by_path: Dict[Path, str] = {}
        for package in packages:
            if package.name in by_name:
                raise ResolutionError(f"duplicate package name '{package.name}'")
            by_name[package.name] = package
            by_path[package.path] = package.name

        edges: Dict[str, Tuple[str, ...]] = {}
        for package in packages:
            targets: List[str] = []
            for ref in package.dependencies:
                target = by_path.get(ref.path)
                if target is None:
                    raise UnresolvedDependencyError(package.name, ref.path)
                if target not in targets:
                    targets.append(target)
            edges[package.name] = tuple(targets)

        return cls(by_name, edges)

    # ------------------------------------------------------------------
    # Queries

    def __contains__(self, name: object) -> bool:
        return name in self._packages

    def __len__(self) -> int:
        return len(self._packages)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._packages)

    def package(self, name: str) -> Package:
        return self._packages[name]

    def dependencies(self, name: str) -> Tuple[str, ...]:
        return self._edges[name]

    def dependents(self, name: str) -> Tuple[str, ...]:
        return self._dependents[name]

    def transitive_dependents(self, name: str) -> Set[str]:
        found: Set[str] = set()
        stack = list(self._dependents[name])
        while stack:
            current = stack.pop()
            if current in found:
                continue
            found.add(current)
            stack.extend(self._dependents[current])
        return found

    # ------------------------------------------------------------------
    # Ordering

    def order(self) -> InstallPlan:
        """Return the install plan (Kahn's algorithm, declaration-order tie-break)."""
        indegree = {name: len(deps) for name, deps in self._edges.items()}
        ready = [self._rank[name] for name, degree in indegree.items() if degree == 0]
        heapq.heapify(ready)
        names = list(self._packages)
        order: List[str] = []

        while ready:
            name = names[heapq.heappop(ready)]
            order.append(name)
            for dependent in self._dependents[name]:
                indegree[dependent] -= 1
                if indegree[dependent] == 0:
                    heapq.heappush(ready, self._rank[dependent])

        if len(order) != len(names):
            placed = set(order)
            remaining = [name for name in names if name not in placed]
            raise DependencyCycleError(self._cycles(remaining))

        self.logger.debug("Install order: %s", ", ".join(order))
        return InstallPlan(tuple(order))

    def _cycles(self, remaining: Sequence[str]) -> List[List[str]]:
        """Strongly connected components among ``remaining`` that form cycles."""
        members = set(remaining)
        index_of: Dict[str, int] = {}
        lowlink: Dict[str, int] = {}
        on_stack: Set[str] = set()
        stack: List[str] = []
        components: List[List[str]] = []
        counter = 0

        def visit(node: str) -> None:
            nonlocal counter
            index_of[node] = lowlink[node] = counter
            counter += 1
            stack.append(node)
            on_stack.add(node)
            for dep in self._edges[node]:
                if dep not in members:
                    continue
                if dep not in index_of:
                    visit(dep)
                    lowlink[node] = min(lowlink[node], lowlink[dep])
                elif dep in on_stack:
                    lowlink[node] = min(lowlink[node], index_of[dep])
            if lowlink[node] == index_of[node]:
                component: List[str] = []
                while True:
                    item = stack.pop()
                    on_stack.discard(item)
                    component.append(item)
                    if item == node:
                        break
                components.append(component)

        for node in remaining:
            if node not in index_of:
                visit(node)

        cycles = [
            sorted(component, key=self._rank.__getitem__)
            for component in components
            if len(component) > 1 or component[0] in self._edges[component[0]]
        ]
        cycles.sort(key=lambda cycle: self._rank[cycle[0]])
        return cycles


def resolve(packages: Sequence[Package]) -> Tuple[DependencyGraph, InstallPlan]:
    """Build the dependency graph for ``packages`` and compute the install plan."""
    graph = DependencyGraph.build(packages)
    return graph, graph.order()


__all__ = [
    "DependencyCycleError",
    "DependencyGraph",
    "InstallPlan",
    "ResolutionError",
    "UnresolvedDependencyError",
    "resolve",
]
