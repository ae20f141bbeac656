"""Tests for dependency resolution and install ordering."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pytest

from shelf.graph import (
    DependencyCycleError,
    DependencyGraph,
    ResolutionError,
    UnresolvedDependencyError,
    resolve,
)
from shelf.models import Package, PackageRef

ROOT = Path("/pkgs")


def _pkg(name: str, deps: Sequence[str] = ()) -> Package:
    return Package(
        name=name,
        path=ROOT / name,
        dependencies=tuple(PackageRef(ROOT / dep) for dep in deps),
    )


def test_dependency_precedes_dependent() -> None:
    _, plan = resolve([_pkg("A", ["B"]), _pkg("B")])

    assert list(plan) == ["B", "A"]


def test_independent_packages_keep_declaration_order() -> None:
    _, plan = resolve([_pkg("c"), _pkg("a"), _pkg("b")])

    assert list(plan) == ["c", "a", "b"]


def test_every_edge_is_respected_in_a_diamond() -> None:
    packages = [
        _pkg("app", ["lib", "cli"]),
        _pkg("cli", ["core"]),
        _pkg("lib", ["core"]),
        _pkg("core"),
        _pkg("extra"),
    ]

    graph, plan = resolve(packages)

    for package in packages:
        for dep in graph.dependencies(package.name):
            assert plan.index(dep) < plan.index(package.name)
    assert list(plan) == ["core", "cli", "lib", "app", "extra"]


def test_order_is_deterministic() -> None:
    packages = [_pkg("x", ["z"]), _pkg("y", ["z"]), _pkg("z"), _pkg("w", ["x", "y"])]

    first = [list(resolve(packages)[1]) for _ in range(5)]

    assert all(order == first[0] for order in first)


def test_duplicate_references_collapse_to_one_edge() -> None:
    graph = DependencyGraph.build([_pkg("a", ["b", "b"]), _pkg("b")])

    assert graph.dependencies("a") == ("b",)
    assert graph.dependents("b") == ("a",)


def test_unresolved_reference_names_package_and_path() -> None:
    with pytest.raises(UnresolvedDependencyError) as excinfo:
        resolve([_pkg("a", ["ghost"])])

    assert excinfo.value.package == "a"
    assert excinfo.value.path == ROOT / "ghost"
    assert isinstance(excinfo.value, ResolutionError)


def test_cycle_reports_every_member_but_not_blocked_packages() -> None:
    packages = [
        _pkg("top", ["a"]),
        _pkg("a", ["b"]),
        _pkg("b", ["c"]),
        _pkg("c", ["a"]),
        _pkg("free"),
    ]

    with pytest.raises(DependencyCycleError) as excinfo:
        resolve(packages)

    assert excinfo.value.cycles == [["a", "b", "c"]]
    assert "a -> b -> c -> a" in str(excinfo.value)


def test_self_dependency_is_a_cycle() -> None:
    with pytest.raises(DependencyCycleError) as excinfo:
        resolve([_pkg("loop", ["loop"])])

    assert excinfo.value.cycles == [["loop"]]


def test_disjoint_cycles_are_reported_separately() -> None:
    packages = [_pkg("p", ["q"]), _pkg("q", ["p"]), _pkg("r", ["s"]), _pkg("s", ["r"])]

    with pytest.raises(DependencyCycleError) as excinfo:
        resolve(packages)

    assert excinfo.value.cycles == [["p", "q"], ["r", "s"]]


def test_transitive_dependents() -> None:
    graph = DependencyGraph.build(
        [_pkg("base"), _pkg("mid", ["base"]), _pkg("leaf", ["mid"]), _pkg("other")]
    )

    assert graph.transitive_dependents("base") == {"mid", "leaf"}
