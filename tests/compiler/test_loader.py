"""Tests for manifest evaluation and package-set loading."""

from __future__ import annotations

import pytest

from shelf.compiler import CompilationError, CompilationErrors, ManifestLoader
from shelf.compiler.loader import directive_arg
from shelf.models import FileDirective, FnDirective, LinkType, PackageRef, TreeDirective
from tests._fixtures.package_builder import PackageTreeBuilder


def test_directive_arg_call_shapes() -> None:
    assert directive_arg(("a.txt",), {}).bare is True
    assert directive_arg(("a.txt",), {"optional": True}).named == {"optional": True}

    unpacked = directive_arg((["conf", ".config"],), {"ignore": "*.log"})
    assert unpacked.positional == ("conf", ".config")
    assert unpacked.bare is False


def test_compile_source_builds_package(packages: PackageTreeBuilder) -> None:
    loader = ManifestLoader()
    package = loader.compile_source(
        """
name("zsh")
dep("../base")("../fonts")
file("zshrc", ".zshrc")
copy("e.txt", "f.txt")
tree(["conf", ".config"], ignore="**/*.log")
str("motd", "hello")
json("settings.json", {"theme": "dark"})
""",
        packages.root / "zsh",
    )

    assert package.name == "zsh"
    assert package.path == packages.root / "zsh"
    assert package.dependencies == (
        PackageRef(packages.root / "base"),
        PackageRef(packages.root / "fonts"),
    )
    assert package.directives[0] == FileDirective(src="zshrc", dest=".zshrc")
    assert package.directives[1].link_type is LinkType.COPY
    assert package.directives[2] == TreeDirective(src="conf", dest=".config", ignore=("**/*.log",))
    assert [directive.kind for directive in package.directives] == [
        "file",
        "file",
        "tree",
        "str",
        "config",
    ]


def test_compiling_twice_yields_equal_packages(packages: PackageTreeBuilder) -> None:
    source = 'name("git")\nfile("gitconfig", ".gitconfig")\nmkdir("~/.cache/git")\n'
    loader = ManifestLoader()

    assert loader.compile_source(source, packages.root) == loader.compile_source(
        source, packages.root
    )


def test_manifest_functions_can_be_registered(packages: PackageTreeBuilder) -> None:
    package = ManifestLoader().compile_source(
        """
name("hooks")

def refresh(ctx):
    ctx.state["ran"] = True

fn(refresh, error_exit="warn")
""",
        packages.root,
    )

    (directive,) = package.directives
    assert isinstance(directive, FnDirective)
    assert directive.callback.__name__ == "refresh"


def test_directive_error_carries_manifest_and_position(packages: PackageTreeBuilder) -> None:
    path = packages.package("broken", 'name("broken")\nmkdir("out")\nyaml("settings.yml")\n')

    with pytest.raises(CompilationError) as excinfo:
        ManifestLoader().compile_path(path)

    error = excinfo.value
    assert error.manifest == path / "package.py"
    assert error.directive == "yaml"
    assert error.index == 2
    assert str(error).endswith("yaml directive #2: yaml values was not provided")


def test_script_errors_become_compilation_errors(packages: PackageTreeBuilder) -> None:
    path = packages.package("typo", 'name("typo")\nfiel("a")\n')

    with pytest.raises(CompilationError, match="NameError"):
        ManifestLoader().compile_path(path)


def test_load_follows_dependencies_breadth_first(packages: PackageTreeBuilder) -> None:
    packages.package("a", 'name("a")\ndep("../b", "../c")\n')
    packages.package("b", 'name("b")\ndep("../d")\n')
    packages.package("c", 'name("c")\n')
    packages.package("d", 'name("d")\n')

    loaded = ManifestLoader().load([packages.root / "a"])

    assert [package.name for package in loaded] == ["a", "b", "c", "d"]


def test_load_accepts_manifest_paths_and_deduplicates(packages: PackageTreeBuilder) -> None:
    a = packages.package("a", 'name("a")\ndep("../b")\n')
    b = packages.package("b", 'name("b")\n')

    loaded = ManifestLoader().load([a / "package.py", b])

    assert [package.name for package in loaded] == ["a", "b"]


def test_load_leaves_missing_dependency_for_resolver(packages: PackageTreeBuilder) -> None:
    packages.package("a", 'name("a")\ndep("../missing")\n')

    loaded = ManifestLoader().load([packages.root / "a"])

    assert [package.name for package in loaded] == ["a"]


def test_load_reports_missing_root_manifest(packages: PackageTreeBuilder) -> None:
    (packages.root / "empty").mkdir()

    with pytest.raises(CompilationError, match="manifest not found"):
        ManifestLoader().load([packages.root / "empty"])


def test_load_rejects_duplicate_names(packages: PackageTreeBuilder) -> None:
    packages.package("one", 'name("dup")\n')
    packages.package("two", 'name("dup")\n')

    with pytest.raises(CompilationError, match="duplicate package name 'dup'"):
        ManifestLoader().load([packages.root / "one", packages.root / "two"])


def test_keep_going_collects_every_error(packages: PackageTreeBuilder) -> None:
    packages.package("bad1", 'name("bad1")\nfile()\n')
    packages.package("good", 'name("good")\n')
    packages.package("bad2", 'mkdir("x")\n')

    roots = [packages.root / "bad1", packages.root / "good", packages.root / "bad2"]
    with pytest.raises(CompilationErrors) as excinfo:
        ManifestLoader().load(roots, keep_going=True)

    errors = excinfo.value.errors
    assert len(errors) == 2
    assert errors[0].manifest == packages.root / "bad1" / "package.py"
    assert "name was not provided" in str(errors[1])


def test_custom_manifest_name(packages: PackageTreeBuilder) -> None:
    target = packages.root / "custom"
    packages.write({"custom/shelf.py": 'name("custom")\n'})

    loaded = ManifestLoader("shelf.py").load([target])

    assert [package.name for package in loaded] == ["custom"]
