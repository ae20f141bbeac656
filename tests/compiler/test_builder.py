"""Tests for the per-manifest PackageBuilder."""

from __future__ import annotations

from pathlib import Path

import pytest

from shelf.compiler import CompilationError, DirectiveArg, PackageBuilder
from shelf.models import (
    CaptureMode,
    CmdDirective,
    ConfigDirective,
    ConfigFormat,
    ExitPolicy,
    FileDirective,
    LinkType,
    PackageRef,
    TemplateDirective,
    TemplateEngine,
    TreeDirective,
)


def _builder(tmp_path: Path) -> PackageBuilder:
    builder = PackageBuilder(tmp_path / "pkg")
    builder.set_name("pkg")
    return builder


def test_link_and_copy_force_link_type(tmp_path: Path) -> None:
    builder = _builder(tmp_path)
    builder.copy(DirectiveArg.record("a", "b", type="link"))
    builder.link(DirectiveArg.primary("c"))

    package = builder.finish()

    assert package.directives == (
        FileDirective(src="a", dest="b", link_type=LinkType.COPY),
        FileDirective(src="c", link_type=LinkType.LINK),
    )


def test_tree_defaults(tmp_path: Path) -> None:
    builder = _builder(tmp_path)
    builder.tree(DirectiveArg.primary("conf"))

    (directive,) = builder.finish().directives

    assert directive == TreeDirective(src="conf")
    assert directive.globs == ()
    assert directive.ignore == ()


def test_template_dispatches_on_engine(tmp_path: Path) -> None:
    builder = _builder(tmp_path)
    builder.template(
        DirectiveArg.record("gitconfig.hbs", ".gitconfig", engine="handlebars", vars={"user": "kim"})
    )
    builder.template(DirectiveArg.record("a.liquid", "a", engine="liquid", vars={}))

    first, second = builder.finish().directives

    assert isinstance(first, TemplateDirective)
    assert first.engine is TemplateEngine.HANDLEBARS
    assert first.vars == {"user": "kim"}
    assert second.engine is TemplateEngine.LIQUID


def test_template_rejects_unknown_engine(tmp_path: Path) -> None:
    builder = _builder(tmp_path)
    builder.mkdir(DirectiveArg.primary("out"))

    with pytest.raises(CompilationError) as excinfo:
        builder.template(DirectiveArg.record("a", "b", engine="mustache", vars={}))

    assert excinfo.value.directive == "template"
    assert excinfo.value.index == 2
    assert excinfo.value.field == "engine"


def test_template_requires_engine(tmp_path: Path) -> None:
    builder = _builder(tmp_path)

    with pytest.raises(CompilationError, match="engine was not provided"):
        builder.template(DirectiveArg.record("a", "b", vars={}))


def test_hbs_requires_vars(tmp_path: Path) -> None:
    builder = _builder(tmp_path)

    with pytest.raises(CompilationError, match="hbs vars was not provided"):
        builder.hbs(DirectiveArg.record("a", "b"))


def test_yaml_header_and_json_format(tmp_path: Path) -> None:
    builder = _builder(tmp_path)
    builder.yaml(DirectiveArg.record("settings.yml", {"key": "value"}, header="# generated"))
    builder.json(DirectiveArg.record("settings.json", {"key": 1}))

    yaml_directive, json_directive = builder.finish().directives

    assert yaml_directive == ConfigDirective(
        dest="settings.yml", values={"key": "value"}, format=ConfigFormat.YAML, header="# generated"
    )
    assert json_directive.format is ConfigFormat.JSON


def test_json_does_not_take_header(tmp_path: Path) -> None:
    builder = _builder(tmp_path)

    with pytest.raises(CompilationError, match="unknown field 'header'"):
        builder.json(DirectiveArg.record("a.json", {}, header="x"))


def test_cmd_bare_uses_defaults(tmp_path: Path) -> None:
    builder = _builder(tmp_path)
    builder.cmd(DirectiveArg.primary("echo hi"))

    (directive,) = builder.finish().directives

    assert directive == CmdDirective(command="echo hi")
    assert directive.stdout is CaptureMode.INHERIT
    assert directive.nonzero_exit is ExitPolicy.FAIL


def test_dep_resolves_relative_to_package_and_strips_manifest(tmp_path: Path) -> None:
    builder = _builder(tmp_path)
    builder.dep("../base", ["../shell/package.py"]).dep("/abs/tools")

    package = builder.finish()

    assert package.dependencies == (
        PackageRef(tmp_path / "base"),
        PackageRef(tmp_path / "shell"),
        PackageRef(Path("/abs/tools")),
    )


def test_dep_rejects_non_paths(tmp_path: Path) -> None:
    builder = _builder(tmp_path)

    with pytest.raises(CompilationError, match="dependency path must be a string"):
        builder.dep(42)


def test_name_may_only_be_set_once(tmp_path: Path) -> None:
    builder = _builder(tmp_path)

    with pytest.raises(CompilationError, match="already set"):
        builder.set_name("other")


def test_finish_requires_name(tmp_path: Path) -> None:
    builder = PackageBuilder(tmp_path)

    with pytest.raises(CompilationError, match="name was not provided"):
        builder.finish()


def test_fn_callbacks_do_not_affect_equality(tmp_path: Path) -> None:
    first = _builder(tmp_path)
    second = _builder(tmp_path)
    first.fn(DirectiveArg.primary(lambda ctx: None))
    second.fn(DirectiveArg.primary(lambda ctx: None))

    assert first.finish() == second.finish()
