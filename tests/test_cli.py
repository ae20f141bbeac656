"""CLI parser and command behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from shelf.cli import _build_parser, main
from tests._fixtures.package_builder import PackageTreeBuilder


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "plan", "dots"])
    assert args.verbose is True
    assert args.command == "plan"
    assert args.paths == ["dots"]


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["install", "--verbose"])
    assert args.verbose is True
    assert args.paths == []


def test_cli_accepts_install_flags() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["install", "a", "b", "--dest", "/tmp/h", "--keep-going", "--no-overwrite", "--json"]
    )
    assert args.paths == ["a", "b"]
    assert args.dest == "/tmp/h"
    assert args.keep_going is True
    assert args.no_overwrite is True
    assert args.json is True


def test_cli_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args([])


def _config(packages: PackageTreeBuilder) -> list[str]:
    return ["--config", str(packages.root), "--dest", str(packages.home)]


def test_plan_prints_install_order(packages: PackageTreeBuilder, capsys: pytest.CaptureFixture[str]) -> None:
    app = packages.package("A", 'name("A")\ndep("../B")\n')
    packages.package("B", 'name("B")\n')

    main(["plan", str(app), *_config(packages)])

    assert capsys.readouterr().out.splitlines() == ["B", "A"]


def test_check_reports_package_count(packages: PackageTreeBuilder, capsys: pytest.CaptureFixture[str]) -> None:
    app = packages.package("A", 'name("A")\ndep("../B")\n')
    packages.package("B", 'name("B")\n')

    main(["check", str(app), "--json", *_config(packages)])

    assert json.loads(capsys.readouterr().out) == {"ok": True, "packages": 2}


def test_install_success_exits_zero(packages: PackageTreeBuilder, capsys: pytest.CaptureFixture[str]) -> None:
    root = packages.package("dots", 'name("dots")\nstr("hello", "world")\n')

    main(["install", str(root), *_config(packages)])

    assert (packages.home / "hello").read_text(encoding="utf-8") == "world"
    assert capsys.readouterr().out.startswith("[ok] dots: 1 directive(s), 1 changed")


def test_install_failure_exits_one(packages: PackageTreeBuilder, capsys: pytest.CaptureFixture[str]) -> None:
    root = packages.package("dots", 'name("dots")\nfile("missing")\n')

    with pytest.raises(SystemExit) as excinfo:
        main(["install", str(root), "--json", *_config(packages)])

    assert excinfo.value.code == 1
    data = json.loads(capsys.readouterr().out)
    assert data["ok"] is False
    assert data["packages"][0]["outcome"] == "failed"


def test_compilation_error_exits_two(packages: PackageTreeBuilder, capsys: pytest.CaptureFixture[str]) -> None:
    root = packages.package("bad", 'name("bad")\ntemplate("a", "b", engine="mustache", vars={})\n')

    with pytest.raises(SystemExit) as excinfo:
        main(["check", str(root), *_config(packages)])

    assert excinfo.value.code == 2
    assert "template engine must be hbs or liquid" in capsys.readouterr().err


def test_config_error_exits_two(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / ".shelf.yml").write_text("- not a mapping\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["check", str(tmp_path), "--config", str(tmp_path)])

    assert excinfo.value.code == 2
    assert "mapping at the root" in capsys.readouterr().err


def test_no_overwrite_flag_is_applied(packages: PackageTreeBuilder) -> None:
    (packages.home / "hello").write_text("mine", encoding="utf-8")
    root = packages.package("dots", 'name("dots")\nfile("hello")\n', {"hello": "theirs"})

    with pytest.raises(SystemExit) as excinfo:
        main(["install", str(root), "--no-overwrite", *_config(packages)])

    assert excinfo.value.code == 1
    assert (packages.home / "hello").read_text(encoding="utf-8") == "mine"
