"""Tests for shelf.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from shelf.config import ConfigError, ShelfConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path, environ={})

    assert isinstance(config, ShelfConfig)
    assert config.root == tmp_path
    assert config.dest == Path.home()
    assert config.shell is None
    assert config.overwrite is True
    assert config.keep_going is False
    assert config.manifest == "package.py"
    assert config.log_file is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".shelf.yml"
    config_file.write_text(
        """
dest: install-root
shell: zsh
overwrite: "no"
keep_going: true
manifest: shelf.py
log_file: logs/shelf.log
""",
        encoding="utf-8",
    )

    config = load_config(config_file, environ={})

    assert config.dest == tmp_path / "install-root"
    assert config.shell == "zsh"
    assert config.overwrite is False
    assert config.keep_going is True
    assert config.manifest == "shelf.py"
    assert config.log_file == tmp_path / "logs" / "shelf.log"


def test_directory_lookup_and_tilde_dest(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path / "user"))
    (tmp_path / ".shelf.yml").write_text("dest: ~/dots-home\n", encoding="utf-8")

    config = load_config(tmp_path, environ={})

    assert config.dest == tmp_path / "user" / "dots-home"


def test_env_var_overrides_dest(tmp_path: Path) -> None:
    (tmp_path / ".shelf.yml").write_text("dest: configured\n", encoding="utf-8")

    config = load_config(tmp_path, environ={"SHELF_DEST": str(tmp_path / "override")})

    assert config.dest == tmp_path / "override"


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / ".shelf.yml").write_text("\n# nothing here\n", encoding="utf-8")

    assert load_config(tmp_path, environ={}).overwrite is True


def test_non_mapping_root_is_rejected(tmp_path: Path) -> None:
    (tmp_path / ".shelf.yml").write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping at the root"):
        load_config(tmp_path, environ={})


def test_invalid_yaml_is_rejected(tmp_path: Path) -> None:
    (tmp_path / ".shelf.yml").write_text("dest: [unterminated\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path, environ={})


def test_manifest_must_be_a_file_name(tmp_path: Path) -> None:
    (tmp_path / ".shelf.yml").write_text("manifest: sub/package.py\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="file name"):
        load_config(tmp_path, environ={})
