"""Configuration loading for shelf (.shelf.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .compiler import MANIFEST_FILENAME
from .paths import absolute, clean_join

CONFIG_FILENAME = ".shelf.yml"
DEST_ENV_VAR = "SHELF_DEST"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ShelfConfig:
    """Represents the settings defined in .shelf.yml."""

    root: Path
    dest: Path = field(default_factory=Path.home)
    shell: Optional[str] = None
    overwrite: bool = True
    keep_going: bool = False
    manifest: str = MANIFEST_FILENAME
    log_file: Optional[Path] = None


def load_config(config_path: Path, *, environ: Optional[Mapping[str, str]] = None) -> ShelfConfig:
    """Load configuration from disk.

    ``config_path`` may be a directory (looked up as ``<dir>/.shelf.yml``) or a
    file. A missing file yields the defaults. ``SHELF_DEST`` in ``environ``
    (default: the process environment) replaces the configured ``dest``.
    """
    env = os.environ if environ is None else environ
    config_file = _resolve_config_path(config_path)
    root = config_file.parent

    config = ShelfConfig(root=root)
    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{config_file.name} must contain a mapping at the root")
        _apply(config, data)

    override = env.get(DEST_ENV_VAR)
    if override:
        config.dest = absolute(override)
    return config


def _apply(config: ShelfConfig, data: Dict[str, Any]) -> None:
    dest = _as_str(data.get("dest"))
    if dest:
        config.dest = clean_join(config.root, dest)

    config.shell = _as_str(data.get("shell")) or None

    overwrite = _as_bool(data.get("overwrite"))
    if overwrite is not None:
        config.overwrite = overwrite

    keep_going = _as_bool(data.get("keep_going"))
    if keep_going is not None:
        config.keep_going = keep_going

    manifest = _as_str(data.get("manifest"))
    if manifest:
        if "/" in manifest or "\\" in manifest:
            raise ConfigError(f"manifest must be a file name, not a path: {manifest}")
        config.manifest = manifest

    log_file = _as_str(data.get("log_file"))
    if log_file:
        config.log_file = clean_join(config.root, log_file)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = absolute(config_path)
    if config_path.is_dir():
        return config_path / CONFIG_FILENAME
    return config_path


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = ["CONFIG_FILENAME", "ConfigError", "DEST_ENV_VAR", "ShelfConfig", "load_config"]
