"""Core data models shared across shelf components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, ClassVar, Dict, Optional, Tuple, Union


class LinkType(str, Enum):
    """How a file or tree is placed at its destination."""

    LINK = "link"
    COPY = "copy"


class TemplateEngine(str, Enum):
    HANDLEBARS = "hbs"
    LIQUID = "liquid"


class ConfigFormat(str, Enum):
    YAML = "yaml"
    TOML = "toml"
    JSON = "json"


class ExitPolicy(str, Enum):
    """Classification applied to a nonzero command exit or a raising callback."""

    FAIL = "fail"
    WARN = "warn"
    IGNORE = "ignore"


class CaptureMode(str, Enum):
    """What happens to a command's output stream."""

    INHERIT = "inherit"
    CAPTURE = "capture"
    NULL = "null"


@dataclass(frozen=True)
class FileDirective:
    """Place a single file (or directory) by symlink or copy."""

    kind: ClassVar[str] = "file"

    src: str
    dest: Optional[str] = None
    link_type: LinkType = LinkType.LINK
    optional: bool = False


@dataclass(frozen=True)
class TreeDirective:
    """Place every file below a directory, preserving relative structure."""

    kind: ClassVar[str] = "tree"

    src: str
    dest: Optional[str] = None
    link_type: LinkType = LinkType.LINK
    globs: Tuple[str, ...] = ()
    ignore: Tuple[str, ...] = ()
    optional: bool = False


@dataclass(frozen=True)
class TemplateDirective:
    """Render a template with the selected engine into ``dest``."""

    kind: ClassVar[str] = "template"

    src: str
    dest: str
    engine: TemplateEngine
    vars: Dict[str, Any] = field(default_factory=dict)
    partials: Dict[str, str] = field(default_factory=dict)
    optional: bool = False


@dataclass(frozen=True)
class EmptyDirective:
    kind: ClassVar[str] = "empty"

    dest: str


@dataclass(frozen=True)
class StrDirective:
    kind: ClassVar[str] = "str"

    dest: str
    contents: str


@dataclass(frozen=True)
class ConfigDirective:
    """Serialize ``values`` as YAML, TOML or JSON, optionally behind a header."""

    kind: ClassVar[str] = "config"

    dest: str
    values: Dict[str, Any]
    format: ConfigFormat
    header: Optional[str] = None


@dataclass(frozen=True)
class MkdirDirective:
    kind: ClassVar[str] = "mkdir"

    dest: str


@dataclass(frozen=True)
class CmdDirective:
    """Run a command through a shell."""

    kind: ClassVar[str] = "cmd"

    command: str
    start: Optional[str] = None
    shell: Optional[str] = None
    stdout: CaptureMode = CaptureMode.INHERIT
    stderr: CaptureMode = CaptureMode.INHERIT
    clean_env: bool = False
    env: Dict[str, str] = field(default_factory=dict)
    nonzero_exit: ExitPolicy = ExitPolicy.FAIL


@dataclass(frozen=True)
class FnDirective:
    """Invoke a callback defined by the manifest."""

    kind: ClassVar[str] = "fn"

    callback: Callable[..., Any] = field(compare=False)
    error_exit: ExitPolicy = ExitPolicy.FAIL


Directive = Union[
    FileDirective,
    TreeDirective,
    TemplateDirective,
    EmptyDirective,
    StrDirective,
    ConfigDirective,
    MkdirDirective,
    CmdDirective,
    FnDirective,
]


@dataclass(frozen=True)
class PackageRef:
    """Reference to another package by its (normalised, absolute) directory."""

    path: Path


@dataclass(frozen=True)
class Package:
    """A compiled manifest: name, dependency references and ordered directives."""

    name: str
    path: Path
    dependencies: Tuple[PackageRef, ...] = ()
    directives: Tuple[Directive, ...] = ()


def describe_directive(directive: Directive) -> str:
    """Return a short human label such as ``file (a.txt -> .a.txt)``."""
    if isinstance(directive, FileDirective):
        target = directive.dest or directive.src
        return f"file {directive.link_type.value} ({directive.src} -> {target})"
    if isinstance(directive, TreeDirective):
        target = directive.dest or "."
        return f"tree {directive.link_type.value} ({directive.src} -> {target})"
    if isinstance(directive, TemplateDirective):
        return f"template {directive.engine.value} ({directive.src} -> {directive.dest})"
    if isinstance(directive, ConfigDirective):
        return f"{directive.format.value} ({directive.dest})"
    if isinstance(directive, CmdDirective):
        return f"cmd ({directive.command})"
    if isinstance(directive, FnDirective):
        name = getattr(directive.callback, "__name__", "callback")
        return f"fn ({name})"
    return f"{directive.kind} ({directive.dest})"


__all__ = [
    "CaptureMode",
    "CmdDirective",
    "ConfigDirective",
    "ConfigFormat",
    "Directive",
    "EmptyDirective",
    "ExitPolicy",
    "FileDirective",
    "FnDirective",
    "LinkType",
    "MkdirDirective",
    "Package",
    "PackageRef",
    "StrDirective",
    "TemplateDirective",
    "TemplateEngine",
    "TreeDirective",
    "describe_directive",
]
