"""Shared executor types: handler effects, errors and the per-package context."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from ..logging import PackageLogger, package_logger
from ..models import Package
from ..paths import clean_join
from ..render import SerializerRegistry, TemplateRegistry
from ..report import DirectiveStatus
from .filesystem import FileSystem
from .process import ProcessSpawner


class DirectiveError(RuntimeError):
    """Raised by a directive handler when the directive fails fatally."""

    def __init__(self, message: str, *, output: Optional[str] = None) -> None:
        super().__init__(message)
        self.output = output


@dataclass
class Effect:
    """What a handler did: the status plus a message for the report."""

    status: DirectiveStatus
    message: str = ""
    output: Optional[str] = None


@dataclass
class FnContext:
    """Passed to ``fn`` callbacks.

    ``state`` is shared by every callback of the same package during a run.
    """

    package: str
    root: Path
    dest: Path
    state: Dict[str, Any]


@dataclass
class ActionContext:
    package: Package
    dest: Path
    fs: FileSystem
    spawner: ProcessSpawner
    templates: TemplateRegistry
    serializers: SerializerRegistry
    overwrite: bool = True
    shell: Optional[str] = None
    state: Dict[str, Any] = field(default_factory=dict)

    @property
    def log(self) -> PackageLogger:
        return package_logger("executor", self.package.name)

    def src_path(self, src: str) -> Path:
        """Resolve ``src`` against the manifest directory."""
        return clean_join(self.package.path, src)

    def dest_path(self, dest: str) -> Path:
        """Resolve ``dest`` against the install root."""
        return clean_join(self.dest, dest)


__all__ = ["ActionContext", "DirectiveError", "Effect", "FnContext"]
