"""Manifest evaluation and package-set loading."""

from __future__ import annotations

import builtins
from collections import deque
from pathlib import Path
from typing import Any, Callable, Deque, Dict, Iterable, List, Set

from ..logging import get_logger
from ..models import Package
from ..paths import absolute
from .arguments import DirectiveArg
from .builder import PackageBuilder
from .errors import CompilationError, CompilationErrors

MANIFEST_FILENAME = "package.py"

# Script-facing directive name -> builder method name.
_DIRECTIVES: Dict[str, str] = {
    "file": "file",
    "link": "link",
    "copy": "copy",
    "tree": "tree",
    "template": "template",
    "hbs": "hbs",
    "liquid": "liquid",
    "empty": "empty",
    "str": "string",
    "yaml": "yaml",
    "toml": "toml",
    "json": "json",
    "mkdir": "mkdir",
    "cmd": "cmd",
    "fn": "fn",
}


def directive_arg(args: tuple, kwargs: Dict[str, Any]) -> DirectiveArg:
    """Map a Python call shape onto the bare/record argument forms."""
    if len(args) == 1 and isinstance(args[0], (list, tuple)):
        return DirectiveArg.record(*args[0], **kwargs)
    if len(args) == 1 and not kwargs:
        return DirectiveArg.primary(args[0])
    return DirectiveArg.record(*args, **kwargs)


def build_namespace(builder: PackageBuilder, *, filename: Path) -> Dict[str, Any]:
    """Return the globals a manifest is evaluated with."""

    def name(value: Any) -> None:
        builder.set_name(value)

    def dep(*paths: Any) -> Callable[..., Any]:
        builder.dep(*paths)
        return dep

    namespace: Dict[str, Any] = {
        "__builtins__": builtins,
        "__name__": "__manifest__",
        "__file__": str(filename),
        "name": name,
        "dep": dep,
    }
    for script_name, method_name in _DIRECTIVES.items():
        namespace[script_name] = _bind(script_name, getattr(builder, method_name))
    return namespace


def _bind(script_name: str, method: Callable[[DirectiveArg], Any]) -> Callable[..., None]:
    def directive(*args: Any, **kwargs: Any) -> None:
        method(directive_arg(args, kwargs))

    directive.__name__ = script_name
    directive.__qualname__ = script_name
    return directive


class ManifestLoader:
    """Compiles manifests into packages and follows their dependency references."""

    def __init__(self, manifest_name: str = MANIFEST_FILENAME) -> None:
        self.manifest_name = manifest_name
        self.logger = get_logger("compiler")

    def manifest_path(self, path: Path | str) -> Path:
        """Return the manifest file for a package directory (or manifest path)."""
        candidate = absolute(path)
        if candidate.name == self.manifest_name and not candidate.is_dir():
            return candidate
        return candidate / self.manifest_name

    def compile_path(self, path: Path | str) -> Package:
        manifest = self.manifest_path(path)
        try:
            source = manifest.read_text(encoding="utf-8")
        except OSError as exc:
            raise CompilationError(f"couldn't read manifest: {exc}", manifest=manifest) from exc
        return self.compile_source(source, manifest.parent, filename=manifest)

    def compile_source(
        self, source: str, package_dir: Path | str, *, filename: Path | None = None
    ) -> Package:
        """Evaluate manifest ``source`` for the package rooted at ``package_dir``."""
        package_dir = absolute(package_dir)
        filename = filename or package_dir / self.manifest_name
        builder = PackageBuilder(package_dir, manifest_name=self.manifest_name)
        namespace = build_namespace(builder, filename=filename)

        try:
            code = compile(source, str(filename), "exec")
            exec(code, namespace)
            package = builder.finish()
        except CompilationError as exc:
            if exc.manifest is None:
                exc.manifest = filename
            raise
        except Exception as exc:
            raise CompilationError(
                f"{type(exc).__name__}: {exc}", manifest=filename
            ) from exc

        self.logger.debug(
            "Compiled package '%s' (%d directives, %d dependencies) from %s",
            package.name,
            len(package.directives),
            len(package.dependencies),
            filename,
        )
        return package

    def load(self, roots: Iterable[Path | str], *, keep_going: bool = False) -> List[Package]:
        """Compile ``roots`` and every package reachable through ``dep`` references.

        Packages are returned in discovery order (breadth first, declaration
        order), which the resolver uses to break ties. A referenced directory
        without a manifest is left for the resolver to report as unresolved.
        """
        root_paths = [self.manifest_path(root).parent for root in roots]
        root_set = set(root_paths)
        queue: Deque[Path] = deque(root_paths)
        seen: Set[Path] = set()
        packages: List[Package] = []
        declared: Dict[str, Path] = {}
        errors: List[CompilationError] = []

        def fail(error: CompilationError) -> None:
            if not keep_going:
                raise error
            errors.append(error)

        while queue:
            path = queue.popleft()
            if path in seen:
                continue
            seen.add(path)

            manifest = path / self.manifest_name
            if not manifest.is_file():
                if path in root_set:
                    fail(CompilationError("manifest not found", manifest=manifest))
                else:
                    self.logger.debug("No manifest at %s; leaving reference unresolved", path)
                continue

            try:
                package = self.compile_path(path)
            except CompilationError as exc:
                fail(exc)
                continue

            previous = declared.get(package.name)
            if previous is not None:
                fail(
                    CompilationError(
                        f"duplicate package name '{package.name}' (also declared in {previous})",
                        manifest=manifest,
                        directive="name",
                    )
                )
                continue

            declared[package.name] = path
            packages.append(package)
            queue.extend(ref.path for ref in package.dependencies)

        if errors:
            raise CompilationErrors(errors)

        self.logger.info("Compiled %d package(s)", len(packages))
        return packages


__all__ = ["MANIFEST_FILENAME", "ManifestLoader", "build_namespace", "directive_arg"]
