"""Per-manifest builder that turns directive calls into a ``Package``."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, List, Optional

from ..models import (
    CmdDirective,
    ConfigDirective,
    ConfigFormat,
    Directive,
    EmptyDirective,
    FileDirective,
    FnDirective,
    LinkType,
    MkdirDirective,
    Package,
    PackageRef,
    StrDirective,
    TemplateDirective,
    TemplateEngine,
    TreeDirective,
)
from ..paths import absolute, clean_join
from .arguments import (
    CmdArgs,
    DestArgs,
    DirectiveArg,
    FileArgs,
    FnArgs,
    HandlebarsArgs,
    HeaderConfigArgs,
    JsonArgs,
    LiquidArgs,
    StrArgs,
    TreeArgs,
    parse_record,
)
from .errors import CompilationError

_ENGINE_ALIASES = {
    "hbs": TemplateEngine.HANDLEBARS,
    "handlebars": TemplateEngine.HANDLEBARS,
    "liquid": TemplateEngine.LIQUID,
}


def _as_arg(arg: Any) -> DirectiveArg:
    return arg if isinstance(arg, DirectiveArg) else DirectiveArg.primary(arg)


class PackageBuilder:
    """Accumulates the name, dependencies and directives of one manifest.

    Each manifest compiles into its own builder, so a failing manifest never
    touches packages compiled from other manifests. Directive methods validate
    their argument immediately and raise ``CompilationError`` on the first
    malformed call.
    """

    def __init__(self, path: Path, *, manifest_name: str = "package.py") -> None:
        self.path = absolute(path)
        self.manifest_name = manifest_name
        self._name: Optional[str] = None
        self._dependencies: List[PackageRef] = []
        self._directives: List[Directive] = []

    # ------------------------------------------------------------------
    # Identity

    def set_name(self, value: Any) -> "PackageBuilder":
        if self._name is not None:
            raise CompilationError(
                f"package name was already set to '{self._name}'", directive="name"
            )
        if not isinstance(value, str) or not value.strip():
            raise CompilationError("package name must be a non-empty string", directive="name")
        self._name = value.strip()
        return self

    def dep(self, *paths: Any) -> "PackageBuilder":
        """Append dependency references; returns the builder for chaining."""
        for entry in paths:
            items = entry if isinstance(entry, (list, tuple)) else [entry]
            for item in items:
                if not isinstance(item, (str, os.PathLike)):
                    raise CompilationError(
                        f"dependency path must be a string, got {type(item).__name__}",
                        directive="dep",
                    )
                target = clean_join(self.path, item)
                if target.name == self.manifest_name:
                    target = target.parent
                self._dependencies.append(PackageRef(path=target))
        return self

    # ------------------------------------------------------------------
    # Files

    def file(self, arg: Any) -> "PackageBuilder":
        record = parse_record("file", FileArgs, _as_arg(arg), index=self._next_index())
        return self._push(
            FileDirective(
                src=record.src,
                dest=record.dest,
                link_type=record.link_type,
                optional=record.optional,
            )
        )

    def link(self, arg: Any) -> "PackageBuilder":
        return self.file(self._force_link_type(arg, LinkType.LINK))

    def copy(self, arg: Any) -> "PackageBuilder":
        return self.file(self._force_link_type(arg, LinkType.COPY))

    def tree(self, arg: Any) -> "PackageBuilder":
        record = parse_record("tree", TreeArgs, _as_arg(arg), index=self._next_index())
        return self._push(
            TreeDirective(
                src=record.src,
                dest=record.dest,
                link_type=record.link_type,
                globs=tuple(record.globs),
                ignore=tuple(record.ignore),
                optional=record.optional,
            )
        )

    # ------------------------------------------------------------------
    # Templates

    def template(self, arg: Any) -> "PackageBuilder":
        arg = _as_arg(arg)
        if arg.bare:
            raise CompilationError(
                "template arg must be a record", directive="template", index=self._next_index()
            )
        engine, rest = arg.pop("engine")
        if engine is None:
            raise CompilationError(
                "template engine was not provided",
                directive="template",
                index=self._next_index(),
                field="engine",
            )
        resolved = _ENGINE_ALIASES.get(str(engine).strip().lower())
        if resolved is TemplateEngine.HANDLEBARS:
            return self.hbs(rest)
        if resolved is TemplateEngine.LIQUID:
            return self.liquid(rest)
        raise CompilationError(
            f"template engine must be hbs or liquid, got '{engine}'",
            directive="template",
            index=self._next_index(),
            field="engine",
        )

    def hbs(self, arg: Any) -> "PackageBuilder":
        record = parse_record("hbs", HandlebarsArgs, _as_arg(arg), index=self._next_index())
        return self._push(
            TemplateDirective(
                src=record.src,
                dest=record.dest,
                engine=TemplateEngine.HANDLEBARS,
                vars=dict(record.vars),
                partials=dict(record.partials),
                optional=record.optional,
            )
        )

    def liquid(self, arg: Any) -> "PackageBuilder":
        record = parse_record("liquid", LiquidArgs, _as_arg(arg), index=self._next_index())
        return self._push(
            TemplateDirective(
                src=record.src,
                dest=record.dest,
                engine=TemplateEngine.LIQUID,
                vars=dict(record.vars),
                optional=record.optional,
            )
        )

    # ------------------------------------------------------------------
    # Generated files

    def empty(self, arg: Any) -> "PackageBuilder":
        record = parse_record("empty", DestArgs, _as_arg(arg), index=self._next_index())
        return self._push(EmptyDirective(dest=record.dest))

    def string(self, arg: Any) -> "PackageBuilder":
        record = parse_record("str", StrArgs, _as_arg(arg), index=self._next_index())
        return self._push(StrDirective(dest=record.dest, contents=record.contents))

    def yaml(self, arg: Any) -> "PackageBuilder":
        return self._header_config("yaml", ConfigFormat.YAML, arg)

    def toml(self, arg: Any) -> "PackageBuilder":
        return self._header_config("toml", ConfigFormat.TOML, arg)

    def json(self, arg: Any) -> "PackageBuilder":
        record = parse_record("json", JsonArgs, _as_arg(arg), index=self._next_index())
        return self._push(
            ConfigDirective(dest=record.dest, values=dict(record.values), format=ConfigFormat.JSON)
        )

    def mkdir(self, arg: Any) -> "PackageBuilder":
        record = parse_record("mkdir", DestArgs, _as_arg(arg), index=self._next_index())
        return self._push(MkdirDirective(dest=record.dest))

    # ------------------------------------------------------------------
    # Hooks

    def cmd(self, arg: Any) -> "PackageBuilder":
        record = parse_record("cmd", CmdArgs, _as_arg(arg), index=self._next_index())
        stdout, stderr = record.capture_modes()
        return self._push(
            CmdDirective(
                command=record.command,
                start=record.start,
                shell=record.shell,
                stdout=stdout,
                stderr=stderr,
                clean_env=record.clean_env,
                env=dict(record.env),
                nonzero_exit=record.nonzero_exit,
            )
        )

    def fn(self, arg: Any) -> "PackageBuilder":
        record = parse_record("fn", FnArgs, _as_arg(arg), index=self._next_index())
        return self._push(FnDirective(callback=record.callback, error_exit=record.error_exit))

    # ------------------------------------------------------------------
    # Finalisation

    def finish(self) -> Package:
        """Return the compiled package; the name must have been declared."""
        if self._name is None:
            raise CompilationError("package name was not provided", directive="name")
        return Package(
            name=self._name,
            path=self.path,
            dependencies=tuple(self._dependencies),
            directives=tuple(self._directives),
        )

    # ------------------------------------------------------------------
    # Helpers

    def _header_config(self, kind: str, fmt: ConfigFormat, arg: Any) -> "PackageBuilder":
        record = parse_record(kind, HeaderConfigArgs, _as_arg(arg), index=self._next_index())
        return self._push(
            ConfigDirective(
                dest=record.dest,
                values=dict(record.values),
                format=fmt,
                header=record.header,
            )
        )

    @staticmethod
    def _force_link_type(arg: Any, link_type: LinkType) -> DirectiveArg:
        arg = _as_arg(arg)
        _, arg = arg.pop("type")
        return arg.with_named(link_type=link_type)

    def _next_index(self) -> int:
        return len(self._directives) + 1

    def _push(self, directive: Directive) -> "PackageBuilder":
        self._directives.append(directive)
        return self


__all__ = ["PackageBuilder"]
