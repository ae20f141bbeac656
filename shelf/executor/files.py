"""Handlers for directives that place or generate files."""

from __future__ import annotations

from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, List, Sequence

from ..models import (
    ConfigDirective,
    EmptyDirective,
    FileDirective,
    LinkType,
    MkdirDirective,
    StrDirective,
    TemplateDirective,
    TreeDirective,
)
from ..render import RenderError, SerializeError
from ..report import DirectiveStatus
from .base import ActionContext, DirectiveError, Effect

DEFAULT_TREE_GLOBS = ("**/*",)


def _match_segments(parts: Sequence[str], pieces: Sequence[str]) -> bool:
    if not pieces:
        return not parts
    head, rest = pieces[0], pieces[1:]
    if head == "**":
        return any(_match_segments(parts[i:], rest) for i in range(len(parts) + 1))
    return bool(parts) and fnmatchcase(parts[0], head) and _match_segments(parts[1:], rest)


def pattern_matches(path: str, pattern: str) -> bool:
    """Match a relative POSIX path against a tree include/ignore pattern.

    Matching is per path segment: ``*``, ``?`` and ``[...]`` never cross a
    ``/``, while a ``**`` segment matches zero or more directories. A
    trailing ``/`` is shorthand for ``/**``.
    """
    if pattern.endswith("/"):
        pattern += "**"
    return _match_segments(path.split("/"), pattern.split("/"))


def select_entries(entries: Sequence[str], globs: Sequence[str], ignore: Sequence[str]) -> List[str]:
    """Apply include globs, then drop anything an ignore glob matches."""
    include = tuple(globs) or DEFAULT_TREE_GLOBS
    return [
        entry
        for entry in entries
        if any(pattern_matches(entry, pattern) for pattern in include)
        and not any(pattern_matches(entry, pattern) for pattern in ignore)
    ]


def _clear(ctx: ActionContext, dest: Path) -> None:
    if not ctx.overwrite:
        raise DirectiveError(f"{dest} already exists and overwriting is disabled")
    ctx.log.warning("Replacing existing %s", dest)
    ctx.fs.remove(dest)


def place(ctx: ActionContext, src: Path, dest: Path, link_type: LinkType) -> Effect:
    """Link or copy ``src`` to ``dest`` unless it is already there."""
    if src == dest:
        return Effect(DirectiveStatus.UNCHANGED, f"{src} is already in place")
    if link_type is LinkType.LINK:
        if ctx.fs.points_to(dest, src):
            return Effect(DirectiveStatus.UNCHANGED, f"{dest} already links to {src}")
    elif ctx.fs.same_contents(src, dest):
        return Effect(DirectiveStatus.UNCHANGED, f"{dest} is up to date")

    if ctx.fs.lexists(dest):
        _clear(ctx, dest)
    if link_type is LinkType.LINK:
        ctx.fs.symlink(src, dest)
        return Effect(DirectiveStatus.DONE, f"linked {dest} -> {src}")
    ctx.fs.copy(src, dest)
    return Effect(DirectiveStatus.DONE, f"copied {src} to {dest}")


def write_text(ctx: ActionContext, dest: Path, text: str) -> Effect:
    """Write generated text, replacing a regular file's previous contents."""
    if ctx.fs.text_matches(dest, text):
        return Effect(DirectiveStatus.UNCHANGED, f"{dest} is up to date")
    if ctx.fs.lexists(dest) and not ctx.fs.is_regular_file(dest):
        _clear(ctx, dest)
    ctx.fs.write_text(dest, text)
    return Effect(DirectiveStatus.DONE, f"wrote {dest}")


def _missing(path: Path, optional: bool) -> Effect:
    message = f"source {path} does not exist"
    if optional:
        return Effect(DirectiveStatus.SKIPPED, message)
    raise DirectiveError(message)


def apply_file(directive: FileDirective, ctx: ActionContext) -> Effect:
    src = ctx.src_path(directive.src)
    if not ctx.fs.lexists(src):
        return _missing(src, directive.optional)
    dest = ctx.dest_path(directive.dest) if directive.dest else ctx.dest / src.name
    return place(ctx, src, dest, directive.link_type)


def apply_tree(directive: TreeDirective, ctx: ActionContext) -> Effect:
    src = ctx.src_path(directive.src)
    if not ctx.fs.lexists(src):
        return _missing(src, directive.optional)
    if not ctx.fs.is_dir(src):
        raise DirectiveError(f"source {src} is not a directory")
    dest = ctx.dest_path(directive.dest) if directive.dest else ctx.dest

    entries = select_entries(ctx.fs.walk_files(src), directive.globs, directive.ignore)
    changed = 0
    for entry in entries:
        effect = place(ctx, src / entry, dest / entry, directive.link_type)
        ctx.log.debug("tree entry %s: %s", entry, effect.message)
        if effect.status is DirectiveStatus.DONE:
            changed += 1

    message = f"{changed} of {len(entries)} entries placed under {dest}"
    status = DirectiveStatus.DONE if changed else DirectiveStatus.UNCHANGED
    return Effect(status, message)


def _read_template(ctx: ActionContext, path: Path) -> str:
    try:
        return ctx.fs.read_text(path)
    except UnicodeDecodeError as exc:
        raise RenderError(f"{path} is not valid UTF-8: {exc.reason} at byte {exc.start}") from exc


def apply_template(directive: TemplateDirective, ctx: ActionContext) -> Effect:
    src = ctx.src_path(directive.src)
    if not ctx.fs.lexists(src):
        return _missing(src, directive.optional)

    partial_paths: Dict[str, Path] = {}
    for name, path in directive.partials.items():
        partial_path = ctx.src_path(path)
        if not ctx.fs.lexists(partial_path):
            return _missing(partial_path, directive.optional)
        partial_paths[name] = partial_path

    try:
        partials = {name: _read_template(ctx, path) for name, path in partial_paths.items()}
        text = ctx.templates.render(
            directive.engine, _read_template(ctx, src), directive.vars, partials
        )
    except RenderError as exc:
        if directive.optional:
            return Effect(DirectiveStatus.SKIPPED, str(exc))
        raise DirectiveError(str(exc)) from exc
    return write_text(ctx, ctx.dest_path(directive.dest), text)


def apply_empty(directive: EmptyDirective, ctx: ActionContext) -> Effect:
    dest = ctx.dest_path(directive.dest)
    if ctx.fs.is_regular_file(dest):
        if dest.stat().st_size:
            raise DirectiveError(f"{dest} already exists and is not empty")
        return Effect(DirectiveStatus.UNCHANGED, f"{dest} already exists")
    return write_text(ctx, dest, "")


def apply_str(directive: StrDirective, ctx: ActionContext) -> Effect:
    return write_text(ctx, ctx.dest_path(directive.dest), directive.contents)


def apply_config(directive: ConfigDirective, ctx: ActionContext) -> Effect:
    try:
        text = ctx.serializers.serialize(directive.format, directive.values, directive.header)
    except SerializeError as exc:
        raise DirectiveError(str(exc)) from exc
    return write_text(ctx, ctx.dest_path(directive.dest), text)


def apply_mkdir(directive: MkdirDirective, ctx: ActionContext) -> Effect:
    dest = ctx.dest_path(directive.dest)
    if ctx.fs.is_dir(dest):
        return Effect(DirectiveStatus.UNCHANGED, f"{dest} already exists")
    if ctx.fs.lexists(dest):
        _clear(ctx, dest)
    ctx.fs.mkdir_all(dest)
    return Effect(DirectiveStatus.DONE, f"created {dest}")


__all__ = [
    "apply_config",
    "apply_empty",
    "apply_file",
    "apply_mkdir",
    "apply_str",
    "apply_template",
    "apply_tree",
    "pattern_matches",
    "place",
    "select_entries",
    "write_text",
]
