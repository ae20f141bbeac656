"""Handlers for ``cmd`` and ``fn`` directives."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional

from ..logging import get_logger
from ..models import CmdDirective, ExitPolicy, FnDirective
from ..report import DirectiveStatus
from .base import ActionContext, DirectiveError, Effect, FnContext
from .process import default_shell, shell_command

_LOGGER = get_logger("executor.hooks")


def classify(policy: ExitPolicy, message: str, output: Optional[str] = None) -> Effect:
    """Turn a nonzero exit or raised callback into an effect per ``policy``.

    ``fail`` raises :class:`DirectiveError`; ``warn`` records a warning;
    ``ignore`` leaves only a debug trace.
    """
    if policy is ExitPolicy.FAIL:
        raise DirectiveError(message, output=output)
    if policy is ExitPolicy.WARN:
        _LOGGER.warning(message)
        return Effect(DirectiveStatus.WARNED, message, output)
    _LOGGER.debug("Ignoring: %s", message)
    return Effect(DirectiveStatus.DONE, f"{message} (ignored)", output)


def _environment(directive: CmdDirective) -> Dict[str, str]:
    env: Dict[str, str] = {} if directive.clean_env else dict(os.environ)
    env.update(directive.env)
    return env


def _combined_output(stdout: Optional[str], stderr: Optional[str]) -> Optional[str]:
    chunks = [chunk.rstrip("\n") for chunk in (stdout, stderr) if chunk]
    return "\n".join(chunks) if chunks else None


def apply_cmd(directive: CmdDirective, ctx: ActionContext) -> Effect:
    shell = directive.shell or ctx.shell or default_shell()
    cwd = ctx.src_path(directive.start) if directive.start else Path.cwd()
    args = shell_command(shell, directive.command)
    ctx.log.debug("Running %s in %s", args, cwd)

    try:
        result = ctx.spawner.spawn(
            args,
            cwd=cwd,
            env=_environment(directive),
            stdout=directive.stdout,
            stderr=directive.stderr,
        )
    except (OSError, ValueError) as exc:
        raise DirectiveError(f"could not run '{directive.command}' with {shell}: {exc}") from exc

    output = _combined_output(result.stdout, result.stderr)
    if output:
        ctx.log.debug("Output of '%s':\n%s", directive.command, output)
    if result.returncode == 0:
        return Effect(DirectiveStatus.DONE, f"'{directive.command}' exited 0", output)
    return classify(
        directive.nonzero_exit,
        f"'{directive.command}' exited with status {result.returncode}",
        output,
    )


def apply_fn(directive: FnDirective, ctx: ActionContext) -> Effect:
    name = getattr(directive.callback, "__name__", "callback")
    context = FnContext(
        package=ctx.package.name,
        root=ctx.package.path,
        dest=ctx.dest,
        state=ctx.state,
    )
    try:
        directive.callback(context)
    except (Exception, SystemExit) as exc:
        return classify(directive.error_exit, f"{name} raised {type(exc).__name__}: {exc}")
    return Effect(DirectiveStatus.DONE, f"{name} completed")


__all__ = ["apply_cmd", "apply_fn", "classify"]
