"""Process-spawning collaborator for ``cmd`` directives."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from ..models import CaptureMode


@dataclass
class CommandResult:
    returncode: int
    stdout: Optional[str] = None
    stderr: Optional[str] = None


def default_shell() -> str:
    """Platform default shell: ``sh`` on POSIX, ``%COMSPEC%`` on Windows."""
    if os.name == "nt":
        return os.environ.get("COMSPEC", "cmd.exe")
    return "sh"


def shell_command(shell: str, command: str) -> List[str]:
    """Argument vector that runs ``command`` through ``shell``."""
    if Path(shell).name.lower() in {"cmd", "cmd.exe"}:
        return [shell, "/C", command]
    return [shell, "-c", command]


def _stream(mode: CaptureMode) -> Optional[int]:
    if mode is CaptureMode.CAPTURE:
        return subprocess.PIPE
    if mode is CaptureMode.NULL:
        return subprocess.DEVNULL
    return None


class ProcessSpawner:
    """Runs a command to completion; stdin is inherited.

    Captured output is decoded as UTF-8, with undecodable bytes replaced.
    """

    def spawn(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str],
        stdout: CaptureMode = CaptureMode.INHERIT,
        stderr: CaptureMode = CaptureMode.INHERIT,
    ) -> CommandResult:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            env=dict(env),
            stdout=_stream(stdout),
            stderr=_stream(stderr),
            encoding="utf-8",
            errors="replace",
            check=False,
        )
        return CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


__all__ = ["CommandResult", "ProcessSpawner", "default_shell", "shell_command"]
