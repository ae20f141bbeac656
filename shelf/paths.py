"""Path normalisation shared by the compiler and the executor."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]


def clean_join(base: PathLike, path: PathLike) -> Path:
    """Join ``path`` onto ``base`` unless it is absolute, then normalise lexically.

    ``~`` is expanded. Symlinks are not resolved, so a link placed at the
    destination is never followed back to its target.
    """
    expanded = os.path.expanduser(os.fspath(path))
    if not os.path.isabs(expanded):
        expanded = os.path.join(os.fspath(base), expanded)
    return Path(os.path.normpath(expanded))


def absolute(path: PathLike) -> Path:
    """Return an absolute, lexically normalised path."""
    return Path(os.path.abspath(os.path.expanduser(os.fspath(path))))


__all__ = ["absolute", "clean_join"]
