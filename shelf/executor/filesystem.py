"""Filesystem collaborator used by directive handlers."""

from __future__ import annotations

import filecmp
import os
import shutil
import tempfile
from pathlib import Path
from typing import List


class FileSystem:
    """Thin wrapper over the local filesystem.

    Copies and writes land in a temporary sibling first and are renamed into
    place, so an interrupted run never leaves a half-written destination.
    """

    # ------------------------------------------------------------------
    # Queries

    @staticmethod
    def lexists(path: Path) -> bool:
        return os.path.lexists(path)

    @staticmethod
    def is_dir(path: Path) -> bool:
        return path.is_dir()

    @staticmethod
    def is_regular_file(path: Path) -> bool:
        return path.is_file() and not path.is_symlink()

    @staticmethod
    def read_text(path: Path) -> str:
        return path.read_text(encoding="utf-8")

    @staticmethod
    def points_to(link: Path, target: Path) -> bool:
        """True when ``link`` is a symlink whose target is ``target``."""
        if not link.is_symlink():
            return False
        return Path(os.readlink(link)) == target

    def same_contents(self, src: Path, dest: Path) -> bool:
        """True when ``dest`` is a real copy of ``src`` (file or directory)."""
        if dest.is_symlink() or not dest.exists():
            return False
        if src.is_dir():
            return dest.is_dir() and _trees_equal(src, dest)
        if not dest.is_file():
            return False
        return filecmp.cmp(src, dest, shallow=False)

    def text_matches(self, path: Path, text: str) -> bool:
        if not self.is_regular_file(path):
            return False
        try:
            return path.read_bytes() == text.encode("utf-8")
        except OSError:
            return False

    @staticmethod
    def walk_files(root: Path) -> List[str]:
        """Relative POSIX paths of every non-directory entry below ``root``, sorted.

        Symlinked directories are reported as entries and not descended into.
        """
        entries: List[str] = []
        for current, dirnames, filenames in os.walk(root):
            base = Path(current)
            for dirname in list(dirnames):
                if (base / dirname).is_symlink():
                    dirnames.remove(dirname)
                    entries.append((base / dirname).relative_to(root).as_posix())
            for filename in filenames:
                entries.append((base / filename).relative_to(root).as_posix())
        return sorted(entries)

    # ------------------------------------------------------------------
    # Mutations

    @staticmethod
    def mkdir_all(path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def remove(path: Path) -> None:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()

    def symlink(self, src: Path, dest: Path) -> None:
        self.mkdir_all(dest.parent)
        os.symlink(src, dest, target_is_directory=src.is_dir())

    def copy(self, src: Path, dest: Path) -> None:
        self.mkdir_all(dest.parent)
        if src.is_dir() and not src.is_symlink():
            staging = Path(tempfile.mkdtemp(prefix=f".{dest.name}.", dir=dest.parent))
            try:
                staged = staging / dest.name
                shutil.copytree(src, staged, symlinks=True)
                os.replace(staged, dest)
            finally:
                shutil.rmtree(staging, ignore_errors=True)
            return

        fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent)
        os.close(fd)
        try:
            shutil.copy2(src, tmp_name, follow_symlinks=True)
            os.replace(tmp_name, dest)
        except BaseException:
            _discard(tmp_name)
            raise

    def write_text(self, dest: Path, text: str) -> None:
        self.mkdir_all(dest.parent)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(text)
            os.replace(tmp_name, dest)
        except BaseException:
            _discard(tmp_name)
            raise


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


def _trees_equal(left: Path, right: Path) -> bool:
    comparison = filecmp.dircmp(left, right)
    if comparison.left_only or comparison.right_only or comparison.funny_files:
        return False
    _, mismatch, errors = filecmp.cmpfiles(left, right, comparison.common_files, shallow=False)
    if mismatch or errors:
        return False
    return all(_trees_equal(left / name, right / name) for name in comparison.common_dirs)


__all__ = ["FileSystem"]
