"""Errors raised while compiling manifests."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence


class CompilationError(RuntimeError):
    """Raised when a manifest cannot be compiled into a package.

    Carries enough context to point the user at the offending call: the
    manifest file, the directive kind, its 1-based position among the
    manifest's directives and the field that failed validation.
    """

    def __init__(
        self,
        message: str,
        *,
        manifest: Optional[Path] = None,
        directive: Optional[str] = None,
        index: Optional[int] = None,
        field: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.manifest = manifest
        self.directive = directive
        self.index = index
        self.field = field

    def __str__(self) -> str:
        parts: List[str] = []
        if self.manifest is not None:
            parts.append(str(self.manifest))
        if self.directive is not None:
            label = f"{self.directive} directive"
            if self.index is not None:
                label += f" #{self.index}"
            parts.append(label)
        parts.append(self.message)
        return ": ".join(parts)


class CompilationErrors(CompilationError):
    """Several manifests failed to compile; raised when compiling with keep-going."""

    def __init__(self, errors: Sequence[CompilationError]) -> None:
        self.errors = list(errors)
        count = len(self.errors)
        noun = "manifest" if count == 1 else "manifests"
        super().__init__(f"{count} {noun} failed to compile")

    def __str__(self) -> str:
        lines = [self.message]
        lines.extend(f"  {error}" for error in self.errors)
        return "\n".join(lines)


__all__ = ["CompilationError", "CompilationErrors"]
