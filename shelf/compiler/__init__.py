"""Manifest compilation: directive arguments, builders and the manifest loader."""

from .arguments import DirectiveArg
from .builder import PackageBuilder
from .errors import CompilationError, CompilationErrors
from .loader import MANIFEST_FILENAME, ManifestLoader

__all__ = [
    "CompilationError",
    "CompilationErrors",
    "DirectiveArg",
    "MANIFEST_FILENAME",
    "ManifestLoader",
    "PackageBuilder",
]
