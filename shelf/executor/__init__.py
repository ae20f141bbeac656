"""Installation executor: applies compiled packages to the install root."""

from .base import ActionContext, DirectiveError, Effect, FnContext
from .filesystem import FileSystem
from .process import CommandResult, ProcessSpawner
from .runner import Executor

__all__ = [
    "ActionContext",
    "CommandResult",
    "DirectiveError",
    "Effect",
    "Executor",
    "FileSystem",
    "FnContext",
    "ProcessSpawner",
]
