"""Runs an install plan package by package and builds the execution report."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Dict, Optional

from ..graph import DependencyGraph, InstallPlan
from ..logging import get_logger, package_logger
from ..models import (
    CmdDirective,
    ConfigDirective,
    Directive,
    EmptyDirective,
    FileDirective,
    FnDirective,
    MkdirDirective,
    Package,
    StrDirective,
    TemplateDirective,
    TreeDirective,
    describe_directive,
)
from ..render import SerializerRegistry, TemplateRegistry
from ..report import (
    DirectiveResult,
    DirectiveStatus,
    ExecutionReport,
    PackageOutcome,
    PackageReport,
)
from . import files, hooks
from .base import ActionContext, DirectiveError, Effect
from .filesystem import FileSystem
from .process import ProcessSpawner

Handler = Callable[[Directive, ActionContext], Effect]

HANDLERS: Dict[type, Handler] = {
    FileDirective: files.apply_file,
    TreeDirective: files.apply_tree,
    TemplateDirective: files.apply_template,
    EmptyDirective: files.apply_empty,
    StrDirective: files.apply_str,
    ConfigDirective: files.apply_config,
    MkdirDirective: files.apply_mkdir,
    CmdDirective: hooks.apply_cmd,
    FnDirective: hooks.apply_fn,
}

CANCELLED = "run cancelled"


def _result_kind(directive: Directive) -> str:
    if isinstance(directive, ConfigDirective):
        return directive.format.value
    return directive.kind


class Executor:
    """Applies each package's directives in plan order.

    A package whose dependency failed (or was itself aborted) is never
    started; it is reported as aborted, naming the package whose failure
    caused it. Nothing already applied is rolled back.
    """

    def __init__(
        self,
        fs: FileSystem | None = None,
        spawner: ProcessSpawner | None = None,
        templates: TemplateRegistry | None = None,
        serializers: SerializerRegistry | None = None,
        *,
        overwrite: bool = True,
        shell: Optional[str] = None,
    ) -> None:
        self.fs = fs or FileSystem()
        self.spawner = spawner or ProcessSpawner()
        self.templates = templates or TemplateRegistry()
        self.serializers = serializers or SerializerRegistry()
        self.overwrite = overwrite
        self.shell = shell
        self.logger = get_logger("executor")

    def run(
        self,
        graph: DependencyGraph,
        plan: InstallPlan,
        dest: Path,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> ExecutionReport:
        report = ExecutionReport()
        for name in plan:
            blocker = self._blocker(graph, name, report)
            if cancel is not None and cancel.is_set():
                self.logger.info("Not starting %s: run cancelled", name)
                report.add(
                    PackageReport(name, PackageOutcome.ABORTED, aborted_by=blocker, reason=CANCELLED)
                )
                continue
            if blocker is not None:
                self.logger.warning("Skipping %s: dependency %s failed", name, blocker)
                report.add(PackageReport(name, PackageOutcome.ABORTED, aborted_by=blocker))
                continue
            report.add(self.install_package(graph.package(name), dest))
        return report

    def install_package(self, package: Package, dest: Path) -> PackageReport:
        """Apply one package's directives in order, stopping at the first fatal one."""
        log = package_logger("executor", package.name)
        log.info("Installing")
        ctx = ActionContext(
            package=package,
            dest=dest,
            fs=self.fs,
            spawner=self.spawner,
            templates=self.templates,
            serializers=self.serializers,
            overwrite=self.overwrite,
            shell=self.shell,
        )
        entry = PackageReport(package.name, PackageOutcome.SUCCESS)

        for index, directive in enumerate(package.directives, start=1):
            label = describe_directive(directive)
            kind = _result_kind(directive)
            handler = HANDLERS[type(directive)]
            try:
                effect = handler(directive, ctx)
            except DirectiveError as exc:
                result = DirectiveResult(
                    index, kind, label, DirectiveStatus.FAILED, str(exc), exc.output
                )
            except OSError as exc:
                result = DirectiveResult(index, kind, label, DirectiveStatus.FAILED, str(exc))
            except Exception as exc:
                log.debug("Unexpected error from %s", label, exc_info=True)
                message = f"{type(exc).__name__}: {exc}"
                result = DirectiveResult(index, kind, label, DirectiveStatus.FAILED, message)
            else:
                result = DirectiveResult(
                    index, kind, label, effect.status, effect.message, effect.output
                )

            entry.results.append(result)
            log.debug("#%d %s: %s %s", index, label, result.status.value, result.message)

            if result.status is DirectiveStatus.FAILED:
                entry.outcome = PackageOutcome.FAILED
                entry.failure = result
                log.error("failed at directive #%d %s: %s", index, kind, result.message)
                break
            if result.status is DirectiveStatus.WARNED:
                entry.outcome = PackageOutcome.PARTIAL

        return entry

    @staticmethod
    def _blocker(graph: DependencyGraph, name: str, report: ExecutionReport) -> Optional[str]:
        """Name of the failed package that prevents ``name`` from running, if any."""
        for dependency in graph.dependencies(name):
            upstream = report.get(dependency)
            if upstream is None:
                continue
            if upstream.outcome is PackageOutcome.FAILED:
                return dependency
            if upstream.outcome is PackageOutcome.ABORTED and upstream.aborted_by:
                return upstream.aborted_by
        return None


__all__ = ["CANCELLED", "Executor", "HANDLERS"]
