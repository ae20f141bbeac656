"""Pipeline orchestration: compile, resolve, execute, report."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .compiler import ManifestLoader
from .config import ShelfConfig
from .executor import Executor
from .graph import DependencyGraph, InstallPlan, resolve
from .logging import get_logger
from .models import Package
from .report import ExecutionReport


class Orchestrator:
    """Coordinates the install pipeline for a set of package directories.

    Compilation and resolution errors propagate before anything touches the
    install root; execution failures are captured in the returned report.
    """

    def __init__(
        self,
        config: ShelfConfig,
        *,
        loader: ManifestLoader | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.config = config
        self.loader = loader or ManifestLoader(config.manifest)
        self.executor = executor or Executor(overwrite=config.overwrite, shell=config.shell)
        self.logger = get_logger("orchestrator")

    def compile(self, roots: Iterable[Path | str]) -> List[Package]:
        return self.loader.load(roots, keep_going=self.config.keep_going)

    def plan(self, roots: Iterable[Path | str]) -> Tuple[DependencyGraph, InstallPlan]:
        """Compile ``roots`` and their dependencies and return the install order."""
        packages = self.compile(roots)
        graph, plan = resolve(packages)
        self.logger.info("Install order: %s", ", ".join(plan) or "(empty)")
        return graph, plan

    def run_install(
        self, roots: Iterable[Path | str], *, cancel: Optional[threading.Event] = None
    ) -> ExecutionReport:
        graph, plan = self.plan(roots)
        dest = self.config.dest
        self.logger.info("Installing %d package(s) into %s", len(plan), dest)
        report = self.executor.run(graph, plan, dest, cancel=cancel)
        if report.ok:
            self.logger.info("Install finished")
        else:
            self.logger.warning(
                "Install finished with %d failed and %d aborted package(s)",
                len(report.failed),
                len(report.aborted),
            )
        return report


__all__ = ["Orchestrator"]
