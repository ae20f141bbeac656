"""Per-directive and per-package outcomes, aggregated into a run report."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional


class DirectiveStatus(str, Enum):
    DONE = "done"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    WARNED = "warned"
    FAILED = "failed"


class PackageOutcome(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass
class DirectiveResult:
    """Outcome of one directive; ``index`` is its 1-based position in the package."""

    index: int
    kind: str
    label: str
    status: DirectiveStatus
    message: str = ""
    output: Optional[str] = None


@dataclass
class PackageReport:
    """Outcome of one package in the install plan."""

    name: str
    outcome: PackageOutcome
    results: List[DirectiveResult] = field(default_factory=list)
    failure: Optional[DirectiveResult] = None
    aborted_by: Optional[str] = None
    reason: Optional[str] = None

    @property
    def skipped(self) -> List[DirectiveResult]:
        return [result for result in self.results if result.status is DirectiveStatus.SKIPPED]

    @property
    def warnings(self) -> List[DirectiveResult]:
        return [result for result in self.results if result.status is DirectiveStatus.WARNED]


class ExecutionReport:
    """Ordered mapping of package name to :class:`PackageReport`."""

    def __init__(self) -> None:
        self._packages: Dict[str, PackageReport] = {}

    def add(self, entry: PackageReport) -> None:
        self._packages[entry.name] = entry

    def get(self, name: str) -> Optional[PackageReport]:
        return self._packages.get(name)

    def __getitem__(self, name: str) -> PackageReport:
        return self._packages[name]

    def __contains__(self, name: object) -> bool:
        return name in self._packages

    def __iter__(self) -> Iterator[PackageReport]:
        return iter(self._packages.values())

    def __len__(self) -> int:
        return len(self._packages)

    def names(self, outcome: PackageOutcome) -> List[str]:
        return [entry.name for entry in self if entry.outcome is outcome]

    @property
    def failed(self) -> List[str]:
        return self.names(PackageOutcome.FAILED)

    @property
    def aborted(self) -> List[str]:
        return self.names(PackageOutcome.ABORTED)

    @property
    def ok(self) -> bool:
        """True when no package failed or was aborted (warnings are allowed)."""
        return not self.failed and not self.aborted

    def to_dict(self) -> Dict[str, object]:
        return {
            "ok": self.ok,
            "packages": [
                {
                    "name": entry.name,
                    "outcome": entry.outcome.value,
                    "aborted_by": entry.aborted_by,
                    "reason": entry.reason,
                    "directives": [
                        {
                            "index": result.index,
                            "kind": result.kind,
                            "label": result.label,
                            "status": result.status.value,
                            "message": result.message,
                            "output": result.output,
                        }
                        for result in entry.results
                    ],
                }
                for entry in self
            ],
        }


_MARKERS = {
    PackageOutcome.SUCCESS: "[ok]",
    PackageOutcome.PARTIAL: "[partial]",
    PackageOutcome.FAILED: "[failed]",
    PackageOutcome.ABORTED: "[aborted]",
}


def format_report(report: ExecutionReport) -> str:
    """Render the report for terminal output.

    Failed packages name the failing directive by kind, position and cause;
    aborted packages are listed after them with the upstream package that
    caused the abort.
    """
    lines: List[str] = []
    for entry in report:
        if entry.outcome is PackageOutcome.ABORTED:
            continue
        marker = _MARKERS[entry.outcome]
        if entry.outcome is PackageOutcome.FAILED and entry.failure is not None:
            failure = entry.failure
            lines.append(
                f"{marker} {entry.name}: directive #{failure.index} {failure.kind} failed: {failure.message}"
            )
        else:
            changed = sum(1 for result in entry.results if result.status is DirectiveStatus.DONE)
            lines.append(
                f"{marker} {entry.name}: {len(entry.results)} directive(s), {changed} changed"
            )
        for result in entry.warnings:
            lines.append(f"    warning: directive #{result.index} {result.kind}: {result.message}")
        for result in entry.skipped:
            lines.append(f"    skipped: directive #{result.index} {result.kind}: {result.message}")

    aborted = [entry for entry in report if entry.outcome is PackageOutcome.ABORTED]
    if aborted:
        lines.append("")
        lines.append("Not attempted:")
        for entry in aborted:
            if entry.reason and entry.aborted_by:
                cause = f"{entry.reason} (dependency '{entry.aborted_by}' had failed)"
            elif entry.aborted_by:
                cause = f"dependency '{entry.aborted_by}' failed"
            else:
                cause = entry.reason or "aborted"
            lines.append(f"{_MARKERS[entry.outcome]} {entry.name}: {cause}")

    return "\n".join(lines)


__all__ = [
    "DirectiveResult",
    "DirectiveStatus",
    "ExecutionReport",
    "PackageOutcome",
    "PackageReport",
    "format_report",
]
