# crash_diagnostics/core/results.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional


class PackStatus(str, Enum):
    PACKED = "packed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class PackResult:
    step: str
    status: PackStatus
    entry_name: Optional[str] = None
    reason: str = ""
    error: Optional[BaseException] = None

    @classmethod
    def packed(cls, step: str, entry_name: str) -> "PackResult":
        return cls(step=step, status=PackStatus.PACKED, entry_name=entry_name)

    @classmethod
    def skipped(cls, step: str, reason: str) -> "PackResult":
        return cls(step=step, status=PackStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, step: str, error: BaseException) -> "PackResult":
        return cls(step=step, status=PackStatus.FAILED, reason=str(error), error=error)


@dataclass(frozen=True)
class PackStep:
    """One named step of the task; the action returns the results it produced."""
    name: str
    action: Callable[[], List[PackResult]]


@dataclass
class ArchiveTask:
    steps: List[PackStep] = field(default_factory=list)

    def add(self, name: str, action: Callable[[], List[PackResult]]) -> None:
        self.steps.append(PackStep(name, action))

    def run(self, results: Optional[List[PackResult]] = None) -> List[PackResult]:
        """Run steps in order, appending into `results` so a caller keeps partial outcomes."""
        if results is None:
            results = []
        for step in self.steps:
            results.extend(step.action())
        return results


@dataclass
class BundleReport:
    ok: bool
    archive_path: Optional[Path] = None
    results: List[PackResult] = field(default_factory=list)
    error: Optional[BaseException] = None

    def entries(self) -> List[str]:
        return [r.entry_name for r in self.results if r.status is PackStatus.PACKED and r.entry_name]

    def by_status(self, status: PackStatus) -> List[PackResult]:
        return [r for r in self.results if r.status is status]
