# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Per-package run state and the batch summary.

BuildRun is mutable on purpose: the orchestrator walks it through its
states as phases execute. Its terminal state is what gets written to the
package's status.json.
"""

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from cratetime.builder.models import PhaseOutcomes
from cratetime.registry.spec import CrateSpec


class RunStatus(str, enum.Enum):
    PENDING = "pending"
    RESOLVING = "resolving"
    BUILDING = "building"
    TESTING = "testing"
    BENCHMARKING = "benchmarking"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BuildRun:
    """One package's trip through the batch."""

    spec: CrateSpec
    output_dir: Path
    stdio_log_path: Path
    status: RunStatus = RunStatus.PENDING
    failure_kind: Optional[str] = None
    failure_detail: Optional[str] = None
    outcomes: Optional[PhaseOutcomes] = None

    def fail(self, kind: str, detail: str) -> None:
        self.status = RunStatus.FAILED
        self.failure_kind = kind
        self.failure_detail = detail

    def to_dict(self) -> dict[str, object]:
        return {
            "package": str(self.spec),
            "status": self.status.value,
            "failure": (
                {"kind": self.failure_kind, "detail": self.failure_detail}
                if self.failure_kind is not None
                else None
            ),
            "phases": [o.to_dict() for o in self.outcomes.all()] if self.outcomes else [],
        }


@dataclass
class BatchSummary:
    """What a batch run did, in processing order."""

    runs: list[BuildRun] = field(default_factory=list)
    skipped: list[CrateSpec] = field(default_factory=list)
    excluded: list[CrateSpec] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.runs)

    @property
    def failed(self) -> list[BuildRun]:
        return [run for run in self.runs if run.status is RunStatus.FAILED]

    @property
    def succeeded(self) -> list[BuildRun]:
        return [run for run in self.runs if run.status is RunStatus.DONE]
