# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Data types passed between the builder and the orchestrator.

Outcomes are frozen; once a phase has been classified nothing downstream
should be rewriting its verdict.
"""

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class Phase(str, enum.Enum):
    COMPILE = "compile"
    TEST = "test"
    BENCH = "bench"


class PhaseStatus(str, enum.Enum):
    """How one phase ended."""

    PASSED = "passed"
    FAILED = "failed"
    TESTS_FAILED = "tests_failed"
    TOOLING_ERROR = "tooling_error"


@dataclass(frozen=True)
class BuildOptions:
    """The subset of batch configuration the builder cares about."""

    release: bool = False
    run_tests: bool = False
    run_benchmarks: bool = False
    rustc_args: tuple[str, ...] = ("-Z", "time-passes")
    target_dir: Optional[Path] = None
    timeout_seconds: Optional[int] = None


@dataclass(frozen=True)
class PhaseOutcome:
    """Verdict and wall-clock duration of one cargo phase."""

    phase: Phase
    status: PhaseStatus
    elapsed_seconds: float
    detail: str = ""

    @property
    def passed(self) -> bool:
        return self.status is PhaseStatus.PASSED

    def to_dict(self) -> dict[str, object]:
        return {
            "phase": self.phase.value,
            "status": self.status.value,
            "elapsed_seconds": round(self.elapsed_seconds, 6),
            "detail": self.detail,
        }


@dataclass(frozen=True)
class PhaseOutcomes:
    """Everything one package's build produced. Test and bench are None when not configured."""

    compile: PhaseOutcome
    test: Optional[PhaseOutcome] = None
    bench: Optional[PhaseOutcome] = None

    def all(self) -> list[PhaseOutcome]:
        return [outcome for outcome in (self.compile, self.test, self.bench) if outcome is not None]
