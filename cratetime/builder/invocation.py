# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Running the compile, test and bench phases for one resolved package.

Everything here reports through the ambient output streams: phase verdicts
are written to fd 1 and so end up in the package's captured `stdio` log next
to cargo's own output. The returned PhaseOutcomes is only used by the
orchestrator for its summary and status file.

A failed compile does not stop the test and bench phases. They will most
likely fail too, but their diagnostics still end up in the log, which is
often the quickest way to see why a crate doesn't build.
"""

import os
import sys
import time
from typing import Callable, Optional

from cratetime.builder.cargo import Builder
from cratetime.builder.models import BuildOptions, Phase, PhaseOutcome, PhaseOutcomes, PhaseStatus
from cratetime.capture.guard import STDOUT_FILENO
from cratetime.errors import BuilderError
from cratetime.registry.resolver import ResolvedPackage
from cratetime.timing.parser import TERMINATOR


def announce(line: str) -> None:
    """Write one line to fd 1, ordered with any subprocess output already written there."""
    sys.stdout.flush()
    os.write(STDOUT_FILENO, (line + "\n").encode("utf-8"))


def _timed(call: Callable[[], int]) -> tuple[int | None, float, BuilderError | None]:
    start = time.monotonic()
    try:
        code = call()
    except BuilderError as err:
        return None, time.monotonic() - start, err
    return code, time.monotonic() - start, None


def run_compile(pkg: ResolvedPackage, builder: Builder, options: BuildOptions) -> PhaseOutcome:
    code, elapsed, error = _timed(lambda: builder.compile_lib(pkg.manifest_path, options))

    if error is None and code == 0:
        announce(f"> compile passed for `{pkg}`")
        announce(TERMINATOR)
        return PhaseOutcome(Phase.COMPILE, PhaseStatus.PASSED, elapsed)

    detail = str(error) if error is not None else f"cargo exited with status {code}"
    announce(f"> compile failed for `{pkg}`: {detail}")
    return PhaseOutcome(Phase.COMPILE, PhaseStatus.FAILED, elapsed, detail)


def _run_checked_phase(
    phase: Phase,
    label: str,
    call: Callable[[], int],
    pkg: ResolvedPackage,
) -> PhaseOutcome:
    code, elapsed, error = _timed(call)

    if error is not None:
        announce(f"> cargo error for `{pkg}`: {error}")
        return PhaseOutcome(phase, PhaseStatus.TOOLING_ERROR, elapsed, str(error))

    if code == 0:
        announce(f"> {label} passed for `{pkg}`: {elapsed:.3f}s")
        return PhaseOutcome(phase, PhaseStatus.PASSED, elapsed)

    detail = f"cargo exited with status {code}"
    announce(f"> {label} failed for `{pkg}`: {detail}")
    return PhaseOutcome(phase, PhaseStatus.TESTS_FAILED, elapsed, detail)


def build_and_test(
    pkg: ResolvedPackage,
    builder: Builder,
    options: BuildOptions,
    on_phase: Optional[Callable[[Phase], None]] = None,
) -> PhaseOutcomes:
    """
    Compile `pkg`'s library with instrumentation, then run tests and benches
    when configured. Each phase is timed and classified independently.

    `on_phase` is called with each phase just before it starts.
    """
    notify = on_phase or (lambda phase: None)

    notify(Phase.COMPILE)
    compile_outcome = run_compile(pkg, builder, options)

    test_outcome = None
    if options.run_tests:
        notify(Phase.TEST)
        test_outcome = _run_checked_phase(
            Phase.TEST, "tests", lambda: builder.run_tests(pkg.manifest_path, options), pkg,
        )

    bench_outcome = None
    if options.run_benchmarks:
        notify(Phase.BENCH)
        bench_outcome = _run_checked_phase(
            Phase.BENCH, "benches", lambda: builder.run_benches(pkg.manifest_path, options), pkg,
        )

    return PhaseOutcomes(compile=compile_outcome, test=test_outcome, bench=bench_outcome)
