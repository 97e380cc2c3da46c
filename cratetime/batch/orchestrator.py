# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Batch orchestrator.

For each requested package, in order:
  1. Skip it if it is on the exclusion list (never resolved, never built)
  2. Skip it if the ledger already has its log, unless `force` is set, in
     which case the old results are deleted first
  3. Open an OutputCapture on `<output_dir>/stdio`
  4. Resolve and download it, then compile / test / bench it
  5. Release the capture, write status.json, report failures

Packages are processed strictly one after another: the capture owns the
process's stdout and stderr, so two builds at once would write into each
other's logs. A per-package failure is reported and the loop moves on,
unless `stop_on_error` is set.
"""

from pathlib import Path
from typing import Iterable

from cratetime.batch.ledger import Ledger
from cratetime.batch.models import BatchSummary, BuildRun, RunStatus
from cratetime.builder.cargo import Builder
from cratetime.builder.invocation import announce, build_and_test
from cratetime.builder.models import BuildOptions, Phase
from cratetime.capture.guard import OutputCapture, flush_standard_streams
from cratetime.config.schema import BatchConfig
from cratetime.errors import BatchAbortedError, ResolveError
from cratetime.logging.logger import get_logger
from cratetime.registry.index import Registry
from cratetime.registry.resolver import resolve
from cratetime.registry.spec import CrateSpec, is_wildcard, parse_crate_specs

logger = get_logger(__name__)

_PHASE_STATUS = {
    Phase.COMPILE: RunStatus.BUILDING,
    Phase.TEST: RunStatus.TESTING,
    Phase.BENCH: RunStatus.BENCHMARKING,
}


def build_options(config: BatchConfig) -> BuildOptions:
    """Translate batch config into what the builder needs."""
    return BuildOptions(
        release=config.release_mode,
        run_tests=config.run_tests,
        run_benchmarks=config.run_benchmarks,
        rustc_args=tuple(config.rustc_args),
        target_dir=Path(config.output_root) / "results",
        timeout_seconds=config.phase_timeout_seconds,
    )


class BatchOrchestrator:
    """Runs one batch over a registry with a builder, as configured."""

    def __init__(self, registry: Registry, builder: Builder, config: BatchConfig) -> None:
        self._registry = registry
        self._builder = builder
        self._config = config
        self._ledger = Ledger(Path(config.output_root))
        self._options = build_options(config)

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    def expand(self, tokens: Iterable[str]) -> list[CrateSpec]:
        """
        Turn the raw work list into specs.

        `*` anywhere in the list means every package in the index; otherwise
        each token is parsed, and one bad token fails the whole list before
        anything runs.
        """
        tokens = list(tokens)
        if is_wildcard(tokens):
            return [CrateSpec(name=name) for name in self._registry.package_names()]
        return parse_crate_specs(tokens)

    def run(self, tokens: Iterable[str]) -> BatchSummary:
        """
        Process every requested package.

        Raises:
            InvalidCrateSpecError: A token is malformed (nothing was processed).
            BatchAbortedError: A package failed and stop_on_error is set.
        """
        specs = self.expand(tokens)
        summary = BatchSummary()

        logger.info("Batch started", extra={"packages": len(specs)})

        for spec in specs:
            if spec.name in self._config.excluded_packages:
                logger.debug("Excluded package", extra={"package": str(spec)})
                summary.excluded.append(spec)
                continue

            rerun = self._ledger.is_complete(spec)
            if rerun and not self._config.force:
                logger.info("skipping", extra={"package": str(spec)})
                summary.skipped.append(spec)
                continue

            run = self.process(spec, discard_prior=rerun)
            summary.runs.append(run)

            if run.status is RunStatus.FAILED:
                logger.error(
                    "Package failed",
                    extra={
                        "package": str(spec),
                        "kind": run.failure_kind,
                        "error": run.failure_detail,
                    },
                )
                if self._config.stop_on_error:
                    logger.error("Aborting due to stop_on_error", extra={"package": str(spec)})
                    raise BatchAbortedError(str(spec), run.failure_detail or "")

        logger.info(
            "Batch finished",
            extra={
                "processed": summary.processed,
                "failed": len(summary.failed),
                "skipped": len(summary.skipped),
                "excluded": len(summary.excluded),
            },
        )
        return summary

    def process(self, spec: CrateSpec, discard_prior: bool = False) -> BuildRun:
        """Resolve, build and record one package. Never raises for per-package failures."""
        output_dir = self._ledger.output_dir(spec)
        run = BuildRun(spec=spec, output_dir=output_dir, stdio_log_path=self._ledger.log_path(spec))

        try:
            if discard_prior:
                logger.info("Removing prior results", extra={"package": str(spec)})
                self._ledger.reset(spec)
            self._ledger.prepare(spec)
        except OSError as err:
            run.fail("IOError", f"could not prepare {output_dir}: {err}")
            return run

        logger.info(
            "Building and storing results",
            extra={"package": str(spec), "output_dir": str(output_dir)},
        )

        try:
            with OutputCapture(run.stdio_log_path):
                self._attempt(run)
        except OSError as err:
            run.fail("IOError", str(err))
        finally:
            flush_standard_streams()

        try:
            self._ledger.record(run)
        except OSError as err:
            run.fail("IOError", f"could not write status: {err}")

        return run

    def _attempt(self, run: BuildRun) -> None:
        run.status = RunStatus.RESOLVING
        try:
            pkg = resolve(run.spec, self._registry)
        except ResolveError as err:
            announce(f"> {run.spec}: {err}")
            run.fail(err.kind, str(err))
            return

        def on_phase(phase: Phase) -> None:
            run.status = _PHASE_STATUS[phase]

        run.outcomes = build_and_test(pkg, self._builder, self._options, on_phase=on_phase)
        run.status = RunStatus.DONE
