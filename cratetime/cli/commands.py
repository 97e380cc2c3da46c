# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the cratetime CLI.

Each handler takes the parsed argparse namespace and returns an exit code.
Progress goes through the structured logger; the only plain-text output is
the report itself, which is the product of `cratetime report`.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from cratetime.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, USER_ERROR
from cratetime.config.exceptions import ConfigError
from cratetime.config.loader import apply_overrides, load_config
from cratetime.config.schema import BatchConfig, CratetimeConfig, GlobalConfig
from cratetime.errors import BatchAbortedError, InvalidCrateSpecError, SetupError
from cratetime.logging.logger import get_logger
from cratetime.runtime.bootstrap import bootstrap

DEFAULT_CONFIG_VERSION = "1.0.0"


def _load(args: argparse.Namespace, command_name: str) -> tuple[int, CratetimeConfig | None, logging.Logger]:
    """
    Shared setup: load the config file if one was given, apply --log-level.

    Returns (exit_code, config, logger). A non-SUCCESS exit code means the
    caller should return it immediately.
    """
    logger = get_logger(f"cratetime.cli.{command_name}", log_level=args.log_level or "INFO")

    if args.config is not None:
        try:
            config = load_config(Path(args.config))
        except ConfigError as err:
            logger.error(
                "Configuration error",
                extra={"command": command_name, "error": str(err)},
            )
            return CONFIG_ERROR, None, logger
    else:
        config = CratetimeConfig.model_validate({"global": {"config_version": DEFAULT_CONFIG_VERSION}})

    if args.log_level is not None:
        global_config = config.global_config.model_copy(update={"log_level": args.log_level})
        config = config.model_copy(update={"global_config": global_config})

    return SUCCESS, config, logger


def _batch_overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "output_root": args.out,
        "run_tests": args.test,
        "run_benchmarks": args.bench,
        "release_mode": args.release,
        "force": args.force,
        "stop_on_error": args.stop_on_error,
        "update_index": False if args.no_index_update else None,
        "phase_timeout_seconds": args.timeout,
    }


def handle_run(args: argparse.Namespace) -> int:
    """Build (and optionally test/bench) the requested packages."""
    exit_code, config, logger = _load(args, "run")
    if exit_code != SUCCESS or config is None:
        return exit_code

    try:
        batch: BatchConfig = apply_overrides(config.batch, _batch_overrides(args))
    except ConfigError as err:
        logger.error("Configuration error", extra={"command": "run", "error": str(err)})
        return CONFIG_ERROR

    bootstrap(config.global_config, batch)

    from cratetime.batch.orchestrator import BatchOrchestrator
    from cratetime.builder.cargo import CargoBuilder
    from cratetime.registry.checkout import ensure_index
    from cratetime.registry.index import IndexRegistry

    output_root = Path(batch.output_root)

    try:
        index_dir = ensure_index(output_root, batch.index_url, update=batch.update_index)
    except SetupError as err:
        logger.error("Index setup failed", extra={"error": str(err)})
        return RUNTIME_ERROR

    registry = IndexRegistry(index_dir, output_root / "registry")
    orchestrator = BatchOrchestrator(registry, CargoBuilder(batch.cargo_executable), batch)

    try:
        summary = orchestrator.run(args.packages)
    except InvalidCrateSpecError as err:
        logger.error(str(err), extra={"token": err.token})
        return USER_ERROR
    except BatchAbortedError as err:
        logger.error(str(err), extra={"package": err.package})
        return RUNTIME_ERROR

    logger.info(
        "Run complete",
        extra={
            "processed": summary.processed,
            "succeeded": len(summary.succeeded),
            "failed": len(summary.failed),
            "skipped": len(summary.skipped),
        },
    )
    return SUCCESS


def handle_report(args: argparse.Namespace) -> int:
    """Print one timing line per package directory under each given root."""
    exit_code, _, logger = _load(args, "report")
    if exit_code != SUCCESS:
        return exit_code

    from cratetime.timing.reporter import write_report

    roots = [Path(directory) for directory in args.directories]
    missing = [str(root) for root in roots if not root.is_dir()]
    if missing:
        logger.error("Not a directory", extra={"paths": missing})
        return USER_ERROR

    try:
        write_report(roots, sys.stdout)
    except OSError as err:
        logger.error("Report failed", extra={"error": str(err)})
        return RUNTIME_ERROR
    sys.stdout.flush()
    return SUCCESS


def handle_info(args: argparse.Namespace) -> int:
    """Log environment details and the effective batch configuration."""
    exit_code, config, logger = _load(args, "info")
    if exit_code != SUCCESS or config is None:
        return exit_code

    from cratetime.runtime.environment import discover_toolchain, host_description

    toolchain = discover_toolchain(config.batch.cargo_executable)
    logger.info("Environment", extra={**host_description(), **toolchain._asdict()})
    logger.info("Batch configuration", extra={"batch": config.batch.model_dump(mode="json")})
    return SUCCESS
