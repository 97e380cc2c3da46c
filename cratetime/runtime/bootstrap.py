# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for cratetime.

Runs once before a batch:
  1. Validate the interpreter
  2. Configure the package logger with the requested level / run log
  3. Create the output root
  4. Record the cargo and rustc versions, warn about missing tools

After bootstrap the output root exists and startup info has been logged.
"""

from pathlib import Path
from typing import Optional

from cratetime.config.schema import BatchConfig, GlobalConfig
from cratetime.logging.logger import configure_logging, get_logger
from cratetime.runtime.environment import check_minimum_python, discover_toolchain, host_description
from cratetime.utils.paths import ensure_directory


def bootstrap(config: GlobalConfig, batch: Optional[BatchConfig] = None) -> None:
    """
    Put the process into a known state for a batch run.

    Args:
        config: The validated global configuration.
        batch: The batch section, when the command is going to build things.
    """
    check_minimum_python()

    log_file = Path(config.log_file) if config.log_file is not None else None
    logger = get_logger("cratetime.runtime", log_level=config.log_level)
    configure_logging("cratetime", log_level=config.log_level, log_file=log_file)

    logger.info("cratetime bootstrap complete", extra=host_description())

    if batch is None:
        return

    ensure_directory(Path(batch.output_root))

    toolchain = discover_toolchain(batch.cargo_executable)
    logger.info("Toolchain", extra=toolchain._asdict())
    if toolchain.cargo is None:
        logger.warning("External tool not found on PATH", extra={"tool": batch.cargo_executable})
    if toolchain.git is None:
        logger.warning("External tool not found on PATH", extra={"tool": "git"})
