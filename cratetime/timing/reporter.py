# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Result reporter.

Walks a directory of per-package outputs (normally `<output_root>/output`)
and yields one line per package:

    out/output/serde, true, 0.003, 0.118, 1.204
    out/output/broken-crate, false

Lines come out in the order the filesystem lists the directories, which is
not sorted. Sort the output if you need a stable order.
"""

from pathlib import Path
from typing import Iterable, Iterator, Sequence, TextIO

from cratetime.errors import IncompleteLogError
from cratetime.logging.logger import get_logger
from cratetime.timing.parser import parse_timing_fields
from cratetime.utils.filesystem import safe_read

logger = get_logger(__name__)

LOG_FILENAME = "stdio"


def format_line(package_path: Path | str, timings: Sequence[str | float] | None) -> str:
    """
    Render one report line; `timings=None` means the parse failed.

    Durations are written as given. The reporter passes the decimal text
    captured from the log, so `1.250` stays `1.250`.
    """
    if timings is None:
        return ", ".join([str(package_path), "false"])
    return ", ".join([str(package_path), "true", *(str(t) for t in timings)])


def report_package(package_dir: Path) -> str:
    """Parse one package directory's captured log into a report line."""
    try:
        text = safe_read(package_dir / LOG_FILENAME, errors="replace")
    except OSError as err:
        logger.debug(
            "No readable log for package",
            extra={"package_dir": str(package_dir), "error": str(err)},
        )
        return format_line(package_dir, None)

    try:
        timings = parse_timing_fields(text)
    except IncompleteLogError:
        return format_line(package_dir, None)
    return format_line(package_dir, timings)


def report_lines(root_dir: Path) -> Iterator[str]:
    """Lazily yield one report line per immediate subdirectory of `root_dir`."""
    for entry in root_dir.iterdir():
        if entry.is_dir():
            yield report_package(entry)


def write_report(roots: Iterable[Path], stream: TextIO) -> int:
    """Write report lines for every root to `stream`. Returns the number of lines."""
    count = 0
    for root in roots:
        for line in report_lines(root):
            stream.write(line + "\n")
            count += 1
    return count
