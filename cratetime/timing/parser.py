# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Timing log parser.

rustc's `-Z time-passes` prints one line per compiler pass:

    time: 0.003; rss: 36MB ->  38MB ( +2MB)	parse_crate

The harness writes a bare `OK` line once the compile succeeded. A log is
"complete" only if that line is present; every `time:` line seen before it
contributes its duration, in file order.

Lines are split on `\\n` only, with one trailing `\\r` dropped. Build scripts
and progress bars emit bare `\\r` and form feeds mid-line; those never start
a new line, so `building...\\rOK` is not a terminator.
"""

import re
from typing import Iterator

from cratetime.errors import IncompleteLogError

TERMINATOR = "OK"

TIME_LINE_RE = re.compile(r"^time:\s+(\d+\.\d+)(.*)$", re.ASCII)


def _lines(text: str) -> Iterator[str]:
    for line in text.split("\n"):
        yield line[:-1] if line.endswith("\r") else line


def parse_timing_fields(text: str) -> list[str]:
    """
    Extract pass durations exactly as rustc printed them (`"1.250"`).

    Raises:
        IncompleteLogError: If the terminator line never appears.
    """
    fields: list[str] = []
    for line in _lines(text):
        if line == TERMINATOR:
            return fields
        match = TIME_LINE_RE.match(line)
        if match is not None:
            fields.append(match.group(1))
    raise IncompleteLogError("bad compile")


def parse_timings(text: str) -> list[float]:
    """
    Extract pass durations from a captured log.

    Returns:
        The durations in the order they appear; empty if no pass was timed.

    Raises:
        IncompleteLogError: If the terminator line never appears.
    """
    return [float(field) for field in parse_timing_fields(text)]
