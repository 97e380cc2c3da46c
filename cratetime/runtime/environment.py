# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Toolchain discovery for cratetime.

Pass timings are only comparable between batches built by the same rustc,
so the versions of cargo and rustc are recorded in the run log before the
first package is touched. A missing `cargo` also shows up here once rather
than as a tooling error on every single package.
"""

import platform
import shutil
import subprocess
import sys
from typing import NamedTuple, Optional

MINIMUM_PYTHON = (3, 11)

_VERSION_TIMEOUT_SECONDS = 30


class ToolchainInfo(NamedTuple):
    """What a batch will shell out to. None means not found or not runnable."""

    cargo: Optional[str]
    cargo_version: Optional[str]
    rustc_version: Optional[str]
    git: Optional[str]


def check_minimum_python(version: Optional[tuple[int, int]] = None) -> None:
    """
    Refuse to run on an interpreter older than MINIMUM_PYTHON.

    Raises:
        RuntimeError: If the running (or given) version is too old.
    """
    major, minor = version if version is not None else sys.version_info[:2]
    if (major, minor) < MINIMUM_PYTHON:
        raise RuntimeError(
            f"cratetime requires Python >= {MINIMUM_PYTHON[0]}.{MINIMUM_PYTHON[1]}, "
            f"but you're running {major}.{minor}. Please upgrade."
        )


def host_description() -> dict[str, str]:
    return {
        "python_version": platform.python_version(),
        "platform": platform.system(),
        "architecture": platform.machine(),
    }


def find_tool(executable: str) -> Optional[str]:
    """Absolute path of `executable` on PATH, or None."""
    return shutil.which(executable)


def tool_version(executable: str) -> Optional[str]:
    """First line of `<executable> --version`, or None if it can't be run."""
    try:
        result = subprocess.run(
            [executable, "--version"],
            capture_output=True,
            text=True,
            timeout=_VERSION_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    lines = result.stdout.strip().splitlines()
    return lines[0] if lines else None


def discover_toolchain(cargo_executable: str = "cargo") -> ToolchainInfo:
    cargo = find_tool(cargo_executable)
    rustc = find_tool("rustc")
    return ToolchainInfo(
        cargo=cargo,
        cargo_version=tool_version(cargo) if cargo is not None else None,
        rustc_version=tool_version(rustc) if rustc is not None else None,
        git=find_tool("git"),
    )
