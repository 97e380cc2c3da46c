# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Local index checkout management.

The index is cloned into `<output_root>/.index` and only renamed to
`<output_root>/index` once the clone finished, so an interrupted clone is
never mistaken for a usable index. Everything here runs before the first
package is processed, and every failure is fatal (SetupError).
"""

import subprocess
from pathlib import Path
from typing import Optional

from cratetime.errors import SetupError
from cratetime.logging.logger import get_logger
from cratetime.utils.filesystem import remove_tree
from cratetime.utils.paths import ensure_directory

logger = get_logger(__name__)

_GIT_TIMEOUT_SECONDS = 3600


def _run_git(args: list[str], cwd: Optional[Path] = None) -> None:
    try:
        subprocess.run(
            ["git", *args],
            check=True,
            capture_output=True,
            text=True,
            timeout=_GIT_TIMEOUT_SECONDS,
            cwd=str(cwd) if cwd is not None else None,
        )
    except subprocess.CalledProcessError as err:
        raise SetupError(f"git {args[0]} failed: {err.stderr.strip()}") from err
    except subprocess.TimeoutExpired as err:
        raise SetupError(
            f"git {args[0]} timed out after {_GIT_TIMEOUT_SECONDS} seconds"
        ) from err
    except FileNotFoundError as err:
        raise SetupError("git executable not found") from err


def ensure_index(output_root: Path, index_url: str, update: bool = True) -> Path:
    """
    Make sure `<output_root>/index` holds a usable index and return its path.

    A missing index is shallow-cloned from `index_url`. An existing one is
    fast-forwarded when `update` is set and it is a git checkout; an index
    that was placed there by hand (no `.git`) is used as-is.
    """
    ensure_directory(output_root)
    index_dir = output_root / "index"

    if index_dir.is_dir():
        if update and (index_dir / ".git").exists():
            logger.info("Updating index", extra={"index": str(index_dir)})
            _run_git(["pull", "--ff-only", "--quiet"], cwd=index_dir)
        return index_dir

    staging = output_root / ".index"
    try:
        remove_tree(staging)
    except OSError as err:
        raise SetupError(f"cannot clear stale {staging}: {err}") from err

    logger.info("Cloning index", extra={"url": index_url, "index": str(index_dir)})
    _run_git(["clone", "--depth", "1", "--quiet", index_url, str(staging)])

    try:
        staging.rename(index_dir)
    except OSError as err:
        raise SetupError(f"cannot move {staging} to {index_dir}: {err}") from err

    return index_dir
