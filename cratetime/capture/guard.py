# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Process-wide capture of stdout and stderr into a per-package log file.

cargo, rustc and build scripts write straight to file descriptors 1 and 2.
There is no handle to pass them, so capturing one package's output means
pointing fd 1 and fd 2 at that package's `stdio` file for the duration of
its build, then pointing them back.

Usage:
    with OutputCapture(output_dir / "stdio"):
        build_and_test(pkg, builder, options)
    # fd 1 and fd 2 are back where they were, whatever happened inside

Only one capture can be live at a time. The descriptors are process-global,
so a nested or concurrent capture would silently steal the outer one's
output; it raises CaptureActiveError instead.
"""

import os
import sys
import threading
from pathlib import Path
from types import TracebackType

from cratetime.errors import CaptureActiveError

STDOUT_FILENO = 1
STDERR_FILENO = 2

_ACTIVE = threading.Lock()


def flush_standard_streams() -> None:
    # Text written through sys.stdout may still be sitting in Python's buffer;
    # it belongs to whichever destination was current when it was written.
    for stream in (sys.stdout, sys.stderr):
        if stream is not None:
            try:
                stream.flush()
            except (OSError, ValueError):
                pass


def capture_active() -> bool:
    """True while some OutputCapture holds the standard descriptors."""
    return _ACTIVE.locked()


class OutputCapture:
    """
    Context manager that redirects fd 1 and fd 2 into `log_path`.

    On enter the file is created (or truncated) and both descriptors are
    duplicated onto it after saving copies of the originals. On exit, on
    every path, the originals are restored and the saved copies closed.
    """

    def __init__(self, log_path: Path) -> None:
        self._log_path = log_path
        self._saved_stdout: int | None = None
        self._saved_stderr: int | None = None

    @property
    def log_path(self) -> Path:
        return self._log_path

    def __enter__(self) -> Path:
        if not _ACTIVE.acquire(blocking=False):
            raise CaptureActiveError(
                f"cannot capture into {self._log_path}: another capture is already active"
            )

        try:
            flush_standard_streams()
            log_fd = os.open(
                str(self._log_path),
                os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
                0o644,
            )
            try:
                self._saved_stdout = os.dup(STDOUT_FILENO)
                self._saved_stderr = os.dup(STDERR_FILENO)
                os.dup2(log_fd, STDOUT_FILENO)
                os.dup2(log_fd, STDERR_FILENO)
            finally:
                os.close(log_fd)
        except BaseException:
            self._restore()
            _ACTIVE.release()
            raise

        return self._log_path

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        try:
            flush_standard_streams()
            self._restore()
        finally:
            _ACTIVE.release()

    def _restore(self) -> None:
        # Restore both before closing either, so a failure on stdout still
        # gives stderr back.
        saved = ((self._saved_stdout, STDOUT_FILENO), (self._saved_stderr, STDERR_FILENO))
        errors: list[OSError] = []
        for saved_fd, target_fd in saved:
            if saved_fd is None:
                continue
            try:
                os.dup2(saved_fd, target_fd)
            except OSError as err:
                errors.append(err)
        for saved_fd, _ in saved:
            if saved_fd is not None:
                os.close(saved_fd)
        self._saved_stdout = None
        self._saved_stderr = None
        if errors:
            raise errors[0]
