# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Filesystem helpers for the ledger and the reporter.

Status files are written atomically: temp file in the same directory, then
rename. A crash mid-write leaves a stray temp file, never a truncated
status.json that would make a finished package look corrupt.
"""

import shutil
import tempfile
from pathlib import Path


def atomic_write(target_path: Path, content: str, encoding: str = "utf-8") -> None:
    """
    Write content to a file atomically.

    Rename within one directory is atomic on POSIX, so readers see either the
    old file or the complete new one.

    Raises:
        OSError: If the write or rename fails.
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd = tempfile.NamedTemporaryFile(
        mode="w",
        encoding=encoding,
        dir=str(target_path.parent),
        prefix=".cratetime_tmp_",
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(temp_fd.name)

    try:
        temp_fd.write(content)
        temp_fd.flush()
        temp_fd.close()
        temp_path.rename(target_path)
    except BaseException:
        temp_fd.close()
        if temp_path.exists():
            temp_path.unlink()
        raise


def safe_read(file_path: Path, encoding: str = "utf-8", errors: str = "strict") -> str:
    """
    Read a text file with proper error context.

    Captured build logs can contain arbitrary bytes from a crate's build
    script, so the reporter reads them with errors="replace".

    Raises:
        FileNotFoundError: If the path doesn't exist.
        IsADirectoryError: If the path is a directory.
        OSError: For other I/O errors.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    if not file_path.is_file():
        raise IsADirectoryError(f"Expected a file, got a directory: {file_path}")
    # newline="" keeps bare \r and \r\n as written; the log parser decides what a line is.
    with open(file_path, encoding=encoding, errors=errors, newline="") as f:
        return f.read()


def remove_tree(directory: Path) -> bool:
    """
    Recursively delete a directory. Returns whether anything was removed.

    Errors propagate: a half-deleted output directory must not be mistaken
    for a fresh one.
    """
    if not directory.exists():
        return False
    shutil.rmtree(directory)
    return True
