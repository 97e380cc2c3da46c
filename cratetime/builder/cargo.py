# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The builder capability and its cargo implementation.

Each method returns cargo's exit code. A non-zero code means the package
under test failed (compile error, failing test); BuilderError means cargo
itself could not do its job: not installed, timed out, killed by a signal.

Unlike a sandboxed harness this one deliberately does NOT capture the
subprocess output. stdout/stderr are inherited, so whatever OutputCapture
currently has on fd 1 and fd 2 receives rustc's `time:` lines directly.
"""

import os
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from cratetime.builder.models import BuildOptions
from cratetime.errors import BuilderError
from cratetime.logging.logger import get_logger

logger = get_logger(__name__)


class Builder(ABC):
    """Contract for compiling, testing and benchmarking one manifest."""

    @abstractmethod
    def compile_lib(self, manifest_path: Path, options: BuildOptions) -> int:
        """Build the library target only, with the instrumentation flags."""
        ...

    @abstractmethod
    def run_tests(self, manifest_path: Path, options: BuildOptions) -> int:
        ...

    @abstractmethod
    def run_benches(self, manifest_path: Path, options: BuildOptions) -> int:
        ...


class CargoBuilder(Builder):
    """Drives the `cargo` executable through subprocess."""

    def __init__(self, cargo_executable: str = "cargo") -> None:
        self._cargo = cargo_executable

    def compile_lib(self, manifest_path: Path, options: BuildOptions) -> int:
        # `cargo rustc --lib` restricts the build to the library target and
        # hands everything after `--` to the final rustc invocation only.
        args = ["rustc", "--lib", "--manifest-path", str(manifest_path)]
        if options.release:
            args.append("--release")
        args.extend(["--", *options.rustc_args])
        return self._run(args, manifest_path, options)

    def run_tests(self, manifest_path: Path, options: BuildOptions) -> int:
        return self._run(self._target_args("test", manifest_path, options), manifest_path, options)

    def run_benches(self, manifest_path: Path, options: BuildOptions) -> int:
        return self._run(self._target_args("bench", manifest_path, options), manifest_path, options)

    @staticmethod
    def _target_args(command: str, manifest_path: Path, options: BuildOptions) -> list[str]:
        args = [command, "--manifest-path", str(manifest_path)]
        if options.release and command == "test":
            args.append("--release")
        return args

    def _run(self, args: list[str], manifest_path: Path, options: BuildOptions) -> int:
        command = [self._cargo, *args]
        try:
            result = subprocess.run(
                command,
                cwd=str(manifest_path.parent),
                env=_build_env(options),
                timeout=options.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as err:
            raise BuilderError(
                f"`{' '.join(command)}` timed out after {options.timeout_seconds}s"
            ) from err
        except FileNotFoundError as err:
            raise BuilderError(f"{self._cargo} executable not found") from err
        except OSError as err:
            raise BuilderError(f"could not start `{' '.join(command)}`: {err}") from err

        if result.returncode < 0:
            raise BuilderError(
                f"`{' '.join(command)}` was killed by signal {-result.returncode}"
            )
        return result.returncode


def _build_env(options: BuildOptions) -> dict[str, str]:
    """Inherit the parent environment, pointing cargo at the shared target dir."""
    env = dict(os.environ)
    if options.target_dir is not None:
        env["CARGO_TARGET_DIR"] = str(options.target_dir)
    # -Z flags are only accepted by nightly; this lets a stable toolchain
    # honour them too.
    env.setdefault("RUSTC_BOOTSTRAP", "1")
    return env
