# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for cratetime tests.

The batch tests never touch the network or a real toolchain. FakeRegistry
serves versions from a dict and "downloads" by creating a directory with a
Cargo.toml; FakeBuilder writes rustc-style `time:` lines straight to fd 1,
exactly where a real cargo subprocess would write them.
"""

import os
import textwrap
from pathlib import Path
from typing import Iterator

import pytest

from cratetime.builder.cargo import Builder
from cratetime.builder.models import BuildOptions
from cratetime.errors import BuilderError
from cratetime.registry.index import Registry, RegistryEntry


class FakeRegistry(Registry):
    """In-memory registry that records every name it was asked about."""

    def __init__(self, storage: Path, versions: dict[str, list[str]]) -> None:
        self.storage = storage
        self.versions = versions
        self.queried: list[str] = []
        self.downloaded: list[RegistryEntry] = []
        self.broken_downloads: set[str] = set()
        self.broken_queries: set[str] = set()
        self.yanked: set[tuple[str, str]] = set()

    def package_names(self) -> Iterator[str]:
        yield from self.versions

    def query(self, name: str) -> list[RegistryEntry]:
        self.queried.append(name)
        if name in self.broken_queries:
            raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
        return [
            RegistryEntry(name=name, version=v, yanked=(name, v) in self.yanked)
            for v in self.versions.get(name, [])
        ]

    def download(self, entry: RegistryEntry) -> Path:
        if entry.name in self.broken_downloads:
            raise ConnectionError("connection reset by peer")
        self.downloaded.append(entry)
        source = self.storage / f"{entry.name}-{entry.version}"
        source.mkdir(parents=True, exist_ok=True)
        (source / "Cargo.toml").write_text(
            f'[package]\nname = "{entry.name}"\nversion = "{entry.version}"\n',
            encoding="utf-8",
        )
        return source


class FakeBuilder(Builder):
    """
    Builder that emits canned output on fd 1 and returns canned exit codes.

    `timings` are written as `time: <t> pass-<i>` lines during compile_lib.
    Setting an exit code to a BuilderError instance raises it instead.
    """

    def __init__(self, timings: tuple[float, ...] = (0.125, 0.004)) -> None:
        self.timings = timings
        self.compile_result: int | BuilderError = 0
        self.test_result: int | BuilderError = 0
        self.bench_result: int | BuilderError = 0
        self.calls: list[tuple[str, Path]] = []

    def _finish(self, result: int | BuilderError) -> int:
        if isinstance(result, BuilderError):
            raise result
        return result

    def compile_lib(self, manifest_path: Path, options: BuildOptions) -> int:
        self.calls.append(("compile", manifest_path))
        for index, value in enumerate(self.timings):
            os.write(1, f"time: {value:.3f}; rss: 30MB\tpass-{index}\n".encode())
        os.write(2, b"   Compiling fake v0.0.0\n")
        return self._finish(self.compile_result)

    def run_tests(self, manifest_path: Path, options: BuildOptions) -> int:
        self.calls.append(("test", manifest_path))
        os.write(1, b"running 1 test\n")
        return self._finish(self.test_result)

    def run_benches(self, manifest_path: Path, options: BuildOptions) -> int:
        self.calls.append(("bench", manifest_path))
        os.write(1, b"running 1 bench\n")
        return self._finish(self.bench_result)


@pytest.fixture()
def fake_registry(tmp_path: Path) -> FakeRegistry:
    """A registry knowing `foo` (three versions) and `bar` (one version)."""
    return FakeRegistry(
        tmp_path / "registry-src",
        {
            "foo": ["0.9.0", "1.0.0", "1.0.0-beta.2"],
            "bar": ["0.1.0"],
        },
    )


@pytest.fixture()
def fake_builder() -> FakeBuilder:
    return FakeBuilder()


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """The smallest config that passes schema validation, plus a batch section."""
    config_content = textwrap.dedent(f"""\
        global:
          config_version: "1.0.0"
          log_level: "DEBUG"
        batch:
          output_root: "{tmp_path / 'out'}"
          run_tests: true
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """Valid YAML that fails schema validation (missing config_version)."""
    config_content = textwrap.dedent("""\
        global:
          log_level: "INFO"
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file
