# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the local-index registry. No network: archives are pre-seeded
into the download cache, and urlopen is patched where a fetch happens.
"""

import io
import json
import tarfile
from pathlib import Path
from urllib.error import URLError

import pytest

from cratetime.registry import index as index_module
from cratetime.registry.index import IndexRegistry, RegistryEntry, index_prefix, index_relative_path
from cratetime.utils.hashing import compute_sha256


def _write_index_file(index_dir: Path, name: str, lines: list[str]) -> None:
    path = index_dir / index_relative_path(name)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _version_line(name: str, vers: str, cksum: str = "", yanked: bool = False) -> str:
    return json.dumps({"name": name, "vers": vers, "cksum": cksum, "yanked": yanked, "deps": []})


def _make_crate(path: Path, stem: str) -> None:
    """Write a gzipped tarball laid out like a published .crate file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w:gz") as tar:
        for member, body in (("Cargo.toml", b"[package]\n"), ("src/lib.rs", b"")):
            info = tarfile.TarInfo(f"{stem}/{member}")
            info.size = len(body)
            tar.addfile(info, io.BytesIO(body))


@pytest.fixture()
def index_dir(tmp_path: Path) -> Path:
    index = tmp_path / "index"
    index.mkdir()
    (index / "config.json").write_text(
        json.dumps({"dl": "https://static.example.org/crates", "api": "https://example.org"}),
        encoding="utf-8",
    )
    (index / ".git").mkdir()
    (index / ".git" / "HEAD").write_text("ref: refs/heads/master\n", encoding="utf-8")
    _write_index_file(index, "a", [_version_line("a", "0.1.0")])
    _write_index_file(index, "cc", [_version_line("cc", "1.0.0")])
    _write_index_file(index, "syn", [_version_line("syn", "2.0.0")])
    _write_index_file(
        index,
        "serde",
        [
            _version_line("serde", "1.0.0"),
            "{not json",
            json.dumps({"name": "serde"}),
            "",
            _version_line("serde", "1.0.1", yanked=True),
        ],
    )
    return index


class TestIndexLayout:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("a", "1/a"),
            ("cc", "2/cc"),
            ("syn", "3/s/syn"),
            ("serde", "se/rd/serde"),
            ("Inflector", "in/fl/inflector"),
        ],
    )
    def test_relative_path(self, name: str, expected: str) -> None:
        assert index_relative_path(name) == Path(expected)


class TestIndexRegistry:
    def test_package_names_skip_metadata(self, index_dir: Path, tmp_path: Path) -> None:
        registry = IndexRegistry(index_dir, tmp_path / "storage")
        assert sorted(registry.package_names()) == ["a", "cc", "serde", "syn"]

    def test_query_skips_malformed_lines(self, index_dir: Path, tmp_path: Path) -> None:
        registry = IndexRegistry(index_dir, tmp_path / "storage")

        entries = registry.query("serde")

        assert [e.version for e in entries] == ["1.0.0", "1.0.1"]
        assert entries[1].yanked

    def test_query_unknown_name(self, index_dir: Path, tmp_path: Path) -> None:
        assert IndexRegistry(index_dir, tmp_path / "storage").query("missing") == []

    def test_download_url_appends_path(self, index_dir: Path, tmp_path: Path) -> None:
        registry = IndexRegistry(index_dir, tmp_path / "storage")
        url = registry.download_url(RegistryEntry("serde", "1.0.0"))
        assert url == "https://static.example.org/crates/serde/1.0.0/download"

    def test_download_url_template(self, index_dir: Path, tmp_path: Path) -> None:
        (index_dir / "config.json").write_text(
            json.dumps({"dl": "https://mirror.example.org/{crate}/{crate}-{version}.crate"}),
            encoding="utf-8",
        )
        registry = IndexRegistry(index_dir, tmp_path / "storage")
        url = registry.download_url(RegistryEntry("serde", "1.0.0"))
        assert url == "https://mirror.example.org/serde/serde-1.0.0.crate"

    def test_download_url_prefix_and_checksum_markers(self, index_dir: Path, tmp_path: Path) -> None:
        (index_dir / "config.json").write_text(
            json.dumps({"dl": "https://mirror.example.org/{prefix}/{lowerprefix}/{crate}/{version}/{sha256-checksum}"}),
            encoding="utf-8",
        )
        registry = IndexRegistry(index_dir, tmp_path / "storage")

        url = registry.download_url(RegistryEntry("Serde", "1.0.0", checksum="abc123"))

        assert url == "https://mirror.example.org/Se/rd/se/rd/Serde/1.0.0/abc123"

    @pytest.mark.parametrize(
        ("name", "prefix"),
        [("a", "1"), ("cc", "2"), ("Syn", "3/S"), ("serde", "se/rd")],
    )
    def test_index_prefix(self, name: str, prefix: str) -> None:
        assert index_prefix(name) == prefix


class TestDownload:
    def test_unpacks_cached_archive(self, index_dir: Path, tmp_path: Path) -> None:
        storage = tmp_path / "storage"
        archive = storage / "cache" / "serde-1.0.0.crate"
        _make_crate(archive, "serde-1.0.0")
        entry = RegistryEntry("serde", "1.0.0", checksum=compute_sha256(archive))

        source = IndexRegistry(index_dir, storage).download(entry)

        assert source == storage / "src" / "serde-1.0.0"
        assert (source / "Cargo.toml").is_file()
        assert (source / "src" / "lib.rs").is_file()
        assert not any(p.name.startswith(".unpack_") for p in (storage / "src").iterdir())

    def test_second_download_reuses_source(self, index_dir: Path, tmp_path: Path) -> None:
        storage = tmp_path / "storage"
        archive = storage / "cache" / "serde-1.0.0.crate"
        _make_crate(archive, "serde-1.0.0")
        entry = RegistryEntry("serde", "1.0.0", checksum=compute_sha256(archive))
        registry = IndexRegistry(index_dir, storage)

        first = registry.download(entry)
        archive.unlink()
        second = registry.download(entry)

        assert first == second

    def test_failed_fetch_leaves_no_partial(
        self, index_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def refuse(*args: object, **kwargs: object) -> None:
            raise URLError("connection refused")

        monkeypatch.setattr(index_module, "urlopen", refuse)
        storage = tmp_path / "storage"

        with pytest.raises(URLError):
            IndexRegistry(index_dir, storage).download(RegistryEntry("serde", "1.0.0"))

        assert list((storage / "cache").iterdir()) == []

    def test_archive_without_manifest(self, index_dir: Path, tmp_path: Path) -> None:
        storage = tmp_path / "storage"
        archive = storage / "cache" / "serde-1.0.0.crate"
        _make_crate(archive, "something-else")
        entry = RegistryEntry("serde", "1.0.0")

        with pytest.raises(RuntimeError, match="Cargo.toml"):
            IndexRegistry(index_dir, storage).download(entry)
