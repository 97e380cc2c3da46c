# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The registry capability and its crates.io-index adapter.

The harness only needs three things from a registry: the list of package
names, every published version of one package, and a way to put a version's
source on local disk. `Registry` is that contract; `IndexRegistry` fulfils it
from a local checkout of the crates.io index plus HTTP downloads of `.crate`
archives.

Index layout (one file per package, one JSON object per published version):

    1/a            names of length 1
    2/ab           names of length 2
    3/a/abc        names of length 3, bucketed by first character
    se/rd/serde    everything else, bucketed by first four characters
    config.json    {"dl": "<download url or template>", ...}
"""

import json
import shutil
import tarfile
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator
from urllib.request import Request, urlopen

from cratetime.logging.logger import get_logger
from cratetime.utils.hashing import verify_checksum
from cratetime.utils.paths import ensure_directory, validate_path_within

logger = get_logger(__name__)

_HTTP_TIMEOUT_SECONDS = 60
_STREAM_CHUNK_SIZE = 65536
_USER_AGENT = "cratetime (build timing harness)"


@dataclass(frozen=True)
class RegistryEntry:
    """One published version of one package, as listed in the index."""

    name: str
    version: str
    checksum: str = ""
    yanked: bool = False


class Registry(ABC):
    """
    Contract for anything the resolver can query and download from.

    Implementations may raise any exception from `download`; the resolver
    wraps it as DownloadFailedError.
    """

    @abstractmethod
    def package_names(self) -> Iterator[str]:
        """Every package name known to the backing index, metadata excluded."""
        ...

    @abstractmethod
    def query(self, name: str) -> list[RegistryEntry]:
        """All published versions of `name`. Unknown names give an empty list."""
        ...

    @abstractmethod
    def download(self, entry: RegistryEntry) -> Path:
        """
        Make the source of `entry` available locally and return the directory
        holding its Cargo.toml. Must be idempotent.
        """
        ...


def index_prefix(name: str) -> str:
    """The directory part of an index path: `1`, `2`, `3/s` or `se/rd`. Case is kept."""
    if len(name) <= 2:
        return str(len(name))
    if len(name) == 3:
        return f"3/{name[0]}"
    return f"{name[0:2]}/{name[2:4]}"


def index_relative_path(name: str) -> Path:
    """Where the index keeps the version list for `name`."""
    lowered = name.lower()
    return Path(index_prefix(lowered)) / lowered


def _is_metadata(name: str) -> bool:
    return name.startswith(".") or name.endswith(".json")


class IndexRegistry(Registry):
    """
    Registry backed by a local crates.io-index checkout.

    Downloads are cached under `storage_dir/cache` and unpacked under
    `storage_dir/src/<name>-<version>/`. A cached archive is reused only if
    its checksum still matches the index; an unpacked tree is reused as-is.
    """

    def __init__(self, index_dir: Path, storage_dir: Path) -> None:
        self._index_dir = index_dir
        self._storage_dir = storage_dir
        self._download_template: str | None = None

    @property
    def index_dir(self) -> Path:
        return self._index_dir

    def package_names(self) -> Iterator[str]:
        yield from self._walk(self._index_dir)

    def _walk(self, directory: Path) -> Iterator[str]:
        for entry in sorted(directory.iterdir()):
            if _is_metadata(entry.name):
                continue
            if entry.is_dir():
                yield from self._walk(entry)
            elif entry.is_file():
                yield entry.name

    def query(self, name: str) -> list[RegistryEntry]:
        path = self._index_dir / index_relative_path(name)
        if not path.is_file():
            return []

        entries: list[RegistryEntry] = []
        for line_number, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
                entry = RegistryEntry(
                    name=record["name"],
                    version=record["vers"],
                    checksum=record.get("cksum", ""),
                    yanked=bool(record.get("yanked", False)),
                )
            except (json.JSONDecodeError, KeyError, TypeError) as err:
                logger.warning(
                    "Skipping malformed index line",
                    extra={"index_file": str(path), "line": line_number, "error": str(err)},
                )
                continue
            # The index is case-insensitive on file names only.
            if entry.name.lower() == name.lower():
                entries.append(entry)
        return entries

    def download_url(self, entry: RegistryEntry) -> str:
        """Build the archive URL from the `dl` field of the index's config.json."""
        if self._download_template is None:
            config_path = self._index_dir / "config.json"
            config = json.loads(config_path.read_text(encoding="utf-8"))
            self._download_template = str(config["dl"])

        template = self._download_template
        markers = {
            "{crate}": entry.name,
            "{version}": entry.version,
            "{prefix}": index_prefix(entry.name),
            "{lowerprefix}": index_prefix(entry.name.lower()),
            "{sha256-checksum}": entry.checksum,
        }
        if any(marker in template for marker in markers):
            for marker, value in markers.items():
                template = template.replace(marker, value)
            return template
        return f"{template.rstrip('/')}/{entry.name}/{entry.version}/download"

    def download(self, entry: RegistryEntry) -> Path:
        stem = f"{entry.name}-{entry.version}"
        src_root = ensure_directory(self._storage_dir / "src")
        source_dir = validate_path_within(src_root / stem, src_root)

        if (source_dir / "Cargo.toml").is_file():
            logger.debug("Source already unpacked", extra={"package": stem})
            return source_dir

        archive = self._fetch_archive(entry)
        self._unpack(archive, src_root, stem)

        if not (source_dir / "Cargo.toml").is_file():
            raise RuntimeError(f"archive {archive.name} did not contain {stem}/Cargo.toml")
        return source_dir

    def _fetch_archive(self, entry: RegistryEntry) -> Path:
        cache_dir = ensure_directory(self._storage_dir / "cache")
        archive = validate_path_within(cache_dir / f"{entry.name}-{entry.version}.crate", cache_dir)

        if archive.is_file() and (not entry.checksum or verify_checksum(archive, entry.checksum)):
            return archive

        url = self.download_url(entry)
        logger.debug("Downloading crate", extra={"url": url})

        tmp_fd = tempfile.NamedTemporaryFile(
            mode="wb", dir=str(cache_dir), prefix=".partial_", suffix=".crate", delete=False,
        )
        tmp_path = Path(tmp_fd.name)
        try:
            req = Request(url, headers={"User-Agent": _USER_AGENT}, method="GET")
            with urlopen(req, timeout=_HTTP_TIMEOUT_SECONDS) as resp:
                while True:
                    chunk = resp.read(_STREAM_CHUNK_SIZE)
                    if not chunk:
                        break
                    tmp_fd.write(chunk)
            tmp_fd.flush()
            tmp_fd.close()

            if entry.checksum and not verify_checksum(tmp_path, entry.checksum):
                raise RuntimeError(f"checksum mismatch for {url}")
            tmp_path.rename(archive)
        except BaseException:
            tmp_fd.close()
            if tmp_path.exists():
                tmp_path.unlink()
            raise

        return archive

    def _unpack(self, archive: Path, src_root: Path, stem: str) -> None:
        staging = Path(tempfile.mkdtemp(prefix=".unpack_", dir=str(src_root)))
        try:
            with tarfile.open(archive, "r:gz") as tar:
                tar.extractall(staging, filter="data")
            unpacked = staging / stem
            if unpacked.is_dir():
                unpacked.rename(src_root / stem)
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)
