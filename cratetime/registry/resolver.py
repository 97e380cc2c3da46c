# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Registry resolution: CrateSpec in, downloaded ResolvedPackage out.

Version selection:
  - a pinned spec (`foo=1.2.3`) must match a published version string
    exactly; a yanked version is still allowed when named explicitly
  - an unpinned spec takes the highest non-yanked version in semantic
    version order
"""

import re
from dataclasses import dataclass
from pathlib import Path

from cratetime.errors import DownloadFailedError, PackageNotFoundError, RegistryQueryError
from cratetime.logging.logger import get_logger
from cratetime.registry.index import Registry, RegistryEntry
from cratetime.registry.spec import CrateSpec

logger = get_logger(__name__)

_SEMVER_RE = re.compile(
    r"(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?"
)


@dataclass(frozen=True)
class ResolvedPackage:
    """A package whose source is on local disk and ready to build."""

    id: RegistryEntry
    display_name: str
    manifest_location: Path

    @property
    def manifest_path(self) -> Path:
        return self.manifest_location / "Cargo.toml"

    def __str__(self) -> str:
        return self.display_name


def version_key(version: str) -> tuple:
    """
    Sort key implementing semantic version precedence.

    Release > pre-release of the same core version; pre-release identifiers
    compare numerically when numeric, lexically otherwise, and numeric ones
    sort before alphanumeric ones. Build metadata is ignored. Strings that
    aren't semver at all sort below every real version.
    """
    match = _SEMVER_RE.fullmatch(version.strip())
    if match is None:
        return (-1, -1, -1, 0, ())

    major, minor, patch, pre = match.groups()
    core = (int(major), int(minor or 0), int(patch or 0))
    if pre is None:
        return (*core, 1, ())

    identifiers = tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in pre.split(".")
    )
    return (*core, 0, identifiers)


def select_version(spec: CrateSpec, entries: list[RegistryEntry]) -> RegistryEntry | None:
    """Pick the entry `spec` asks for, or None if nothing matches."""
    if spec.version is not None:
        for entry in entries:
            if entry.version == spec.version:
                return entry
        return None

    candidates = [entry for entry in entries if not entry.yanked]
    if not candidates:
        return None
    return max(candidates, key=lambda entry: version_key(entry.version))


def resolve(spec: CrateSpec, registry: Registry) -> ResolvedPackage:
    """
    Query the registry, pick a version, download it.

    Raises:
        RegistryQueryError: The registry failed while listing versions.
        PackageNotFoundError: Nothing in the registry matches `spec`.
        DownloadFailedError: The registry errored while fetching the source.
    """
    try:
        entries = registry.query(spec.name)
    except Exception as err:
        raise RegistryQueryError(spec, err) from err

    entry = select_version(spec, entries)
    if entry is None:
        raise PackageNotFoundError(spec)

    try:
        source_dir = registry.download(entry)
    except Exception as err:
        raise DownloadFailedError(spec, err) from err

    logger.debug(
        "Resolved package",
        extra={"package": str(spec), "version": entry.version, "source": str(source_dir)},
    )

    return ResolvedPackage(
        id=entry,
        display_name=f"{entry.name} v{entry.version}",
        manifest_location=source_dir,
    )
