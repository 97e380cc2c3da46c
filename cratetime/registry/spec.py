# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Parsing of package work items.

A work item is either `name` or `name=version`. Surrounding whitespace is
tolerated; anything else (an empty token, `=1.0`, `foo=`, `a=b=c`) is
rejected before the batch starts, as is anything containing a path
separator.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from cratetime.errors import InvalidCrateSpecError

WILDCARD = "*"

# Names and versions become directory names, so path separators are out.
_SPEC_RE = re.compile(r"\s*([^=\s/\\]+)\s*(?:=\s*([^=\s/\\]+))?\s*")


@dataclass(frozen=True)
class CrateSpec:
    """One requested package, optionally pinned to an exact version."""

    name: str
    version: Optional[str] = None

    def __str__(self) -> str:
        if self.version is not None:
            return f"{self.name}={self.version}"
        return self.name


def parse_crate_spec(token: str) -> CrateSpec:
    """
    Parse a single work item.

    Raises:
        InvalidCrateSpecError: If the token isn't `name` or `name=version`.
    """
    match = _SPEC_RE.fullmatch(token)
    if match is None or match.group(1) in (".", ".."):
        raise InvalidCrateSpecError(token)
    return CrateSpec(name=match.group(1), version=match.group(2))


def parse_crate_specs(tokens: Iterable[str]) -> list[CrateSpec]:
    """Parse every token, failing on the first malformed one."""
    return [parse_crate_spec(token) for token in tokens]


def is_wildcard(tokens: Iterable[str]) -> bool:
    """True if the work list asks for every package in the index."""
    return any(token == WILDCARD for token in tokens)
