# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Exceptions raised by the harness itself.

Only SetupError, InvalidCrateSpecError, CaptureActiveError and
BatchAbortedError are meant to escape a batch run. ResolveError and
BuilderError are caught at the package boundary and turned into a recorded
outcome; IncompleteLogError is turned into a `false` report line.
"""


class CratetimeError(Exception):
    """Base for every harness error."""


class SetupError(CratetimeError):
    """The local index could not be created or updated. Nothing was processed."""


class InvalidCrateSpecError(CratetimeError, ValueError):
    """A work item is not of the form `name` or `name=version`."""

    def __init__(self, token: str) -> None:
        super().__init__(
            f"invalid package name / version `{token}`, try `foo` or `foo=0.1`"
        )
        self.token = token


class ResolveError(CratetimeError):
    """Base for per-package resolution failures."""

    kind = "ResolveError"


class PackageNotFoundError(ResolveError):
    """No version in the registry satisfies the requested spec."""

    kind = "NotFound"

    def __init__(self, spec: object) -> None:
        super().__init__(f"crate `{spec}` not in registry")
        self.spec = spec


class RegistryQueryError(ResolveError):
    """The registry could not list the versions of a package (unreadable or corrupt index entry)."""

    kind = "QueryFailed"

    def __init__(self, spec: object, cause: BaseException) -> None:
        super().__init__(f"crate `{spec}` could not be looked up: {cause}")
        self.spec = spec
        self.cause = cause


class DownloadFailedError(ResolveError):
    """The registry knows the package but fetching its source failed."""

    kind = "DownloadFailed"

    def __init__(self, spec: object, cause: BaseException) -> None:
        super().__init__(f"crate `{spec}` failed to download: {cause}")
        self.spec = spec
        self.cause = cause


class BuilderError(CratetimeError):
    """The build tool itself failed: missing executable, timeout, killed by a signal."""


class CaptureActiveError(CratetimeError, RuntimeError):
    """An output capture was requested while another one is still live."""


class BatchAbortedError(CratetimeError):
    """A package failed while stop_on_error was set."""

    def __init__(self, package: str, reason: str) -> None:
        super().__init__(f"{package}: aborting due to stop-on-error after `{reason}`")
        self.package = package
        self.reason = reason


class IncompleteLogError(CratetimeError):
    """A captured log never reached the terminator line (a bad compile)."""
