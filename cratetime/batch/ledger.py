# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The on-disk record of which packages have been processed.

There is no journal. `<output_root>/output/<spec>/stdio` existing means the
package was attempted and its log can be re-parsed; that is the only thing
consulted when deciding whether to skip a package.

A `status.json` is written next to it once the attempt concludes. It isn't
needed for resumability, but it tells apart a package that finished (either
way) from one whose run was interrupted after the log was opened.
"""

import enum
import json
from pathlib import Path

from cratetime.batch.models import BuildRun
from cratetime.registry.spec import CrateSpec
from cratetime.utils.filesystem import atomic_write, remove_tree
from cratetime.utils.paths import ensure_directory, validate_path_within

LOG_FILENAME = "stdio"
STATUS_FILENAME = "status.json"


class LedgerState(str, enum.Enum):
    ABSENT = "absent"
    INTERRUPTED = "interrupted"
    DONE = "done"
    FAILED = "failed"


class Ledger:
    """Directory-presence bookkeeping rooted at `<output_root>/output`."""

    def __init__(self, output_root: Path) -> None:
        self._root = output_root / "output"

    @property
    def root(self) -> Path:
        return self._root

    def output_dir(self, spec: CrateSpec) -> Path:
        """Where `spec`'s results live. Never outside the ledger root."""
        candidate = self._root / str(spec)
        validate_path_within(candidate, self._root)
        return candidate

    def log_path(self, spec: CrateSpec) -> Path:
        return self.output_dir(spec) / LOG_FILENAME

    def is_complete(self, spec: CrateSpec) -> bool:
        return self.log_path(spec).exists()

    def state(self, spec: CrateSpec) -> LedgerState:
        if not self.is_complete(spec):
            return LedgerState.ABSENT
        status_path = self.output_dir(spec) / STATUS_FILENAME
        try:
            recorded = json.loads(status_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return LedgerState.INTERRUPTED
        if recorded.get("status") == LedgerState.DONE.value:
            return LedgerState.DONE
        return LedgerState.FAILED

    def prepare(self, spec: CrateSpec) -> Path:
        return ensure_directory(self.output_dir(spec))

    def reset(self, spec: CrateSpec) -> bool:
        """Delete every trace of a prior attempt."""
        return remove_tree(self.output_dir(spec))

    def record(self, run: BuildRun) -> None:
        atomic_write(
            run.output_dir / STATUS_FILENAME,
            json.dumps(run.to_dict(), indent=2, sort_keys=True),
        )
