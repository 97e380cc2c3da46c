# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for cratetime.

Every config section is a frozen pydantic model:
  - frozen=True: a batch never changes its own settings halfway through
  - extra="forbid": a misspelled key fails loudly instead of being ignored
  - validate_default=True: even defaults get type-checked

CLI flags are layered on top with `model_copy(update=...)`, which returns a
new frozen instance rather than mutating the loaded one.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Packages this harness is known to have trouble with. They are skipped even
# when requested explicitly.
DEFAULT_EXCLUDED_PACKAGES: frozenset[str] = frozenset({
    "gfx_text",
    "parasailors",
    "parasail-sys",
    "simple",
})

DEFAULT_INDEX_URL = "https://github.com/rust-lang/crates.io-index"


class GlobalConfig(BaseModel):
    """Cross-cutting settings: schema version and observability."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional run log that is never redirected by output capture",
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level '{value}'")
        return upper


class BatchConfig(BaseModel):
    """
    Everything one batch run needs.

    The six options exposed on the command line
    (output_root, run_tests, run_benchmarks, release_mode, force,
    stop_on_error) plus the knobs that used to be hard-coded: the exclusion
    list, the index location, the instrumentation flags.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    output_root: str = Field(
        default="out",
        description="Base of the ledger, the index checkout, downloads and logs",
    )
    run_tests: bool = Field(default=False, description="Run `cargo test` after compiling")
    run_benchmarks: bool = Field(default=False, description="Run `cargo bench` after compiling")
    release_mode: bool = Field(default=False, description="Pass --release to every cargo phase")
    force: bool = Field(
        default=False,
        description="Delete results left over from prior runs and reprocess",
    )
    stop_on_error: bool = Field(
        default=False,
        description="Abort the batch on the first per-package failure",
    )
    excluded_packages: frozenset[str] = Field(
        default=DEFAULT_EXCLUDED_PACKAGES,
        description="Package names that are never attempted",
    )
    index_url: str = Field(
        default=DEFAULT_INDEX_URL,
        description="Git URL cloned into <output_root>/index when no index exists",
    )
    update_index: bool = Field(
        default=True,
        description="Fast-forward an existing index checkout before the batch starts",
    )
    cargo_executable: str = Field(default="cargo", description="Cargo binary to invoke")
    rustc_args: list[str] = Field(
        default_factory=lambda: ["-Z", "time-passes"],
        description="Instrumentation flags handed to rustc for the compile phase",
    )
    phase_timeout_seconds: Optional[int] = Field(
        default=None,
        ge=1,
        description="Per-phase timeout; None blocks until cargo exits",
    )


class CratetimeConfig(BaseModel):
    """
    Top-level config container.

    A YAML file needs only `global:`; the `batch:` section falls back to
    defaults so that a config file can be used purely to set the log level.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    batch: BatchConfig = Field(default_factory=BatchConfig)
