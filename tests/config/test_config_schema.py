# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for schema constraints. These are the guardrails that stop a bad
config from reaching the orchestrator.
"""

import pydantic
import pytest

from cratetime.config.schema import BatchConfig, CratetimeConfig, GlobalConfig


class TestGlobalConfig:
    def test_default_log_level_is_info(self) -> None:
        assert GlobalConfig(config_version="1.0.0").log_level == "INFO"

    def test_log_level_is_normalised(self) -> None:
        assert GlobalConfig(config_version="1.0.0", log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            GlobalConfig(config_version="1.0.0", log_level="LOUD")

    def test_config_version_is_required(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            GlobalConfig()  # type: ignore[call-arg]


class TestBatchConfig:
    def test_defaults(self) -> None:
        batch = BatchConfig()

        assert batch.output_root == "out"
        assert not (batch.run_tests or batch.run_benchmarks or batch.release_mode)
        assert not (batch.force or batch.stop_on_error)
        assert batch.rustc_args == ["-Z", "time-passes"]
        assert batch.phase_timeout_seconds is None
        assert batch.update_index is True
        assert "parasail-sys" in batch.excluded_packages

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            BatchConfig(phase_timeout_seconds=0)

    def test_unknown_field_is_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            BatchConfig(stop_on_errors=True)  # type: ignore[call-arg]


class TestCratetimeConfig:
    def test_requires_global_section(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            CratetimeConfig.model_validate({"batch": {}})

    def test_rejects_top_level_unknown_fields(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            CratetimeConfig.model_validate(
                {"global": {"config_version": "1.0.0"}, "server": {}}
            )
