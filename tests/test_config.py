from __future__ import annotations

import logging
from pathlib import Path

import pytest

from delplan.config import PlannerConfig, config_from_mapping, load_config


def test_defaults_without_pyproject(tmp_path: Path) -> None:
    assert load_config(tmp_path) == PlannerConfig()


def test_reads_tool_table(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        "[tool.delplan]\nexpand-subpackages = true\nsuggest_accessor_deletion = false\n"
    )

    config = load_config(tmp_path)

    assert config.expand_subpackages
    assert not config.suggest_accessor_deletion


def test_unknown_keys_are_ignored_with_a_warning(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="delplan.config"):
        config = config_from_mapping({"colour": "blue"})

    assert config == PlannerConfig()
    assert "colour" in caplog.text


def test_non_boolean_values_are_rejected() -> None:
    with pytest.raises(ValueError, match="expand-subpackages"):
        config_from_mapping({"expand-subpackages": "yes"})


def test_overrides_skip_unset_values() -> None:
    config = PlannerConfig(expand_subpackages=True)

    assert config.with_overrides(expand_subpackages=None) is config
    assert not config.with_overrides(expand_subpackages=False, suggest_accessor_deletion=None).expand_subpackages
