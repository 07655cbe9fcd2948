"""Tests for configuration loading."""

import os

import pytest

from okr_coach.core.config import (
    Settings,
    StateMachineConfig,
    load_state_machine_config,
    settings,
)
from okr_coach.core.exceptions import ConfigurationError
from okr_coach.domain.models.phase import Phase


def test_settings_defaults():
    s = Settings(_env_file=None)

    assert s.forced_progression_turns == 10
    assert s.finalization_window == 3
    assert s.weak_signal_min_messages == 5
    assert s.score_cache_size == 1000


def test_settings_from_env():
    os.environ["FORCED_PROGRESSION_TURNS"] = "7"
    try:
        assert Settings(_env_file=None).forced_progression_turns == 7
    finally:
        del os.environ["FORCED_PROGRESSION_TURNS"]


def test_settings_validation():
    from pydantic import ValidationError

    with pytest.raises(ValidationError):
        Settings(_env_file=None, forced_progression_turns=0)


def test_global_settings_available():
    assert settings.database_path is not None


def test_default_phase_table():
    config = StateMachineConfig()

    discovery = config.for_phase(Phase.DISCOVERY)
    assert (discovery.min_messages, discovery.quality_threshold, discovery.min_data_quality) == (3, 0.6, 30)
    assert config.for_phase("kr_discovery").timeout_messages == 8
    assert config.for_phase(Phase.VALIDATION).requires_data == ["objective", "key_results"]
    assert config.readiness.kr_stuck_turns == 6


def test_bundled_config_matches_defaults():
    assert load_state_machine_config() == StateMachineConfig()


def test_missing_file_gives_defaults(tmp_path):
    assert load_state_machine_config(tmp_path / "absent.yaml") == StateMachineConfig()


def test_partial_override(tmp_path):
    path = tmp_path / "state_machine.yaml"
    path.write_text("phases:\n  refinement:\n    min_messages: 4\nreadiness:\n  kr_stuck_turns: 9\n")

    config = load_state_machine_config(path)

    assert config.for_phase(Phase.REFINEMENT).min_messages == 4
    assert config.for_phase(Phase.REFINEMENT).quality_threshold == 0.7
    assert config.for_phase(Phase.DISCOVERY).min_messages == 3
    assert config.readiness.kr_stuck_turns == 9


def test_invalid_yaml(tmp_path):
    path = tmp_path / "state_machine.yaml"
    path.write_text("phases: [unclosed\n")

    with pytest.raises(ConfigurationError):
        load_state_machine_config(path)


def test_unknown_phase(tmp_path):
    path = tmp_path / "state_machine.yaml"
    path.write_text("phases:\n  brainstorming:\n    min_messages: 1\n")

    with pytest.raises(ConfigurationError):
        load_state_machine_config(path)
