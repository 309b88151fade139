"""
Tests for configuration loading and fusion settings.
"""

import pytest

from config import ConfigurationManager, get_config
from invoice_fusion.fusion import FusionSettings
from invoice_fusion.utils.exceptions import ConfigurationError


def test_default_configuration_values():
    assert get_config("fusion.conflict_penalty") == 0.8
    assert get_config("fusion.weights.deterministic") == 0.6
    assert get_config("costs.deterministic_per_page") == 0.065
    assert get_config("nonexistent.key", "fallback") == "fallback"


def test_settings_from_default_config():
    assert FusionSettings.from_config() == FusionSettings()


def test_custom_config_file(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "fusion:\n"
        "  conflict_penalty: 0.5\n"
        "  weights:\n"
        "    agreement_bonus: 0.2\n"
        "schema:\n"
        "  path: tenant.yaml\n",
        encoding="utf-8",
    )

    ConfigurationManager(str(path))
    settings = FusionSettings.from_config()

    assert settings.conflict_penalty == 0.5
    assert settings.agreement_bonus == 0.2
    assert settings.consensus_confidence == 0.95
    assert get_config("schema.path") == str(tmp_path / "tenant.yaml")


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigurationManager(str(tmp_path / "absent.yaml"))


def test_settings_validation():
    with pytest.raises(ConfigurationError):
        FusionSettings(conflict_penalty=1.5)
    with pytest.raises(ConfigurationError):
        FusionSettings(amount_tolerance="tight")
    with pytest.raises(ConfigurationError):
        FusionSettings(deterministic_cost_per_page=-0.1)

    assert FusionSettings(deterministic_cost_per_page=2.0).deterministic_cost_per_page == 2.0
