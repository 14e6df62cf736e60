"""Unit tests for configuration management."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from bluecloud.core import Config, EnergyConfig, get_default_config, load_config


@pytest.mark.unit
class TestConfig:
    """Test configuration models."""

    def test_defaults(self):
        config = get_default_config()
        assert config.locator.strategy == "hashgrid"
        assert config.locator.cell_size is None
        assert config.stacking.feature_weight == 0.05
        assert config.dart_throwing.conflict_radius == 0.01
        assert config.dart_throwing.max_attempts == 100000
        assert config.energy.sigma == 0.03
        assert config.energy.iterations == 10
        assert config.energy.constraint == "snap"
        assert config.normalization.enabled

    def test_frozen(self):
        config = Config()
        with pytest.raises(ValidationError):
            config.energy = EnergyConfig(sigma=0.1)

    @pytest.mark.parametrize(
        "data",
        [
            {"dart_throwing": {"conflict_radius": 0}},
            {"dart_throwing": {"max_attempts": 0}},
            {"energy": {"sigma": -1.0}},
            {"energy": {"iterations": -1}},
            {"energy": {"constraint": "magnet"}},
            {"locator": {"strategy": "octree"}},
            {"locator": {"cell_size": 0}},
            {"stacking": {"feature_weight": -0.1}},
        ],
    )
    def test_invalid_values(self, data):
        with pytest.raises(ValidationError):
            Config.from_dict(data)

    def test_search_radius_must_cover_conflict_radius(self):
        with pytest.raises(ValidationError, match="max_search_radius"):
            Config(
                dart_throwing={"conflict_radius": 0.1},
                energy={"max_search_radius": 0.05},
            )

    def test_toml_round_trip(self, tmp_path: Path):
        config = Config(
            dart_throwing={"conflict_radius": 0.02, "seed": 3},
            energy={"sigma": 0.05, "constraint": "clamp"},
            locator={"strategy": "bruteforce"},
        )
        path = tmp_path / "config" / "bluecloud.toml"
        config.save_toml(path)

        loaded = load_config(path)
        assert loaded == config

    def test_to_toml_omits_unset_values(self):
        text = Config().to_toml()
        assert "[dart_throwing]" in text
        assert "seed" not in text
        assert "cell_size" not in text

    def test_load_config_defaults(self):
        assert load_config() == Config()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            Config.from_toml(tmp_path / "missing.toml")
