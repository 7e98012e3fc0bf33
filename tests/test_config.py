"""
Tests for Configuration
=======================
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from hado.config import EngineConfig, TrainingConfiguration, configure, get_config, set_config


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()

        assert config.parallel_threshold == 2000
        assert config.max_workers is None
        assert config.dtype == "float64"

    def test_configure_returns_previous(self):
        previous = configure(parallel_threshold=10)
        try:
            assert get_config().parallel_threshold == 10
            assert previous is not get_config()
        finally:
            set_config(previous)

        assert get_config() is previous

    @pytest.mark.parametrize("kwargs", [dict(parallel_threshold=-1), dict(max_workers=0)])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)


class TestTrainingConfiguration:

    def test_load_training_table(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[training]\nepochs = 50000\nlearning_rate = 0.01\nreport_every = 5000\n")

        config = TrainingConfiguration.load(path)

        assert config.epochs == 50000
        assert config.learning_rate == 0.01
        assert config.report_every == 5000
        assert config.seed is None

    def test_load_top_level(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("epochs = 10\nseed = 3\n")

        config = TrainingConfiguration.load(path)

        assert config.epochs == 10
        assert config.seed == 3
        assert config.learning_rate == 0.01

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[training]\nbatch_size = 32\n")

        with pytest.raises(ValueError, match="batch_size"):
            TrainingConfiguration.load(path)

    @pytest.mark.parametrize("kwargs", [
        dict(epochs=-1),
        dict(learning_rate=0),
        dict(report_every=-5),
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            TrainingConfiguration(**kwargs)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
