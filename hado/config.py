"""
Engine and training configuration.

EngineConfig holds process-wide knobs read by the layers (threading threshold,
numeric dtype). TrainingConfiguration holds the hyperparameters for a training
run and can be loaded from a TOML file.
"""

import tomllib
from dataclasses import dataclass, fields, replace


@dataclass
class EngineConfig:
    """
    Process-wide engine settings.

    Args:
        parallel_threshold: Minimum depth * rows * cols before per-channel work
            in ActivationLayer and MaxPoolLayer is spread over worker threads
        max_workers: Worker threads for the channel pool (None: executor default)
        dtype: Numpy dtype name used for new tensors and parameters
    """

    parallel_threshold: int = 2000
    max_workers: int | None = None
    dtype: str = "float64"

    def __post_init__(self):
        if self.parallel_threshold < 0:
            raise ValueError("parallel_threshold must be non-negative")
        if self.max_workers is not None and self.max_workers <= 0:
            raise ValueError("max_workers must be positive")


_config = EngineConfig()


def get_config():
    """Return the active engine configuration."""
    return _config


def set_config(config):
    """Replace the active engine configuration, returning the previous one."""
    global _config
    previous = _config
    _config = config
    return previous


def configure(**overrides):
    """Update selected fields of the active configuration."""
    return set_config(replace(_config, **overrides))


@dataclass
class TrainingConfiguration:
    """Hyperparameters for an epoch-driven training run."""

    epochs: int = 1000
    learning_rate: float = 0.01
    report_every: int = 100
    seed: int | None = None

    def __post_init__(self):
        if self.epochs < 0:
            raise ValueError("epochs must be non-negative")
        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be positive")
        if self.report_every < 0:
            raise ValueError("report_every must be non-negative")

    @classmethod
    def load(cls, config_path):
        """
        Load a training configuration from a TOML file.

        The values are read from a ``[training]`` table, or from the top level
        when the file has no such table.

        Raises:
            ValueError: on keys that are not configuration fields
        """
        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        section = data.get("training", data)
        known = {f.name for f in fields(cls)}
        unknown = set(section) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        return cls(**section)
