"""Configuration module for meshtrack."""

from meshtrack.config.loader import get_config_path, load_config
from meshtrack.config.schema import ApiConfig, Config, ThresholdsConfig

__all__ = ["ApiConfig", "Config", "ThresholdsConfig", "load_config", "get_config_path"]
