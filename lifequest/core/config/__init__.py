"""
Configuration package for LifeQuest.

- Config: static, environment-driven settings (python-dotenv)
- ConfigManager: YAML-backed game balance tables with dot-notation access
"""

from lifequest.core.config.config import Config, Environment
from lifequest.core.config.errors import (
    ConfigError,
    ConfigInitializationError,
    ConfigValidationError,
)
from lifequest.core.config.manager import ConfigManager

__all__ = [
    "Config",
    "ConfigManager",
    "Environment",
    "ConfigError",
    "ConfigInitializationError",
    "ConfigValidationError",
]
