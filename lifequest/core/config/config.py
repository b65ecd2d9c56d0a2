"""
Process-level settings read from the environment.

Everything here is fixed for the life of the host process: where the balance
tables live, how logs are written, and an optional RNG seed for reproducible
battles. Game balance itself lives in the YAML tables behind ConfigManager.

A `.env` file in the working directory is read once at import (python-dotenv);
variables already set in the environment win. `Config.load()` then parses the
variables below into class attributes. Unparseable values fall back to the
default and are reported in `get_config_summary()["validation_errors"]`.

| Variable              | Attribute   | Default                 |
|-----------------------|-------------|-------------------------|
| LIFEQUEST_ENV         | ENVIRONMENT | development             |
| LIFEQUEST_LOG_LEVEL   | LOG_LEVEL   | INFO                    |
| LIFEQUEST_LOG_JSON    | LOG_JSON    | unset (JSON in prod)    |
| LIFEQUEST_LOG_COLORS  | LOG_COLORS  | true                    |
| LIFEQUEST_LOG_TO_FILE | LOG_TO_FILE | false                   |
| LIFEQUEST_LOGS_DIR    | LOGS_DIR    | <project>/logs          |
| LIFEQUEST_CONFIG_DIR  | CONFIG_DIR  | packaged tables         |
| LIFEQUEST_RNG_SEED    | RNG_SEED    | unset (unseeded)        |
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

PACKAGE_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_DIR = PACKAGE_ROOT / "data" / "config"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """Case-insensitive lookup; unknown names mean development."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            logger.warning("Unknown environment, using development", extra={"value": value})
            return cls.DEVELOPMENT


class Config:
    """
    Static settings as class attributes.

    >>> Config.load()
    >>> Config.RNG_SEED
    """

    ENVIRONMENT: Environment = Environment.DEVELOPMENT
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True
    LOG_TO_FILE: bool = False
    LOGS_DIR: Path = PACKAGE_ROOT.parent / "logs"
    CONFIG_DIR: Path = DEFAULT_CONFIG_DIR
    RNG_SEED: Optional[int] = None

    _loaded = False
    _from_env: Dict[str, bool] = {}
    _validation_errors: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    @classmethod
    def _raw(cls, key: str) -> Optional[str]:
        raw = os.environ.get(key)
        cls._from_env[key] = raw is not None
        return raw

    @classmethod
    def _reject(cls, key: str, raw: str, default: Any) -> Any:
        message = f"{key}={raw!r} is invalid, using {default!r}"
        logger.warning(message)
        cls._validation_errors[key] = message
        cls._from_env[key] = False
        return default

    @classmethod
    def _read_str(cls, key: str, default: str) -> str:
        raw = cls._raw(key)
        return default if raw is None else raw

    @classmethod
    def _read_bool(cls, key: str, default: Optional[bool]) -> Optional[bool]:
        raw = cls._raw(key)
        if raw is None:
            return default
        token = raw.strip().lower()
        if token in _TRUE:
            return True
        if token in _FALSE:
            return False
        return cls._reject(key, raw, default)

    @classmethod
    def _read_int(cls, key: str, default: Optional[int], minimum: Optional[int] = None) -> Optional[int]:
        raw = cls._raw(key)
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError:
            return cls._reject(key, raw, default)
        if minimum is not None and value < minimum:
            return cls._reject(key, raw, default)
        return value

    @classmethod
    def _read_choice(cls, key: str, default: str, choices: tuple) -> str:
        raw = cls._raw(key)
        if raw is None:
            return default
        value = raw.strip().upper()
        return value if value in choices else cls._reject(key, raw, default)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, force: bool = False) -> None:
        """Parse the environment into class attributes; later calls are no-ops unless `force`."""
        if cls._loaded and not force:
            return
        cls._from_env = {}
        cls._validation_errors = {}

        cls.ENVIRONMENT = Environment.from_string(cls._read_str("LIFEQUEST_ENV", "development"))
        cls.LOG_LEVEL = cls._read_choice("LIFEQUEST_LOG_LEVEL", "INFO", _LOG_LEVELS)
        cls.LOG_JSON = cls._read_bool("LIFEQUEST_LOG_JSON", None)
        cls.LOG_COLORS = bool(cls._read_bool("LIFEQUEST_LOG_COLORS", True))
        cls.LOG_TO_FILE = bool(cls._read_bool("LIFEQUEST_LOG_TO_FILE", False))
        cls.LOGS_DIR = Path(cls._read_str("LIFEQUEST_LOGS_DIR", str(PACKAGE_ROOT.parent / "logs")))
        cls.CONFIG_DIR = Path(cls._read_str("LIFEQUEST_CONFIG_DIR", str(DEFAULT_CONFIG_DIR)))
        cls.RNG_SEED = cls._read_int("LIFEQUEST_RNG_SEED", None, minimum=0)

        cls._loaded = True

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT is Environment.PRODUCTION

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT is Environment.TESTING

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        return {
            "environment": cls.ENVIRONMENT.value,
            "log_level": cls.LOG_LEVEL,
            "config_dir": str(cls.CONFIG_DIR),
            "rng_seed": cls.RNG_SEED,
            "from_environment": sorted(k for k, seen in cls._from_env.items() if seen),
            "validation_errors": dict(cls._validation_errors),
        }
