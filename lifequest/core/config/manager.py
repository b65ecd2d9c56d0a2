"""
ConfigManager: hierarchical game balance configuration for LifeQuest.

Purpose
-------
- Provide dot-notation access to tunable game balance values.
- Back configuration with YAML tables shipped in `lifequest/data/config/`
  (or a host-supplied directory).
- Allow hosts and tests to overlay overrides without touching files.

Responsibilities
----------------
- Load and deep-merge every YAML file under the configured directory.
- Serve reads through `get("section.key", default)`.
- Apply in-memory overrides (`override`) with the same deep-merge rules.

Key Design Decisions
--------------------
- Instance-based: the host builds one ConfigManager and injects it into
  every service and engine. Separate battles or tests can use separate
  instances with different balance values.
- YAML is the single source for **defaults**; code passes a fallback default
  at every call site so a missing key never aborts a battle.
- Files are loaded in sorted order so merges are deterministic.

Dependencies
------------
- PyYAML (`yaml.safe_load`)
- `lifequest.core.logging.logger.get_logger`
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Union

import yaml

from lifequest.core.config.config import DEFAULT_CONFIG_DIR
from lifequest.core.config.errors import ConfigInitializationError
from lifequest.core.logging.logger import get_logger

logger = get_logger(__name__)

_MISSING = object()


# ============================================================================
# ConfigManager
# ============================================================================


class ConfigManager:
    """
    YAML-backed game configuration with dot-notation reads.

    Usage
    -----
    >>> config = ConfigManager()
    >>> config.get("battle.unknown_key", 10)
    10
    >>> config.override({"battle": {"critical_chance": 0}})
    >>> config.get("battle.critical_chance")
    0
    """

    def __init__(
        self,
        config_dir: Optional[Union[str, Path]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
        *,
        strict: bool = False,
    ) -> None:
        """
        Load YAML configuration.

        Args:
            config_dir: Directory containing `*.yaml` files. Defaults to the
                tables packaged with lifequest. Pass ``False``-y paths via
                ``from_mapping`` instead when no files are wanted.
            overrides: Mapping deep-merged on top of the YAML values.
            strict: Raise ConfigInitializationError when the directory is
                missing instead of logging a warning.
        """
        self._config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
        self._values: Dict[str, Any] = {}
        self._loaded_files = 0

        self._load_yaml_configs(strict=strict)
        if overrides:
            self.override(overrides)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ConfigManager":
        """Build a manager from an in-memory mapping only (no YAML files)."""
        instance = cls.__new__(cls)
        instance._config_dir = None
        instance._values = {}
        instance._loaded_files = 0
        instance.override(values)
        return instance

    # =========================================================================
    # YAML LOADING
    # =========================================================================

    @staticmethod
    def _deep_merge_dict(
        target: MutableMapping[str, Any],
        source: Mapping[str, Any],
    ) -> None:
        """Recursively merge `source` into `target` (in-place)."""
        for key, value in source.items():
            if isinstance(value, Mapping) and isinstance(target.get(key), dict):
                ConfigManager._deep_merge_dict(target[key], value)
            else:
                target[key] = copy.deepcopy(value)

    def _load_yaml_configs(self, strict: bool) -> None:
        config_dir = self._config_dir
        if not config_dir.exists():
            if strict:
                raise ConfigInitializationError(
                    f"Config directory not found: {config_dir}"
                )
            logger.warning(
                "Config directory not found; using call-site defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return

        yaml_files = sorted(
            list(config_dir.rglob("*.yaml")) + list(config_dir.rglob("*.yml"))
        )

        for yaml_file in yaml_files:
            relative = str(yaml_file.relative_to(config_dir))
            try:
                with yaml_file.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle)
            except (OSError, yaml.YAMLError) as exc:
                logger.warning(
                    "Failed to load YAML config",
                    extra={
                        "file": relative,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                continue

            if isinstance(data, dict):
                self._deep_merge_dict(self._values, data)
                self._loaded_files += 1
                logger.debug("Loaded YAML config", extra={"file": relative})
            elif data is not None:
                logger.warning(
                    "Ignoring non-dict YAML root object",
                    extra={"file": relative, "root_type": type(data).__name__},
                )

        logger.info(
            "YAML configs loaded",
            extra={
                "config_dir": str(config_dir),
                "yaml_file_count": self._loaded_files,
                "top_level_keys": sorted(self._values),
            },
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value by dot-notation path.

        Returns a deep copy for container values so callers can never mutate
        the shared tables.

        Examples
        --------
        >>> config.get("energy.regen_interval_seconds", 600)
        600
        """
        value: Any = self._values
        for part in key.split("."):
            if not isinstance(value, dict):
                return default
            value = value.get(part, _MISSING)
            if value is _MISSING:
                return default

        if value is None:
            return default
        if isinstance(value, (dict, list)):
            return copy.deepcopy(value)
        return value

    def section(self, key: str) -> Dict[str, Any]:
        """Return a mapping section, or an empty dict when absent or not a mapping."""
        value = self.get(key, {})
        return value if isinstance(value, dict) else {}

    def override(self, values: Mapping[str, Any]) -> None:
        """
        Deep-merge `values` over the current configuration.

        Dotted top-level keys are expanded, so ``{"battle.critical_chance": 0}``
        and ``{"battle": {"critical_chance": 0}}`` are equivalent.
        """
        expanded: Dict[str, Any] = {}
        for key, value in values.items():
            node = expanded
            parts = key.split(".")
            for part in parts[:-1]:
                node = node.setdefault(part, {})
            if isinstance(value, Mapping) and isinstance(node.get(parts[-1]), dict):
                self._deep_merge_dict(node[parts[-1]], value)
            else:
                node[parts[-1]] = value

        self._deep_merge_dict(self._values, expanded)
        logger.debug("Config overrides applied", extra={"keys": sorted(values)})

    def as_dict(self) -> Dict[str, Any]:
        """Snapshot of the full merged configuration."""
        return copy.deepcopy(self._values)

    @property
    def config_dir(self) -> Optional[Path]:
        return self._config_dir
