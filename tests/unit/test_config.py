"""
Unit tests for configuration, structured logging and the domain exception
hierarchy.
"""

import json
import logging

import pytest

from lifequest.core.config import Config, ConfigInitializationError, ConfigManager, Environment
from lifequest.core.logging import (
    LogContext,
    clear_log_context,
    get_log_context,
    set_log_context,
    setup_logging,
    shutdown_logging,
)
from lifequest.core.logging.logger import ColoredFormatter, ContextFilter, JSONFormatter, LoggerConfig
from lifequest.modules.shared.exceptions import (
    CooldownActiveError,
    InsufficientResourcesError,
    InvalidOperationError,
    NotFoundError,
    get_error_severity,
    is_transient_error,
    should_alert,
)


# ============================================================================
# CONFIG MANAGER TESTS
# ============================================================================


@pytest.mark.unit
class TestConfigManager:
    """YAML-backed balance tables."""

    def test_packaged_tables_load(self, config):
        assert config.get("battle.max_rounds") == 100
        assert config.get("energy.max_energy") == 120

    def test_default_for_missing_keys(self, config):
        assert config.get("battle.unknown_key", 10) == 10
        assert config.get("battle.max_rounds.deeper", "x") == "x"

    def test_containers_are_copies(self, config):
        values = config.get("elements.valid_elements")
        values.append("plasma")
        assert "plasma" not in config.get("elements.valid_elements")

    def test_override_nested_and_dotted(self, config):
        # Act
        config.override({"battle": {"critical_chance": 0}})
        config.override({"battle.min_damage": 3})

        # Assert
        assert config.get("battle.critical_chance") == 0
        assert config.get("battle.min_damage") == 3
        assert config.get("battle.max_rounds") == 100

    def test_from_mapping_loads_no_files(self):
        config = ConfigManager.from_mapping({"energy": {"max_energy": 10}})
        assert config.get("energy.max_energy") == 10
        assert config.get("battle.max_rounds") is None
        assert config.config_dir is None

    def test_section_of_non_mapping(self, config):
        assert config.section("battle.max_rounds") == {}
        assert config.section("nowhere") == {}

    def test_missing_directory(self, tmp_path):
        missing = tmp_path / "absent"
        assert ConfigManager(missing).as_dict() == {}
        with pytest.raises(ConfigInitializationError):
            ConfigManager(missing, strict=True)

    def test_yaml_files_merge_in_order(self, tmp_path):
        """Later files deep-merge over earlier ones; bad files are skipped."""
        # Arrange
        (tmp_path / "a_base.yaml").write_text("battle:\n  min_damage: 1\n  max_rounds: 50\n")
        (tmp_path / "b_tuning.yaml").write_text("battle:\n  min_damage: 4\n")
        (tmp_path / "c_broken.yaml").write_text("battle: [unclosed\n")
        (tmp_path / "d_list.yaml").write_text("- 1\n- 2\n")

        # Act
        config = ConfigManager(tmp_path)

        # Assert
        assert config.as_dict() == {"battle": {"min_damage": 4, "max_rounds": 50}}


# ============================================================================
# STATIC CONFIG TESTS
# ============================================================================


@pytest.fixture
def reload_config(monkeypatch):
    yield monkeypatch
    monkeypatch.undo()
    Config.load(force=True)


@pytest.mark.unit
class TestStaticConfig:
    """Environment-driven settings."""

    def test_rng_seed_from_environment(self, reload_config):
        reload_config.setenv("LIFEQUEST_RNG_SEED", "42")

        Config.load(force=True)

        assert Config.RNG_SEED == 42
        assert "LIFEQUEST_RNG_SEED" in Config.get_config_summary()["from_environment"]

    def test_invalid_seed_falls_back(self, reload_config):
        reload_config.setenv("LIFEQUEST_RNG_SEED", "lucky")

        Config.load(force=True)

        assert Config.RNG_SEED is None
        assert "LIFEQUEST_RNG_SEED" in Config.get_config_summary()["validation_errors"]

    def test_invalid_log_level(self, reload_config):
        reload_config.setenv("LIFEQUEST_LOG_LEVEL", "chatty")
        Config.load(force=True)
        assert Config.LOG_LEVEL == "INFO"

    def test_environment_parsing(self):
        assert Environment.from_string("PRODUCTION") is Environment.PRODUCTION
        assert Environment.from_string("moon") is Environment.DEVELOPMENT


# ============================================================================
# LOGGING TESTS
# ============================================================================


@pytest.mark.unit
class TestLogging:
    """Log context, formatters and handler setup."""

    def test_context_is_scoped(self):
        clear_log_context()

        with LogContext(battle_id="battle-1", operation="battle.advance"):
            inside = get_log_context()

        assert inside["battle_id"] == "battle-1"
        assert inside["operation"] == "battle.advance"
        assert "correlation_id" in inside
        assert get_log_context() == {}

    def test_nested_context_inherits_correlation_id(self):
        with LogContext(player_id="p1", correlation_id="abc123"):
            with LogContext(battle_id="battle-2"):
                nested = get_log_context()

        assert nested["correlation_id"] == "abc123"
        assert nested["player_id"] == "p1"
        assert nested["battle_id"] == "battle-2"

    def test_set_log_context_skips_none(self):
        clear_log_context()
        set_log_context(player_id="p9", dungeon_id=None)
        assert get_log_context() == {"player_id": "p9"}
        clear_log_context()

    def test_json_formatter_includes_context_and_extra(self):
        # Arrange
        record = logging.LogRecord(
            "lifequest.modules.combat.orchestrator", logging.INFO, __file__, 1, "Battle won", None, None
        )
        record.rounds = 3

        # Act
        with LogContext(battle_id="battle-3"):
            ContextFilter().filter(record)
        payload = json.loads(JSONFormatter().format(record))

        # Assert
        assert payload["message"] == "Battle won"
        assert payload["battle_id"] == "battle-3"
        assert payload["component"] == "lifequest.modules.combat"
        assert payload["extra"] == {"rounds": 3}

    def test_colored_formatter_wraps_level_color(self):
        record = logging.LogRecord("lifequest.engine", logging.WARNING, __file__, 1, "Low energy", None, None)
        text = ColoredFormatter("%(message)s").format(record)
        assert text == "\033[33mLow energy\033[0m"

    def test_setup_and_shutdown_only_touch_own_handlers(self, tmp_path):
        # Arrange
        root = logging.getLogger()
        previous_level = root.level
        foreign = logging.NullHandler()
        root.addHandler(foreign)
        settings = LoggerConfig(
            environment="testing",
            log_level=logging.DEBUG,
            use_json=True,
            use_colors=False,
            log_to_file=True,
            logs_dir=tmp_path,
        )

        try:
            # Act
            setup_logging(settings)
            setup_logging(settings)
            installed = [h for h in root.handlers if getattr(h, "_lifequest_handler", False)]
            shutdown_logging()

            # Assert
            assert len(installed) == 2
            assert (tmp_path / LoggerConfig.FILE_NAME).exists()
            assert not any(getattr(h, "_lifequest_handler", False) for h in root.handlers)
            assert foreign in root.handlers
        finally:
            root.removeHandler(foreign)
            root.setLevel(previous_level)


# ============================================================================
# EXCEPTION TESTS
# ============================================================================


@pytest.mark.unit
class TestDomainExceptions:
    """Structured error details."""

    def test_insufficient_resources(self):
        exc = InsufficientResourcesError("energy", required=30, current=10)
        assert exc.details["deficit"] == 20
        assert exc.error_code == "INSUFFICIENT_ENERGY"
        assert "need 30, have 10" in str(exc)

    def test_not_found(self):
        exc = NotFoundError("Dungeon", "nowhere")
        assert exc.to_dict()["message"] == "Dungeon not found: nowhere"

    def test_cooldown_is_retryable(self):
        assert is_transient_error(CooldownActiveError("daily_bonus", 30.0)) is True
        assert is_transient_error(InvalidOperationError("advance_battle", "over")) is False
        assert is_transient_error(ValueError()) is False

    def test_severity(self):
        assert get_error_severity(NotFoundError("Skill")).value == "info"
        assert get_error_severity(RuntimeError()).value == "error"

    def test_should_alert_only_on_errors(self):
        assert should_alert(RuntimeError("boom")) is True
        assert should_alert(NotFoundError("Dungeon", "nowhere")) is False
