"""
Pytest Configuration and Fixtures for LifeQuest Tests
=====================================================

Purpose
-------
Centralized fixtures for the LifeQuest engine test suite: configuration,
deterministic randomness, a controllable clock and the in-memory store.

Architecture Notes
------------------
- Unit tests build the one service under test from these fixtures
- Integration tests wire the whole engine through `build_engine`
- ScriptedRandomSource replays queued rolls so every branch of a
  probabilistic rule can be forced without patching internals
"""

from __future__ import annotations

import os
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import pytest

from lifequest.core.config.manager import ConfigManager
from lifequest.domain.models.combatant import Combatant, CombatantSide, CombatantStats
from lifequest.domain.models.dungeon import MonsterSpec
from lifequest.modules.ability.engine import AbilityEngine
from lifequest.modules.ability.registry import AbilityRegistry
from lifequest.modules.combat.combo import load_combos
from lifequest.modules.combat.damage import DamageResolver
from lifequest.modules.combat.elements import ElementResolver
from lifequest.modules.combat.orchestrator import BattleOrchestrator
from lifequest.modules.combat.skills import SkillCatalog
from lifequest.modules.rng.random_source import RandomSource
from lifequest.modules.shared.repository import InMemoryRecordStore

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    os.environ["LIFEQUEST_ENV"] = "testing"
    os.environ["LIFEQUEST_LOG_LEVEL"] = "DEBUG"


# Every chance roll disabled, no variance: damage is pure arithmetic.
DETERMINISTIC_BATTLE = {
    "battle": {
        "critical_chance": 0,
        "strong_attack_chance": 0,
        "damage_variation": 0,
        "special_abilities_enabled": False,
    }
}


# ============================================================================
# TEST DOUBLES
# ============================================================================


class ScriptedRandomSource(RandomSource):
    """
    RandomSource that replays queued values.

    - roll(): next queued roll, else `default_roll` (99.999 fires only 100%)
    - randint(): next queued int, else the low bound
    - uniform(): next queued float, else 0.0
    - choice()/sample(): always the leading elements
    """

    def __init__(
        self,
        rolls: Iterable[float] = (),
        ints: Iterable[int] = (),
        uniforms: Iterable[float] = (),
        default_roll: float = 99.999,
    ) -> None:
        super().__init__(seed=0)
        self.rolls = deque(rolls)
        self.ints = deque(ints)
        self.uniforms = deque(uniforms)
        self.default_roll = default_roll
        self.roll_count = 0

    def roll(self) -> float:
        self.roll_count += 1
        return self.rolls.popleft() if self.rolls else self.default_roll

    def randint(self, low: int, high: int) -> int:
        if high < low:
            low, high = high, low
        return self.ints.popleft() if self.ints else low

    def uniform(self, low: float, high: float) -> float:
        return self.uniforms.popleft() if self.uniforms else 0.0

    def choice(self, items: Sequence[Any]) -> Any:
        return items[0]

    def sample(self, items: Sequence[Any], k: int) -> List[Any]:
        return list(items)[: max(0, min(k, len(items)))]


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.current = start or datetime(2026, 10, 17, 10, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> datetime:
        self.current = self.current + timedelta(**delta)
        return self.current


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def config() -> ConfigManager:
    """Packaged balance tables."""
    return ConfigManager()


@pytest.fixture
def battle_config() -> ConfigManager:
    """Packaged tables with every battle roll disabled."""
    return ConfigManager(overrides=DETERMINISTIC_BATTLE)


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def scripted_rng():
    """Factory for ScriptedRandomSource instances."""
    return ScriptedRandomSource


# ============================================================================
# FACTORIES
# ============================================================================


def make_stats(**values: Any) -> CombatantStats:
    values.setdefault("max_health", 100)
    return CombatantStats(**values)


def make_combatant(
    combatant_id: str = "player",
    side: CombatantSide = CombatantSide.PLAYER,
    name: Optional[str] = None,
    **stats: Any,
) -> Combatant:
    return Combatant(
        combatant_id=combatant_id,
        name=name or combatant_id.title(),
        side=side,
        stats=make_stats(**stats),
    )


def make_monster_spec(
    name: str = "Slime",
    abilities: Sequence[str] = (),
    element: str = "neutral",
    exp_reward: int = 5,
    gold_reward: int = 3,
    **stats: Any,
) -> MonsterSpec:
    return MonsterSpec(
        name=name,
        stats=make_stats(**stats),
        abilities=tuple(abilities),
        element=element,
        exp_reward=exp_reward,
        gold_reward=gold_reward,
    )


def build_orchestrator(
    config: ConfigManager,
    rng: RandomSource,
    reward_calculator=None,
    clock=None,
) -> BattleOrchestrator:
    registry = AbilityRegistry.from_config(config)
    return BattleOrchestrator(
        damage_resolver=DamageResolver(ElementResolver(config), rng, config),
        ability_engine=AbilityEngine(registry, rng, config),
        ability_registry=registry,
        skill_catalog=SkillCatalog.from_config(config),
        combos=load_combos(config),
        config_manager=config,
        reward_calculator=reward_calculator,
        clock=clock,
    )


def config_with(overrides: Mapping[str, Any]) -> ConfigManager:
    return ConfigManager(overrides=overrides)


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def assert_domain_event_emitted(domain_model, event_name: str) -> bool:
    """
    Assert that a domain model emitted a specific event.

    Usage:
        orchestrator.run_to_completion(battle)
        assert assert_domain_event_emitted(battle, "battle.victory")
    """
    events = domain_model.get_pending_events()
    return any(event.event_name == event_name for event in events)


def get_domain_event_payload(domain_model, event_name: str) -> Optional[dict]:
    """Payload of the first pending event named `event_name`."""
    for event in domain_model.get_pending_events():
        if event.event_name == event_name:
            return event.payload
    return None
