"""
Unit tests for BattleOrchestrator.

Battles run with every random battle roll disabled (no evasion, critical,
strong attack or variance, abilities off) unless a test opts back in, so
each hit is attack - defense scaled by skill power.
"""

import pytest

from lifequest.domain.models.status import StatusEffect, StatusType
from lifequest.modules.combat import BattlePhase, MessageType
from lifequest.modules.loot import BattleRewards, RewardCalculator
from lifequest.modules.rng import RandomSource
from lifequest.modules.shared.exceptions import InvalidOperationError, ValidationError
from tests.conftest import (
    DETERMINISTIC_BATTLE,
    ScriptedRandomSource,
    assert_domain_event_emitted,
    build_orchestrator,
    config_with,
    get_domain_event_payload,
    make_monster_spec,
    make_stats,
)


@pytest.fixture
def orchestrator(battle_config, clock):
    return build_orchestrator(battle_config, RandomSource(seed=1), clock=clock)


def _started(orchestrator, player_stats, *stages, **kwargs):
    battle = orchestrator.create_battle(player_stats, list(stages), **kwargs)
    orchestrator.start(battle)
    return battle


def _player_hits(messages):
    return [
        m.metadata["damage"]
        for m in messages
        if m.type in (MessageType.DAMAGE, MessageType.CRITICAL) and m.metadata.get("attacker") == "player"
    ]


# ============================================================================
# LIFECYCLE TESTS
# ============================================================================


@pytest.mark.unit
class TestBattleLifecycle:
    """Creating, starting and misusing battles."""

    def test_single_hit_victory(self, orchestrator, clock):
        """A 45-damage hit on a 40 HP monster wins in one round."""
        # Arrange
        battle = orchestrator.create_battle(
            make_stats(max_health=100, attack=50, defense=20),
            [[make_monster_spec(max_health=40, attack=10, defense=5)]],
        )

        # Act
        opening = orchestrator.start(battle)
        messages = orchestrator.advance(battle)

        # Assert
        assert opening[0].text == "Stage 1/1: Slime appear!"
        assert opening[0].type is MessageType.START
        hit = messages[0]
        assert hit.text == "Hero's Attack hits Slime for 45 damage."
        assert (hit.metadata["damage"], hit.metadata["dealt"]) == (45, 40)
        assert hit.timestamp == clock()
        assert messages[-1].text == "Victory!"
        assert not any(m.metadata.get("attacker") == "monster-1-1" for m in battle.messages)

        result = battle.result()
        assert result.outcome is BattlePhase.VICTORY
        assert result.rounds == 1
        assert result.surviving_health_ratio == 1.0
        assert result.rewards == BattleRewards(experience=5, gold=3)
        assert assert_domain_event_emitted(battle, "battle.victory")

    def test_start_twice(self, orchestrator):
        battle = _started(orchestrator, make_stats(attack=50), [make_monster_spec()])
        with pytest.raises(InvalidOperationError):
            orchestrator.start(battle)

    def test_advance_before_start(self, orchestrator):
        battle = orchestrator.create_battle(make_stats(attack=50), [[make_monster_spec()]])
        with pytest.raises(InvalidOperationError):
            orchestrator.advance(battle)

    def test_advance_after_end(self, orchestrator):
        battle = _started(orchestrator, make_stats(attack=500), [make_monster_spec()])
        orchestrator.advance(battle)

        with pytest.raises(InvalidOperationError):
            orchestrator.advance(battle)

    def test_battle_needs_monsters(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.create_battle(make_stats(), [[], []])

    def test_empty_stages_are_dropped(self, orchestrator):
        battle = orchestrator.create_battle(make_stats(), [[], [make_monster_spec()]])
        assert battle.total_stages == 1

    def test_player_stats_required(self, orchestrator):
        with pytest.raises(TypeError):
            orchestrator.create_battle(None, [[make_monster_spec()]])

    def test_started_event(self, orchestrator):
        battle = _started(orchestrator, make_stats(), [make_monster_spec()], dungeon_id="whispering_woods")
        payload = get_domain_event_payload(battle, "battle.started")
        assert payload == {"battle_id": battle.id, "dungeon_id": "whispering_woods", "stages": 1}


# ============================================================================
# OUTCOME TESTS
# ============================================================================


@pytest.mark.unit
class TestBattleOutcomes:
    """Victory, defeat and the round limit."""

    def test_monster_killed_outside_loop(self, orchestrator):
        """A stage already cleared resolves before anyone acts."""
        battle = _started(orchestrator, make_stats(attack=1), [make_monster_spec(max_health=40)])
        battle.monsters[0].take_damage(1000)

        orchestrator.advance(battle)

        assert battle.phase is BattlePhase.VICTORY
        assert battle.round == 0

    def test_player_death(self, orchestrator):
        # Arrange
        battle = _started(
            orchestrator,
            make_stats(max_health=10, attack=1),
            [make_monster_spec(max_health=1000, attack=50, defense=100)],
        )

        # Act
        messages = orchestrator.advance(battle)

        # Assert
        assert battle.phase is BattlePhase.DEFEAT
        assert messages[-1].text == "Hero has fallen..."
        assert messages[-1].type is MessageType.END
        assert get_domain_event_payload(battle, "battle.defeat")["reason"] == "player_died"
        assert battle.result().surviving_health_ratio == 0.0

    def test_round_limit(self, orchestrator):
        battle = orchestrator.create_battle(
            make_stats(attack=1),
            [[make_monster_spec(max_health=1000, attack=0, defense=100)]],
            max_rounds=3,
        )

        result = orchestrator.run_to_completion(battle)

        assert result.outcome is BattlePhase.DEFEAT
        assert result.rounds == 3
        assert get_domain_event_payload(battle, "battle.defeat")["reason"] == "round_limit"

    def test_later_monsters_skip_turn_after_player_death(self, orchestrator):
        battle = _started(
            orchestrator,
            make_stats(max_health=10, attack=1),
            [
                make_monster_spec(name="Ogre", max_health=1000, attack=50, defense=100),
                make_monster_spec(name="Imp", max_health=1000, attack=50, defense=100),
            ],
        )

        orchestrator.advance(battle)

        attackers = {m.metadata.get("attacker") for m in battle.messages}
        assert "monster-1-2" not in attackers

    def test_external_reward_calculator(self, battle_config, mocker):
        # Arrange
        calculator = mocker.Mock(spec=RewardCalculator)
        calculator.calculate_battle_rewards.return_value = BattleRewards(experience=99, gold=7)
        orchestrator = build_orchestrator(battle_config, RandomSource(seed=1), reward_calculator=calculator)
        battle = _started(
            orchestrator,
            make_stats(attack=500),
            [make_monster_spec()],
            dungeon_id="whispering_woods",
            is_first_clear=True,
            player_level=7,
        )

        # Act
        orchestrator.advance(battle)

        # Assert
        calculator.calculate_battle_rewards.assert_called_once_with(
            "whispering_woods", [(5, 3)], is_first_clear=True, player_level=7
        )
        assert battle.rewards.experience == 99


# ============================================================================
# STAGE TESTS
# ============================================================================


@pytest.mark.unit
class TestStages:
    """Multi-stage progression."""

    def test_stage_transition(self, orchestrator):
        # Arrange
        battle = _started(
            orchestrator,
            make_stats(attack=50),
            [make_monster_spec(max_health=40)],
            [make_monster_spec(name="Goblin", max_health=40)],
        )

        # Act
        cleared = orchestrator.advance(battle)
        spawned = orchestrator.advance(battle)
        final = orchestrator.advance(battle)

        # Assert
        assert cleared[-1].text == "Stage 1 cleared!"
        assert cleared[-1].metadata["delay_ms"] == 1500
        assert get_domain_event_payload(battle, "battle.stage_cleared")["delay_ms"] == 1500
        assert [m.text for m in spawned] == ["Stage 2/2: Goblin appear!"]
        assert spawned[0].metadata["monsters"] == ["monster-2-1"]
        assert final[-1].text == "Victory!"

        result = battle.result()
        assert result.rounds == 2
        assert result.stages_cleared == 2
        assert result.rewards.experience == 10

    def test_player_health_carries_over(self, orchestrator):
        battle = _started(
            orchestrator,
            make_stats(max_health=100, attack=30),
            [make_monster_spec(max_health=40, attack=11)],
            [make_monster_spec(max_health=10)],
        )

        orchestrator.advance(battle)
        orchestrator.advance(battle)
        orchestrator.advance(battle)

        assert battle.player.health == 89
        assert battle.stage_index == 1

    def test_multi_hit_retargets(self, orchestrator):
        """Multi Slash moves on to the next monster once the first falls."""
        battle = _started(
            orchestrator,
            make_stats(attack=50),
            [make_monster_spec(name="Rat", max_health=20), make_monster_spec(name="Bat", max_health=20)],
        )

        messages = orchestrator.advance(battle, "multi_slash")

        targets = [m.metadata["target"] for m in messages if m.type is MessageType.DAMAGE]
        assert targets == ["monster-1-1", "monster-1-2"]
        assert battle.phase is BattlePhase.VICTORY


# ============================================================================
# STATUS TESTS
# ============================================================================


@pytest.mark.unit
class TestStatusesInBattle:
    """Blocked actions, abilities and life steal."""

    def test_frozen_player_skips_action(self, orchestrator):
        # Arrange
        battle = _started(
            orchestrator,
            make_stats(max_health=100, attack=50, defense=20),
            [make_monster_spec(max_health=40, attack=10)],
        )
        battle.player.statuses = [StatusEffect(type=StatusType.FREEZE, target="player", duration_turns=1)]

        # Act
        messages = orchestrator.advance(battle)

        # Assert
        assert messages[0].text == "Hero is frozen and skips the turn."
        assert battle.monsters[0].health == 40
        assert battle.player.health == 99
        assert battle.player.statuses == []

        orchestrator.advance(battle)
        assert battle.phase is BattlePhase.VICTORY

    def test_stunned_monster_skips_action(self, orchestrator):
        battle = _started(
            orchestrator,
            make_stats(attack=1),
            [make_monster_spec(max_health=1000, attack=30)],
        )
        battle.monsters[0].statuses = [
            StatusEffect(type=StatusType.STUN, target="monster-1-1", duration_turns=1)
        ]

        messages = orchestrator.advance(battle)

        assert "Slime is stunned and skips the turn." in [m.text for m in messages]
        assert battle.player.health == 100

    def test_poison_ability_ticks_at_round_end(self):
        """The spider poisons on attack; the tick lands after all actions."""
        # Arrange
        config = config_with({"battle": {"critical_chance": 0, "strong_attack_chance": 0, "damage_variation": 0}})
        orchestrator = build_orchestrator(config, ScriptedRandomSource(rolls=[0.0]))
        battle = _started(
            orchestrator,
            make_stats(max_health=1000, attack=1),
            [make_monster_spec(name="Spider", abilities=("poison",), max_health=1000, attack=10)],
        )

        # Act
        messages = orchestrator.advance(battle)

        # Assert
        texts = [m.text for m in messages]
        assert "Spider uses Poison Strike!" in texts
        assert texts[-1] == "Hero takes 5 poison damage."
        assert battle.player.health == 985
        assert battle.player.statuses[0].duration_turns == 2

    def test_life_steal_heals_attacker(self, orchestrator):
        battle = _started(
            orchestrator,
            make_stats(max_health=100, current_health=50, attack=50, life_steal=50),
            [make_monster_spec(max_health=1000, attack=0, defense=10)],
        )

        messages = orchestrator.advance(battle)

        heal = next(m for m in messages if m.type is MessageType.HEAL)
        assert heal.metadata["healed"] == 20
        assert heal.text == "Hero drains 20 HP."

    def test_support_skill_applies_buff(self, orchestrator):
        battle = _started(orchestrator, make_stats(attack=20), [make_monster_spec(max_health=1000, attack=0)])

        messages = orchestrator.advance(battle, "iron_wall")

        assert messages[0].text == "Hero uses Iron Wall."
        assert battle.player.effective_stats().defense == 0
        assert battle.player.statuses[0].stat_affected == "defense"
        assert battle.monsters[0].health == 1000

    def test_self_damage_names_the_caster(self):
        """A self-targeted damage effect is reported against the player, not the monster."""
        # Arrange
        config = config_with(
            {
                **DETERMINISTIC_BATTLE,
                "skills": {
                    "catalog": {
                        "blood_pact": {
                            "name": "Blood Pact",
                            "power": 0,
                            "effects": [{"kind": "damage", "target": "self", "value": 10}],
                        }
                    }
                },
            }
        )
        orchestrator = build_orchestrator(config, RandomSource(seed=1))
        battle = _started(orchestrator, make_stats(attack=20), [make_monster_spec(max_health=1000, attack=0)])

        # Act
        messages = orchestrator.advance(battle, "blood_pact")

        # Assert
        hurt = next(
            m for m in messages if m.type is MessageType.DAMAGE and m.metadata.get("attacker") == "player"
        )
        assert hurt.text == "Hero takes 10 damage."
        assert hurt.metadata["target"] == "player"
        assert battle.monsters[0].health == 1000


# ============================================================================
# COMBO TESTS
# ============================================================================


@pytest.mark.unit
class TestCombosInBattle:
    """Combo detection driven through advance()."""

    def test_triple_strike_finisher(self, orchestrator):
        """The finisher replaces the next action and is not logged as a cast."""
        # Arrange
        battle = _started(
            orchestrator,
            make_stats(attack=20),
            [make_monster_spec(max_health=10_000, attack=0)],
        )

        # Act
        for cast_at in (1000, 2000, 3000):
            orchestrator.advance(battle, "power_strike", cast_at_ms=cast_at)
        finisher = orchestrator.advance(battle, "power_strike", cast_at_ms=4000)

        # Assert
        assert _player_hits(battle.messages) == [30, 30, 30, 90]
        assert "Combo! Triple Strike" in [m.text for m in battle.messages]
        assert finisher[0].text == "Triple Strike finisher: Triple Strike!"
        assert len(battle.combo_detector.history) == 3

    def test_bonus_combo_empowers_current_skill(self, orchestrator):
        """Berserk's attack buff plus the +75% Berserker Rage bonus on Whirlwind."""
        battle = _started(
            orchestrator,
            make_stats(attack=20),
            [make_monster_spec(max_health=10_000, attack=0)],
        )

        orchestrator.advance(battle, "berserk", cast_at_ms=1000)
        messages = orchestrator.advance(battle, "whirlwind", cast_at_ms=2000)

        assert messages[0].text == "Combo! Berserker Rage"
        assert _player_hits(messages) == [59]

    def test_run_to_completion_with_selector(self, orchestrator):
        battle = orchestrator.create_battle(make_stats(attack=50), [[make_monster_spec(max_health=40, attack=50)]])

        result = orchestrator.run_to_completion(battle, skill_selector=lambda b: "power_strike")

        assert result.is_victory
        assert any("Power Strike hits" in m.text for m in result.messages)
