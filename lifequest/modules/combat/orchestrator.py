"""
Battle Orchestrator
===================

Purpose
-------
Drive a battle from its first tick to Victory or Defeat. The host calls
`advance` once per tick (a UI timer, or `run_to_completion` for auto
battles); the orchestrator itself owns no timers and performs no I/O.

Responsibilities
----------------
- Spawn stage monster sets with fresh health
- One round per `advance`: player action, then each living monster in
  stage order, then end-of-round status and cooldown processing
- Combo detection on the skill the player just issued
- Damage through the DamageResolver; abilities and statuses through the
  AbilityEngine
- Battle message log, domain events, rewards on Victory

Turn Flow
---------
Player action:
    freeze/stun -> action skipped
    pending combo replacement -> replacement skill (plus its combo bonus)
    otherwise -> issued skill, recorded in the cast log, empowered by any
    bonus-only combo it completes
Monster action:
    freeze/stun -> action skipped
    on_turn_start, on_below_half_hp, on_attack triggers
    basic attack (once plus any multi-hit extras)
    on_turn_end triggers
Round end:
    periodic damage, status decrement, cooldown decrement

Design Decisions
----------------
- Player death ends the battle in Defeat immediately, even with monster
  turns still pending in the round.
- A stage whose monsters are all dead is cleared before anyone acts, so a
  monster killed outside the battle loop never takes a turn.
- Clearing a non-final stage pauses the battle. The stage-cleared message
  carries `delay_ms`; the next `advance` spawns the following stage.
- Reaching `max_rounds` ends the battle in Defeat.
- Invalid calls (advancing a finished battle) raise InvalidOperationError;
  bad table data inside a battle is skipped, never raised.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import LogContext, get_logger
from lifequest.domain.models.ability import AbilityTrigger
from lifequest.domain.models.combatant import Combatant, CombatantSide, CombatantStats
from lifequest.domain.models.dungeon import MonsterSpec
from lifequest.domain.models.status import StatusType
from lifequest.modules.ability.engine import AbilityActivation, AbilityEngine, EffectReport
from lifequest.modules.ability.registry import AbilityRegistry
from lifequest.modules.combat.battle import Battle, BattleMessage, BattlePhase, BattleResult, MessageType
from lifequest.modules.combat.combo import ComboDetector, SkillCombo, apply_combo_bonus
from lifequest.modules.combat.damage import DamageOutcome, DamageResolver
from lifequest.modules.combat.skills import PlayerSkill, SkillCatalog
from lifequest.modules.loot.rewards import BattleRewards, RewardCalculator
from lifequest.modules.shared.base_service import Clock, utc_now
from lifequest.modules.shared.exceptions import InvalidOperationError, ValidationError

logger = get_logger(__name__)

PLAYER_ID = "player"

SkillSelector = Callable[[Battle], Optional[str]]

_BLOCKED_VERB = {
    StatusType.FREEZE: "frozen",
    StatusType.STUN: "stunned",
}


class BattleOrchestrator:
    """
    Turn engine shared by every battle of one host.

    Public Methods
    --------------
    - create_battle(player_stats, stages, ...) -> Battle (not started)
    - start(battle) -> Opening messages
    - advance(battle, skill_id, cast_at_ms) -> Messages for one tick
    - run_to_completion(battle, skill_selector, max_rounds) -> BattleResult

    Configuration Keys
    ------------------
    - battle.max_rounds (default: 100)
    - battle.stage_transition_delay_ms (default: 1500)
    - skills.max_history (default: 32)
    """

    def __init__(
        self,
        damage_resolver: DamageResolver,
        ability_engine: AbilityEngine,
        ability_registry: AbilityRegistry,
        skill_catalog: SkillCatalog,
        combos: Sequence[SkillCombo],
        config_manager: ConfigManager,
        reward_calculator: Optional[RewardCalculator] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._damage = damage_resolver
        self._abilities = ability_engine
        self._registry = ability_registry
        self._skills = skill_catalog
        self._combos = tuple(combos)
        self._rewards = reward_calculator
        self._clock: Clock = clock or utc_now

        self._max_rounds = max(1, int(config_manager.get("battle.max_rounds", 100)))
        self._stage_delay_ms = max(0, int(config_manager.get("battle.stage_transition_delay_ms", 1500)))
        self._max_history = int(config_manager.get("skills.max_history", 32))

        logger.info(
            "BattleOrchestrator initialized",
            extra={
                "max_rounds": self._max_rounds,
                "stage_transition_delay_ms": self._stage_delay_ms,
                "combos": len(self._combos),
                "rewards_enabled": reward_calculator is not None,
            },
        )

    # ========================================================================
    # PUBLIC API - Lifecycle
    # ========================================================================

    def new_combo_detector(self) -> ComboDetector:
        return ComboDetector(self._combos, max_history=self._max_history)

    def create_battle(
        self,
        player_stats: CombatantStats,
        stages: Sequence[Sequence[MonsterSpec]],
        *,
        player_name: str = "Hero",
        player_element: str = "neutral",
        player_level: int = 1,
        dungeon_id: Optional[str] = None,
        is_first_clear: bool = False,
        combo_detector: Optional[ComboDetector] = None,
        battle_id: Optional[str] = None,
        max_rounds: Optional[int] = None,
    ) -> Battle:
        """
        Build a battle in NOT_STARTED.

        Raises:
            TypeError: player_stats is not a CombatantStats
            ValidationError: No stage has any monster
        """
        if not isinstance(player_stats, CombatantStats):
            raise TypeError(f"player_stats must be CombatantStats, got {type(player_stats).__name__}")

        populated = [list(stage) for stage in stages if stage]
        if len(populated) != len(stages):
            logger.warning("Dropping empty stages", extra={"dropped": len(stages) - len(populated)})
        if not populated:
            raise ValidationError("stages", "a battle needs at least one monster")

        player = Combatant(
            combatant_id=PLAYER_ID,
            name=player_name,
            side=CombatantSide.PLAYER,
            stats=player_stats,
            element=player_element,
        )
        battle = Battle(
            battle_id=battle_id or f"battle-{uuid.uuid4().hex[:12]}",
            player=player,
            stages=populated,
            combo_detector=combo_detector or self.new_combo_detector(),
            dungeon_id=dungeon_id,
            player_level=player_level,
            is_first_clear=is_first_clear,
            max_rounds=max_rounds or self._max_rounds,
        )
        logger.debug(
            "Battle created",
            extra={"battle_id": battle.id, "dungeon_id": dungeon_id, "stages": battle.total_stages},
        )
        return battle

    def start(self, battle: Battle) -> List[BattleMessage]:
        """
        Raises:
            InvalidOperationError: Battle already started
        """
        if battle.phase is not BattlePhase.NOT_STARTED:
            raise InvalidOperationError("start_battle", f"battle is {battle.phase.value}")

        mark = len(battle.messages)
        with LogContext(battle_id=battle.id, dungeon_id=battle.dungeon_id, operation="battle.start"):
            battle.mark_started()
            self._spawn_stage(battle, 0)
            logger.info(
                "Battle started",
                extra={"stages": battle.total_stages, "player_health": battle.player.health},
            )
        return battle.messages[mark:]

    def advance(
        self,
        battle: Battle,
        skill_id: Optional[str] = None,
        cast_at_ms: Optional[int] = None,
    ) -> List[BattleMessage]:
        """
        Run one tick: a full round, or the spawn of the next stage.

        Args:
            battle: Battle in progress
            skill_id: Skill the player issues; None for the default skill
            cast_at_ms: Cast time for combo detection; defaults to the clock

        Raises:
            InvalidOperationError: Battle not started or already over
        """
        if battle.phase is BattlePhase.NOT_STARTED:
            raise InvalidOperationError("advance_battle", "battle has not started")
        if battle.is_over:
            raise InvalidOperationError("advance_battle", f"battle already ended in {battle.phase.value}")

        mark = len(battle.messages)
        with LogContext(battle_id=battle.id, dungeon_id=battle.dungeon_id, operation="battle.advance"):
            self._advance(battle, skill_id, cast_at_ms)
        return battle.messages[mark:]

    def run_to_completion(
        self,
        battle: Battle,
        skill_selector: Optional[SkillSelector] = None,
        max_rounds: Optional[int] = None,
    ) -> BattleResult:
        """Auto battle: start if needed and advance until a terminal phase."""
        if max_rounds is not None:
            battle.max_rounds = max(1, int(max_rounds))
        if battle.phase is BattlePhase.NOT_STARTED:
            self.start(battle)

        while not battle.is_over:
            skill_id = skill_selector(battle) if skill_selector else None
            self.advance(battle, skill_id)
        return battle.result()

    # ========================================================================
    # Round flow
    # ========================================================================

    def _advance(self, battle: Battle, skill_id: Optional[str], cast_at_ms: Optional[int]) -> None:
        if battle.awaiting_next_stage:
            self._spawn_stage(battle, battle.stage_index + 1)
            return

        if self._settle(battle):
            return

        battle.round += 1
        self._player_turn(battle, skill_id, cast_at_ms)
        if self._settle(battle):
            return

        for monster in battle.alive_monsters():
            self._monster_turn(battle, monster)
            if self._settle(battle):
                return

        for tick in self._abilities.end_of_round(battle.combatants()):
            if tick.damage > 0:
                self._log(
                    battle,
                    f"{tick.combatant_name} takes {tick.damage} {tick.status_type.value} damage.",
                    MessageType.STATUS,
                    target=tick.combatant_id,
                    status=tick.status_type.value,
                    damage=tick.damage,
                )
        if self._settle(battle):
            return

        if battle.round >= battle.max_rounds:
            logger.warning("Round limit reached", extra={"rounds": battle.round})
            self._log(battle, "The battle drags on too long. You retreat.", MessageType.END)
            battle.mark_defeat("round_limit")

    def _settle(self, battle: Battle) -> bool:
        """Record deaths and resolve stage/battle outcomes; True when the tick must stop."""
        defeated_ids = {m.combatant_id for m in battle.defeated}
        for monster in battle.monsters:
            if not monster.is_alive and monster.combatant_id not in defeated_ids:
                battle.defeated.append(monster)
                self._log(
                    battle,
                    f"{monster.name} is defeated!",
                    MessageType.NORMAL,
                    target=monster.combatant_id,
                    exp=monster.exp_reward,
                    gold=monster.gold_reward,
                )

        if not battle.player.is_alive:
            self._log(battle, f"{battle.player.name} has fallen...", MessageType.END, outcome="defeat")
            battle.mark_defeat("player_died")
            logger.info("Battle lost", extra={"rounds": battle.round, "stage": battle.stage_index + 1})
            return True

        if not battle.stage_cleared:
            return False

        if battle.is_final_stage:
            rewards = self._calculate_rewards(battle)
            self._log(
                battle,
                "Victory!",
                MessageType.END,
                outcome="victory",
                experience=rewards.experience,
                gold=rewards.gold,
            )
            battle.mark_victory(rewards)
            logger.info(
                "Battle won",
                extra={"rounds": battle.round, "health_ratio": battle.player.stats.health_ratio},
            )
        else:
            self._log(
                battle,
                f"Stage {battle.stage_index + 1} cleared!",
                MessageType.NORMAL,
                stage=battle.stage_index + 1,
                delay_ms=self._stage_delay_ms,
            )
            battle.mark_stage_cleared(self._stage_delay_ms)
            logger.info("Stage cleared", extra={"stage": battle.stage_index + 1})
        return True

    def _spawn_stage(self, battle: Battle, index: int) -> None:
        battle.stage_index = index
        battle.awaiting_next_stage = False
        battle.monsters = [
            Combatant(
                combatant_id=f"monster-{index + 1}-{position + 1}",
                name=spec.name,
                side=CombatantSide.MONSTER,
                stats=spec.stats.fresh(),
                element=spec.element,
                abilities=self._registry.states_for(spec.abilities),
                exp_reward=spec.exp_reward,
                gold_reward=spec.gold_reward,
            )
            for position, spec in enumerate(battle.stages[index])
        ]
        names = ", ".join(m.name for m in battle.monsters)
        self._log(
            battle,
            f"Stage {index + 1}/{battle.total_stages}: {names} appear!",
            MessageType.START,
            stage=index + 1,
            monsters=[m.combatant_id for m in battle.monsters],
        )

    # ========================================================================
    # Player turn
    # ========================================================================

    def _player_turn(self, battle: Battle, skill_id: Optional[str], cast_at_ms: Optional[int]) -> None:
        player = battle.player
        if self._skip_if_blocked(battle, player):
            return

        detector = battle.combo_detector
        pending = detector.take_replacement()
        if pending is not None and pending.replace_with:
            skill = apply_combo_bonus(self._skills.resolve(pending.replace_with), pending.bonus)
            self._log(
                battle,
                f"{pending.name} finisher: {skill.name}!",
                MessageType.NORMAL,
                combo=pending.id,
                skill=skill.id,
            )
        else:
            skill = self._skills.resolve(skill_id)
            timestamp = cast_at_ms if cast_at_ms is not None else self._now_ms()
            combo = detector.record_cast(skill.id, timestamp)
            if combo is not None:
                self._log(
                    battle,
                    f"Combo! {combo.name}",
                    MessageType.NORMAL,
                    combo=combo.id,
                    replace_with=combo.replace_with,
                )
                if not combo.replace_with:
                    skill = apply_combo_bonus(skill, combo.bonus)

        self._execute_skill(battle, skill)

    def _execute_skill(self, battle: Battle, skill: PlayerSkill) -> None:
        player = battle.player
        target = self._first_alive(battle.monsters)
        if target is None:
            return

        if skill.is_attack:
            for _ in range(skill.hits):
                target = target if target.is_alive else self._first_alive(battle.monsters)
                if target is None or not player.is_alive:
                    break
                self._resolve_hit(
                    battle, player, target,
                    power=skill.power,
                    element=skill.element or player.element,
                    label=skill.name,
                )
        else:
            self._log(battle, f"{player.name} uses {skill.name}.", MessageType.NORMAL, skill=skill.id)

        if skill.effects and player.is_alive:
            opponent = self._first_alive(battle.monsters) or target
            report = self._abilities.apply_effects(skill.effects, player, opponent, source=skill.id)
            self._log_report(battle, report, owner=player, opponent=opponent)

    # ========================================================================
    # Monster turn
    # ========================================================================

    def _monster_turn(self, battle: Battle, monster: Combatant) -> None:
        player = battle.player
        if not monster.is_alive or self._skip_if_blocked(battle, monster):
            return

        for trigger in (
            AbilityTrigger.ON_TURN_START,
            AbilityTrigger.ON_BELOW_HALF_HP,
        ):
            self._trigger(battle, trigger, monster, player)
            if not player.is_alive:
                return

        activations = self._trigger(battle, AbilityTrigger.ON_ATTACK, monster, player)
        hits = 1 + sum(a.report.extra_hits for a in activations)
        for _ in range(hits):
            if not player.is_alive or not monster.is_alive:
                return
            self._resolve_hit(battle, monster, player, power=1.0, element=monster.element, label="attack")

        if player.is_alive and monster.is_alive:
            self._trigger(battle, AbilityTrigger.ON_TURN_END, monster, player)

    # ========================================================================
    # Shared resolution helpers
    # ========================================================================

    def _resolve_hit(
        self,
        battle: Battle,
        attacker: Combatant,
        defender: Combatant,
        power: float,
        element: Optional[str],
        label: str,
    ) -> DamageOutcome:
        outcome = self._damage.resolve(
            attacker.effective_stats(),
            defender.effective_stats(),
            attacker_statuses=attacker.statuses,
            attacker_element=element,
            defender_element=defender.element,
            power=power,
        )

        if outcome.is_miss:
            self._log(
                battle,
                f"{defender.name} evades {attacker.name}'s {label}.",
                MessageType.MISS,
                attacker=attacker.combatant_id,
                target=defender.combatant_id,
            )
            return outcome

        dealt = defender.take_damage(outcome.final_damage)
        prefix = ""
        if outcome.is_critical:
            prefix += "Critical! "
        if outcome.is_strong:
            prefix += "Strong attack! "
        self._log(
            battle,
            f"{prefix}{attacker.name}'s {label} hits {defender.name} for {outcome.final_damage} damage.",
            MessageType.CRITICAL if outcome.is_critical else MessageType.DAMAGE,
            attacker=attacker.combatant_id,
            target=defender.combatant_id,
            damage=outcome.final_damage,
            dealt=dealt,
            critical=outcome.is_critical,
            strong=outcome.is_strong,
        )

        if outcome.life_steal > 0 and attacker.is_alive:
            healed = attacker.heal(outcome.life_steal)
            if healed:
                self._log(
                    battle,
                    f"{attacker.name} drains {healed} HP.",
                    MessageType.HEAL,
                    target=attacker.combatant_id,
                    healed=healed,
                )

        if defender.is_alive:
            self._trigger(battle, AbilityTrigger.ON_HIT, defender, attacker)
            self._trigger(battle, AbilityTrigger.ON_BELOW_HALF_HP, defender, attacker)
        return outcome

    def _trigger(
        self,
        battle: Battle,
        trigger: AbilityTrigger,
        owner: Combatant,
        opponent: Combatant,
    ) -> List[AbilityActivation]:
        activations = self._abilities.evaluate(trigger, owner, opponent)
        for activation in activations:
            self._log(
                battle,
                f"{owner.name} uses {activation.ability.name}!",
                MessageType.STATUS,
                ability=activation.ability.id,
                trigger=trigger.value,
                owner=owner.combatant_id,
            )
            self._log_report(battle, activation.report, owner=owner, opponent=opponent)
        return activations

    def _skip_if_blocked(self, battle: Battle, combatant: Combatant) -> bool:
        blocker = self._abilities.consume_action_blocker(combatant)
        if blocker is None:
            return False
        verb = _BLOCKED_VERB.get(blocker.type, "unable to act")
        self._log(
            battle,
            f"{combatant.name} is {verb} and skips the turn.",
            MessageType.STATUS,
            target=combatant.combatant_id,
            status=blocker.type.value,
            skipped=True,
        )
        return True

    def _log_report(
        self,
        battle: Battle,
        report: EffectReport,
        owner: Combatant,
        opponent: Combatant,
    ) -> None:
        names = {c.combatant_id: c.name for c in (owner, opponent)}
        for target_id, amount in report.damage_taken:
            if not amount:
                continue
            self._log(
                battle,
                f"{names.get(target_id, target_id)} takes {amount} damage.",
                MessageType.DAMAGE,
                attacker=owner.combatant_id,
                target=target_id,
                damage=amount,
            )
        for target_id, amount in report.healing:
            if not amount:
                continue
            self._log(
                battle,
                f"{names.get(target_id, target_id)} recovers {amount} HP.",
                MessageType.HEAL,
                target=target_id,
                healed=amount,
            )
        for status in report.statuses:
            self._log(
                battle,
                f"{names.get(status.target, status.target)} is affected by {status.type.value} "
                f"({status.duration_turns} turns).",
                MessageType.STATUS,
                target=status.target,
                status=status.type.value,
                duration=status.duration_turns,
            )

    def _calculate_rewards(self, battle: Battle) -> BattleRewards:
        monster_rewards = [(m.exp_reward, m.gold_reward) for m in battle.defeated]
        if self._rewards is None:
            return BattleRewards(
                experience=sum(exp for exp, _ in monster_rewards),
                gold=sum(gold for _, gold in monster_rewards),
                first_clear=battle.is_first_clear,
            )
        return self._rewards.calculate_battle_rewards(
            battle.dungeon_id,
            monster_rewards,
            is_first_clear=battle.is_first_clear,
            player_level=battle.player_level,
        )

    @staticmethod
    def _first_alive(combatants: Iterable[Combatant]) -> Optional[Combatant]:
        return next((c for c in combatants if c.is_alive), None)

    def _now(self) -> datetime:
        return self._clock()

    def _now_ms(self) -> int:
        return int(self._now().timestamp() * 1000)

    def _log(self, battle: Battle, text: str, message_type: MessageType, **metadata) -> BattleMessage:
        return battle.log(text, message_type, timestamp=self._now(), **metadata)
