"""
Engine composition root.

Every service is built exactly once here and handed its collaborators
explicitly; nothing in the package reaches for a module-level instance.
Hosts keep the returned `LifeQuestEngine` for the life of the process.

Usage
-----
>>> engine = build_engine(seed=7)
>>> battle = engine.create_dungeon_battle("whispering_woods", player_stats)
>>> result = engine.orchestrator.run_to_completion(battle)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from lifequest.core.config.config import Config
from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.combatant import CombatantStats
from lifequest.modules.ability.engine import AbilityEngine
from lifequest.modules.ability.registry import AbilityRegistry
from lifequest.modules.combat.battle import Battle
from lifequest.modules.combat.combo import load_combos
from lifequest.modules.combat.damage import DamageResolver
from lifequest.modules.combat.elements import ElementResolver
from lifequest.modules.combat.orchestrator import BattleOrchestrator
from lifequest.modules.combat.skills import SkillCatalog
from lifequest.modules.loot.dungeons import DungeonCatalog
from lifequest.modules.loot.item_generator import ItemGenerator
from lifequest.modules.loot.progress_service import DungeonProgressService
from lifequest.modules.loot.rewards import RewardCalculator
from lifequest.modules.resource.energy_service import EnergyService
from lifequest.modules.resource.ticket_service import TicketService
from lifequest.modules.rng.random_source import RandomSource
from lifequest.modules.shared.base_service import Clock
from lifequest.modules.shared.exceptions import NotFoundError
from lifequest.modules.shared.repository import InMemoryRecordStore, RecordStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class LifeQuestEngine:
    config: ConfigManager
    rng: RandomSource
    store: RecordStore
    energy: EnergyService
    tickets: TicketService
    items: ItemGenerator
    dungeons: DungeonCatalog
    rewards: RewardCalculator
    progress: DungeonProgressService
    abilities: AbilityRegistry
    ability_engine: AbilityEngine
    elements: ElementResolver
    damage: DamageResolver
    skills: SkillCatalog
    orchestrator: BattleOrchestrator

    def create_dungeon_battle(
        self,
        dungeon_id: str,
        player_stats: CombatantStats,
        *,
        player_id: Optional[str] = None,
        player_name: str = "Hero",
        player_element: str = "neutral",
        player_level: int = 1,
    ) -> Battle:
        """
        Battle against a configured dungeon's stages.

        First-clear status is looked up when `player_id` is given.

        Raises:
            NotFoundError: Unknown dungeon id
        """
        if self.dungeons.get(dungeon_id) is None:
            raise NotFoundError("Dungeon", dungeon_id)

        is_first_clear = (
            self.progress.is_first_clear(player_id, dungeon_id) if player_id else False
        )
        return self.orchestrator.create_battle(
            player_stats,
            self.dungeons.stages_for(dungeon_id),
            player_name=player_name,
            player_element=player_element,
            player_level=player_level,
            dungeon_id=dungeon_id,
            is_first_clear=is_first_clear,
        )


def build_engine(
    config_dir: Optional[Union[str, Path]] = None,
    store: Optional[RecordStore] = None,
    seed: Optional[int] = None,
    clock: Optional[Clock] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> LifeQuestEngine:
    """
    Wire every engine service.

    Args:
        config_dir: Balance YAML directory; defaults to Config.CONFIG_DIR
        store: Persistence boundary; defaults to an in-memory store
        seed: RNG seed; defaults to Config.RNG_SEED (unseeded when unset)
        clock: "Now" provider shared by the time-based services
        overrides: Balance values merged over the YAML tables
    """
    Config.load()
    config = ConfigManager(config_dir or Config.CONFIG_DIR, overrides=overrides)
    rng = RandomSource(seed if seed is not None else Config.RNG_SEED)
    store = store if store is not None else InMemoryRecordStore()

    items = ItemGenerator(config, rng)
    dungeons = DungeonCatalog(config)
    rewards = RewardCalculator(dungeons, items, rng, config)

    abilities = AbilityRegistry.from_config(config)
    ability_engine = AbilityEngine(abilities, rng, config)
    elements = ElementResolver(config)
    damage = DamageResolver(elements, rng, config)
    skills = SkillCatalog.from_config(config)
    orchestrator = BattleOrchestrator(
        damage_resolver=damage,
        ability_engine=ability_engine,
        ability_registry=abilities,
        skill_catalog=skills,
        combos=load_combos(config),
        config_manager=config,
        reward_calculator=rewards,
        clock=clock,
    )

    engine = LifeQuestEngine(
        config=config,
        rng=rng,
        store=store,
        energy=EnergyService(store, config, clock),
        tickets=TicketService(store, config, clock),
        items=items,
        dungeons=dungeons,
        rewards=rewards,
        progress=DungeonProgressService(store, config, dungeons, clock),
        abilities=abilities,
        ability_engine=ability_engine,
        elements=elements,
        damage=damage,
        skills=skills,
        orchestrator=orchestrator,
    )
    logger.info(
        "LifeQuest engine built",
        extra={"seed": rng.seed, "dungeons": dungeons.dungeon_ids(), "environment": Config.ENVIRONMENT.value},
    )
    return engine
