"""
Unit tests for rarity rolls, item generation and equipment bonuses.
"""

from collections import Counter

import pytest

from lifequest.core.config.errors import ConfigValidationError
from lifequest.domain.models.item import Item, ItemBonus, ItemRarity, ItemType
from lifequest.modules.loot import ItemGenerator, RarityTable, apply_item_bonuses
from lifequest.modules.rng import RandomSource
from tests.conftest import ScriptedRandomSource, make_stats


def _generator(config, rng) -> ItemGenerator:
    counter = iter(range(1, 10_000))
    return ItemGenerator(config, rng, id_factory=lambda: f"item-{next(counter)}")


# ============================================================================
# RARITY TABLE TESTS
# ============================================================================


@pytest.mark.unit
class TestRarityTable:
    """Six-tier drop table."""

    def test_packaged_rates_sum_to_100(self, config):
        assert RarityTable.from_config(config).total_drop_rate == pytest.approx(100)

    def test_rates_must_sum_to_100(self):
        with pytest.raises(ConfigValidationError, match="sum to 100"):
            RarityTable.from_mapping({"common": {"drop_rate": 20}})

    def test_partial_override_keeps_defaults(self):
        table = RarityTable.from_mapping({"common": {"color": "#000000"}})
        assert table[ItemRarity.COMMON].color == "#000000"
        assert table[ItemRarity.COMMON].drop_rate == 60

    @pytest.mark.parametrize(
        "roll, expected",
        [
            (0.0, ItemRarity.COMMON),
            (59.0, ItemRarity.COMMON),
            (70.0, ItemRarity.UNCOMMON),
            (90.0, ItemRarity.RARE),
            (97.0, ItemRarity.EPIC),
            (99.5, ItemRarity.LEGENDARY),
            (99.95, ItemRarity.MYTHIC),
        ],
    )
    def test_single_roll_walks_tiers_in_order(self, config, roll, expected):
        rng = ScriptedRandomSource(rolls=[roll])
        assert RarityTable.from_config(config).determine_rarity(rng) is expected

    def test_distribution_follows_rates(self, config):
        """Over many rolls common lands near its 60% share."""
        # Arrange
        table = RarityTable.from_config(config)
        rng = RandomSource(seed=2024)

        # Act
        counts = Counter(table.determine_rarity(rng) for _ in range(10_000))

        # Assert
        assert 0.57 < counts[ItemRarity.COMMON] / 10_000 < 0.63
        assert 0.22 < counts[ItemRarity.UNCOMMON] / 10_000 < 0.28


# ============================================================================
# ITEM GENERATION TESTS
# ============================================================================


@pytest.mark.unit
class TestGenerateItem:
    """Concrete item rolls."""

    def test_scripted_rare_weapon(self, config):
        """Level 25 adds +2 to both bonus bounds."""
        # Arrange
        generator = _generator(config, ScriptedRandomSource())

        # Act
        item = generator.generate_item(ItemType.WEAPON, ItemRarity.RARE, 25)

        # Assert
        assert item.id == "item-1"
        assert item.name == "Rare Sword"
        assert item.level == 25
        assert item.bonuses == (
            ItemBonus(stat="attack", value=17),
            ItemBonus(stat="critical_chance", value=17),
        )
        assert item.special_effect is None

    @pytest.mark.parametrize("rarity", list(ItemRarity))
    @pytest.mark.parametrize("item_type", list(ItemType))
    def test_rolls_stay_in_bounds(self, config, item_type, rarity):
        """Bonus count, stat pool and values respect the rarity tier."""
        generator = _generator(config, RandomSource(seed=11))
        tier = generator.rarities[rarity]
        pool = config.get(f"items.type_stats.{item_type.value}")

        for level in (1, 9, 10, 57):
            item = generator.generate_item(item_type, rarity, level)
            stats = [b.stat for b in item.bonuses]
            expected_count = min(tier.min_bonuses, len(pool))

            assert expected_count <= len(stats) <= tier.max_bonuses
            assert len(set(stats)) == len(stats)
            assert set(stats) <= set(pool)
            for bonus in item.bonuses:
                assert tier.min_bonus_value + level // 10 <= bonus.value
                assert bonus.value <= tier.max_bonus_value + level // 10

    def test_mythic_gets_special_effect(self, config):
        generator = _generator(config, ScriptedRandomSource())
        item = generator.generate_item(ItemType.ACCESSORY, ItemRarity.MYTHIC, 1)
        assert item.special_effect == config.get("items.mythic_special_effects")[0]

    def test_mythic_armor_is_capped_by_its_stat_pool(self, config):
        """Mythic asks for four bonuses; armor only has three stats to give."""
        generator = _generator(config, RandomSource(seed=3))
        pool = config.get("items.type_stats.armor")

        item = generator.generate_item(ItemType.ARMOR, ItemRarity.MYTHIC, 1)

        assert generator.rarities[ItemRarity.MYTHIC].min_bonuses == 4
        assert len(pool) == 3
        assert sorted(b.stat for b in item.bonuses) == sorted(pool)

    def test_generate_random_item(self, config):
        item = _generator(config, RandomSource(seed=8)).generate_random_item(30)
        assert isinstance(item, Item)
        assert item.level == 30

    def test_items_are_immutable(self, config):
        item = _generator(config, ScriptedRandomSource()).generate_item(
            ItemType.ARMOR, ItemRarity.COMMON, 1
        )
        with pytest.raises(Exception):
            item.name = "Changed"  # type: ignore[misc]


@pytest.mark.unit
class TestItemPresentation:
    """Descriptions and sale value."""

    def test_describe(self, config):
        generator = _generator(config, ScriptedRandomSource())
        item = generator.generate_item(ItemType.WEAPON, ItemRarity.RARE, 25)
        assert generator.describe(item) == ["+17% Attack", "+17% Critical Chance"]

    def test_describe_mythic_special(self, config):
        generator = _generator(config, ScriptedRandomSource())
        item = generator.generate_item(ItemType.ACCESSORY, ItemRarity.MYTHIC, 1)
        lines = generator.describe(item)
        assert lines[-2] == ""
        assert lines[-1].startswith("Special: ")

    def test_item_value(self, config):
        """Rare base value 60 scaled by +34% total bonus."""
        generator = _generator(config, ScriptedRandomSource())
        item = generator.generate_item(ItemType.WEAPON, ItemRarity.RARE, 25)
        assert generator.item_value(item) == 80


# ============================================================================
# EQUIPMENT TESTS
# ============================================================================


def _item(*bonuses) -> Item:
    return Item(
        id="item-x",
        name="Test Ring",
        type=ItemType.ACCESSORY,
        rarity=ItemRarity.RARE,
        level=1,
        bonuses=tuple(ItemBonus(stat=s, value=v) for s, v in bonuses),
    )


@pytest.mark.unit
class TestApplyItemBonuses:
    """Folding equipment into a stat snapshot."""

    def test_percent_and_flat_bonuses(self):
        # Arrange
        stats = make_stats(max_health=100, attack=100, critical_chance=5)
        item = _item(("attack", 10), ("critical_chance", 5), ("max_health", 20))

        # Act
        result = apply_item_bonuses(stats, [item])

        # Assert
        assert result.attack == 110
        assert result.critical_chance == 10
        assert result.max_health == 120
        assert result.current_health == 120
        assert stats.attack == 100

    def test_wounded_snapshot_keeps_health(self):
        stats = make_stats(max_health=100, current_health=50)
        result = apply_item_bonuses(stats, [_item(("max_health", 20))])
        assert result.max_health == 120
        assert result.current_health == 50

    def test_unknown_stat_is_ignored(self):
        stats = make_stats(attack=10)
        assert apply_item_bonuses(stats, [_item(("luck", 50))]) == stats

    def test_generator_equip_uses_configured_percent_stats(self, config):
        generator = _generator(config, ScriptedRandomSource())
        stats = make_stats(defense=50)
        assert generator.equip(stats, [_item(("defense", 20))]).defense == 60
