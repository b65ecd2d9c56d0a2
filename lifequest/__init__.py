"""
LifeQuest battle and progression engine.

Turn resolution, loot generation and resource regeneration for a gamified
habit tracker. The host application builds the services once through
``lifequest.engine.build_engine`` and drives battles turn by turn.
"""

__version__ = "1.0.0"
