"""
Configuration errors.

ConfigError
├── ConfigValidationError      a table loaded but its contents break a rule
└── ConfigInitializationError  the tables could not be loaded at all
"""


class ConfigError(Exception):
    """Common base so hosts can catch every configuration failure at once."""


class ConfigValidationError(ConfigError):
    """
    A balance table violates a structural rule.

    Raised for tables the engine cannot repair row by row, such as rarity
    drop rates that do not add up to 100. Individual malformed rows in the
    dungeon, ability and combo tables are skipped with a warning instead.
    """


class ConfigInitializationError(ConfigError):
    """The config directory is missing and the manager was built with `strict=True`."""
