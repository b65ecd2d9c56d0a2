"""Domain layer: value records and aggregates shared by every engine module."""
