"""hostdiff — host scan snapshot store and attack-surface diff engine."""

__version__ = "0.1.0"
