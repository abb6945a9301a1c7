"""
Data models for the Coinflip stats engine
"""

from .enums import CoinSide, StreakType
from .game_stats import (
    AdvancedStats,
    DerivedStats,
    FlipOutcome,
    GameStatistics,
    HistoryEntry,
    StreakRun,
)

# Storage schema (pydantic)
from .persisted import (
    SCHEMA_VERSION,
    PersistedGameData,
    PersistedHistoryEntry,
    PersistedStats,
)

__all__ = [
    "CoinSide",
    "StreakType",
    "HistoryEntry",
    "GameStatistics",
    "FlipOutcome",
    "DerivedStats",
    "StreakRun",
    "AdvancedStats",
    # Storage schema
    "SCHEMA_VERSION",
    "PersistedGameData",
    "PersistedHistoryEntry",
    "PersistedStats",
]
