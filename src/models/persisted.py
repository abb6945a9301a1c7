"""
Persisted Game Data Schema

Storage Format: {"stats": {...}, "version": "1.0"}
Field names are camelCase so records written by older clients load unchanged.

Missing fields fall back to their defaults (forward-compatible merge); unknown
fields are ignored. Counters or history entries that contradict each other fail
validation.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import CoinSide
from .game_stats import GameStatistics, HistoryEntry

SCHEMA_VERSION = "1.0"


class PersistedHistoryEntry(BaseModel):
    """Single history entry as stored."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., description="Creation-ordered unique id")
    result: CoinSide = Field(..., description="Side the coin landed on")
    prediction: CoinSide = Field(..., description="Side the player predicted")
    correct: bool = Field(..., description="prediction == result")
    timestamp: str = Field("", description="Display-only creation time")

    @model_validator(mode="after")
    def check_correct(self) -> "PersistedHistoryEntry":
        if self.correct != (self.result == self.prediction):
            raise ValueError(
                f"entry {self.id}: correct={self.correct} contradicts "
                f"prediction={self.prediction.value}, result={self.result.value}"
            )
        return self

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> "PersistedHistoryEntry":
        return cls(
            id=entry.id,
            result=entry.result,
            prediction=entry.prediction,
            correct=entry.correct,
            timestamp=entry.timestamp,
        )

    def to_entry(self) -> HistoryEntry:
        return HistoryEntry(
            id=self.id,
            result=self.result,
            prediction=self.prediction,
            correct=self.correct,
            timestamp=self.timestamp,
        )


class PersistedStats(BaseModel):
    """GameStatistics as stored."""

    model_config = ConfigDict(extra="ignore")

    totalFlips: int = Field(0, ge=0)
    correctPredictions: int = Field(0, ge=0)
    headsCount: int = Field(0, ge=0)
    tailsCount: int = Field(0, ge=0)
    currentStreak: int = Field(0, ge=0)
    bestStreak: int = Field(0, ge=0)
    history: list[PersistedHistoryEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_counters(self) -> "PersistedStats":
        problems = self._counters_only().check_invariants()
        if len(self.history) > self.totalFlips:
            problems.append(
                f"history has {len(self.history)} entries but totalFlips is {self.totalFlips}"
            )
        if problems:
            raise ValueError("; ".join(problems))
        return self

    def _counters_only(self) -> GameStatistics:
        return GameStatistics(
            total_flips=self.totalFlips,
            correct_predictions=self.correctPredictions,
            heads_count=self.headsCount,
            tails_count=self.tailsCount,
            current_streak=self.currentStreak,
            best_streak=self.bestStreak,
        )

    @classmethod
    def from_statistics(cls, stats: GameStatistics) -> "PersistedStats":
        return cls(
            totalFlips=stats.total_flips,
            correctPredictions=stats.correct_predictions,
            headsCount=stats.heads_count,
            tailsCount=stats.tails_count,
            currentStreak=stats.current_streak,
            bestStreak=stats.best_streak,
            history=[PersistedHistoryEntry.from_entry(entry) for entry in stats.history],
        )

    def to_statistics(self, history_limit: int | None = None) -> GameStatistics:
        """Convert to GameStatistics, keeping only the most recent history_limit entries."""
        entries = self.history if history_limit is None else self.history[:history_limit]
        stats = self._counters_only()
        stats.history = [entry.to_entry() for entry in entries]
        return stats


class PersistedGameData(BaseModel):
    """Top-level stored record."""

    model_config = ConfigDict(extra="ignore")

    stats: PersistedStats = Field(default_factory=PersistedStats)
    version: str = Field(SCHEMA_VERSION, description="Storage schema version")
