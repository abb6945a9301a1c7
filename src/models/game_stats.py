"""
Game statistics data models

GameStatistics is the only aggregate that gets persisted. History entries are
stored most-recent-first, matching the order the presentation layer shows them.
"""

from dataclasses import dataclass, field, replace
from typing import Any

from .enums import CoinSide, StreakType


@dataclass(frozen=True)
class HistoryEntry:
    """
    One resolved flip

    Attributes:
        id: Unique id, strictly increasing in creation order
        result: Side the coin landed on
        prediction: Side the player predicted
        correct: Whether prediction matched result
        timestamp: Human-readable creation time (display only, not for ordering)
    """

    id: int
    result: CoinSide
    prediction: CoinSide
    correct: bool
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (storage field names)"""
        return {
            "id": self.id,
            "result": self.result.value,
            "prediction": self.prediction.value,
            "correct": self.correct,
            "timestamp": self.timestamp,
        }


@dataclass
class GameStatistics:
    """
    Aggregate statistics for all resolved flips

    Attributes:
        total_flips: Number of resolved flips
        correct_predictions: Flips where the prediction matched
        heads_count: Flips that landed heads
        tails_count: Flips that landed tails
        current_streak: Consecutive correct predictions ending at the latest flip
        best_streak: Highest current_streak ever observed
        history: Most-recent-first list of HistoryEntry (bounded by the engine)
    """

    total_flips: int = 0
    correct_predictions: int = 0
    heads_count: int = 0
    tails_count: int = 0
    current_streak: int = 0
    best_streak: int = 0
    history: list[HistoryEntry] = field(default_factory=list)

    def copy(self) -> "GameStatistics":
        """Return a copy that does not share the history list"""
        return replace(self, history=list(self.history))

    def check_invariants(self) -> list[str]:
        """Return a list of violated invariants (empty when consistent)"""
        problems = []
        counters = {
            "total_flips": self.total_flips,
            "correct_predictions": self.correct_predictions,
            "heads_count": self.heads_count,
            "tails_count": self.tails_count,
            "current_streak": self.current_streak,
            "best_streak": self.best_streak,
        }
        for name, value in counters.items():
            if value < 0:
                problems.append(f"{name} is negative ({value})")
        if self.heads_count + self.tails_count != self.total_flips:
            problems.append(
                f"heads_count + tails_count ({self.heads_count} + {self.tails_count}) "
                f"!= total_flips ({self.total_flips})"
            )
        if self.correct_predictions > self.total_flips:
            problems.append(
                f"correct_predictions ({self.correct_predictions}) > total_flips ({self.total_flips})"
            )
        if self.best_streak < self.current_streak:
            problems.append(
                f"best_streak ({self.best_streak}) < current_streak ({self.current_streak})"
            )
        return problems

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with snake_case keys"""
        return {
            "total_flips": self.total_flips,
            "correct_predictions": self.correct_predictions,
            "heads_count": self.heads_count,
            "tails_count": self.tails_count,
            "current_streak": self.current_streak,
            "best_streak": self.best_streak,
            "history": [entry.to_dict() for entry in self.history],
        }


@dataclass(frozen=True)
class FlipOutcome:
    """Result of a resolved flip, handed back to the presentation layer"""

    result: CoinSide
    prediction: CoinSide
    correct: bool
    entry: HistoryEntry
    persisted: bool = True


@dataclass(frozen=True)
class DerivedStats:
    """Whole-number percentages derived from GameStatistics"""

    accuracy_rate: int = 0
    heads_percentage: int = 0
    tails_percentage: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "accuracy_rate": self.accuracy_rate,
            "heads_percentage": self.heads_percentage,
            "tails_percentage": self.tails_percentage,
        }


@dataclass(frozen=True)
class StreakRun:
    """A maximal run of consecutive entries with the same correctness"""

    type: StreakType
    length: int


@dataclass(frozen=True)
class AdvancedStats:
    """
    Secondary analytics over the retained history

    Attributes:
        streaks: Runs in chronological order (oldest first)
        longest_correct_streak: Longest run of correct predictions (0 if none)
        longest_incorrect_streak: Longest run of wrong predictions (0 if none)
        recent_patterns: Pattern key -> occurrence count over the recent window
    """

    streaks: list[StreakRun]
    longest_correct_streak: int
    longest_incorrect_streak: int
    recent_patterns: dict[str, int]
