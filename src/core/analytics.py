"""
Statistics and analytics over GameStatistics

Pure functions, no engine state. History is stored most-recent-first, so any
chronological scan walks it in reverse.
"""

from collections import Counter
from collections.abc import Sequence
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from models import (
    AdvancedStats,
    CoinSide,
    DerivedStats,
    GameStatistics,
    HistoryEntry,
    StreakRun,
    StreakType,
)

HUNDRED = Decimal("100")
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def round_percent(numerator: int, denominator: int) -> int:
    """
    Whole-number percentage, rounded half-up

    Returns 0 when denominator is 0.
    """
    if denominator == 0:
        return 0
    value = HUNDRED * Decimal(numerator) / Decimal(denominator)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_derived(stats: GameStatistics) -> DerivedStats:
    """Accuracy and per-side percentages based on total_flips"""
    total = stats.total_flips
    return DerivedStats(
        accuracy_rate=round_percent(stats.correct_predictions, total),
        heads_percentage=round_percent(stats.heads_count, total),
        tails_percentage=round_percent(stats.tails_count, total),
    )


def compute_streak_runs(history: Sequence[HistoryEntry]) -> list[StreakRun]:
    """
    Group consecutive entries by correctness

    Args:
        history: Most-recent-first entries (as stored)

    Returns:
        Runs in chronological order (oldest first)
    """
    runs: list[StreakRun] = []
    run_type: StreakType | None = None
    run_length = 0

    for entry in reversed(history):
        entry_type = StreakType.CORRECT if entry.correct else StreakType.INCORRECT
        if entry_type == run_type:
            run_length += 1
            continue
        if run_length > 0:
            runs.append(StreakRun(type=run_type, length=run_length))
        run_type = entry_type
        run_length = 1

    if run_length > 0:
        runs.append(StreakRun(type=run_type, length=run_length))

    return runs


def find_patterns(
    results: Sequence[CoinSide], min_length: int = 2, max_length: int = 4
) -> dict[str, int]:
    """
    Count every contiguous window of min_length..max_length outcomes

    Overlapping windows are all counted, and all lengths share one mapping.
    Keys are the outcome values joined in window order (e.g. "headstails").
    """
    patterns: Counter[str] = Counter()
    upper = min(max_length, len(results))
    for length in range(min_length, upper + 1):
        for start in range(len(results) - length + 1):
            key = "".join(side.value for side in results[start : start + length])
            patterns[key] += 1
    return dict(patterns)


def compute_advanced_stats(
    history: Sequence[HistoryEntry],
    pattern_window: int = 10,
    min_length: int = 2,
    max_length: int = 4,
) -> AdvancedStats | None:
    """Streak runs and recent pattern frequencies; None when history is empty"""
    if not history:
        return None

    runs = compute_streak_runs(history)
    recent_results = [entry.result for entry in history[:pattern_window]]

    return AdvancedStats(
        streaks=runs,
        longest_correct_streak=max(
            (run.length for run in runs if run.type == StreakType.CORRECT), default=0
        ),
        longest_incorrect_streak=max(
            (run.length for run in runs if run.type == StreakType.INCORRECT), default=0
        ),
        recent_patterns=find_patterns(recent_results, min_length, max_length),
    )


def format_summary(
    stats: GameStatistics, derived: DerivedStats, generated_at: datetime | None = None
) -> str:
    """Fixed-layout, display-only text block"""
    generated_at = generated_at or datetime.now()
    lines = [
        "Coinflip Game Statistics",
        "========================",
        f"Total Flips: {stats.total_flips}",
        f"Correct Predictions: {stats.correct_predictions}",
        f"Accuracy Rate: {derived.accuracy_rate}%",
        f"Heads Count: {stats.heads_count} ({derived.heads_percentage}%)",
        f"Tails Count: {stats.tails_count} ({derived.tails_percentage}%)",
        f"Current Streak: {stats.current_streak}",
        f"Best Streak: {stats.best_streak}",
        "",
        f"Generated on: {generated_at.strftime(TIMESTAMP_FORMAT)}",
    ]
    return "\n".join(lines)
