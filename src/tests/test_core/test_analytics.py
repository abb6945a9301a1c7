"""
Tests for statistics and analytics functions
"""

from datetime import datetime

from core.analytics import (
    compute_advanced_stats,
    compute_derived,
    compute_streak_runs,
    find_patterns,
    format_summary,
    round_percent,
)
from models import CoinSide, GameStatistics, HistoryEntry, StreakRun, StreakType

H = CoinSide.HEADS
T = CoinSide.TAILS


def make_history(*flips):
    """Build most-recent-first history from (prediction, result) pairs given oldest first"""
    entries = []
    for index, (prediction, result) in enumerate(flips, start=1):
        entries.append(
            HistoryEntry(
                id=index,
                result=result,
                prediction=prediction,
                correct=prediction == result,
                timestamp=f"2024-01-01 00:00:{index:02d}",
            )
        )
    return list(reversed(entries))


class TestRoundPercent:
    """Tests for round_percent"""

    def test_zero_denominator(self):
        """Test no flips gives 0"""
        assert round_percent(0, 0) == 0

    def test_rounds_down_below_half(self):
        """Test 1/3 rounds to 33"""
        assert round_percent(1, 3) == 33

    def test_rounds_up_above_half(self):
        """Test 2/3 rounds to 67"""
        assert round_percent(2, 3) == 67

    def test_exact_half_rounds_up(self):
        """Test 1/8 (12.5) rounds to 13"""
        assert round_percent(1, 8) == 13

    def test_whole_percentages(self):
        """Test exact values are unchanged"""
        assert round_percent(1, 2) == 50
        assert round_percent(4, 4) == 100


class TestComputeDerived:
    """Tests for compute_derived"""

    def test_empty_stats(self):
        """Test zero flips gives zero percentages"""
        derived = compute_derived(GameStatistics())

        assert derived.accuracy_rate == 0
        assert derived.heads_percentage == 0
        assert derived.tails_percentage == 0

    def test_accuracy_one_of_three(self):
        """Test 1 correct of 3 flips gives 33%"""
        stats = GameStatistics(total_flips=3, correct_predictions=1, heads_count=2, tails_count=1)

        derived = compute_derived(stats)

        assert derived.accuracy_rate == 33
        assert derived.heads_percentage == 67
        assert derived.tails_percentage == 33


class TestStreakRuns:
    """Tests for compute_streak_runs"""

    def test_empty_history(self):
        """Test no runs for no history"""
        assert compute_streak_runs([]) == []

    def test_runs_in_chronological_order(self):
        """Test correct, correct, wrong, correct gives runs 2/1/1"""
        history = make_history((H, H), (T, T), (H, T), (T, T))

        runs = compute_streak_runs(history)

        assert runs == [
            StreakRun(StreakType.CORRECT, 2),
            StreakRun(StreakType.INCORRECT, 1),
            StreakRun(StreakType.CORRECT, 1),
        ]

    def test_single_run(self):
        """Test all-wrong history is one run"""
        history = make_history((H, T), (H, T), (H, T))

        assert compute_streak_runs(history) == [StreakRun(StreakType.INCORRECT, 3)]


class TestFindPatterns:
    """Tests for find_patterns"""

    def test_counts_overlapping_windows_of_all_lengths(self):
        """Test lengths 2-4 are counted into one mapping"""
        patterns = find_patterns([H, H, T])

        assert patterns == {
            "headsheads": 1,
            "headstails": 1,
            "headsheadstails": 1,
        }

    def test_repeated_windows_accumulate(self):
        """Test overlapping repeats are all counted"""
        patterns = find_patterns([H, H, H, H])

        assert patterns["headsheads"] == 3
        assert patterns["headsheadsheads"] == 2
        assert patterns["headsheadsheadsheads"] == 1

    def test_too_short(self):
        """Test a single result has no patterns"""
        assert find_patterns([H]) == {}

    def test_max_length_bounds_windows(self):
        """Test no window longer than max_length"""
        patterns = find_patterns([H, T, H, T, H], min_length=2, max_length=2)

        assert patterns == {"headstails": 2, "tailsheads": 2}


class TestComputeAdvancedStats:
    """Tests for compute_advanced_stats"""

    def test_empty_history(self):
        """Test None for empty history"""
        assert compute_advanced_stats([]) is None

    def test_longest_streaks(self):
        """Test longest correct 2, longest incorrect 1"""
        history = make_history((H, H), (T, T), (H, T), (T, T))

        advanced = compute_advanced_stats(history)

        assert advanced.longest_correct_streak == 2
        assert advanced.longest_incorrect_streak == 1

    def test_no_incorrect_runs(self):
        """Test longest incorrect is 0 when every prediction was right"""
        history = make_history((H, H), (T, T))

        advanced = compute_advanced_stats(history)

        assert advanced.longest_correct_streak == 2
        assert advanced.longest_incorrect_streak == 0

    def test_patterns_use_recent_window_most_recent_first(self):
        """Test only the most recent results feed patterns, in stored order"""
        # Oldest first: T, then ten heads
        flips = [(T, T)] + [(H, H)] * 10
        history = make_history(*flips)

        advanced = compute_advanced_stats(history, pattern_window=10)

        assert "tails" not in "".join(advanced.recent_patterns)
        assert advanced.recent_patterns["headsheads"] == 9

    def test_pattern_key_order(self):
        """Test keys follow most-recent-first order"""
        # Oldest first: heads then tails, so stored order is tails, heads
        history = make_history((H, H), (T, T))

        advanced = compute_advanced_stats(history)

        assert advanced.recent_patterns == {"tailsheads": 1}


class TestFormatSummary:
    """Tests for format_summary"""

    def test_layout(self):
        """Test fixed summary layout"""
        stats = GameStatistics(
            total_flips=3,
            correct_predictions=1,
            heads_count=2,
            tails_count=1,
            current_streak=0,
            best_streak=1,
        )

        summary = format_summary(stats, compute_derived(stats), datetime(2024, 5, 6, 7, 8, 9))

        assert summary.splitlines() == [
            "Coinflip Game Statistics",
            "========================",
            "Total Flips: 3",
            "Correct Predictions: 1",
            "Accuracy Rate: 33%",
            "Heads Count: 2 (67%)",
            "Tails Count: 1 (33%)",
            "Current Streak: 0",
            "Best Streak: 1",
            "",
            "Generated on: 2024-05-06 07:08:09",
        ]
