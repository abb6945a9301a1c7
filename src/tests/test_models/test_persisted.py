"""
Tests for the persisted game data schema
"""

import json

import pytest
from pydantic import ValidationError

from models import (
    SCHEMA_VERSION,
    CoinSide,
    GameStatistics,
    HistoryEntry,
    PersistedGameData,
    PersistedHistoryEntry,
    PersistedStats,
)


def stored_record(**stats):
    return json.dumps({"stats": stats, "version": SCHEMA_VERSION})


class TestPersistedStats:
    """Tests for PersistedStats"""

    def test_camel_case_field_names(self):
        """Test stored field names match the saved-data format"""
        stats = GameStatistics(total_flips=2, correct_predictions=1, heads_count=2, best_streak=1)

        data = json.loads(PersistedStats.from_statistics(stats).model_dump_json())

        assert data == {
            "totalFlips": 2,
            "correctPredictions": 1,
            "headsCount": 2,
            "tailsCount": 0,
            "currentStreak": 0,
            "bestStreak": 1,
            "history": [],
        }

    def test_missing_fields_default_to_zero(self):
        """Test partial records merge over defaults"""
        record = PersistedGameData.model_validate_json(stored_record(totalFlips=1, headsCount=1))

        stats = record.stats.to_statistics()

        assert stats.total_flips == 1
        assert stats.heads_count == 1
        assert stats.tails_count == 0
        assert stats.history == []

    def test_unknown_fields_ignored(self):
        """Test extra fields from newer versions are dropped"""
        record = PersistedGameData.model_validate_json(
            stored_record(totalFlips=0, luckyNumber=7)
        )

        assert record.stats.totalFlips == 0

    def test_negative_counter_rejected(self):
        """Test counters must be non-negative"""
        with pytest.raises(ValidationError):
            PersistedStats(totalFlips=-1)

    def test_contradictory_counters_rejected(self):
        """Test heads + tails must equal total flips"""
        with pytest.raises(ValidationError):
            PersistedStats(totalFlips=2, headsCount=1)

    def test_invalid_history_result_rejected(self):
        """Test history entries need a valid side"""
        raw = stored_record(
            history=[{"id": 1, "result": "edge", "prediction": "heads", "correct": False}]
        )

        with pytest.raises(ValidationError):
            PersistedGameData.model_validate_json(raw)

    def test_history_entry_correct_must_match_outcome(self):
        """Test an entry marked correct with a mismatched prediction is rejected"""
        raw = stored_record(
            totalFlips=3,
            headsCount=3,
            history=[
                {"id": i, "result": "heads", "prediction": "tails", "correct": True}
                for i in (3, 2, 1)
            ],
        )

        with pytest.raises(ValidationError, match="contradicts"):
            PersistedGameData.model_validate_json(raw)

    def test_history_entry_wrong_marked_incorrect_accepted(self):
        """Test a consistent incorrect entry loads"""
        entry = PersistedHistoryEntry(id=1, result="heads", prediction="tails", correct=False)

        assert entry.to_entry().correct is False

    def test_history_longer_than_total_flips_rejected(self):
        """Test history cannot outnumber totalFlips"""
        raw = stored_record(
            history=[
                {"id": i, "result": "heads", "prediction": "heads", "correct": True}
                for i in range(5, 0, -1)
            ]
        )

        with pytest.raises(ValidationError, match="totalFlips"):
            PersistedGameData.model_validate_json(raw)

    def test_history_shorter_than_total_flips_accepted(self):
        """Test cleared or truncated history still loads"""
        record = PersistedGameData.model_validate_json(
            stored_record(totalFlips=4, headsCount=4, history=[])
        )

        assert record.stats.totalFlips == 4

    def test_to_statistics_truncates_history(self):
        """Test history_limit keeps the most recent entries"""
        entries = [
            HistoryEntry(entry_id, CoinSide.HEADS, CoinSide.HEADS, True, "") for entry_id in (3, 2, 1)
        ]
        stats = GameStatistics(
            total_flips=3, correct_predictions=3, heads_count=3,
            current_streak=3, best_streak=3, history=entries,
        )

        restored = PersistedStats.from_statistics(stats).to_statistics(history_limit=2)

        assert [entry.id for entry in restored.history] == [3, 2]


class TestPersistedGameData:
    """Tests for the top-level record"""

    def test_default_record(self):
        """Test defaults carry the current schema version"""
        record = PersistedGameData()

        assert record.version == SCHEMA_VERSION
        assert record.stats.totalFlips == 0

    def test_round_trip(self):
        """Test restore(persist(S)) == S"""
        entry = HistoryEntry(42, CoinSide.TAILS, CoinSide.HEADS, False, "2024-01-01 10:00:00")
        stats = GameStatistics(
            total_flips=1, heads_count=0, tails_count=1, best_streak=0, history=[entry]
        )

        raw = PersistedGameData(stats=PersistedStats.from_statistics(stats)).model_dump_json()
        restored = PersistedGameData.model_validate_json(raw).stats.to_statistics()

        assert restored == stats

    def test_missing_stats_uses_defaults(self):
        """Test a record without stats loads as zero statistics"""
        record = PersistedGameData.model_validate_json('{"version": "1.0"}')

        assert record.stats.to_statistics() == GameStatistics()
