"""
Game Stats Engine
Owns the prediction game's statistics and history, with thread-safe
operations and an observer pattern for presentation-layer updates

A flip is two steps so a presentation layer can animate in between:
begin_flip() draws the outcome and blocks other mutations, commit_flip()
applies it. resolve() does both under one lock hold.
"""

import atexit
import logging
import random
import threading
import time
from collections import defaultdict
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from config import config
from models import (
    AdvancedStats,
    CoinSide,
    DerivedStats,
    FlipOutcome,
    GameStatistics,
    HistoryEntry,
)
from services.persistence import GameDataRepository, PersistenceReadError

from .analytics import (
    TIMESTAMP_FORMAT,
    compute_advanced_stats,
    compute_derived,
    format_summary,
)
from .validators import (
    validate_mutation_allowed,
    validate_prediction,
    validate_resolve_allowed,
)

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    def random(self) -> float: ...


class EngineEvents(Enum):
    """Events emitted after engine state changes"""

    PREDICTION_CHANGED = "prediction_changed"
    FLIP_STARTED = "flip_started"
    FLIP_RESOLVED = "flip_resolved"
    HISTORY_CLEARED = "history_cleared"
    STATS_RESET = "stats_reset"


def apply_flip(stats: GameStatistics, entry: HistoryEntry, history_limit: int) -> GameStatistics:
    """Return new statistics with one resolved flip applied (stats is not modified)"""
    heads = stats.heads_count + (1 if entry.result is CoinSide.HEADS else 0)
    tails = stats.tails_count + (1 if entry.result is CoinSide.TAILS else 0)

    if entry.correct:
        correct_predictions = stats.correct_predictions + 1
        current_streak = stats.current_streak + 1
        best_streak = max(stats.best_streak, current_streak)
    else:
        correct_predictions = stats.correct_predictions
        current_streak = 0
        best_streak = stats.best_streak

    return GameStatistics(
        total_flips=stats.total_flips + 1,
        correct_predictions=correct_predictions,
        heads_count=heads,
        tails_count=tails,
        current_streak=current_streak,
        best_streak=best_streak,
        history=([entry] + stats.history)[:history_limit],
    )


class GameStatsEngine:
    """
    Stateful statistics and history model for the prediction game

    Persistence is optional: without a repository the engine runs in memory
    only and every save reports False.
    """

    def __init__(
        self,
        repository: GameDataRepository | None = None,
        rng: RandomSource | None = None,
        history_limit: int | None = None,
    ):
        """
        Initialize the engine and restore saved statistics.

        Args:
            repository: Where statistics are loaded from and saved to
            rng: Default random source (anything with random() -> float in [0, 1))
            history_limit: Max retained history entries (default: config GAME history_limit)

        Raises:
            ValueError: If history_limit is below 1
        """
        if history_limit is None:
            history_limit = config.get("game", "history_limit")
        if history_limit < 1:
            raise ValueError(f"history_limit must be at least 1, got {history_limit}")
        self.history_limit = history_limit
        self._heads_probability = config.get("game", "heads_probability")
        self._pattern_window = config.get("game", "pattern_window")
        self._pattern_lengths = (
            config.get("game", "pattern_min_length"),
            config.get("game", "pattern_max_length"),
        )
        self._repository = repository
        self._rng = rng or random.Random()

        # Thread safety - RLock allows re-entrant locking from same thread
        self._lock = threading.RLock()
        self._observers: dict[EngineEvents, list[Callable]] = defaultdict(list)

        # State fields (protected by _lock)
        self._stats = GameStatistics()
        self._current_prediction: CoinSide | None = None
        self._is_flipping = False
        self._pending_result: CoinSide | None = None
        self._last_entry_id = 0
        self._shutdown_registered = False

        self._restore()

    # ========== Persistence ==========

    def _restore(self):
        """Load saved statistics; any failure leaves the zero defaults in place"""
        if self._repository is None:
            logger.debug("No repository configured, statistics are in-memory only")
            return

        try:
            restored = self._repository.load()
        except PersistenceReadError as e:
            logger.warning(f"Could not load game data: {e}. Using defaults.")
            return

        if restored is None:
            logger.info("No saved game data found. Starting with defaults.")
            return

        restored.history = restored.history[: self.history_limit]
        with self._lock:
            self._stats = restored
            self._last_entry_id = max((entry.id for entry in restored.history), default=0)

        logger.info(
            f"Loaded game data: flips={restored.total_flips}, "
            f"correct={restored.correct_predictions}, history={len(restored.history)}"
        )

    def _save_locked(self) -> bool:
        """Internal save - must be called with lock held"""
        if self._repository is None:
            return False
        return self._repository.save(self._stats)

    def save(self) -> bool:
        """
        Persist current statistics (thread-safe).

        Returns:
            True if saved successfully, False otherwise
        """
        with self._lock:
            return self._save_locked()

    def register_shutdown_save(self):
        """Save once more when the interpreter exits"""
        if not self._shutdown_registered:
            atexit.register(self.save)
            self._shutdown_registered = True

    # ========== Predictions and Flips ==========

    def set_prediction(self, choice: CoinSide | str) -> bool:
        """
        Set the prediction for the next flip (overwrites any previous one).

        Returns:
            True if set, False if ignored because a flip is in progress

        Raises:
            InvalidOperationError: If choice is not heads or tails
        """
        side = validate_prediction(choice)

        with self._lock:
            allowed, error = validate_mutation_allowed(self._is_flipping, "change prediction")
            if not allowed:
                logger.debug(error)
                return False
            self._current_prediction = side

        self._emit(EngineEvents.PREDICTION_CHANGED, {"prediction": side})
        return True

    def _begin_locked(self, source: RandomSource) -> CoinSide | None:
        """Draw and mark the flip pending - must be called with lock held"""
        allowed, error = validate_resolve_allowed(self._current_prediction, self._is_flipping)
        if not allowed:
            logger.warning(f"Flip rejected: {error}")
            return None

        result = CoinSide.HEADS if source.random() < self._heads_probability else CoinSide.TAILS
        self._pending_result = result
        self._is_flipping = True
        return result

    def _commit_locked(self) -> tuple[FlipOutcome, GameStatistics] | None:
        """Apply the pending result and save - must be called with lock held"""
        if not self._is_flipping or self._pending_result is None:
            logger.warning("commit_flip() called with no flip in progress")
            return None

        try:
            result = self._pending_result
            prediction = self._current_prediction
            entry = HistoryEntry(
                id=self._next_entry_id(),
                result=result,
                prediction=prediction,
                correct=result == prediction,
                timestamp=datetime.now().strftime(TIMESTAMP_FORMAT),
            )
            self._stats = apply_flip(self._stats, entry, self.history_limit)
            self._last_entry_id = entry.id
        finally:
            # Reset for next flip
            self._current_prediction = None
            self._pending_result = None
            self._is_flipping = False

        outcome = FlipOutcome(
            result=result,
            prediction=prediction,
            correct=entry.correct,
            entry=entry,
            persisted=self._save_locked(),
        )
        return outcome, self._stats.copy()

    def _announce_resolved(self, outcome: FlipOutcome, snapshot: GameStatistics):
        logger.info(
            f"Flip resolved: predicted {outcome.prediction.value}, got {outcome.result.value} "
            f"({'correct' if outcome.correct else 'wrong'}), streak={snapshot.current_streak}"
        )
        self._emit(
            EngineEvents.FLIP_RESOLVED,
            {"outcome": outcome, "stats": snapshot, "derived": compute_derived(snapshot)},
        )

    def begin_flip(self, random_source: RandomSource | None = None) -> CoinSide | None:
        """
        Start a flip: draw the outcome and lock out other mutations.

        The caller that begins a flip is expected to be the one that commits it.

        Args:
            random_source: Overrides the engine's default random source

        Returns:
            Drawn side (not yet committed), or None if the flip was rejected
        """
        with self._lock:
            result = self._begin_locked(random_source or self._rng)
            prediction = self._current_prediction

        if result is not None:
            self._emit(EngineEvents.FLIP_STARTED, {"prediction": prediction})
        return result

    def commit_flip(self) -> FlipOutcome | None:
        """
        Apply the outcome drawn by begin_flip() and persist.

        Returns:
            FlipOutcome, or None if no flip is in progress
        """
        with self._lock:
            committed = self._commit_locked()

        if committed is None:
            return None
        outcome, snapshot = committed
        self._announce_resolved(outcome, snapshot)
        return outcome

    def resolve(self, random_source: RandomSource | None = None) -> FlipOutcome | None:
        """
        Draw and commit a flip under one lock hold.

        Returns:
            FlipOutcome, or None if there is no prediction or a flip is in progress
        """
        with self._lock:
            prediction = self._current_prediction
            if self._begin_locked(random_source or self._rng) is None:
                return None
            outcome, snapshot = self._commit_locked()

        self._emit(EngineEvents.FLIP_STARTED, {"prediction": prediction})
        self._announce_resolved(outcome, snapshot)
        return outcome

    def _next_entry_id(self) -> int:
        """Millisecond timestamp, bumped so ids stay unique and increasing"""
        return max(int(time.time() * 1000), self._last_entry_id + 1)

    # ========== Clearing ==========

    def clear_history(self) -> bool:
        """
        Empty the history, leaving counters untouched.

        Returns:
            True if history was cleared, False if it was already empty or a flip is in progress
        """
        with self._lock:
            allowed, error = validate_mutation_allowed(self._is_flipping, "clear history")
            if not allowed:
                logger.warning(error)
                return False
            if not self._stats.history:
                return False

            self._stats = replace(self._stats, history=[])
            self._save_locked()
            snapshot = self._stats.copy()

        logger.info("History cleared")
        self._emit(EngineEvents.HISTORY_CLEARED, {"stats": snapshot})
        return True

    def reset_all(self) -> bool:
        """
        Reset all statistics and history to zero defaults.

        Returns:
            True if reset, False if there was nothing to reset or a flip is in progress
        """
        with self._lock:
            allowed, error = validate_mutation_allowed(self._is_flipping, "reset statistics")
            if not allowed:
                logger.warning(error)
                return False
            if self._stats.total_flips == 0:
                return False

            self._stats = GameStatistics()
            self._save_locked()
            snapshot = self._stats.copy()

        logger.info("All statistics reset")
        self._emit(EngineEvents.STATS_RESET, {"stats": snapshot})
        return True

    # ========== State Access ==========

    @property
    def current_prediction(self) -> CoinSide | None:
        with self._lock:
            return self._current_prediction

    @property
    def is_flipping(self) -> bool:
        with self._lock:
            return self._is_flipping

    def get_snapshot(self) -> GameStatistics:
        """Copy of current statistics (thread-safe)"""
        with self._lock:
            return self._stats.copy()

    def compute_derived(self) -> DerivedStats:
        return compute_derived(self.get_snapshot())

    def compute_advanced_stats(self) -> AdvancedStats | None:
        min_length, max_length = self._pattern_lengths
        return compute_advanced_stats(
            self.get_snapshot().history,
            pattern_window=self._pattern_window,
            min_length=min_length,
            max_length=max_length,
        )

    def get_game_stats(self) -> dict[str, Any]:
        """Statistics plus derived percentages as one dict"""
        snapshot = self.get_snapshot()
        return {**snapshot.to_dict(), **compute_derived(snapshot).to_dict()}

    def export_summary(self, now: datetime | None = None) -> str:
        """Fixed-layout text summary for sharing"""
        snapshot = self.get_snapshot()
        return format_summary(snapshot, compute_derived(snapshot), now)

    # ========== Observer Pattern ==========

    def subscribe(self, event: EngineEvents, callback: Callable):
        """Subscribe to engine events"""
        with self._lock:
            self._observers[event].append(callback)
            logger.debug(f"Subscribed to {event.value}")

    def unsubscribe(self, event: EngineEvents, callback: Callable):
        """Unsubscribe from engine events"""
        with self._lock:
            if callback in self._observers[event]:
                self._observers[event].remove(callback)
                logger.debug(f"Unsubscribed from {event.value}")

    def _emit(self, event: EngineEvents, data: Any = None):
        """Emit an event to all subscribers (releases lock before calling callbacks)"""
        with self._lock:
            callbacks = list(self._observers[event])

        for callback in callbacks:
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Observer callback error for {event.value}: {e}")
