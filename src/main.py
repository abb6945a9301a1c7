"""
Main Entry Point for the Coinflip stats engine
Command-line driver: play a round, show or clear statistics
"""

__version__ = "1.0.0"

import argparse
import logging
import random
import sys
from pathlib import Path

from config import ConfigError, config
from core import GameStatsEngine, InvalidOperationError
from models import CoinSide, FlipOutcome
from services.logger import setup_logging
from services.persistence import GameDataRepository, JsonFileStore


class Application:
    """
    Main application controller
    Wires configuration, logging, storage and the engine
    """

    def __init__(
        self,
        data_dir: Path | None = None,
        log_level: str | None = None,
        seed: int | None = None,
    ):
        """
        Initialize application

        Args:
            data_dir: Directory for saved game data (default: config FILES data_dir)
            log_level: Console log level override
            seed: Seed for a reproducible random source
        """
        overrides = {"log_level": log_level, "console_level": log_level} if log_level else None
        self.logger = setup_logging(overrides)

        # Configure config runtime behavior at startup (avoid import-time side effects)
        config.set_logger(self.logger)
        config.ensure_directories()
        config.validate()

        self.store = JsonFileStore(data_dir)
        self.repository = GameDataRepository(self.store)
        rng = random.Random(seed) if seed is not None else None
        self.engine = GameStatsEngine(self.repository, rng=rng)
        self.engine.register_shutdown_save()
        self.logger.debug(f"Game data stored in {self.store.path_for(self.repository.key)}")

    def flip(self, prediction: str) -> FlipOutcome | None:
        self.engine.set_prediction(prediction)
        return self.engine.resolve()

    def format_outcome(self, outcome: FlipOutcome) -> str:
        verdict = "Correct! You won!" if outcome.correct else "Wrong! Better luck next time!"
        lines = [
            f"Predicted: {outcome.prediction.label}",
            f"Result: {outcome.result.label}",
            verdict,
        ]
        if not outcome.persisted:
            lines.append("(warning: statistics could not be saved)")
        return "\n".join(lines)

    def format_history(self, limit: int) -> str:
        history = self.engine.get_snapshot().history[:limit]
        if not history:
            return "No flips yet. Start playing!"
        lines = []
        for entry in history:
            status = "Correct" if entry.correct else "Wrong"
            lines.append(
                f"{entry.timestamp}  Result: {entry.result.label:<5}  "
                f"Predicted: {entry.prediction.label:<5}  {status}"
            )
        return "\n".join(lines)

    def format_advanced(self) -> str:
        advanced = self.engine.compute_advanced_stats()
        if advanced is None:
            return "No flips yet. Start playing!"
        lines = [
            f"Longest Correct Streak: {advanced.longest_correct_streak}",
            f"Longest Incorrect Streak: {advanced.longest_incorrect_streak}",
            "Recent Patterns:",
        ]
        for pattern, count in sorted(
            advanced.recent_patterns.items(), key=lambda item: (-item[1], item[0])
        ):
            lines.append(f"  {pattern}: {count}")
        return "\n".join(lines)


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coinflip", description="Coinflip prediction game statistics"
    )
    parser.add_argument("--data-dir", type=Path, default=None, help="Game data directory")
    parser.add_argument("--log-level", default=None, help="Console log level (e.g. DEBUG)")
    parser.add_argument("--seed", type=int, default=None, help="Seed the coin for repeatable runs")

    subparsers = parser.add_subparsers(dest="command", required=True)

    flip_parser = subparsers.add_parser("flip", help="Predict and flip the coin")
    flip_parser.add_argument("prediction", choices=[side.value for side in CoinSide])

    subparsers.add_parser("stats", help="Show the statistics summary")

    history_parser = subparsers.add_parser("history", help="Show recent flips")
    history_parser.add_argument("--limit", type=_positive_int, default=10)

    subparsers.add_parser("advanced", help="Show streak and pattern analytics")
    subparsers.add_parser("clear-history", help="Clear the flip history")
    subparsers.add_parser("reset", help="Reset all statistics")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run one command, return the exit code"""
    args = build_parser().parse_args(argv)

    try:
        app = Application(data_dir=args.data_dir, log_level=args.log_level, seed=args.seed)
    except ConfigError as e:
        logging.getLogger(__name__).critical(f"Configuration validation failed: {e}")
        return 2

    if args.command == "flip":
        try:
            outcome = app.flip(args.prediction)
        except InvalidOperationError as e:
            print(f"Invalid prediction: {e}", file=sys.stderr)
            return 2
        if outcome is None:
            print("Flip rejected.", file=sys.stderr)
            return 1
        print(app.format_outcome(outcome))
        print()
        print(app.engine.export_summary())
    elif args.command == "stats":
        print(app.engine.export_summary())
    elif args.command == "history":
        print(app.format_history(args.limit))
    elif args.command == "advanced":
        print(app.format_advanced())
    elif args.command == "clear-history":
        if app.engine.clear_history():
            print("History cleared successfully!")
        else:
            print("History is already empty.")
    elif args.command == "reset":
        if app.engine.reset_all():
            print("All statistics have been reset!")
        else:
            print("Nothing to reset.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
