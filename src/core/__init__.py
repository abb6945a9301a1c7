"""Core module - Statistics engine and analytics"""

from . import analytics, validators
from .stats_engine import EngineEvents, GameStatsEngine, apply_flip
from .validators import (
    InvalidOperationError,
    validate_mutation_allowed,
    validate_prediction,
    validate_resolve_allowed,
)

__all__ = [
    "EngineEvents",
    "GameStatsEngine",
    "InvalidOperationError",
    "analytics",
    "apply_flip",
    "validate_mutation_allowed",
    "validate_prediction",
    "validate_resolve_allowed",
    "validators",
]
