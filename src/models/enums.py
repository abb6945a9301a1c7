"""
Enumerations for coin sides and streak types
"""

from enum import Enum


class CoinSide(str, Enum):
    """Possible outcomes of a flip (and possible predictions)"""

    HEADS = "heads"
    TAILS = "tails"

    @classmethod
    def parse(cls, value: "CoinSide | str") -> "CoinSide":
        """Parse a side from an enum member or a case-insensitive string.

        Raises:
            ValueError: If value is not heads or tails
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValueError(f"Invalid coin side: {value!r} (expected 'heads' or 'tails')")

    @property
    def label(self) -> str:
        """Capitalized display name (e.g. 'Heads')"""
        return self.value.capitalize()


class StreakType(str, Enum):
    """Polarity of a streak run in the history"""

    CORRECT = "correct"
    INCORRECT = "incorrect"
