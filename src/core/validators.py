"""
Precondition checks for engine operations

Invalid prediction values are a caller contract violation and raise.
Everything else reports (is_valid, error_message) so the engine can treat
the call as a no-op.
"""

from models import CoinSide


class InvalidOperationError(Exception):
    """Raised when a caller violates the engine's input contract"""

    pass


def validate_prediction(choice: CoinSide | str) -> CoinSide:
    """
    Validate and normalize a prediction

    Args:
        choice: CoinSide or "heads"/"tails" (case-insensitive)

    Returns:
        Normalized CoinSide

    Raises:
        InvalidOperationError: If choice is not heads or tails
    """
    try:
        return CoinSide.parse(choice)
    except ValueError as e:
        raise InvalidOperationError(str(e)) from e


def validate_resolve_allowed(
    prediction: CoinSide | None, is_flipping: bool
) -> tuple[bool, str | None]:
    """
    Validate a flip may start

    Returns:
        Tuple of (is_valid, error_message)
    """
    if is_flipping:
        return False, "Flip already in progress"
    if prediction is None:
        return False, "No prediction set"
    return True, None


def validate_mutation_allowed(is_flipping: bool, action: str) -> tuple[bool, str | None]:
    """
    Validate a non-flip mutation (prediction change, clear, reset) may run

    Returns:
        Tuple of (is_valid, error_message)
    """
    if is_flipping:
        return False, f"Cannot {action} while a flip is in progress"
    return True, None
