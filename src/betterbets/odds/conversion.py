"""American / decimal / implied-probability odds conversion.

Pure functions, no logging. American prices are signed and never zero.
"""

import math


def american_to_decimal(american: float) -> float:
    """
    Convert American odds to European decimal format.

    Args:
        american: American odds (e.g., +150, -110)

    Returns:
        European decimal odds (> 1.0)

    Raises:
        ValueError: If american odds is 0
    """
    if american == 0:
        raise ValueError("American odds cannot be 0")

    if american > 0:
        return 1 + american / 100
    return 1 - 100 / american


def implied_probability(american: float) -> float:
    """
    Convert American odds to the bookmaker's implied probability.

    Args:
        american: American odds (e.g., +150, -110)

    Returns:
        Implied probability in (0, 1), vig included

    Raises:
        ValueError: If american odds is 0
    """
    if american == 0:
        raise ValueError("American odds cannot be 0")

    if american > 0:
        return 100 / (american + 100)
    return -american / (-american + 100)


def decimal_to_american(decimal_odds: float) -> int:
    """
    Convert European decimal odds to American odds.

    Args:
        decimal_odds: European decimal odds

    Returns:
        American odds rounded half up, or 0 if decimal_odds is not a priced
        outcome (non-finite or ≤ 1.0)

    Notes:
        Decimal 2.0 maps to +100, so -100 and +100 share one representation.
    """
    if not math.isfinite(decimal_odds) or decimal_odds <= 1:
        return 0
    if decimal_odds >= 2:
        return _round_half_up((decimal_odds - 1) * 100)
    return _round_half_up(-100 / (decimal_odds - 1))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
