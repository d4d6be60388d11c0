"""Proportional (multiplicative) devig for fair probability calculation.

The best price per outcome across every book stands in for a sharp no-vig
line; dividing each implied probability by the group total removes the
margin. The group is assumed to be a full partition (exactly one outcome
wins).
"""

import logging
import math

from betterbets.ingestion.base import Event
from betterbets.odds.best_line import DEFAULT_POINT_TOLERANCE, get_best_lines
from betterbets.odds.conversion import implied_probability

logger = logging.getLogger(__name__)

FAIR_PROB_FLOOR = 0.05
FAIR_PROB_CEILING = 0.95


def proportional_devig(implied: list[float]) -> list[float]:
    """Normalize implied probabilities to fair probabilities summing to 1.0.

    Args:
        implied: Implied probabilities for all sides of a market, each in (0, 1]

    Returns:
        List of fair probabilities summing to 1.0, in input order

    Raises:
        ValueError: If the list is empty, holds invalid values, or its sum
            is not a positive finite number

    Example:
        >>> proportional_devig([0.5238, 0.5238])
        [0.5, 0.5]
    """
    if not implied:
        raise ValueError("implied probabilities list cannot be empty")

    if any(not (0 < p <= 1) for p in implied):
        raise ValueError(f"All implied probabilities must be in (0, 1], got: {implied}")

    total = sum(implied)

    if not math.isfinite(total) or total <= 0:
        raise ValueError(f"Invalid implied probability total {total} for: {implied}")

    return [p / total for p in implied]


def clamp_probability(
    p: float,
    floor: float = FAIR_PROB_FLOOR,
    ceiling: float = FAIR_PROB_CEILING,
) -> float:
    """Clamp p into [floor, ceiling]."""
    return max(floor, min(ceiling, p))


def is_clamped(
    p: float,
    floor: float = FAIR_PROB_FLOOR,
    ceiling: float = FAIR_PROB_CEILING,
) -> bool:
    """True if p sits at or beyond either clamp boundary."""
    return p <= floor or p >= ceiling


def fair_probability(
    event: Event,
    market_key: str,
    outcome_name: str,
    point: float | None,
    fallback_price: float,
    *,
    tolerance: float = DEFAULT_POINT_TOLERANCE,
    floor: float = FAIR_PROB_FLOOR,
    ceiling: float = FAIR_PROB_CEILING,
) -> float:
    """Estimate the vig-free probability of one outcome.

    Args:
        event: Event whose bookmakers supply the market group
        market_key: Market key of the target outcome
        outcome_name: Target outcome name
        point: Target line value; None for point-less markets
        fallback_price: American price used when no market group is usable
            (normally the book's own quote)
        tolerance: Absolute tolerance for point matching
        floor: Lower clamp bound
        ceiling: Upper clamp bound

    Returns:
        Fair probability clamped to [floor, ceiling]

    Notes:
        - With a single contributing book the result is that book's own
          devigged price; this is the degenerate case, not an error.
        - A group holding only the target outcome devigs to 1.0 and clamps
          to the ceiling.
    """
    p = _devigged_probability(event, market_key, outcome_name, point, tolerance)
    if p is None:
        p = implied_probability(fallback_price)

    return clamp_probability(p, floor, ceiling)


def _devigged_probability(
    event: Event,
    market_key: str,
    outcome_name: str,
    point: float | None,
    tolerance: float,
) -> float | None:
    if not event.bookmakers:
        return None

    best_lines = get_best_lines(event, market_key, point, tolerance)
    if not best_lines:
        return None

    try:
        fair = proportional_devig([implied_probability(bl.best_price) for bl in best_lines])
    except ValueError as e:
        logger.debug(f"Devig failed for {event.id} {market_key} {point}: {e}")
        return None

    for bl, p in zip(best_lines, fair):
        if bl.outcome_name == outcome_name and math.isfinite(p):
            return p

    return None
