"""Best-line selection across sportsbooks.

Quote traversal is split into small generator stages (market filter, point
filter) feeding one keyed-max reduction. Devig and arbitrage both pick the
best price per outcome through `best_by_key`, so they share one tie-break:
the first quote observed at the maximum price wins.
"""

from dataclasses import dataclass
from typing import Callable, Hashable, Iterable, Iterator, TypeVar

from betterbets.ingestion.base import Event, Quote, iter_quotes

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

DEFAULT_POINT_TOLERANCE = 0.01


@dataclass(frozen=True)
class BestLine:
    """Best available price for one outcome of one market of an event.

    Represents the highest-price (most favorable) American odds available
    across all books, and the book that offered it.
    """

    market: str
    outcome_name: str
    point: float | None
    best_price: float  # American odds
    book: str
    book_title: str


def best_by_key(
    items: Iterable[T],
    key: Callable[[T], K],
    value: Callable[[T], float],
) -> dict[K, T]:
    """Keep the item with the highest value per key.

    Ties keep the first item observed. The result preserves the order in
    which keys were first seen.
    """
    best: dict[K, T] = {}
    for item in items:
        k = key(item)
        current = best.get(k)
        if current is None or value(item) > value(current):
            best[k] = item
    return best


def filter_market(quotes: Iterable[Quote], market_key: str) -> Iterator[Quote]:
    """Yield quotes for one market key."""
    return (q for q in quotes if q.market_key == market_key)


def points_match(
    point: float | None,
    target: float | None,
    tolerance: float = DEFAULT_POINT_TOLERANCE,
) -> bool:
    """True if both points are absent or they differ by less than tolerance."""
    if point is None and target is None:
        return True
    if point is None or target is None:
        return False
    return abs(point - target) < tolerance


def filter_point(
    quotes: Iterable[Quote],
    target: float | None,
    tolerance: float = DEFAULT_POINT_TOLERANCE,
) -> Iterator[Quote]:
    """Yield quotes whose point matches target (see `points_match`)."""
    return (q for q in quotes if points_match(q.point, target, tolerance))


def get_best_lines(
    event: Event,
    market_key: str,
    point: float | None = None,
    tolerance: float = DEFAULT_POINT_TOLERANCE,
) -> list[BestLine]:
    """Get the best available line per outcome name for one market group.

    Args:
        event: Event to scan across all of its bookmakers
        market_key: Market key to restrict to (e.g. 'h2h', 'totals')
        point: Line value the quotes must match; None for point-less markets
        tolerance: Absolute tolerance for point matching

    Returns:
        List of BestLine objects, one per outcome name, in first-seen order.
        Empty if the event has no matching quotes.
    """
    quotes = filter_point(filter_market(iter_quotes(event), market_key), point, tolerance)
    best = best_by_key(quotes, key=lambda q: q.outcome_name, value=lambda q: q.price)

    return [
        BestLine(
            market=q.market_key,
            outcome_name=q.outcome_name,
            point=q.point,
            best_price=q.price,
            book=q.book_key,
            book_title=q.book_title,
        )
        for q in best.values()
    ]
