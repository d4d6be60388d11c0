"""+EV edge scanning against devigged fair prices.

Every bookmaker/market/outcome of an event batch is priced against the fair
probability of its market group. Outcomes pinned to a clamp boundary are
dropped, as are edges outside the caller threshold and the sanity band.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Sequence

from betterbets.ingestion.base import Event, ensure_events
from betterbets.odds.best_line import DEFAULT_POINT_TOLERANCE
from betterbets.odds.conversion import american_to_decimal, decimal_to_american
from betterbets.odds.devig import (
    FAIR_PROB_CEILING,
    FAIR_PROB_FLOOR,
    fair_probability,
    is_clamped,
)
from betterbets.odds.markets import classify_market, market_label

logger = logging.getLogger(__name__)

MarketType = Literal["main", "props", "all"]

MAX_ABS_EDGE_PERCENT = 80.0
MIN_EDGE_BOUNDS = (-10.0, 100.0)


@dataclass(frozen=True)
class EdgeRecord:
    """One priced outcome compared against its fair price."""

    id: str
    match: str
    time: str
    league: str | None
    book_key: str
    book_name: str
    market_key: str
    market_label: str
    bucket: str
    outcome_name: str
    point: float | None
    odds: float  # quoted American price
    user_dec: float
    fair_prob: float
    fair_dec: float
    fair_am: int
    ev_percent: float

    def to_dict(self) -> dict[str, Any]:
        """JSON shape consumed by the front end."""
        return {
            "id": self.id,
            "match": self.match,
            "time": self.time,
            "league": self.league,
            "bookKey": self.book_key,
            "bookName": self.book_name,
            "marketKey": self.market_key,
            "marketLabel": self.market_label,
            "bucket": self.bucket,
            "outcomeName": self.outcome_name,
            "point": self.point,
            "odds": self.odds,
            "userDec": self.user_dec,
            "fairProb": self.fair_prob,
            "fairDec": self.fair_dec,
            "fairAm": self.fair_am,
            "evPercent": self.ev_percent,
            "lineMove": 0,
        }


def format_time_label(commence_time: str | None) -> str:
    """Format an ISO timestamp as 'Oct 19, 7:05 PM' (UTC); '' if unparsable."""
    if not commence_time:
        return ""
    try:
        ts = datetime.fromisoformat(commence_time.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return ""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    else:
        ts = ts.astimezone(timezone.utc)
    hour = ts.hour % 12 or 12
    return f"{ts:%b} {ts.day}, {hour}:{ts:%M %p}"


def edge_record_id(
    event: Event,
    book_key: str,
    market_key: str,
    outcome_name: str,
    point: float | None,
) -> str:
    """Deterministic id: the same opportunity re-scanned yields the same id."""
    base = f"{event.id or event.commence_time}-{book_key}-{market_key}-{outcome_name}"
    if point is not None:
        base += f"-{_format_point(point)}"
    return base


def _format_point(point: float) -> str:
    """Whole lines print without a trailing .0 and large values never use exponents."""
    if float(point).is_integer():
        return str(int(point))
    return repr(float(point))


def clamp_min_edge(min_edge: float, bounds: tuple[float, float] = MIN_EDGE_BOUNDS) -> float:
    low, high = bounds
    return max(low, min(high, min_edge))


def passes_edge_filter(
    edge_percent: float,
    min_edge: float,
    max_abs_edge: float = MAX_ABS_EDGE_PERCENT,
) -> bool:
    """True if edge_percent clears min_edge and is inside the sanity band."""
    return edge_percent >= min_edge and abs(edge_percent) <= max_abs_edge


def scan_edges(
    events: Sequence[Event],
    *,
    market_type: MarketType = "all",
    book: str | None = None,
    min_edge: float = 0.0,
    league: str | None = None,
    tolerance: float = DEFAULT_POINT_TOLERANCE,
    floor: float = FAIR_PROB_FLOOR,
    ceiling: float = FAIR_PROB_CEILING,
    max_abs_edge: float = MAX_ABS_EDGE_PERCENT,
    min_edge_bounds: tuple[float, float] = MIN_EDGE_BOUNDS,
) -> list[EdgeRecord]:
    """Scan an event batch for priced outcomes with an edge over fair value.

    Args:
        events: Immutable event batch
        market_type: 'main', 'props' or 'all'
        book: Restrict to one bookmaker key; None or '' for every book
        min_edge: Minimum edge percent, clamped to min_edge_bounds
        league: League label used when an event has no sport_title
        tolerance: Point matching tolerance for devig groups
        floor: Fair probability clamp floor
        ceiling: Fair probability clamp ceiling
        max_abs_edge: Edges with a larger magnitude are treated as anomalies
        min_edge_bounds: Allowed range for min_edge

    Returns:
        EdgeRecords sorted by edge percent, highest first (stable on ties)

    Raises:
        InvalidEventsError: If events is not a sequence of Event objects
    """
    ensure_events(events)
    min_edge = clamp_min_edge(min_edge, min_edge_bounds)

    results: list[EdgeRecord] = []
    for event in events:
        match = event.match_label
        time_label = format_time_label(event.commence_time)
        event_league = event.sport_title or league

        for bookmaker in event.bookmakers:
            if book and bookmaker.key != book:
                continue

            for market in bookmaker.markets:
                bucket = classify_market(market.key)
                if market_type != "all" and bucket != market_type:
                    continue

                for outcome in market.outcomes:
                    if outcome.price is None:
                        continue

                    user_dec = american_to_decimal(outcome.price)
                    fair_prob = fair_probability(
                        event,
                        market.key,
                        outcome.name,
                        outcome.point,
                        outcome.price,
                        tolerance=tolerance,
                        floor=floor,
                        ceiling=ceiling,
                    )

                    if is_clamped(fair_prob, floor, ceiling):
                        logger.debug(
                            f"Skipping {bookmaker.key} {market.key} {outcome.name}: "
                            f"fair probability {fair_prob} at clamp boundary"
                        )
                        continue

                    fair_dec = 1 / fair_prob
                    edge_percent = (user_dec / fair_dec - 1) * 100

                    if not passes_edge_filter(edge_percent, min_edge, max_abs_edge):
                        if abs(edge_percent) > max_abs_edge:
                            logger.debug(
                                f"Filtered anomalous edge {edge_percent:.1f}% for "
                                f"{bookmaker.key} {market.key} {outcome.name}"
                            )
                        continue

                    results.append(
                        EdgeRecord(
                            id=edge_record_id(
                                event, bookmaker.key, market.key, outcome.name, outcome.point
                            ),
                            match=match,
                            time=time_label,
                            league=event_league,
                            book_key=bookmaker.key,
                            book_name=bookmaker.title,
                            market_key=market.key,
                            market_label=market_label(market.key),
                            bucket=bucket,
                            outcome_name=outcome.name,
                            point=outcome.point,
                            odds=outcome.price,
                            user_dec=user_dec,
                            fair_prob=fair_prob,
                            fair_dec=fair_dec,
                            fair_am=decimal_to_american(fair_dec),
                            ev_percent=edge_percent,
                        )
                    )

    results.sort(key=lambda r: r.ev_percent, reverse=True)
    logger.info(f"Edge scan found {len(results)} outcomes across {len(events)} events")
    return results
