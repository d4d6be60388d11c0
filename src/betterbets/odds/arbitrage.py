"""Cross-book arbitrage detection on head-to-head markets."""

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from betterbets.ingestion.base import Event, ensure_events
from betterbets.odds.best_line import BestLine, get_best_lines
from betterbets.odds.conversion import american_to_decimal

logger = logging.getLogger(__name__)

ARB_MARKET = "h2h"


@dataclass(frozen=True)
class ArbLeg:
    """Best price for one outcome and the book offering it."""

    name: str
    odds: float  # American
    book: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "odd": self.odds, "book": self.book}


@dataclass(frozen=True)
class ArbStake:
    """Stake allocated to one leg of a fixed notional total."""

    name: str
    book: str
    odds: float
    stake: float
    share_percent: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "book": self.book,
            "odd": self.odds,
            "stake": self.stake,
            "sharePercent": self.share_percent,
        }


@dataclass(frozen=True)
class ArbitrageRecord:
    """One event's best cross-book h2h combination with positive ROI."""

    event_id: str | None
    match: str
    time: str | None
    roi: float  # percent
    legs: tuple[ArbLeg, ...]
    stakes: tuple[ArbStake, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.event_id or self.time,
            "match": self.match,
            "time": self.time,
            "roi": self.roi,
            "legs": [leg.to_dict() for leg in self.legs],
            "stakes": [stake.to_dict() for stake in self.stakes],
        }


def split_stakes(legs: Sequence[ArbLeg], total: float) -> tuple[ArbStake, ...]:
    """Split a notional total across legs so every outcome returns the same payout.

    Args:
        legs: Arbitrage legs with American prices
        total: Notional total to allocate

    Returns:
        One ArbStake per leg; stakes sum to total (up to float rounding)
    """
    reciprocals = [1 / american_to_decimal(leg.odds) for leg in legs]
    sum_reciprocals = sum(reciprocals)

    return tuple(
        ArbStake(
            name=leg.name,
            book=leg.book,
            odds=leg.odds,
            stake=recip / sum_reciprocals * total,
            share_percent=recip / sum_reciprocals * 100,
        )
        for leg, recip in zip(legs, reciprocals)
    )


def arbitrage_roi(best_lines: Sequence[BestLine]) -> float:
    """Return guaranteed ROI percent for backing every best line: (1/Σ(1/dec) - 1) × 100."""
    sum_reciprocals = sum(1 / american_to_decimal(bl.best_price) for bl in best_lines)
    return (1 / sum_reciprocals - 1) * 100


def find_arbitrage(event: Event, stake_total: float | None = None) -> ArbitrageRecord | None:
    """Find the arbitrage for one event's h2h market, if any.

    Returns:
        ArbitrageRecord when at least two outcomes are quoted and ROI > 0,
        otherwise None
    """
    best_lines = get_best_lines(event, ARB_MARKET)

    if len(best_lines) < 2:
        return None

    roi = arbitrage_roi(best_lines)
    if roi <= 0:
        return None

    legs = tuple(
        ArbLeg(name=bl.outcome_name, odds=bl.best_price, book=bl.book)
        for bl in best_lines
    )
    stakes = split_stakes(legs, stake_total) if stake_total is not None else ()

    return ArbitrageRecord(
        event_id=event.id,
        match=event.match_label,
        time=event.commence_time,
        roi=roi,
        legs=legs,
        stakes=stakes,
    )


def scan_arbitrage(
    events: Sequence[Event],
    *,
    stake_total: float | None = None,
) -> list[ArbitrageRecord]:
    """Scan an event batch for risk-free h2h combinations across books.

    Args:
        events: Immutable event batch
        stake_total: Notional total to split across legs; None skips the split

    Returns:
        ArbitrageRecords sorted by ROI, highest first

    Raises:
        InvalidEventsError: If events is not a sequence of Event objects
    """
    ensure_events(events)

    results = []
    for event in events:
        record = find_arbitrage(event, stake_total)
        if record is not None:
            results.append(record)

    results.sort(key=lambda r: r.roi, reverse=True)
    logger.info(f"Arbitrage scan found {len(results)} opportunities across {len(events)} events")
    return results
