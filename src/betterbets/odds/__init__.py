"""Odds conversion, devigging, edge scanning and arbitrage detection."""

from betterbets.odds.arbitrage import (
    ArbitrageRecord,
    ArbLeg,
    ArbStake,
    scan_arbitrage,
    split_stakes,
)
from betterbets.odds.best_line import BestLine, best_by_key, get_best_lines
from betterbets.odds.conversion import (
    american_to_decimal,
    decimal_to_american,
    implied_probability,
)
from betterbets.odds.devig import fair_probability, proportional_devig
from betterbets.odds.edge import EdgeRecord, scan_edges
from betterbets.odds.markets import classify_market

__all__ = [
    "american_to_decimal",
    "decimal_to_american",
    "implied_probability",
    "BestLine",
    "best_by_key",
    "get_best_lines",
    "proportional_devig",
    "fair_probability",
    "EdgeRecord",
    "scan_edges",
    "ArbitrageRecord",
    "ArbLeg",
    "ArbStake",
    "scan_arbitrage",
    "split_stakes",
    "classify_market",
]
