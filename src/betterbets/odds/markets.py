"""Main/props market classification."""

from typing import Literal

MAIN_MARKETS = frozenset({"h2h", "spreads", "totals"})

MarketBucket = Literal["main", "props"]


def classify_market(market_key: str) -> MarketBucket:
    """Return 'main' for moneyline/spread/total keys, 'props' for anything else."""
    return "main" if market_key in MAIN_MARKETS else "props"


def market_label(market_key: str) -> str:
    """Human label for a market key ('player_points' → 'player points')."""
    return (market_key or "").replace("_", " ")
