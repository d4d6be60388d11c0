"""Odds provider interface, event schemas and the concrete provider."""

from betterbets.ingestion.base import (
    Bookmaker,
    Event,
    InvalidEventsError,
    Market,
    OddsProvider,
    Outcome,
    Quote,
    iter_quotes,
    parse_events,
)
from betterbets.ingestion.cache import Cache, CacheEntry
from betterbets.ingestion.odds import OddsProviderError, TheOddsApiProvider

__all__ = [
    # ABCs
    "OddsProvider",
    # Event schemas
    "Event",
    "Bookmaker",
    "Market",
    "Outcome",
    "Quote",
    "iter_quotes",
    "parse_events",
    "InvalidEventsError",
    # Cache
    "Cache",
    "CacheEntry",
    # Concrete implementations
    "TheOddsApiProvider",
    "OddsProviderError",
]
