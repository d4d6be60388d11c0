"""Query-parameter validation for the odds and scan endpoints."""

import math
from dataclasses import dataclass
from typing import Mapping

from betterbets.config import AppConfig

ODDS_FORMATS = ("american", "decimal")
MARKET_TYPES = ("main", "props", "all")


class InvalidParameterError(ValueError):
    """Request parameters failed validation."""


@dataclass(frozen=True)
class OddsParams:
    sport: str
    markets: str
    regions: str
    odds_format: str


@dataclass(frozen=True)
class ScanParams:
    sport: str
    markets: str
    regions: str
    market_type: str
    book: str | None
    min_edge: float


def sanitize_sport(raw: str | None, allowed: list[str]) -> str | None:
    """Return raw if it is an allowed sport key, else None."""
    if not raw:
        return None
    return raw if raw in allowed else None


def parse_number(
    value: str | None,
    *,
    default: float,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    """Parse a numeric query value, clamping to bounds.

    Non-numeric or missing values yield default instead of failing.
    """
    try:
        n = float(value) if value not in (None, "") else default
    except (TypeError, ValueError):
        return default
    if not math.isfinite(n):
        return default
    if min_value is not None and n < min_value:
        return min_value
    if max_value is not None and n > max_value:
        return max_value
    return n


def _require_sport(query: Mapping[str, str], config: AppConfig) -> str:
    sport = sanitize_sport(query.get("sport"), config.allowed_sports)
    if sport is None:
        raise InvalidParameterError("Invalid or missing sport")
    return sport


def parse_odds_params(query: Mapping[str, str], config: AppConfig) -> OddsParams:
    """
    Validate /api/odds query parameters.

    Raises:
        InvalidParameterError: If sport is missing or not allowed
    """
    odds_format = query.get("oddsFormat")
    return OddsParams(
        sport=_require_sport(query, config),
        markets=query.get("markets") or config.default_markets,
        regions=query.get("regions") or config.default_regions,
        odds_format=odds_format if odds_format in ODDS_FORMATS else "american",
    )


def parse_scan_params(query: Mapping[str, str], config: AppConfig) -> ScanParams:
    """
    Validate /api/ev-full and /api/scan query parameters.

    Raises:
        InvalidParameterError: If sport is missing/not allowed or marketType is unknown
    """
    sport = _require_sport(query, config)

    market_type = query.get("marketType") or "all"
    if market_type not in MARKET_TYPES:
        raise InvalidParameterError(
            f"Invalid marketType {market_type!r}, expected one of {', '.join(MARKET_TYPES)}"
        )

    return ScanParams(
        sport=sport,
        markets=query.get("markets") or config.default_markets,
        regions=query.get("regions") or config.default_regions,
        market_type=market_type,
        book=query.get("book") or None,
        min_edge=parse_number(
            query.get("minEdge"),
            default=0.0,
            min_value=config.min_edge_floor,
            max_value=config.min_edge_ceiling,
        ),
    )
