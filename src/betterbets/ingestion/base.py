"""Abstract odds provider interface and canonical event schemas."""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator, Sequence


class InvalidEventsError(ValueError):
    """Raised when an event batch is structurally unusable."""


# Canonical event schemas
@dataclass(frozen=True)
class Outcome:
    """One priced outcome inside a bookmaker market."""

    name: str
    price: float | None  # American odds, never 0; None if unpriced
    point: float | None = None  # spread/total line; None for h2h


@dataclass(frozen=True)
class Market:
    """A bookmaker market (h2h, spreads, totals or a prop key)."""

    key: str
    outcomes: tuple[Outcome, ...] = ()
    last_update: str | None = None


@dataclass(frozen=True)
class Bookmaker:
    """One bookmaker block of an event."""

    key: str
    title: str
    markets: tuple[Market, ...] = ()
    last_update: str | None = None


@dataclass(frozen=True)
class Event:
    """One sporting contest with nested bookmaker → market → outcome data."""

    id: str | None
    sport_key: str | None
    sport_title: str | None
    commence_time: str | None  # ISO-8601 UTC
    home_team: str | None
    away_team: str | None
    bookmakers: tuple[Bookmaker, ...] = ()

    @property
    def match_label(self) -> str:
        return f"{self.home_team} vs {self.away_team}"


@dataclass(frozen=True)
class Quote:
    """Flattened view of one bookmaker's price for one outcome."""

    event_id: str | None
    book_key: str
    book_title: str
    market_key: str
    outcome_name: str
    point: float | None
    price: float


def iter_quotes(event: Event) -> Iterator[Quote]:
    """Yield every priced outcome of an event as a Quote, in input order."""
    for bookmaker in event.bookmakers:
        for market in bookmaker.markets:
            for outcome in market.outcomes:
                if outcome.price is None:
                    continue
                yield Quote(
                    event_id=event.id,
                    book_key=bookmaker.key,
                    book_title=bookmaker.title,
                    market_key=market.key,
                    outcome_name=outcome.name,
                    point=outcome.point,
                    price=outcome.price,
                )


def _as_number(value: Any) -> float | None:
    """Return value if it is a finite real number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _parse_outcome(raw: Any) -> Outcome | None:
    if not isinstance(raw, dict):
        return None
    price = _as_number(raw.get("price"))
    if price == 0:
        # Zero is not a valid American price
        price = None
    return Outcome(
        name=str(raw.get("name") or ""),
        price=price,
        point=_as_number(raw.get("point")),
    )


def _parse_market(raw: Any) -> Market | None:
    if not isinstance(raw, dict):
        return None
    outcomes = (_parse_outcome(o) for o in _as_list(raw.get("outcomes")))
    return Market(
        key=str(raw.get("key") or ""),
        outcomes=tuple(o for o in outcomes if o is not None),
        last_update=raw.get("last_update"),
    )


def _parse_bookmaker(raw: Any) -> Bookmaker | None:
    if not isinstance(raw, dict):
        return None
    markets = (_parse_market(m) for m in _as_list(raw.get("markets")))
    key = str(raw.get("key") or "")
    return Bookmaker(
        key=key,
        title=str(raw.get("title") or key),
        markets=tuple(m for m in markets if m is not None),
        last_update=raw.get("last_update"),
    )


def parse_event(raw: Any) -> Event:
    """
    Build an Event from one provider event object.

    Args:
        raw: Decoded JSON object for one event

    Returns:
        Immutable Event; malformed bookmakers, markets and outcomes are dropped

    Raises:
        InvalidEventsError: If raw is not an object or carries neither an id
            nor a commence_time
    """
    if not isinstance(raw, dict):
        raise InvalidEventsError(f"Event must be an object, got {type(raw).__name__}")

    if raw.get("id") is None and raw.get("commence_time") is None:
        raise InvalidEventsError("Event has neither id nor commence_time")

    bookmakers = (_parse_bookmaker(b) for b in _as_list(raw.get("bookmakers")))
    return Event(
        id=raw.get("id"),
        sport_key=raw.get("sport_key"),
        sport_title=raw.get("sport_title"),
        commence_time=raw.get("commence_time"),
        home_team=raw.get("home_team"),
        away_team=raw.get("away_team"),
        bookmakers=tuple(b for b in bookmakers if b is not None),
    )


def parse_events(payload: Any) -> list[Event]:
    """
    Build Events from a provider odds payload.

    Args:
        payload: Decoded JSON response (a list of event objects)

    Returns:
        List of Event objects in provider order

    Raises:
        InvalidEventsError: If payload is not a list or any event lacks identity
    """
    if not isinstance(payload, list):
        raise InvalidEventsError(
            f"Odds payload must be a list of events, got {type(payload).__name__}"
        )
    return [parse_event(raw) for raw in payload]


def ensure_events(events: Any) -> Sequence[Event]:
    """
    Check that a scanner input is a sequence of Events.

    Raises:
        InvalidEventsError: If events is not a list/tuple of Event objects
            or an event has neither id nor commence_time
    """
    if not isinstance(events, (list, tuple)):
        raise InvalidEventsError(
            f"Expected a list of events, got {type(events).__name__}"
        )
    for event in events:
        if not isinstance(event, Event):
            raise InvalidEventsError(
                f"Expected Event instances, got {type(event).__name__}"
            )
        if event.id is None and event.commence_time is None:
            raise InvalidEventsError("Event has neither id nor commence_time")
    return events


# Abstract base classes
class OddsProvider(ABC):
    """Abstract odds provider interface."""

    @abstractmethod
    async def fetch_odds(
        self,
        sport: str,
        markets: str,
        regions: str,
        odds_format: str,
    ) -> list[Event]:
        """
        Fetch upcoming events with bookmaker odds for a sport.

        Args:
            sport: Provider sport key (e.g. 'basketball_nba')
            markets: Comma-separated market keys (e.g. 'h2h,spreads,totals')
            regions: Comma-separated bookmaker regions (e.g. 'us')
            odds_format: 'american' or 'decimal'

        Returns:
            List of Event objects

        Raises:
            OddsProviderError: If the upstream call does not succeed
        """
        pass

    @abstractmethod
    async def fetch_raw(
        self,
        sport: str,
        markets: str,
        regions: str,
        odds_format: str,
    ) -> Any:
        """Fetch the decoded provider payload without building Events."""
        pass
