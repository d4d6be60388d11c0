"""The Odds API provider with short-TTL response memoization."""

import asyncio
import json
import logging
from typing import Any, Callable, Optional

import aiohttp

from betterbets.config import AppConfig, get_config
from betterbets.ingestion.base import Event, OddsProvider, parse_events
from betterbets.ingestion.cache import Cache

logger = logging.getLogger(__name__)


class OddsProviderError(Exception):
    """Upstream odds request did not succeed."""

    def __init__(self, status: int, message: str, details: str | None = None):
        super().__init__(message)
        self.status = status
        self.details = details


def cache_key(sport: str, markets: str, regions: str, odds_format: str) -> str:
    """Cache key for one request shape."""
    return "|".join([sport, markets, regions, odds_format])


class TheOddsApiProvider(OddsProvider):
    """
    Odds provider backed by The Odds API v4 /sports/{sport}/odds endpoint.

    Responses are memoized per (sport, markets, regions, odds_format) for the
    configured TTL; concurrent requests for the same key during a miss share
    a single upstream call. Failed requests are never cached.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        cache: Optional[Cache] = None,
        session_factory: Callable[..., aiohttp.ClientSession] = aiohttp.ClientSession,
    ):
        """
        Args:
            config: Application config (defaults to the global config)
            cache: Response cache (defaults to a fresh Cache with the configured TTL)
            session_factory: ClientSession constructor, injectable for tests
        """
        self.config = config or get_config()
        self.cache = cache or Cache(ttl_seconds=self.config.odds_cache_ttl_seconds)
        self._session_factory = session_factory

    async def fetch_odds(
        self,
        sport: str,
        markets: str = "h2h,spreads,totals",
        regions: str = "us",
        odds_format: str = "american",
    ) -> list[Event]:
        """
        Fetch upcoming events with bookmaker odds.

        Returns:
            List of Event objects in provider order

        Raises:
            OddsProviderError: If the upstream call fails or returns non-200
            InvalidEventsError: If the upstream payload is not an event list
        """
        payload = await self.fetch_raw(sport, markets, regions, odds_format)
        events = parse_events(payload)
        logger.info(f"Fetched {len(events)} events for {sport}")
        return events

    async def fetch_raw(
        self,
        sport: str,
        markets: str = "h2h,spreads,totals",
        regions: str = "us",
        odds_format: str = "american",
    ) -> Any:
        """
        Fetch the decoded JSON payload, served from cache within the TTL.

        Raises:
            OddsProviderError: If the upstream call fails or returns non-200
        """
        if not sport:
            raise ValueError("Missing required param: sport")

        key = cache_key(sport, markets, regions, odds_format)
        return await self.cache.get_or_fetch(
            key,
            lambda: self._request(sport, markets, regions, odds_format),
        )

    async def _request(
        self,
        sport: str,
        markets: str,
        regions: str,
        odds_format: str,
    ) -> Any:
        url = f"{self.config.odds_api_base_url}/sports/{sport}/odds"
        params = {
            "apiKey": self.config.odds_api_key.get_secret_value(),
            "markets": markets,
            "regions": regions,
            "oddsFormat": odds_format,
        }

        try:
            timeout = aiohttp.ClientTimeout(total=self.config.odds_request_timeout_seconds)
            async with self._session_factory(timeout=timeout) as session:
                async with session.get(url, params=params) as resp:
                    response_text = await resp.text()

                    if resp.status != 200:
                        logger.warning(
                            f"Odds API returned status {resp.status} for {sport}"
                        )
                        raise OddsProviderError(
                            resp.status,
                            f"Odds API error {resp.status}",
                            details=response_text,
                        )

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Odds API request failed for {sport}: {e}", exc_info=True)
            raise OddsProviderError(502, f"Odds API request failed: {e}") from e

        try:
            payload = json.loads(response_text)
        except json.JSONDecodeError as e:
            raise OddsProviderError(
                502, "Odds API returned invalid JSON", details=response_text[:500]
            ) from e

        logger.info(f"Fetched and cached odds for {sport} ({markets}, {regions}, {odds_format})")
        return payload
