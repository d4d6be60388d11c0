"""HTTP API exposing raw odds, +EV edges and arbitrage opportunities."""

import asyncio
import logging
from typing import Optional

from aiohttp import web

from betterbets.api.params import InvalidParameterError, parse_odds_params, parse_scan_params
from betterbets.config import AppConfig, get_config
from betterbets.ingestion.base import InvalidEventsError, OddsProvider
from betterbets.ingestion.odds import OddsProviderError, TheOddsApiProvider
from betterbets.odds.arbitrage import scan_arbitrage
from betterbets.odds.edge import scan_edges

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-betterbets-key"

CONFIG_KEY = web.AppKey("config", AppConfig)
PROVIDER_KEY = web.AppKey("provider", OddsProvider)


def error_response(status: int, error: str, message: str, details: str | None = None) -> web.Response:
    return web.json_response(
        {"error": error, "message": message, "details": details},
        status=status,
    )


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Allow browser calls from configured origins."""
    config = request.app[CONFIG_KEY]
    origin = request.headers.get("Origin")
    allowed = origin is not None and origin in config.cors_origins

    if request.method == "OPTIONS":
        response = web.Response(status=204 if allowed else 403)
    else:
        response = await handler(request)

    if allowed:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Headers"] = f"Content-Type, {API_KEY_HEADER}"
        response.headers["Access-Control-Allow-Methods"] = "GET, OPTIONS"
        response.headers["Vary"] = "Origin"
    return response


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Reduce failures to invalid_parameters, upstream_unavailable or internal_error."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except InvalidParameterError as e:
        return error_response(400, "invalid_parameters", str(e))
    except OddsProviderError as e:
        logger.error(f"Upstream failure on {request.path}: {e}")
        return error_response(502, "upstream_unavailable", str(e), e.details)
    except InvalidEventsError as e:
        logger.error(f"Malformed upstream payload on {request.path}: {e}")
        return error_response(502, "upstream_unavailable", str(e))
    except Exception as e:
        logger.error(f"Unhandled error on {request.path}: {e}", exc_info=True)
        return error_response(500, "internal_error", "Internal server error")


@web.middleware
async def auth_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Require the shared API key on /api routes."""
    if not request.path.startswith("/api"):
        return await handler(request)

    config = request.app[CONFIG_KEY]
    expected = config.betterbets_api_key.get_secret_value()

    if not expected:
        if config.env == "prod":
            logger.error("BETTERBETS_API_KEY is required in prod")
            return error_response(500, "internal_error", "Server misconfiguration")
        logger.warning("BETTERBETS_API_KEY is not set; auth is disabled outside prod")
        return await handler(request)

    if request.headers.get(API_KEY_HEADER) != expected:
        return web.json_response({"error": "unauthorized"}, status=401)

    return await handler(request)


async def health(request: web.Request) -> web.Response:
    """Handle GET /api/health."""
    return web.json_response({"status": "ok"})


async def odds(request: web.Request) -> web.Response:
    """Handle GET /api/odds: raw provider payload for one request shape."""
    config = request.app[CONFIG_KEY]
    provider = request.app[PROVIDER_KEY]
    params = parse_odds_params(request.query, config)

    payload = await provider.fetch_raw(
        params.sport, params.markets, params.regions, params.odds_format
    )
    return web.json_response(payload)


async def scan(request: web.Request) -> web.Response:
    """Handle GET /api/ev-full and /api/scan: edges and arbitrage for one sport.

    Scans always request American odds; the edge math assumes them.
    """
    config = request.app[CONFIG_KEY]
    provider = request.app[PROVIDER_KEY]
    params = parse_scan_params(request.query, config)

    events = await provider.fetch_odds(params.sport, params.markets, params.regions, "american")

    edges = scan_edges(
        events,
        market_type=params.market_type,
        book=params.book,
        min_edge=params.min_edge,
        league=params.sport,
        tolerance=config.point_tolerance,
        floor=config.fair_prob_floor,
        ceiling=config.fair_prob_ceiling,
        max_abs_edge=config.max_abs_edge_percent,
        min_edge_bounds=(config.min_edge_floor, config.min_edge_ceiling),
    )
    arbs = scan_arbitrage(events, stake_total=config.arb_stake_total)

    return web.json_response(
        {
            "ev": [record.to_dict() for record in edges],
            "arbs": [record.to_dict() for record in arbs],
        }
    )


def create_app(
    config: Optional[AppConfig] = None,
    provider: Optional[OddsProvider] = None,
) -> web.Application:
    """Create aiohttp application with API routes.

    Args:
        config: Application config (defaults to the global config)
        provider: Odds provider (defaults to TheOddsApiProvider)

    Returns:
        Configured aiohttp Application
    """
    config = config or get_config()

    app = web.Application(middlewares=[cors_middleware, error_middleware, auth_middleware])
    app[CONFIG_KEY] = config
    app[PROVIDER_KEY] = provider or TheOddsApiProvider(config)

    app.router.add_get("/api/health", health)
    app.router.add_get("/api/odds", odds)
    app.router.add_get("/api/ev-full", scan)
    app.router.add_get("/api/scan", scan)

    return app


async def run_server(
    config: Optional[AppConfig] = None,
    shutdown_event: Optional[asyncio.Event] = None,
) -> None:
    """Run the API server until shutdown signal.

    Args:
        config: Application config (defaults to the global config)
        shutdown_event: Optional event to signal shutdown
    """
    config = config or get_config()
    app = create_app(config)

    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, config.server_host, config.server_port)
    await site.start()

    logger.info(f"Better Bets API listening on {config.server_host}:{config.server_port}")

    if shutdown_event:
        await shutdown_event.wait()
    else:
        await asyncio.Event().wait()

    logger.info("Shutting down API server...")
    await runner.cleanup()
