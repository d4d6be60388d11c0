"""Application configuration schema and validation."""

import json
from typing import Annotated, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class AppConfig(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Application environment",
    )
    odds_api_key: SecretStr = Field(
        ...,
        description="API key for The Odds API",
    )
    odds_api_base_url: str = Field(
        default="https://api.the-odds-api.com/v4",
        description="Base URL for The Odds API",
    )
    odds_request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=60,
        description="Total timeout for one upstream odds request",
    )
    odds_cache_ttl_seconds: float = Field(
        default=15.0,
        ge=0,
        le=300,
        description="TTL for memoized odds responses per request shape",
    )
    betterbets_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Shared key required in the x-betterbets-key header (empty disables auth outside prod)",
    )
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:4000"],
        description="Origins allowed to call the API from a browser",
    )
    server_host: str = Field(
        default="0.0.0.0",
        description="HTTP bind address",
    )
    server_port: int = Field(
        default=4000,
        ge=1,
        le=65535,
        description="HTTP listen port",
    )
    allowed_sports: Annotated[list[str], NoDecode] = Field(
        default=[
            "americanfootball_nfl",
            "basketball_nba",
            "baseball_mlb",
            "icehockey_nhl",
            "soccer_epl",
        ],
        description="Sport keys accepted by the API",
    )
    default_markets: str = Field(
        default="h2h,spreads,totals",
        description="Markets requested when the caller does not specify any",
    )
    default_regions: str = Field(
        default="us",
        description="Bookmaker regions requested when the caller does not specify any",
    )
    point_tolerance: float = Field(
        default=0.01,
        gt=0,
        le=1.0,
        description="Absolute tolerance when matching spread/total points",
    )
    fair_prob_floor: float = Field(
        default=0.05,
        gt=0,
        lt=0.5,
        description="Lower clamp for devigged fair probabilities",
    )
    fair_prob_ceiling: float = Field(
        default=0.95,
        gt=0.5,
        lt=1.0,
        description="Upper clamp for devigged fair probabilities",
    )
    max_abs_edge_percent: float = Field(
        default=80.0,
        gt=0,
        description="Edges with a larger magnitude are treated as data anomalies",
    )
    min_edge_floor: float = Field(
        default=-10.0,
        description="Lowest accepted minEdge parameter (percent)",
    )
    min_edge_ceiling: float = Field(
        default=100.0,
        description="Highest accepted minEdge parameter (percent)",
    )
    arb_stake_total: float = Field(
        default=100.0,
        gt=0,
        description="Notional total split across arbitrage legs",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("cors_origins", "allowed_sports", mode="before")
    @classmethod
    def split_csv(cls, v):
        """Accept JSON arrays or comma-separated strings for list settings."""
        if not isinstance(v, str):
            return v
        if v.lstrip().startswith("["):
            return json.loads(v)
        return [item.strip() for item in v.split(",") if item.strip()]

    @field_validator("min_edge_ceiling")
    @classmethod
    def validate_min_edge_ceiling(cls, v: float, info) -> float:
        """Ensure min_edge_ceiling >= min_edge_floor."""
        if "min_edge_floor" in info.data and v < info.data["min_edge_floor"]:
            raise ValueError("min_edge_ceiling must be >= min_edge_floor")
        return v


_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create the singleton AppConfig instance."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config
