"""Environment driven configuration."""
from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from dotenv import load_dotenv

DEFAULT_SEARCH_STRATEGIES = ("2gis", "overpass", "seed")


def _get_env(name: str, default: str = "") -> str:
    value = os.getenv(name, default)
    if value is None:
        return default
    return value.strip()


def _get_env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


def _get_env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _get_env_positive_float(name: str, default: float) -> float:
    value = _get_env_float(name, default)
    return value if math.isfinite(value) and value > 0 else default


def _get_env_positive_int(name: str, default: int) -> int:
    value = _get_env_int(name, default)
    return value if value > 0 else default


def _get_env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(name)
    if not value:
        return default
    items: List[str] = [item.strip().lower() for item in value.split(",")]
    return tuple(item for item in items if item) or default


@dataclass(frozen=True)
class Settings:
    dgis_api_key: str = ""
    amap_api_key: str = ""
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    routing_provider: str = "2gis"
    search_strategies: Tuple[str, ...] = DEFAULT_SEARCH_STRATEGIES
    search_keyword: str = "туалет"
    strategy_timeout_s: float = 8.0
    route_timeout_s: float = 8.0
    launch_timeout_s: float = 5.0
    request_timeout_s: float = 10.0
    default_radius_m: float = 1500.0
    default_limit: int = 20
    default_engine: str = "huawei"
    data_dir: Path = field(default_factory=lambda: Path.home() / ".restroom_nav")
    routing_daily_limit: int = 50
    routing_minute_limit: int = 5
    secret_key: str = "dev-secret"
    flask_env: str = "development"


def load_settings() -> Settings:
    """Read .env (if present) and the process environment into Settings."""
    load_dotenv(override=True)
    data_dir = _get_env("DATA_DIR")
    return Settings(
        dgis_api_key=_get_env("2GIS_API_KEY"),
        amap_api_key=_get_env("AMAP_API_KEY"),
        overpass_url=_get_env("OVERPASS_URL", Settings.overpass_url) or Settings.overpass_url,
        routing_provider=_get_env("ROUTING_PROVIDER", "2gis").lower() or "none",
        search_strategies=_get_env_list("SEARCH_STRATEGIES", DEFAULT_SEARCH_STRATEGIES),
        search_keyword=_get_env("SEARCH_KEYWORD", Settings.search_keyword) or Settings.search_keyword,
        strategy_timeout_s=_get_env_positive_float("STRATEGY_TIMEOUT_S", 8.0),
        route_timeout_s=_get_env_positive_float("ROUTE_TIMEOUT_S", 8.0),
        launch_timeout_s=_get_env_positive_float("LAUNCH_TIMEOUT_S", 5.0),
        request_timeout_s=_get_env_positive_float("REQUEST_TIMEOUT", 10.0),
        default_radius_m=_get_env_positive_float("DEFAULT_RADIUS_M", 1500.0),
        default_limit=_get_env_positive_int("DEFAULT_LIMIT", 20),
        default_engine=_get_env("DEFAULT_ENGINE", "huawei").lower() or "huawei",
        data_dir=Path(data_dir).expanduser() if data_dir else Path.home() / ".restroom_nav",
        routing_daily_limit=_get_env_int("ROUTING_DAILY_LIMIT", 50),
        routing_minute_limit=_get_env_int("ROUTING_MINUTE_LIMIT", 5),
        secret_key=_get_env("SECRET_KEY", "dev-secret"),
        flask_env=_get_env("FLASK_ENV", "development"),
    )
