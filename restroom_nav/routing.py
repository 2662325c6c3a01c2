"""Route estimation: live routing service first, constant-speed estimate second."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Protocol

from . import geo, gis_client
from .config import Settings
from .errors import ProviderError, ProviderTimeout
from .gis_client import RoutingRateLimiter
from .models import RouteEstimate, RouteQuery, RouteSource, RouteStep, TravelMode

logger = logging.getLogger(__name__)

# meters per second
SPEEDS: Dict[TravelMode, float] = {
    TravelMode.WALKING: 1.39,
    TravelMode.CYCLING: 4.17,
}

DEFAULT_ROUTE_TIMEOUT = 8.0

_DGIS_TRANSPORT = {
    TravelMode.WALKING: "walking",
    TravelMode.CYCLING: "bicycle",
}


class LiveRouter(Protocol):
    name: str

    async def route(self, query: RouteQuery) -> RouteEstimate:
        ...


def _steps_from_payload(steps: object) -> List[RouteStep]:
    parsed: List[RouteStep] = []
    if not isinstance(steps, list):
        return parsed
    for step in steps:
        if not isinstance(step, dict):
            continue
        parsed.append(
            RouteStep(
                instruction=str(step.get("instruction") or ""),
                road_name=str(step.get("road_name") or ""),
                distance_meters=max(0.0, float(step.get("distance_m") or 0.0)),
                duration_seconds=max(0.0, float(step.get("duration_sec") or 0.0)),
            )
        )
    return parsed


def _live_estimate(payload: Dict[str, object], provider: str) -> RouteEstimate:
    distance = payload.get("distance_m")
    duration = payload.get("duration_sec")
    if not isinstance(distance, (int, float)) or not isinstance(duration, (int, float)):
        raise ProviderError(provider, "route summary missing distance or duration")
    if distance < 0 or duration < 0:
        raise ProviderError(provider, "negative route summary")
    return RouteEstimate(
        distance_meters=float(distance),
        duration_seconds=float(duration),
        source=RouteSource.LIVE,
        provider=provider,
        steps=_steps_from_payload(payload.get("steps")),
    )


class DgisRouter:
    """2GIS Routing API 7.0 (walking / bicycle)."""

    name = "2gis"

    def __init__(
        self,
        api_key: str,
        *,
        limiter: Optional[RoutingRateLimiter] = None,
        request_timeout: float = gis_client.REQUEST_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.limiter = limiter or RoutingRateLimiter()
        self.request_timeout = request_timeout

    async def route(self, query: RouteQuery) -> RouteEstimate:
        payload = await asyncio.to_thread(
            gis_client.route_2gis,
            query.origin.to_lat_lng(),
            query.destination.to_lat_lng(),
            transport=_DGIS_TRANSPORT[query.mode],
            api_key=self.api_key,
            limiter=self.limiter,
            timeout=self.request_timeout,
        )
        return _live_estimate(payload, self.name)


class AmapRouter:
    """Amap direction API (walking / bicycling)."""

    name = "amap"

    def __init__(self, api_key: str, *, request_timeout: float = gis_client.REQUEST_TIMEOUT) -> None:
        self.api_key = api_key
        self.request_timeout = request_timeout

    async def route(self, query: RouteQuery) -> RouteEstimate:
        payload = await asyncio.to_thread(
            gis_client.route_amap,
            query.origin.to_lat_lng(),
            query.destination.to_lat_lng(),
            mode=query.mode.value,
            api_key=self.api_key,
            timeout=self.request_timeout,
        )
        return _live_estimate(payload, self.name)


def analytic_estimate(query: RouteQuery) -> RouteEstimate:
    """Straight-line distance at a constant speed for the travel mode."""
    distance = geo.distance(query.origin, query.destination)
    duration = distance / SPEEDS[query.mode]
    verb = "Walk" if query.mode == TravelMode.WALKING else "Cycle"
    return RouteEstimate(
        distance_meters=distance,
        duration_seconds=duration,
        source=RouteSource.ESTIMATED,
        provider=None,
        steps=[
            RouteStep(
                instruction=f"{verb} to the destination",
                distance_meters=distance,
                duration_seconds=duration,
            )
        ],
    )


def is_within_time_limit(estimate: RouteEstimate, time_limit_minutes: float) -> bool:
    return estimate.duration_seconds / 60.0 <= time_limit_minutes


class RouteEstimator:
    """Never fails: any live routing problem degrades to ``analytic_estimate``."""

    def __init__(self, live_router: Optional[LiveRouter] = None, *, timeout: float = DEFAULT_ROUTE_TIMEOUT) -> None:
        self.live_router = live_router
        self.timeout = timeout

    async def _live(self, router: LiveRouter, query: RouteQuery) -> RouteEstimate:
        try:
            return await asyncio.wait_for(router.route(query), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise ProviderTimeout(router.name, self.timeout) from exc

    async def estimate(self, query: RouteQuery) -> RouteEstimate:
        if self.live_router is None:
            return analytic_estimate(query)
        try:
            return await self._live(self.live_router, query)
        except ProviderError as exc:
            logger.warning("Live routing via %s failed, using estimate: %s", exc.provider, exc.detail)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Live routing raised %s, using estimate: %s", type(exc).__name__, exc)
        return analytic_estimate(query)


def build_live_router(settings: Settings) -> Optional[LiveRouter]:
    provider = settings.routing_provider
    if provider == "2gis" and settings.dgis_api_key:
        limiter = RoutingRateLimiter(settings.routing_daily_limit, settings.routing_minute_limit)
        return DgisRouter(settings.dgis_api_key, limiter=limiter, request_timeout=settings.request_timeout_s)
    if provider == "amap" and settings.amap_api_key:
        return AmapRouter(settings.amap_api_key, request_timeout=settings.request_timeout_s)
    if provider not in {"none", ""}:
        logger.info("Routing provider %s has no API key configured, live routing disabled", provider)
    return None
