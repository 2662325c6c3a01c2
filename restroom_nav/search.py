"""Ordered fallback over restroom search strategies."""
from __future__ import annotations

import asyncio
import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from . import geo
from .errors import ProviderError, ProviderTimeout, SearchError
from .gis_client import RawPoi
from .models import Coordinate, PointOfInterest, SearchQuery
from .providers import SearchStrategy

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY_TIMEOUT = 8.0
# radius band sent to remote providers, bounds query cost
REMOTE_RADIUS_BAND: Tuple[float, float] = (50.0, 3000.0)


def clamp_radius(radius_meters: float, band: Tuple[float, float] = REMOTE_RADIUS_BAND) -> float:
    low, high = band
    return min(max(radius_meters, low), high)


def _raw_coordinate(raw: RawPoi) -> Optional[Coordinate]:
    lat = raw.get("lat", raw.get("latitude"))
    lng = raw.get("lng", raw.get("lon", raw.get("longitude")))
    try:
        lat_value = float(lat)  # type: ignore[arg-type]
        lng_value = float(lng)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lat_value) and math.isfinite(lng_value)):
        return None
    if not (-90.0 <= lat_value <= 90.0 and -180.0 <= lng_value <= 180.0):
        return None
    return Coordinate(latitude=lat_value, longitude=lng_value)


def normalize_results(raw_points: Iterable[RawPoi], query: SearchQuery, source: str) -> List[PointOfInterest]:
    """Turn one strategy's raw output into sorted, radius-filtered, truncated POIs.

    Malformed records are dropped one by one. Distances are rounded to the
    nearest meter after sorting on the exact value.
    """
    inside: List[PointOfInterest] = []
    for index, raw in enumerate(raw_points):
        if not isinstance(raw, dict):
            continue
        coordinate = _raw_coordinate(raw)
        if coordinate is None:
            logger.debug("Dropping %s record %s with unusable coordinates", source, raw.get("id"))
            continue
        if not geo.within_radius(query.center, coordinate, query.radius_meters):
            continue
        inside.append(
            PointOfInterest(
                id=str(raw.get("id") or f"{source}-{index}"),
                name=str(raw.get("name") or "Public toilet"),
                address=str(raw.get("address") or ""),
                coordinate=coordinate,
                open_hours=str(raw["open_hours"]) if raw.get("open_hours") else None,
                source=source,
            )
        )

    results: List[PointOfInterest] = []
    seen: Set[str] = set()
    for poi in geo.sort_by_distance(inside, query.center):
        if poi.id in seen:
            continue
        seen.add(poi.id)
        meters = geo.distance(query.center, poi.coordinate)
        results.append(poi.model_copy(update={"distance_meters": float(round(meters))}))
        if len(results) >= query.result_limit:
            break
    return results


class PoiSearchAggregator:
    """Queries strategies in priority order and returns the first non-empty result set."""

    def __init__(
        self,
        strategies: Sequence[SearchStrategy] = (),
        *,
        timeout: float = DEFAULT_STRATEGY_TIMEOUT,
        radius_band: Tuple[float, float] = REMOTE_RADIUS_BAND,
    ) -> None:
        self.strategies = list(strategies)
        self.timeout = timeout
        self.radius_band = radius_band

    async def _fetch(self, strategy: SearchStrategy, query: SearchQuery) -> List[RawPoi]:
        provider_query = query
        if strategy.remote:
            provider_query = query.model_copy(update={"radius_meters": clamp_radius(query.radius_meters, self.radius_band)})
        try:
            raw = await asyncio.wait_for(strategy.fetch(provider_query), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise ProviderTimeout(strategy.name, self.timeout) from exc
        except ProviderError:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            raise ProviderError(strategy.name, f"{type(exc).__name__}: {exc}") from exc
        if not isinstance(raw, list):
            raise ProviderError(strategy.name, "strategy returned a non-list payload")
        return raw

    async def search(
        self,
        query: SearchQuery,
        strategies: Optional[Sequence[SearchStrategy]] = None,
    ) -> List[PointOfInterest]:
        chain = list(strategies) if strategies is not None else self.strategies
        failures: Dict[str, str] = {}
        failed = 0

        for strategy in chain:
            try:
                raw = await self._fetch(strategy, query)
            except ProviderError as exc:
                logger.warning("Search strategy %s failed, trying next: %s", strategy.name, exc.detail)
                failures[strategy.name] = exc.detail
                failed += 1
                continue

            results = normalize_results(raw, query, strategy.name)
            if results:
                logger.info("Search strategy %s returned %s restrooms", strategy.name, len(results))
                return results
            logger.info("Search strategy %s returned nothing within %sm, trying next", strategy.name, query.radius_meters)

        if chain and failed == len(chain):
            raise SearchError(failures)
        return []
