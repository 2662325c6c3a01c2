"""Search strategies: one adapter per restroom source."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from . import gis_client
from .config import Settings
from .gis_client import RawPoi
from .models import SearchQuery
from .seed import get_seed_toilets

logger = logging.getLogger(__name__)


class SearchStrategy(Protocol):
    """A source of raw restroom records for a center/radius/limit query."""

    name: str
    remote: bool

    async def fetch(self, query: SearchQuery) -> List[RawPoi]:
        ...


class DgisKeywordSearch:
    """Keyword search ("туалет" by default) in the 2GIS catalog."""

    name = "2gis"
    remote = True

    def __init__(self, api_key: str, keyword: str = "туалет", *, request_timeout: float = gis_client.REQUEST_TIMEOUT) -> None:
        self.api_key = api_key
        self.keyword = keyword
        self.request_timeout = request_timeout

    async def fetch(self, query: SearchQuery) -> List[RawPoi]:
        return await asyncio.to_thread(
            gis_client.search_places_nearby,
            self.keyword,
            query.center.latitude,
            query.center.longitude,
            radius=query.radius_meters,
            api_key=self.api_key,
            limit=query.result_limit,
            timeout=self.request_timeout,
        )


class OverpassSearch:
    """OpenStreetMap amenity=toilets through an Overpass endpoint."""

    name = "overpass"
    remote = True

    def __init__(self, url: str, *, request_timeout: float = gis_client.REQUEST_TIMEOUT) -> None:
        self.url = url
        self.request_timeout = request_timeout

    async def fetch(self, query: SearchQuery) -> List[RawPoi]:
        return await asyncio.to_thread(
            gis_client.overpass_toilets,
            self.url,
            query.center.latitude,
            query.center.longitude,
            radius=query.radius_meters,
            limit=query.result_limit,
            timeout=self.request_timeout,
        )


class SeedSearch:
    """Static built-in set. Filtering and sorting are left to the aggregator."""

    name = "seed"
    remote = False

    def __init__(self, records: Optional[Sequence[RawPoi]] = None) -> None:
        self._records = list(records) if records is not None else get_seed_toilets()

    async def fetch(self, query: SearchQuery) -> List[RawPoi]:
        return [dict(record) for record in self._records]


_FACTORIES: Dict[str, Callable[[Settings], SearchStrategy]] = {
    "2gis": lambda settings: DgisKeywordSearch(
        settings.dgis_api_key, settings.search_keyword, request_timeout=settings.request_timeout_s
    ),
    "overpass": lambda settings: OverpassSearch(settings.overpass_url, request_timeout=settings.request_timeout_s),
    "seed": lambda settings: SeedSearch(),
}


def build_strategies(settings: Settings) -> List[SearchStrategy]:
    """Instantiate strategies in configured order; the seed set always closes the chain."""
    strategies: List[SearchStrategy] = []
    for name in settings.search_strategies:
        factory = _FACTORIES.get(name)
        if factory is None:
            logger.warning("Unknown search strategy %r ignored", name)
            continue
        if name == "2gis" and not settings.dgis_api_key:
            logger.info("2GIS_API_KEY missing, skipping 2GIS keyword search")
            continue
        if any(existing.name == name for existing in strategies):
            continue
        strategies.append(factory(settings))
    if not strategies or strategies[-1].name != "seed":
        strategies = [strategy for strategy in strategies if strategy.name != "seed"]
        strategies.append(SeedSearch())
    return strategies
