"""One user action: find the best reachable restroom and open navigation to it."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .config import Settings
from .errors import NOTHING_FOUND_MESSAGE, AllCandidatesExhausted, LocationUnavailable, SearchError
from .launcher import DesktopLauncher, Launcher
from .models import (
    Coordinate,
    DispatchOutcome,
    LocationFix,
    LogRecord,
    PointOfInterest,
    SearchQuery,
    TravelMode,
)
from .navigation import NavigationDispatcher
from .providers import build_strategies
from .reachability import ReachabilityFilter, ReachableResult
from .routing import RouteEstimator, build_live_router
from .search import PoiSearchAggregator
from .stores import JsonLogStore, JsonSettingsStore, LogStore, SettingsStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FindResult:
    candidates: List[PointOfInterest] = field(default_factory=list)
    best: Optional[ReachableResult] = None

    @property
    def found(self) -> bool:
        return self.best is not None

    @property
    def message(self) -> Optional[str]:
        return None if self.found else NOTHING_FOUND_MESSAGE


@dataclass(frozen=True)
class NavigationReport:
    find: FindResult
    outcome: Optional[DispatchOutcome] = None


def require_location(fix: LocationFix) -> Coordinate:
    """Permission and service state are preconditions, not something negotiated here."""
    if not fix.usable or fix.coordinate is None:
        status = fix.status.value if fix.coordinate is not None else "no_fix"
        raise LocationUnavailable(status)
    return fix.coordinate


class RestroomFinder:
    def __init__(
        self,
        aggregator: PoiSearchAggregator,
        reachability: ReachabilityFilter,
        dispatcher: NavigationDispatcher,
        settings_store: SettingsStore,
        search_log: LogStore,
        *,
        default_radius_m: float = 1500.0,
        default_limit: int = 20,
    ) -> None:
        self.aggregator = aggregator
        self.reachability = reachability
        self.dispatcher = dispatcher
        self.settings_store = settings_store
        self.search_log = search_log
        self.default_radius_m = default_radius_m
        self.default_limit = default_limit

    async def search(self, origin: Coordinate, radius_meters: Optional[float] = None, limit: Optional[int] = None) -> List[PointOfInterest]:
        query = SearchQuery(
            center=origin,
            radius_meters=radius_meters or self.default_radius_m,
            result_limit=limit or self.default_limit,
        )
        message = "ok"
        try:
            results = await self.aggregator.search(query)
        except SearchError as exc:
            logger.warning("Every restroom source failed: %s", exc)
            results = []
            message = "all search sources failed"
        if not results and message == "ok":
            message = "no results"
        self._log_search(query, len(results), message)
        return results

    def _log_search(self, query: SearchQuery, count: int, message: str) -> None:
        record = LogRecord(
            latitude=query.center.latitude,
            longitude=query.center.longitude,
            radius_meters=query.radius_meters,
            result_count=count,
            message=message,
        )
        try:
            self.search_log.append_entry(record)
        except OSError:
            logger.exception("Failed to write search log")

    async def find(
        self,
        fix: LocationFix,
        *,
        radius_meters: Optional[float] = None,
        mode: TravelMode = TravelMode.WALKING,
        time_limit_minutes: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> FindResult:
        origin = require_location(fix)
        candidates = await self.search(origin, radius_meters, limit)
        best = await self.reachability.filter_reachable(candidates, origin, mode, time_limit_minutes)
        return FindResult(candidates=candidates, best=best)

    async def find_and_navigate(
        self,
        fix: LocationFix,
        *,
        radius_meters: Optional[float] = None,
        mode: TravelMode = TravelMode.WALKING,
        time_limit_minutes: Optional[float] = None,
        preferred_engine: Optional[str] = None,
    ) -> NavigationReport:
        """Raises AllCandidatesExhausted when no navigation link opened."""
        found = await self.find(fix, radius_meters=radius_meters, mode=mode, time_limit_minutes=time_limit_minutes)
        if found.best is None:
            return NavigationReport(find=found)

        engine = preferred_engine or self.settings_store.preferred_engine()
        outcome = await self.dispatcher.dispatch(found.best.poi, mode, engine)
        if not outcome.succeeded:
            raise AllCandidatesExhausted(engine, len(outcome.attempted), outcome)
        return NavigationReport(find=found, outcome=outcome)


@dataclass
class Collaborators:
    location_log: LogStore
    search_log: LogStore
    settings_store: SettingsStore


def build_collaborators(settings: Settings) -> Collaborators:
    data_dir = settings.data_dir
    return Collaborators(
        location_log=JsonLogStore(data_dir / "location_logs.json"),
        search_log=JsonLogStore(data_dir / "search_logs.json"),
        settings_store=JsonSettingsStore(data_dir / "map_settings.json", settings.default_engine),
    )


def build_finder(
    settings: Settings,
    *,
    launcher: Optional[Launcher] = None,
    collaborators: Optional[Collaborators] = None,
) -> RestroomFinder:
    """Wire the three fallback chains from configuration."""
    collaborators = collaborators or build_collaborators(settings)
    aggregator = PoiSearchAggregator(build_strategies(settings), timeout=settings.strategy_timeout_s)
    estimator = RouteEstimator(build_live_router(settings), timeout=settings.route_timeout_s)
    dispatcher = NavigationDispatcher(
        launcher or DesktopLauncher(),
        collaborators.location_log,
        launch_timeout=settings.launch_timeout_s,
        default_engine=settings.default_engine,
    )
    return RestroomFinder(
        aggregator,
        ReachabilityFilter(estimator),
        dispatcher,
        collaborators.settings_store,
        collaborators.search_log,
        default_radius_m=settings.default_radius_m,
        default_limit=settings.default_limit,
    )
