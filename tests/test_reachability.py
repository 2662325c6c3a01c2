import pytest

from restroom_nav.models import RouteEstimate, RouteSource, TravelMode
from restroom_nav.reachability import ReachabilityFilter
from restroom_nav.routing import RouteEstimator

from conftest import CENTER, make_poi

NEAR = make_poi("near", 31.2317, 121.4750)
MIDDLE = make_poi("middle", 31.2342, 121.4789)
FAR = make_poi("far", 31.2396, 121.4906)


class CountingEstimator(RouteEstimator):
    """Analytic estimator that remembers which destinations were routed."""

    def __init__(self, minutes_by_latitude=None):
        super().__init__()
        self.minutes_by_latitude = minutes_by_latitude or {}
        self.routed = []

    async def estimate(self, query):
        self.routed.append(query.destination.latitude)
        minutes = self.minutes_by_latitude.get(query.destination.latitude)
        if minutes is None:
            return await super().estimate(query)
        return RouteEstimate(distance_meters=1000, duration_seconds=minutes * 60, source=RouteSource.LIVE, provider="stub")


@pytest.mark.asyncio
async def test_no_time_limit_returns_nearest_without_routing():
    estimator = CountingEstimator()
    result = await ReachabilityFilter(estimator).filter_reachable([NEAR, MIDDLE], CENTER, TravelMode.WALKING)
    assert result.poi.id == "near"
    assert result.estimate is None
    assert estimator.routed == []


@pytest.mark.asyncio
async def test_empty_candidates_yield_none():
    assert await ReachabilityFilter(CountingEstimator()).filter_reachable([], CENTER, TravelMode.WALKING, 10) is None


@pytest.mark.asyncio
async def test_zero_minute_budget_accepts_nothing():
    result = await ReachabilityFilter(CountingEstimator()).filter_reachable([NEAR, MIDDLE, FAR], CENTER, TravelMode.WALKING, 0)
    assert result is None


@pytest.mark.asyncio
async def test_skips_slow_candidates_and_stops_at_first_fit():
    estimator = CountingEstimator({NEAR.coordinate.latitude: 25, MIDDLE.coordinate.latitude: 8})
    result = await ReachabilityFilter(estimator).filter_reachable([NEAR, MIDDLE, FAR], CENTER, TravelMode.WALKING, 10)

    assert result.poi.id == "middle"
    assert result.estimate.source == RouteSource.LIVE
    # FAR is never routed once MIDDLE fits
    assert estimator.routed == [NEAR.coordinate.latitude, MIDDLE.coordinate.latitude]


@pytest.mark.asyncio
async def test_analytic_estimate_used_for_budget_check():
    # NEAR is ~190 m away: about 2.3 minutes on foot
    result = await ReachabilityFilter(RouteEstimator()).filter_reachable([NEAR], CENTER, TravelMode.WALKING, 3)
    assert result.poi.id == "near"
    assert result.estimate.source == RouteSource.ESTIMATED
    assert await ReachabilityFilter(RouteEstimator()).filter_reachable([NEAR], CENTER, TravelMode.WALKING, 2) is None
