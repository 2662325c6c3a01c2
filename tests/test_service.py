import pytest

from restroom_nav.errors import AllCandidatesExhausted, LocationUnavailable, ProviderError
from restroom_nav.models import LocationFix, LocationStatus, TravelMode
from restroom_nav.navigation import NavigationDispatcher
from restroom_nav.reachability import ReachabilityFilter
from restroom_nav.routing import RouteEstimator
from restroom_nav.search import PoiSearchAggregator
from restroom_nav.service import RestroomFinder, build_finder, require_location
from restroom_nav.stores import MemoryLogStore, MemorySettingsStore

from conftest import CENTER, RecordingLauncher, ScriptedStrategy, poi_record


def _finder(strategies, launcher=None, engine="huawei"):
    location_log = MemoryLogStore()
    search_log = MemoryLogStore()
    finder = RestroomFinder(
        PoiSearchAggregator(strategies),
        ReachabilityFilter(RouteEstimator()),
        NavigationDispatcher(launcher or RecordingLauncher(), location_log),
        MemorySettingsStore(engine),
        search_log,
    )
    return finder, location_log, search_log


@pytest.mark.parametrize("status", [LocationStatus.PERMISSION_DENIED, LocationStatus.SERVICE_DISABLED])
def test_location_preconditions(status):
    with pytest.raises(LocationUnavailable):
        require_location(LocationFix(coordinate=CENTER, status=status))


@pytest.mark.asyncio
async def test_denied_location_never_searches():
    strategy = ScriptedStrategy("seed", records=[poi_record("near", 31.2317, 121.4750)])
    finder, _, search_log = _finder([strategy])
    with pytest.raises(LocationUnavailable):
        await finder.find(LocationFix(status=LocationStatus.PERMISSION_DENIED))
    assert strategy.queries == []
    assert search_log.get_all() == []


@pytest.mark.asyncio
async def test_find_and_navigate_success():
    launcher = RecordingLauncher(opens={"amapuri://": "application"})
    finder, location_log, search_log = _finder([ScriptedStrategy("seed", records=[poi_record("near", 31.2317, 121.4750)])], launcher, "amap")

    report = await finder.find_and_navigate(LocationFix(coordinate=CENTER), mode=TravelMode.WALKING, time_limit_minutes=10)

    assert report.find.best.poi.id == "near"
    assert report.outcome.succeeded_engine == "amap"
    assert location_log.get_all() == []
    assert search_log.get_all()[0].result_count == 1


@pytest.mark.asyncio
async def test_nothing_found_reports_message_and_skips_dispatch():
    launcher = RecordingLauncher()
    finder, _, search_log = _finder([ScriptedStrategy("seed", records=[])], launcher)

    report = await finder.find_and_navigate(LocationFix(coordinate=CENTER))

    assert report.outcome is None
    assert report.find.message == "Nothing usable found nearby."
    assert launcher.calls == []
    assert search_log.get_all()[0].message == "no results"


@pytest.mark.asyncio
async def test_search_error_is_a_nothing_usable_outcome():
    finder, _, search_log = _finder([ScriptedStrategy("remote", error=ProviderError("remote", "HTTP 500"))])
    result = await finder.find(LocationFix(coordinate=CENTER))
    assert not result.found
    assert search_log.get_all()[0].message == "all search sources failed"


@pytest.mark.asyncio
async def test_exhausted_dispatch_raises_with_outcome():
    finder, location_log, _ = _finder([ScriptedStrategy("seed", records=[poi_record("near", 31.2317, 121.4750)])])

    with pytest.raises(AllCandidatesExhausted) as excinfo:
        await finder.find_and_navigate(LocationFix(coordinate=CENTER), preferred_engine="baidu")

    assert excinfo.value.user_message == "Couldn't open a navigation app."
    assert excinfo.value.attempts == len(excinfo.value.outcome.attempted)
    assert len(location_log.get_all()) == 1


@pytest.mark.asyncio
async def test_build_finder_uses_seed_chain(settings):
    finder = build_finder(settings, launcher=RecordingLauncher())
    result = await finder.find(LocationFix(coordinate=CENTER), radius_meters=1500)
    assert result.best.poi.id == "toilet_001"
    assert (settings.data_dir / "search_logs.json").exists()
