import asyncio

import pytest

from restroom_nav.errors import LaunchRejected
from restroom_nav.models import TravelMode
from restroom_nav.navigation import PROBE_DECLINED, NavigationDispatcher
from restroom_nav.stores import JsonLogStore, MemoryLogStore

from conftest import RecordingLauncher, make_poi

POI = make_poi()


def _dispatcher(launcher, log_store=None, timeout=1.0):
    return NavigationDispatcher(launcher, log_store or MemoryLogStore(), launch_timeout=timeout)


@pytest.mark.asyncio
async def test_all_candidates_fail_logs_once_and_reports_every_attempt():
    log_store = MemoryLogStore()
    dispatcher = _dispatcher(RecordingLauncher(), log_store)

    outcome = await dispatcher.dispatch(POI, TravelMode.WALKING, "huawei")

    candidates = dispatcher.candidates_for(POI, TravelMode.WALKING, "huawei")
    assert not outcome.succeeded
    assert outcome.succeeded_uri is None
    assert [attempt.uri for attempt in outcome.attempted] == [candidate.uri for candidate in candidates]
    assert "application: " in outcome.attempted[0].failure_reason
    assert "link: " in outcome.attempted[0].failure_reason
    records = log_store.get_all()
    assert len(records) == 1
    assert records[0].latitude == POI.coordinate.latitude


@pytest.mark.asyncio
async def test_first_success_stops_the_chain():
    launcher = RecordingLauncher(opens={"amapuri://": "application"})
    log_store = MemoryLogStore()

    outcome = await _dispatcher(launcher, log_store).dispatch(POI, TravelMode.WALKING, "amap")

    assert outcome.succeeded
    assert outcome.succeeded_engine == "amap"
    assert outcome.attempted == []
    assert [kind for kind, _ in launcher.calls] == ["probe", "application"]
    assert log_store.get_all() == []


@pytest.mark.asyncio
async def test_link_opening_is_tried_after_application_invocation():
    launcher = RecordingLauncher(opens={"baidumap://": "link"})
    outcome = await _dispatcher(launcher).dispatch(POI, TravelMode.WALKING, "baidu")
    assert outcome.succeeded_engine == "baidu"
    assert [kind for kind, _ in launcher.calls] == ["probe", "application", "link"]


@pytest.mark.asyncio
async def test_negative_probe_skips_without_launch():
    launcher = RecordingLauncher(
        probe={"petalmaps://": False, "mapapp://": False},
        opens={"amapuri://": "application"},
    )
    outcome = await _dispatcher(launcher).dispatch(POI, TravelMode.WALKING, "huawei")

    assert outcome.succeeded_engine == "amap"
    assert len(outcome.attempted) == 4
    assert all(attempt.skipped for attempt in outcome.attempted)
    assert all(attempt.failure_reason == PROBE_DECLINED for attempt in outcome.attempted)
    launched = [uri for kind, uri in launcher.calls if kind != "probe"]
    assert all(uri.startswith("amapuri://") for uri in launched)


@pytest.mark.asyncio
async def test_web_link_is_the_last_resort():
    launcher = RecordingLauncher(opens={"https://": "link"})
    outcome = await _dispatcher(launcher).dispatch(POI, TravelMode.CYCLING, "huawei")
    assert outcome.succeeded_engine == "web"
    assert "travelmode=bicycling" in outcome.succeeded_uri


class HangingLauncher(RecordingLauncher):
    async def can_open(self, uri):
        await asyncio.sleep(1)
        return False

    async def start_application(self, uri):
        await asyncio.sleep(1)

    async def open_link(self, uri):
        raise LaunchRejected(uri, "nope")


@pytest.mark.asyncio
async def test_probe_and_launch_timeouts_count_as_failures():
    log_store = MemoryLogStore()
    dispatcher = _dispatcher(HangingLauncher(), log_store, timeout=0.01)

    outcome = await dispatcher.dispatch(POI, TravelMode.WALKING, "tencent")

    # a timed out probe is "unknown", so the launch is still attempted
    assert not any(attempt.skipped for attempt in outcome.attempted)
    assert "timed out" in outcome.attempted[0].failure_reason
    assert len(log_store.get_all()) == 1


@pytest.mark.asyncio
async def test_exhaustion_with_undecodable_log_file_still_returns_outcome(tmp_path):
    path = tmp_path / "location_logs.json"
    path.write_bytes(b"\xff\xfe\x80garbage")
    log_store = JsonLogStore(path)

    outcome = await _dispatcher(RecordingLauncher(), log_store).dispatch(POI, TravelMode.WALKING, "huawei")

    assert outcome.succeeded_uri is None
    assert len(log_store.get_all()) == 1
