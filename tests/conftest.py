"""Shared fixtures: in-memory collaborators and scripted strategies/launchers."""
import asyncio
from dataclasses import replace
from typing import Dict, List, Optional

import pytest

from restroom_nav.config import Settings
from restroom_nav.errors import LaunchRejected
from restroom_nav.models import Coordinate, PointOfInterest, SearchQuery
from restroom_nav.seed import DEFAULT_CENTER
from restroom_nav.stores import MemoryLogStore, MemorySettingsStore

CENTER = Coordinate.from_lat_lng(DEFAULT_CENTER["lat"], DEFAULT_CENTER["lng"])


class ScriptedStrategy:
    """Search strategy returning canned records or raising a canned error."""

    def __init__(self, name: str, records=None, error: Optional[Exception] = None, remote: bool = True, delay: float = 0.0):
        self.name = name
        self.remote = remote
        self.records = records or []
        self.error = error
        self.delay = delay
        self.queries: List[SearchQuery] = []

    async def fetch(self, query: SearchQuery):
        self.queries.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return [dict(record) for record in self.records]


class RecordingLauncher:
    """Launcher whose probe answers and launch results are set per URI prefix."""

    def __init__(self, probe: Optional[Dict[str, Optional[bool]]] = None, opens: Optional[Dict[str, str]] = None):
        self.probe = probe or {}
        # prefix -> "application" | "link"; anything else fails both paths
        self.opens = opens or {}
        self.calls: List[tuple] = []

    def _match(self, table, uri):
        for prefix, value in table.items():
            if uri.startswith(prefix):
                return value
        return None

    async def can_open(self, uri: str) -> Optional[bool]:
        self.calls.append(("probe", uri))
        return self._match(self.probe, uri)

    async def start_application(self, uri: str) -> None:
        self.calls.append(("application", uri))
        if self._match(self.opens, uri) != "application":
            raise LaunchRejected(uri, "no handler")

    async def open_link(self, uri: str) -> None:
        self.calls.append(("link", uri))
        if self._match(self.opens, uri) != "link":
            raise LaunchRejected(uri, "no browser")


def poi_record(poi_id: str, lat: float, lng: float, name: str = "WC") -> Dict[str, object]:
    return {"id": poi_id, "name": name, "address": "", "lat": lat, "lng": lng}


def make_poi(poi_id: str = "toilet_001", lat: float = 31.2317, lng: float = 121.4750, name: str = "People's Square WC") -> PointOfInterest:
    return PointOfInterest(id=poi_id, name=name, coordinate=Coordinate(latitude=lat, longitude=lng))


@pytest.fixture
def center() -> Coordinate:
    return CENTER


@pytest.fixture
def settings(tmp_path) -> Settings:
    return replace(
        Settings(),
        dgis_api_key="",
        amap_api_key="",
        routing_provider="none",
        search_strategies=("seed",),
        data_dir=tmp_path,
        secret_key="test",
        flask_env="testing",
    )


@pytest.fixture
def log_store() -> MemoryLogStore:
    return MemoryLogStore()


@pytest.fixture
def settings_store() -> MemorySettingsStore:
    return MemorySettingsStore("huawei")


