"""Thin wrappers around the 2GIS, Overpass and Amap HTTP APIs.

Every function here is blocking and raises ProviderError on any HTTP or
payload problem. Fallback policy lives one layer up, in the search and
routing chains.
"""
from __future__ import annotations

import logging
import math
import threading
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

import requests

from .errors import ProviderError, RoutingRateLimitError

PLACES_URL = "https://catalog.api.2gis.com/3.0/items"
ROUTING_V7_URL = "https://routing.api.2gis.com/routing/7.0.0/global"
AMAP_BASE_URL = "https://restapi.amap.com/v3"
REQUEST_TIMEOUT = 10
USER_AGENT = "restroom-nav/0.1"

logger = logging.getLogger(__name__)

RawPoi = Dict[str, Any]


class RoutingRateLimiter:
    """Sliding per-minute and per-day windows for routing requests."""

    def __init__(self, daily_limit: int = 50, minute_limit: int = 5) -> None:
        self.daily_limit = daily_limit
        self.minute_limit = minute_limit
        self._day_window: deque[datetime] = deque()
        self._minute_window: deque[datetime] = deque()
        self._lock = threading.Lock()

    def check(self, provider: str = "2gis") -> None:
        if self.daily_limit <= 0 and self.minute_limit <= 0:
            return

        now = datetime.now(timezone.utc)
        with self._lock:
            if self.daily_limit > 0:
                threshold_day = now - timedelta(days=1)
                while self._day_window and self._day_window[0] < threshold_day:
                    self._day_window.popleft()
            if self.minute_limit > 0:
                threshold_minute = now - timedelta(minutes=1)
                while self._minute_window and self._minute_window[0] < threshold_minute:
                    self._minute_window.popleft()

            if self.daily_limit > 0 and len(self._day_window) >= self.daily_limit:
                raise RoutingRateLimitError(provider, "daily routing request limit reached")
            if self.minute_limit > 0 and len(self._minute_window) >= self.minute_limit:
                raise RoutingRateLimitError(provider, "per-minute routing request limit reached")

            self._day_window.append(now)
            self._minute_window.append(now)


def _json_body(response: requests.Response, provider: str) -> Any:
    if response.status_code != 200:
        raise ProviderError(provider, f"HTTP {response.status_code}")
    try:
        return response.json()
    except ValueError as exc:
        raise ProviderError(provider, "malformed JSON body") from exc


def search_places_nearby(
    keyword: str,
    lat: float,
    lng: float,
    *,
    radius: float,
    api_key: str,
    limit: int = 20,
    timeout: float = REQUEST_TIMEOUT,
) -> List[RawPoi]:
    """Keyword search in the 2GIS catalog around a point."""
    if not api_key:
        raise ProviderError("2gis", "2GIS_API_KEY missing")

    params = {
        "q": keyword,
        "key": api_key,
        "point": f"{lng},{lat}",
        "radius": int(radius),
        "sort": "distance",
        "page": 1,
        "page_size": max(1, min(limit, 50)),
        "fields": "items.point,items.address_name,items.schedule",
    }
    logger.debug("2GIS catalog search %r around (%s,%s) r=%s", keyword, lat, lng, int(radius))
    try:
        response = requests.get(PLACES_URL, params=params, timeout=timeout)
    except requests.RequestException as exc:
        raise ProviderError("2gis", str(exc)) from exc

    data = _json_body(response, "2gis")
    if not isinstance(data, dict):
        raise ProviderError("2gis", "unexpected payload")
    meta = data.get("meta") or {}
    code = meta.get("code", 200)
    if code == 404:
        # 2GIS reports "nothing found" as a 404 inside a 200 response
        return []
    if code != 200:
        raise ProviderError("2gis", f"API code {code}: {(meta.get('error') or {}).get('message', 'unknown error')}")

    results: List[RawPoi] = []
    for item in (data.get("result") or {}).get("items", []) or []:
        point = item.get("point") or {}
        if not point:
            continue
        results.append(
            {
                "id": f"2gis:{item.get('id')}",
                "name": item.get("name") or "",
                "address": item.get("address_name") or "",
                "lat": point.get("lat"),
                "lng": point.get("lon"),
                "open_hours": _describe_schedule(item.get("schedule")),
            }
        )
    return results


def _describe_schedule(schedule: object) -> Optional[str]:
    if not isinstance(schedule, dict):
        return None
    if schedule.get("is_24x7"):
        return "24h"
    for day in ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"):
        hours = (schedule.get(day) or {}).get("working_hours") or []
        if hours:
            first = hours[0]
            return f"{first.get('from')}-{first.get('to')}"
    return None


def overpass_toilets(
    url: str,
    lat: float,
    lng: float,
    *,
    radius: float,
    limit: int = 20,
    timeout: float = REQUEST_TIMEOUT,
) -> List[RawPoi]:
    """Query OpenStreetMap amenity=toilets around a point through Overpass."""
    query = (
        f"[out:json][timeout:{int(math.ceil(timeout))}];"
        f'(node["amenity"="toilets"](around:{int(radius)},{lat},{lng});'
        f'way["amenity"="toilets"](around:{int(radius)},{lat},{lng}););'
        f"out center {max(1, limit * 3)};"
    )
    logger.debug("Overpass toilets around (%s,%s) r=%s via %s", lat, lng, int(radius), url)
    try:
        response = requests.post(url, data={"data": query}, headers={"User-Agent": USER_AGENT}, timeout=timeout)
    except requests.RequestException as exc:
        raise ProviderError("overpass", str(exc)) from exc

    data = _json_body(response, "overpass")
    if not isinstance(data, dict) or not isinstance(data.get("elements"), list):
        raise ProviderError("overpass", "unexpected payload")

    results: List[RawPoi] = []
    for element in data["elements"]:
        if not isinstance(element, dict):
            continue
        center = element.get("center") or {}
        tags = element.get("tags") or {}
        results.append(
            {
                "id": f"osm:{element.get('type', 'node')}/{element.get('id')}",
                "name": tags.get("name") or tags.get("name:en") or "Public toilet",
                "address": _osm_address(tags),
                "lat": element.get("lat", center.get("lat")),
                "lng": element.get("lon", center.get("lon")),
                "open_hours": tags.get("opening_hours"),
            }
        )
    return results


def _osm_address(tags: Dict[str, Any]) -> str:
    parts = [tags.get("addr:street"), tags.get("addr:housenumber")]
    address = " ".join(str(part) for part in parts if part)
    if not address and tags.get("addr:full"):
        address = str(tags["addr:full"])
    return address


def route_2gis(
    start: Dict[str, float],
    destination: Dict[str, float],
    *,
    transport: str,
    api_key: str,
    limiter: Optional[RoutingRateLimiter] = None,
    locale: str = "en",
    timeout: float = REQUEST_TIMEOUT,
) -> Dict[str, object]:
    """Call 2GIS Routing 7.0 and return ``{distance_m, duration_sec, steps}``."""
    if not api_key:
        raise ProviderError("2gis", "2GIS_API_KEY missing")

    payload: Dict[str, object] = {
        "points": [
            {"type": "walking", "lon": start["lng"], "lat": start["lat"]},
            {"type": "walking", "lon": destination["lng"], "lat": destination["lat"]},
        ],
        "locale": locale,
        "transport": transport,
        "route_mode": "fastest",
        "output": "detailed",
    }
    if limiter is not None:
        limiter.check("2gis")
    logger.debug("2GIS routing %s request", transport)
    try:
        response = requests.post(ROUTING_V7_URL, params={"key": api_key}, json=payload, timeout=timeout)
    except requests.RequestException as exc:
        raise ProviderError("2gis", str(exc)) from exc

    routes_data = _extract_routes(_json_body(response, "2gis"))
    if not routes_data:
        raise ProviderError("2gis", "empty routing result")
    route_obj = routes_data[0]
    if not isinstance(route_obj, dict):
        raise ProviderError("2gis", "unexpected route shape")

    summary = _extract_summary(route_obj)
    steps = []
    for step in _iter_steps(route_obj):
        steps.append(
            {
                "instruction": step.get("comment") or step.get("instruction") or step.get("outcoming_path_comment") or "",
                "road_name": _extract_step_road(step),
                "distance_m": _extract_step_distance(step) or 0.0,
                "duration_sec": _extract_step_duration(step) or 0.0,
            }
        )
    summary["steps"] = steps
    return summary


def route_amap(
    start: Dict[str, float],
    destination: Dict[str, float],
    *,
    mode: str,
    api_key: str,
    timeout: float = REQUEST_TIMEOUT,
) -> Dict[str, object]:
    """Amap walking / bicycling direction API, normalized to the 2GIS shape."""
    if not api_key:
        raise ProviderError("amap", "AMAP_API_KEY missing")

    endpoint = "/direction/bicycling" if mode == "cycling" else "/direction/walking"
    params = {
        "key": api_key,
        "origin": f"{start['lng']},{start['lat']}",
        "destination": f"{destination['lng']},{destination['lat']}",
        "extensions": "all",
        "output": "json",
    }
    try:
        response = requests.get(AMAP_BASE_URL + endpoint, params=params, timeout=timeout)
    except requests.RequestException as exc:
        raise ProviderError("amap", str(exc)) from exc

    data = _json_body(response, "amap")
    if not isinstance(data, dict):
        raise ProviderError("amap", "unexpected payload")
    # bicycling answers with errcode/data, walking with status/route
    if "errcode" in data:
        if data.get("errcode") != 0:
            raise ProviderError("amap", f"API error: {data.get('errmsg', 'unknown')}")
        paths = (data.get("data") or {}).get("paths") or []
    else:
        if str(data.get("status")) != "1":
            raise ProviderError("amap", f"API error: {data.get('info', 'unknown')}")
        paths = (data.get("route") or {}).get("paths") or []
    if not paths:
        raise ProviderError("amap", "no route found")

    path = paths[0]
    steps = []
    for step in path.get("steps") or []:
        steps.append(
            {
                "instruction": step.get("instruction") or "",
                "road_name": step.get("road") or step.get("road_name") or "",
                "distance_m": _as_number(step.get("distance") or step.get("step_distance")) or 0.0,
                "duration_sec": _as_number(step.get("duration") or (step.get("cost") or {}).get("duration")) or 0.0,
            }
        )
    return {
        "distance_m": _as_number(path.get("distance")),
        "duration_sec": _as_number(path.get("duration") or (path.get("cost") or {}).get("duration")),
        "steps": steps,
    }


def _as_number(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _extract_routes(data: object) -> List[Dict[str, object]]:
    if isinstance(data, dict):
        result = data.get("result")
        if isinstance(result, list):
            return result
        if isinstance(result, dict):
            return result.get("routes") or result.get("items") or []
        routes = data.get("routes") or data.get("items")
        if isinstance(routes, list):
            return routes
        return []
    if isinstance(data, list) and data:
        first = data[0]
        if isinstance(first, dict):
            inner_result = first.get("result")
            if isinstance(inner_result, list):
                return inner_result
            return first.get("routes") or first.get("items") or []
    return []


def _extract_summary(route_obj: Dict[str, object]) -> Dict[str, object]:
    info = route_obj.get("summary") or route_obj.get("info") or {}
    if not isinstance(info, dict):
        info = {}
    distance = info.get("distance") or info.get("distance_meters") or info.get("length") or route_obj.get("total_distance")
    duration = info.get("duration") or info.get("time") or info.get("duration_seconds") or route_obj.get("total_duration")
    return {"distance_m": _as_number(distance), "duration_sec": _as_number(duration)}


def _iter_steps(route_obj: Dict[str, object]) -> Iterable[Dict[str, object]]:
    maneuvers = route_obj.get("maneuvers")
    if isinstance(maneuvers, list):
        for maneuver in maneuvers:
            if isinstance(maneuver, dict):
                yield maneuver
    legs = route_obj.get("legs")
    if isinstance(legs, list):
        for leg in legs:
            if not isinstance(leg, dict):
                continue
            steps = leg.get("steps") or leg.get("maneuvers") or leg.get("segments")
            if isinstance(steps, list):
                for step in steps:
                    if isinstance(step, dict):
                        yield step


def _extract_step_road(step: Dict[str, object]) -> str:
    path = step.get("outcoming_path") or {}
    names = path.get("names") if isinstance(path, dict) else None
    if isinstance(names, list) and names:
        return str(names[0])
    return str(step.get("road_name") or "")


def _extract_step_distance(step: Dict[str, object]) -> Optional[float]:
    path = step.get("outcoming_path") or {}
    if isinstance(path, dict) and isinstance(path.get("distance"), (int, float)):
        return float(path["distance"])
    for key in ("distance", "length", "meters", "distance_meters"):
        if key in step and isinstance(step[key], (int, float)):
            return float(step[key])
    return None


def _extract_step_duration(step: Dict[str, object]) -> Optional[float]:
    path = step.get("outcoming_path") or {}
    if isinstance(path, dict) and isinstance(path.get("duration"), (int, float)):
        return float(path["duration"])
    for key in ("duration", "time", "seconds", "duration_seconds"):
        if key in step and isinstance(step[key], (int, float)):
            return float(step[key])
    return None
