"""Deep-link construction for external navigation applications."""
from __future__ import annotations

from typing import Callable, Dict, List, Tuple
from urllib.parse import quote

from .models import LinkCandidate, PointOfInterest, TravelMode

GENERIC_ENGINE = "geo"
WEB_ENGINE = "web"
DEFAULT_ENGINE = "huawei"

LinkFactory = Callable[[str, str, str, TravelMode], List[str]]


def _huawei_links(lat: str, lng: str, name: str, mode: TravelMode) -> List[str]:
    # Petal Maps versions disagree on parameter names, so try each known form
    nav_type = "walk" if mode == TravelMode.WALKING else "bike"
    vehicle = 1 if mode == TravelMode.WALKING else 2
    return [
        f"petalmaps://routePlan?destLat={lat}&destLng={lng}&destName={name}&navType={nav_type}",
        f"petalmaps://routePlan?dlat={lat}&dlon={lng}&dname={name}&navType={nav_type}",
        f"petalmaps://navigation?dlat={lat}&dlon={lng}&dname={name}&mode={nav_type}",
        f"mapapp://navigation?daddr={lat},{lng}&dname={name}&vehicle={vehicle}",
    ]


def _amap_links(lat: str, lng: str, name: str, mode: TravelMode) -> List[str]:
    # t: 2 walking, 3 riding
    route_type = 2 if mode == TravelMode.WALKING else 3
    return [f"amapuri://route/plan/?dlat={lat}&dlon={lng}&dname={name}&dev=0&t={route_type}"]


def _baidu_links(lat: str, lng: str, name: str, mode: TravelMode) -> List[str]:
    baidu_mode = "walking" if mode == TravelMode.WALKING else "riding"
    return [
        f"baidumap://map/direction?destination=latlng:{lat},{lng}|name:{name}&coord_type=wgs84&mode={baidu_mode}"
    ]


def _tencent_links(lat: str, lng: str, name: str, mode: TravelMode) -> List[str]:
    route_type = "walk" if mode == TravelMode.WALKING else "bike"
    return [f"qqmap://map/routeplan?type={route_type}&to={name}&tocoord={lat},{lng}"]


# registry order is the order non-preferred engines are tried in
ENGINES: Dict[str, LinkFactory] = {
    "huawei": _huawei_links,
    "amap": _amap_links,
    "baidu": _baidu_links,
    "tencent": _tencent_links,
}


def known_engines() -> Tuple[str, ...]:
    return tuple(ENGINES)


def generic_link(lat: str, lng: str, name: str) -> str:
    return f"geo:{lat},{lng}?q={lat},{lng}({name})"


def web_link(lat: str, lng: str, mode: TravelMode) -> str:
    travel_mode = "walking" if mode == TravelMode.WALKING else "bicycling"
    return f"https://www.google.com/maps/dir/?api=1&destination={lat},{lng}&travelmode={travel_mode}"


def build_link_candidates(
    destination: PointOfInterest,
    mode: TravelMode,
    preferred_engine: str,
    *,
    default_engine: str = DEFAULT_ENGINE,
) -> List[LinkCandidate]:
    """Ordered links: preferred engine, other engines, ``geo:`` link, web fallback.

    The list is never empty; the web link is always the last rank.
    """
    lat = f"{destination.coordinate.latitude:.6f}"
    lng = f"{destination.coordinate.longitude:.6f}"
    name = quote(destination.name or "Restroom", safe="")

    engine = (preferred_engine or "").strip().lower()
    if engine not in ENGINES:
        engine = default_engine if default_engine in ENGINES else DEFAULT_ENGINE
    order = [engine] + [other for other in ENGINES if other != engine]

    uris: List[Tuple[str, str]] = []
    for engine_name in order:
        for uri in ENGINES[engine_name](lat, lng, name, mode):
            uris.append((uri, engine_name))
    uris.append((generic_link(lat, lng, name), GENERIC_ENGINE))
    uris.append((web_link(lat, lng, mode), WEB_ENGINE))

    return [LinkCandidate(uri=uri, engine=engine_name, rank=rank) for rank, (uri, engine_name) in enumerate(uris)]
