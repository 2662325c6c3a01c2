"""Built-in restroom set used when every remote source is unavailable."""
from __future__ import annotations

from typing import Dict, List

DEFAULT_CENTER = {"lat": 31.2304, "lng": 121.4737}

SEED_TOILETS: List[Dict[str, object]] = [
    {"id": "toilet_001", "name": "People's Square Metro Station WC", "address": "People's Square Station, B1", "lat": 31.2317, "lng": 121.4750, "open_hours": "06:00-23:00"},
    {"id": "toilet_002", "name": "East Nanjing Road Pedestrian Street WC", "address": "East Nanjing Road, middle section", "lat": 31.2342, "lng": 121.4789, "open_hours": "24h"},
    {"id": "toilet_003", "name": "Bund Sightseeing Tunnel WC", "address": "Bund Sightseeing Tunnel entrance", "lat": 31.2396, "lng": 121.4906, "open_hours": "07:00-22:00"},
    {"id": "toilet_004", "name": "Yuyuan Bazaar WC", "address": "Yuyuan Bazaar 1F, east side", "lat": 31.2267, "lng": 121.4920, "open_hours": "08:00-21:00"},
    {"id": "toilet_005", "name": "Xintiandi Plaza WC", "address": "Xintiandi Plaza B1", "lat": 31.2198, "lng": 121.4762, "open_hours": "24h"},
    {"id": "toilet_006", "name": "Jing'an Temple Metro Station WC", "address": "Jing'an Temple Station, exit 2", "lat": 31.2289, "lng": 121.4478, "open_hours": "06:00-23:30"},
    {"id": "toilet_007", "name": "Xujiahui Shopping District WC", "address": "Grand Gateway 66, B1", "lat": 31.1956, "lng": 121.4370, "open_hours": "07:00-22:30"},
    {"id": "toilet_008", "name": "Lujiazui Financial Centre WC", "address": "Lujiazui Ring Road, Super Brand Mall", "lat": 31.2352, "lng": 121.5058, "open_hours": "24h"},
    {"id": "toilet_009", "name": "Zhongshan Park Metro Station WC", "address": "Zhongshan Park Station", "lat": 31.2231, "lng": 121.4242, "open_hours": "06:00-23:00"},
    {"id": "toilet_010", "name": "Tianzifang Arts Street WC", "address": "Tianzifang, Taikang Road", "lat": 31.2108, "lng": 121.4661, "open_hours": "08:00-20:00"},
    {"id": "toilet_011", "name": "Shanghai Museum WC", "address": "201 Renmin Avenue", "lat": 31.2289, "lng": 121.4756, "open_hours": "09:00-17:00"},
    {"id": "toilet_012", "name": "City God Temple Tourist Area WC", "address": "Fangbang Middle Road", "lat": 31.2258, "lng": 121.4928, "open_hours": "07:00-21:00"},
    {"id": "toilet_013", "name": "Middle Huaihai Road WC", "address": "Middle Huaihai Road shopping street", "lat": 31.2198, "lng": 121.4689, "open_hours": "24h"},
    {"id": "toilet_014", "name": "Hongqiao Airport T2 WC", "address": "Hongqiao Airport Terminal 2", "lat": 31.1979, "lng": 121.3364, "open_hours": "24h"},
    {"id": "toilet_015", "name": "Shanghai Railway Station WC", "address": "Shanghai Railway Station", "lat": 31.2495, "lng": 121.4558, "open_hours": "24h"},
]


def get_seed_toilets() -> List[Dict[str, object]]:
    return [dict(item) for item in SEED_TOILETS]
