"""REST API blueprint exposing search, reachability, routing and link endpoints."""
from __future__ import annotations

import math
from http import HTTPStatus
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from .errors import NOTHING_FOUND_MESSAGE, LocationUnavailable
from .links import known_engines
from .models import Coordinate, LocationFix, PointOfInterest, RouteQuery, TravelMode
from .service import Collaborators, RestroomFinder

api_bp = Blueprint("api", __name__)

LOG_KINDS = {"location", "search"}


def _finder() -> RestroomFinder:
    return current_app.extensions["restroom_nav"]["finder"]


def _collaborators() -> Collaborators:
    return current_app.extensions["restroom_nav"]["collaborators"]


def _bad_request(message: Any):
    return jsonify({"error": message}), HTTPStatus.BAD_REQUEST


def _coordinate_args() -> Tuple[Optional[Coordinate], Optional[str]]:
    lat_param = request.args.get("lat")
    lng_param = request.args.get("lng")
    if lat_param is None or lng_param is None:
        return None, "lat and lng parameters are required"
    try:
        return Coordinate.from_lat_lng(lat_param, lng_param), None
    except ValueError:
        # pydantic's ValidationError is a ValueError
        return None, "lat/lng must be valid coordinates"


def _optional_float(name: str) -> Tuple[Optional[float], Optional[str]]:
    value = request.args.get(name)
    if value is None or value == "":
        return None, None
    try:
        number = float(value)
    except ValueError:
        return None, f"{name} must be numeric"
    if not math.isfinite(number):
        return None, f"{name} must be a finite number"
    if number < 0:
        return None, f"{name} must not be negative"
    return number, None


def _mode_arg(value: Optional[str]) -> Tuple[TravelMode, Optional[str]]:
    if not value:
        return TravelMode.WALKING, None
    try:
        return TravelMode(value.strip().lower()), None
    except ValueError:
        return TravelMode.WALKING, "mode must be walking or cycling"


def _poi_json(poi) -> Dict[str, Any]:
    return poi.model_dump(mode="json")


@api_bp.get("/toilets")
async def toilets():
    origin, error = _coordinate_args()
    if error:
        return _bad_request(error)
    radius, error = _optional_float("radius")
    if error:
        return _bad_request(error)
    limit_param = request.args.get("limit")
    try:
        limit = int(limit_param) if limit_param else None
    except ValueError:
        return _bad_request("limit must be an integer")
    if limit is not None and limit <= 0:
        return _bad_request("limit must be positive")

    results = await _finder().search(origin, radius or None, limit)
    response: Dict[str, Any] = {
        "results": [_poi_json(poi) for poi in results],
        "source": results[0].source if results else None,
    }
    if not results:
        response["message"] = NOTHING_FOUND_MESSAGE
    return jsonify(response)


@api_bp.get("/toilets/nearest")
async def nearest_toilet():
    origin, error = _coordinate_args()
    if error:
        return _bad_request(error)
    radius, error = _optional_float("radius")
    if error:
        return _bad_request(error)
    time_limit, error = _optional_float("time_limit")
    if error:
        return _bad_request(error)
    mode, error = _mode_arg(request.args.get("mode"))
    if error:
        return _bad_request(error)

    try:
        result = await _finder().find(
            LocationFix(coordinate=origin),
            radius_meters=radius or None,
            mode=mode,
            time_limit_minutes=time_limit,
        )
    except LocationUnavailable as exc:
        return jsonify({"error": exc.user_message}), HTTPStatus.UNPROCESSABLE_ENTITY

    if result.best is None:
        return jsonify({"toilet": None, "candidates": len(result.candidates), "message": result.message})
    estimate = result.best.estimate
    return jsonify(
        {
            "toilet": _poi_json(result.best.poi),
            "estimate": estimate.model_dump(mode="json") if estimate else None,
            "candidates": len(result.candidates),
        }
    )


@api_bp.post("/route/estimate")
async def route_estimate():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _bad_request("request body must be a JSON object")
    origin = payload.get("origin")
    destination = payload.get("destination")
    if not isinstance(origin, dict) or not isinstance(destination, dict):
        return _bad_request("origin and destination must include lat/lng")
    try:
        query = RouteQuery(
            origin=Coordinate.from_lat_lng(origin.get("lat"), origin.get("lng")),
            destination=Coordinate.from_lat_lng(destination.get("lat"), destination.get("lng")),
            mode=payload.get("mode") or TravelMode.WALKING,
            time_limit_minutes=payload.get("time_limit"),
        )
    except ValidationError as exc:
        return _bad_request(exc.errors(include_url=False, include_context=False))
    except (TypeError, ValueError):
        return _bad_request("origin and destination must include lat/lng")

    estimate = await _finder().reachability.estimator.estimate(query)
    body = estimate.model_dump(mode="json")
    if query.time_limit_minutes is not None:
        body["within_time_limit"] = estimate.duration_minutes <= query.time_limit_minutes
    return jsonify(body)


@api_bp.get("/navigation/links")
def navigation_links():
    destination, error = _coordinate_args()
    if error:
        return _bad_request(error)
    mode, error = _mode_arg(request.args.get("mode"))
    if error:
        return _bad_request(error)
    name = (request.args.get("name") or "Restroom").strip() or "Restroom"
    engine = (request.args.get("engine") or _collaborators().settings_store.preferred_engine()).strip().lower()

    poi = PointOfInterest(id="link-target", name=name, coordinate=destination)
    candidates = _finder().dispatcher.candidates_for(poi, mode, engine)
    return jsonify({"engine": engine, "links": [candidate.model_dump() for candidate in candidates]})


@api_bp.get("/settings/engine")
def get_engine():
    return jsonify({"engine": _collaborators().settings_store.preferred_engine(), "available": list(known_engines())})


@api_bp.put("/settings/engine")
def put_engine():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _bad_request("request body must be a JSON object")
    engine = str(payload.get("engine") or "").strip().lower()
    if engine not in known_engines():
        return _bad_request(f"engine must be one of {list(known_engines())}")

    store = _collaborators().settings_store
    setter = getattr(store, "set_preferred_engine", None)
    if setter is None:
        return jsonify({"error": "settings store is read-only"}), HTTPStatus.METHOD_NOT_ALLOWED
    try:
        setter(engine)
    except OSError:
        current_app.logger.exception("Failed to write settings")
        return jsonify({"error": "failed to update settings"}), HTTPStatus.INTERNAL_SERVER_ERROR
    return jsonify({"engine": engine})


@api_bp.get("/logs/<kind>")
def logs(kind: str):
    if kind not in LOG_KINDS:
        return jsonify({"error": "unknown log"}), HTTPStatus.NOT_FOUND
    collaborators = _collaborators()
    store = collaborators.location_log if kind == "location" else collaborators.search_log
    return jsonify({"logs": [record.model_dump() for record in store.get_all()]})
