"""Data models shared by the search, routing and navigation chains."""
from __future__ import annotations

import math
import time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Coordinate(BaseModel):
    """A WGS84 point."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

    @field_validator("latitude", "longitude")
    @classmethod
    def validate_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinate must be finite")
        return value

    @classmethod
    def from_lat_lng(cls, lat: Any, lng: Any) -> "Coordinate":
        return cls(latitude=float(lat), longitude=float(lng))

    def to_lat_lng(self) -> Dict[str, float]:
        """Return the {lat, lng} shape used by the HTTP layer."""
        return {"lat": self.latitude, "lng": self.longitude}


class TravelMode(str, Enum):
    WALKING = "walking"
    CYCLING = "cycling"


class PointOfInterest(BaseModel):
    """A restroom facility. distance_meters is filled in by the aggregator."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    address: str = ""
    coordinate: Coordinate
    distance_meters: Optional[float] = None
    open_hours: Optional[str] = None
    source: str = "unknown"

    @field_validator("id")
    @classmethod
    def validate_id(cls, value: str) -> str:
        if not value:
            raise ValueError("id is required")
        return value


class SearchQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    center: Coordinate
    radius_meters: float = Field(gt=0)
    result_limit: int = Field(default=20, gt=0)


class RouteSource(str, Enum):
    LIVE = "live"
    ESTIMATED = "estimated"


class RouteQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    origin: Coordinate
    destination: Coordinate
    mode: TravelMode = TravelMode.WALKING
    time_limit_minutes: Optional[float] = Field(default=None, ge=0)


class RouteStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    instruction: str = ""
    road_name: str = ""
    distance_meters: float = 0.0
    duration_seconds: float = 0.0


class RouteEstimate(BaseModel):
    """Distance and duration of a route plus where the numbers came from."""

    model_config = ConfigDict(frozen=True)

    distance_meters: float = Field(ge=0)
    duration_seconds: float = Field(ge=0)
    source: RouteSource
    provider: Optional[str] = None
    steps: List[RouteStep] = Field(default_factory=list)

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60.0


class LinkCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: str
    engine: str
    rank: int = Field(ge=0)


class DispatchAttempt(BaseModel):
    """A candidate that did not open. skipped marks a negative capability probe."""

    model_config = ConfigDict(frozen=True)

    uri: str
    engine: str
    failure_reason: str
    skipped: bool = False


class DispatchOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    succeeded_uri: Optional[str] = None
    succeeded_engine: Optional[str] = None
    attempted: List[DispatchAttempt] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.succeeded_uri is not None


class LogRecord(BaseModel):
    """One append-only log entry. Search records also carry radius and count."""

    model_config = ConfigDict(frozen=True)

    timestamp: float = Field(default_factory=time.time)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    message: str = ""
    radius_meters: Optional[float] = None
    result_count: Optional[int] = None


class LocationStatus(str, Enum):
    AVAILABLE = "available"
    PERMISSION_DENIED = "permission_denied"
    SERVICE_DISABLED = "service_disabled"


class LocationFix(BaseModel):
    """What the location collaborator hands over for one request."""

    model_config = ConfigDict(frozen=True)

    coordinate: Optional[Coordinate] = None
    status: LocationStatus = LocationStatus.AVAILABLE

    @property
    def usable(self) -> bool:
        return self.status == LocationStatus.AVAILABLE and self.coordinate is not None
