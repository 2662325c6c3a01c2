"""Pick the nearest restroom that can be reached within a time budget."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .models import Coordinate, PointOfInterest, RouteEstimate, RouteQuery, TravelMode
from .routing import RouteEstimator, is_within_time_limit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReachableResult:
    poi: PointOfInterest
    # None when no time budget was given and routing was skipped
    estimate: Optional[RouteEstimate] = None


class ReachabilityFilter:
    def __init__(self, estimator: RouteEstimator) -> None:
        self.estimator = estimator

    async def filter_reachable(
        self,
        candidates: Sequence[PointOfInterest],
        origin: Coordinate,
        mode: TravelMode,
        time_limit_minutes: Optional[float] = None,
    ) -> Optional[ReachableResult]:
        """Return the first candidate, in distance order, that fits the budget.

        Candidates must already be sorted by ascending distance, as the
        aggregator returns them. Evaluation stops at the first acceptable
        candidate. ``None`` means nothing fits; the budget is never relaxed.
        """
        if not candidates:
            return None
        if time_limit_minutes is None:
            return ReachableResult(poi=candidates[0])

        for poi in candidates:
            query = RouteQuery(
                origin=origin,
                destination=poi.coordinate,
                mode=mode,
                time_limit_minutes=time_limit_minutes,
            )
            estimate = await self.estimator.estimate(query)
            if is_within_time_limit(estimate, time_limit_minutes):
                return ReachableResult(poi=poi, estimate=estimate)
            logger.debug(
                "%s needs %.1f min (%s), over the %.1f min budget",
                poi.id,
                estimate.duration_minutes,
                estimate.source.value,
                time_limit_minutes,
            )

        logger.info("No restroom reachable within %.1f min by %s", time_limit_minutes, mode.value)
        return None
