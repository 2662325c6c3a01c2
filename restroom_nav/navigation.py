"""Ordered launch of navigation deep links with per-link capability probing."""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import List, Optional

from .launcher import Launcher
from .links import DEFAULT_ENGINE, build_link_candidates
from .models import DispatchAttempt, DispatchOutcome, LinkCandidate, LogRecord, PointOfInterest, TravelMode
from .stores import LogStore

logger = logging.getLogger(__name__)

DEFAULT_LAUNCH_TIMEOUT = 5.0
PROBE_DECLINED = "no installed application handles this link"


class DispatchState(str, Enum):
    IDLE = "idle"
    PROBING = "probing"
    LAUNCHING = "launching"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


class NavigationDispatcher:
    """Walks the link candidates until one opens.

    States per call: IDLE -> PROBING(i) -> LAUNCHING(i) -> SUCCEEDED, or back
    to PROBING(i+1); EXHAUSTED once the list runs out. A negative probe skips
    the link without a launch attempt. Each launch tries application
    invocation first and link opening second.
    """

    def __init__(
        self,
        launcher: Launcher,
        log_store: LogStore,
        *,
        launch_timeout: float = DEFAULT_LAUNCH_TIMEOUT,
        default_engine: str = DEFAULT_ENGINE,
    ) -> None:
        self.launcher = launcher
        self.log_store = log_store
        self.launch_timeout = launch_timeout
        self.default_engine = default_engine

    def candidates_for(self, destination: PointOfInterest, mode: TravelMode, preferred_engine: str) -> List[LinkCandidate]:
        return build_link_candidates(destination, mode, preferred_engine, default_engine=self.default_engine)

    async def dispatch(
        self,
        destination: PointOfInterest,
        mode: TravelMode,
        preferred_engine: str,
    ) -> DispatchOutcome:
        candidates = self.candidates_for(destination, mode, preferred_engine)
        attempted: List[DispatchAttempt] = []
        self._transition(DispatchState.IDLE, None)

        for candidate in candidates:
            self._transition(DispatchState.PROBING, candidate.rank)
            if await self._probe(candidate.uri) is False:
                attempted.append(
                    DispatchAttempt(uri=candidate.uri, engine=candidate.engine, failure_reason=PROBE_DECLINED, skipped=True)
                )
                continue

            self._transition(DispatchState.LAUNCHING, candidate.rank)
            failure = await self._launch(candidate.uri)
            if failure is None:
                self._transition(DispatchState.SUCCEEDED, candidate.rank)
                logger.info("Opened navigation via %s (%s)", candidate.engine, candidate.uri)
                return DispatchOutcome(
                    succeeded_uri=candidate.uri,
                    succeeded_engine=candidate.engine,
                    attempted=attempted,
                )
            logger.warning("Navigation link %s failed: %s", candidate.uri, failure)
            attempted.append(DispatchAttempt(uri=candidate.uri, engine=candidate.engine, failure_reason=failure))

        self._transition(DispatchState.EXHAUSTED, None)
        self._record_exhaustion(destination, preferred_engine, len(candidates))
        return DispatchOutcome(attempted=attempted)

    def _transition(self, state: DispatchState, index: Optional[int]) -> None:
        if index is None:
            logger.debug("dispatch -> %s", state.value)
        else:
            logger.debug("dispatch -> %s(%s)", state.value, index)

    async def _probe(self, uri: str) -> Optional[bool]:
        try:
            return await asyncio.wait_for(self.launcher.can_open(uri), timeout=self.launch_timeout)
        except asyncio.TimeoutError:
            logger.info("Capability probe timed out for %s, attempting launch anyway", uri)
        except Exception as exc:  # pylint: disable=broad-except
            logger.info("Capability probe failed for %s, attempting launch anyway: %s", uri, exc)
        return None

    async def _launch(self, uri: str) -> Optional[str]:
        """Return None on success, otherwise the joined failure reasons of both paths."""
        reasons: List[str] = []
        for label, opener in (("application", self.launcher.start_application), ("link", self.launcher.open_link)):
            try:
                await asyncio.wait_for(opener(uri), timeout=self.launch_timeout)
                return None
            except asyncio.TimeoutError:
                reasons.append(f"{label}: timed out after {self.launch_timeout:g}s")
            except Exception as exc:  # pylint: disable=broad-except
                reasons.append(f"{label}: {exc}")
        return "; ".join(reasons)

    def _record_exhaustion(self, destination: PointOfInterest, engine: str, tried: int) -> None:
        record = LogRecord(
            latitude=destination.coordinate.latitude,
            longitude=destination.coordinate.longitude,
            message=f"navigation failed for {destination.name}: engine={engine or self.default_engine}, {tried} links tried",
        )
        try:
            self.log_store.append_entry(record)
        except OSError:
            logger.exception("Failed to write navigation failure log")
