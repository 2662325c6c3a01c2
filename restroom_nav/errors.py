"""Error taxonomy shared by the search, routing and navigation chains."""
from __future__ import annotations

from typing import Dict, Optional

NOTHING_FOUND_MESSAGE = "Nothing usable found nearby."
LAUNCH_FAILED_MESSAGE = "Couldn't open a navigation app."
LOCATION_MESSAGE = "Current location is unavailable."


class RestroomNavError(RuntimeError):
    """Base class for every error raised by this package."""

    user_message = NOTHING_FOUND_MESSAGE


class ProviderError(RestroomNavError):
    """A remote provider answered with an HTTP failure or a malformed body."""

    def __init__(self, provider: str, detail: str) -> None:
        super().__init__(f"{provider}: {detail}")
        self.provider = provider
        self.detail = detail


class ProviderTimeout(ProviderError):
    """A provider call exceeded its time budget."""

    def __init__(self, provider: str, timeout: float) -> None:
        super().__init__(provider, f"timed out after {timeout:g}s")
        self.timeout = timeout


class RoutingRateLimitError(ProviderError):
    """Raised when routing API rate limit is reached."""


class SearchError(RestroomNavError):
    """Every search strategy raised; zero results is not this error."""

    def __init__(self, failures: Dict[str, str]) -> None:
        summary = "; ".join(f"{name}: {reason}" for name, reason in failures.items())
        super().__init__(f"all search strategies failed ({summary})")
        self.failures = failures


class LaunchRejected(RestroomNavError):
    """The platform declined to open a URI."""

    user_message = LAUNCH_FAILED_MESSAGE

    def __init__(self, uri: str, reason: str) -> None:
        super().__init__(f"launch rejected for {uri}: {reason}")
        self.uri = uri
        self.reason = reason


class AllCandidatesExhausted(RestroomNavError):
    """No navigation link could be launched. Recoverable, shown to the user."""

    user_message = LAUNCH_FAILED_MESSAGE

    def __init__(self, engine: str, attempts: int, outcome: Optional[object] = None) -> None:
        super().__init__(f"no navigation app could be launched ({attempts} links tried, engine={engine})")
        self.engine = engine
        self.attempts = attempts
        self.outcome = outcome


class LocationUnavailable(RestroomNavError):
    """Location permission was denied or the location service is disabled."""

    user_message = LOCATION_MESSAGE

    def __init__(self, status: str) -> None:
        super().__init__(f"location unavailable: {status}")
        self.status = status
