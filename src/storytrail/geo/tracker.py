"""Latest-value view over an asynchronous stream of device position samples.

The device (or a test) supplies an async iterator yielding ``Fix`` or
``PositionError`` items. ``PositionTracker`` drains it in a background task
and callers *pull* the newest state whenever they need to check presence;
nothing ever waits for a fix to arrive.
"""

from __future__ import annotations

import asyncio
import enum
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

import structlog

from storytrail.geo import geofence
from storytrail.geo.geofence import PRESENCE_RADIUS_M, Coordinate

logger = structlog.get_logger()


@dataclass(frozen=True)
class Fix:
    latitude: float
    longitude: float
    accuracy_m: float | None = None
    timestamp: float = field(default_factory=time.time)

    @property
    def coordinate(self) -> Coordinate:
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class PositionError:
    """Producer-reported failure, e.g. permission denied or no signal."""

    message: str
    code: str = "unavailable"


class NoFix:
    """Sentinel state before the first sample arrives."""

    def __repr__(self) -> str:
        return "NO_FIX"


NO_FIX = NoFix()

PositionState = Fix | PositionError | NoFix


class PresenceStatus(str, enum.Enum):
    PRESENT = "present"
    FAR = "far"
    NO_FIX = "no_fix"
    ERROR = "error"
    NO_WAYPOINT_LOCATION = "no_waypoint_location"

    @property
    def is_present(self) -> bool:
        return self is PresenceStatus.PRESENT


class PositionTracker:
    """Consumes a position stream in the background; exposes only the latest state."""

    def __init__(self, source: AsyncIterator[Fix | PositionError]) -> None:
        self._source = source
        self._latest: PositionState = NO_FIX
        self._task: asyncio.Task[None] | None = None

    @property
    def latest(self) -> PositionState:
        return self._latest

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Begin draining the source. Calling start twice is a no-op."""
        if self._task is None:
            self._task = asyncio.create_task(self._consume())

    async def stop(self) -> None:
        """Cancel the consumer task and wait for it to unwind."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _consume(self) -> None:
        try:
            async for sample in self._source:
                self._latest = sample
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("position_source_failed", error=str(exc))
            self._latest = PositionError(message=str(exc) or type(exc).__name__)

    def coordinate(self) -> Coordinate | None:
        """Current coordinate, or None when there is no usable fix."""
        state = self._latest
        return state.coordinate if isinstance(state, Fix) else None

    def presence(self, waypoint: Coordinate | None, radius_m: float = PRESENCE_RADIUS_M) -> PresenceStatus:
        """Classify the latest sample against a waypoint without blocking."""
        state = self._latest
        if isinstance(state, PositionError):
            return PresenceStatus.ERROR
        if isinstance(state, NoFix):
            return PresenceStatus.NO_FIX
        if waypoint is None:
            return PresenceStatus.NO_WAYPOINT_LOCATION
        return PresenceStatus.PRESENT if geofence.is_present(state.coordinate, waypoint, radius_m) else PresenceStatus.FAR
