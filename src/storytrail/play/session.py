"""One player's run through a trail, driven from the client side.

``TrailSession`` keeps a local copy of waypoint state so the UI can decide
what to show without a round trip, while every answer is still judged by the
server. It owns the run timer: the clock starts the first time the player is
at (or has already solved) the first stop, and stops on the correct answer at
the end stop. The stopped time is posted until the server acknowledges it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from storytrail.completion.timer import RunTimer
from storytrail.geo.geofence import PRESENCE_RADIUS_M, Coordinate
from storytrail.geo.tracker import PositionTracker, PresenceStatus
from storytrail.play.client import StoryTrailClient
from storytrail.trails import sequencer
from storytrail.trails.sequencer import WaypointState
from storytrail.validation.answers import NO_CHOICE

logger = structlog.get_logger()


class SessionError(Exception):
    """Client-side refusal, raised before anything is sent to the server."""


@dataclass(frozen=True)
class WaypointInfo:
    """Public waypoint data as listed by the API."""

    id: str
    sequence_order: int
    name: str
    latitude: float | None
    longitude: float | None
    is_intro_location: bool
    is_end_location: bool
    answer_type: str
    intro_text: str | None = None
    riddle_text: str | None = None
    answer_options: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> WaypointInfo:
        return cls(
            id=data["id"],
            sequence_order=data["sequence_order"],
            name=data["name"],
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            is_intro_location=data["is_intro_location"],
            is_end_location=data["is_end_location"],
            answer_type=data["answer_type"],
            intro_text=data.get("intro_text"),
            riddle_text=data.get("riddle_text"),
            answer_options=tuple(data.get("answer_options") or ()),
        )

    @property
    def coordinate(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)


@dataclass
class WaypointView:
    waypoint: WaypointInfo
    state: WaypointState
    presence: PresenceStatus
    timer_started: bool = False


@dataclass
class SubmitOutcome:
    correct: bool
    clue_text: str | None = None
    completion: dict[str, Any] | None = None
    unlocked: list[str] = field(default_factory=list)


class TrailSession:
    def __init__(
        self,
        client: StoryTrailClient,
        trail_id: str,
        *,
        tracker: PositionTracker | None = None,
        timer: RunTimer | None = None,
        radius_m: float = PRESENCE_RADIUS_M,
    ) -> None:
        self.client = client
        self.trail_id = trail_id
        self.tracker = tracker
        self.timer = timer or RunTimer()
        self.radius_m = radius_m
        self.waypoints: list[WaypointInfo] = []
        self.completed_ids: set[str] = set()
        self.prior_completion: dict[str, Any] | None = None
        self.playtest_enabled = False
        self._overrides: set[str] = set()

    async def load(self) -> None:
        """Fetch waypoints, progress and any earlier completion.

        A player who has already finished this trail never gets a running
        timer again, whatever they revisit.
        """
        await self._load_waypoints()
        progress = await self.client.progress(self.trail_id)
        self.completed_ids = set(progress["completed_waypoint_ids"])
        self.prior_completion = await self.client.get_completion(self.trail_id)
        self.playtest_enabled = await self.client.playtest_enabled()

        if self.prior_completion is not None or progress["finished"]:
            self.timer.disable()
            logger.info("run_timer_disabled", trail_id=self.trail_id)

    async def _load_waypoints(self) -> None:
        listed = await self.client.list_waypoints(self.trail_id)
        self.waypoints = sorted((WaypointInfo.from_api(w) for w in listed), key=lambda w: w.sequence_order)

    def waypoint(self, waypoint_id: str) -> WaypointInfo:
        for w in self.waypoints:
            if w.id == waypoint_id:
                return w
        msg = f"unknown waypoint {waypoint_id}"
        raise SessionError(msg)

    def presence(self, waypoint_id: str) -> PresenceStatus:
        if waypoint_id in self._overrides:
            return PresenceStatus.PRESENT
        if self.tracker is None:
            return PresenceStatus.NO_FIX
        return self.tracker.presence(self.waypoint(waypoint_id).coordinate, self.radius_m)

    def state(self, waypoint_id: str) -> WaypointState:
        return sequencer.derive_state(
            self.waypoint(waypoint_id),
            self.waypoints,
            self.completed_ids,
            present=self.presence(waypoint_id).is_present,
        )

    def view(self, waypoint_id: str) -> WaypointView:
        """What the player sees at a waypoint; may start the run timer."""
        waypoint = self.waypoint(waypoint_id)
        presence = self.presence(waypoint_id)
        state = self.state(waypoint_id)
        started = self._maybe_start_timer(waypoint_id, state)
        return WaypointView(waypoint=waypoint, state=state, presence=presence, timer_started=started)

    def _maybe_start_timer(self, waypoint_id: str, state: WaypointState | None = None) -> bool:
        """Start the clock once the player is at, or has solved, the first stop."""
        first = sequencer.first_waypoint(self.waypoints)
        if first is None or first.id != waypoint_id:
            return False
        if state is None:
            state = self.state(waypoint_id)
        if state not in (WaypointState.ARRIVED, WaypointState.COMPLETED):
            return False
        started = self.timer.start()
        if started:
            logger.info("run_timer_started", trail_id=self.trail_id)
        return started

    def riddle_for(self, waypoint_id: str) -> str | None:
        """Riddle text, only once the player has arrived or solved the stop."""
        if self.state(waypoint_id) in (WaypointState.ARRIVED, WaypointState.COMPLETED):
            return self.waypoint(waypoint_id).riddle_text
        return None

    async def mark_present(self, waypoint_id: str) -> bool:
        """Operator "I'm here" override. Only takes effect while play-testing."""
        result = await self.client.check_presence(
            self.trail_id,
            waypoint_id,
            self.tracker.coordinate() if self.tracker else None,
            override=True,
        )
        if result["overridden"]:
            self._overrides.add(waypoint_id)
            self._maybe_start_timer(waypoint_id)
        return bool(result["present"])

    async def submit(
        self,
        waypoint_id: str,
        answer_index: int = NO_CHOICE,
        free_text: str | None = None,
    ) -> SubmitOutcome:
        """Send an answer to the server and apply the verdict locally.

        Answers are only sent once the player has arrived at the stop (or
        solved it before). Re-submitting the end stop after a failed
        completion write posts the stopped time again.
        """
        waypoint = self.waypoint(waypoint_id)
        state = self.state(waypoint_id)
        if state is WaypointState.LOCKED:
            msg = f"waypoint {waypoint_id} is locked"
            raise SessionError(msg)
        if state is WaypointState.UNLOCKED:
            msg = f"not at waypoint {waypoint_id} yet"
            raise SessionError(msg)

        result = await self.client.validate_answer(self.trail_id, waypoint_id, answer_index, free_text)
        if not result["correct"]:
            return SubmitOutcome(correct=False)

        before = {w.id for w in self.waypoints if sequencer.is_unlocked(w, self.waypoints, self.completed_ids)}
        self.completed_ids.add(waypoint_id)
        # Newly unlocked stops only get their story text from a fresh listing.
        await self._load_waypoints()
        after = {w.id for w in self.waypoints if sequencer.is_unlocked(w, self.waypoints, self.completed_ids)}
        self._maybe_start_timer(waypoint_id)

        outcome = SubmitOutcome(
            correct=True,
            clue_text=result.get("clue_text"),
            unlocked=sorted(after - before),
        )

        if waypoint.is_end_location:
            self.timer.stop()
            outcome.completion = await self.retry_completion()
        return outcome

    @property
    def completion_pending(self) -> bool:
        """A stopped run whose time the server has not acknowledged yet."""
        return self.timer.final_time_ms is not None and self.prior_completion is None

    async def retry_completion(self) -> dict[str, Any] | None:
        """Post the stopped run time if it has not been recorded yet.

        The write is idempotent server-side, so calling this after a failed
        attempt is safe. Returns None when there is nothing to post.
        """
        if not self.completion_pending:
            return None
        elapsed = self.timer.final_time_ms
        completion = await self.client.record_completion(self.trail_id, elapsed)
        self.prior_completion = completion
        logger.info("run_completed", trail_id=self.trail_id, completion_time_ms=elapsed)
        return completion
