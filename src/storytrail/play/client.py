"""Async HTTP client for the StoryTrail API, as used by a player session."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from storytrail.geo.geofence import Coordinate
from storytrail.validation.answers import NO_CHOICE

logger = structlog.get_logger()


class ClientError(Exception):
    """Non-2xx response from the API, carrying its ``{"error": ...}`` message."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class StoryTrailClient:
    """Thin wrapper over ``httpx.AsyncClient`` that speaks the API's JSON.

    Pass ``http`` to reuse an existing client (e.g. one bound to an ASGI
    transport); otherwise one is created for ``base_url`` and closed by
    ``aclose()``.
    """

    def __init__(
        self,
        base_url: str = "",
        token: str | None = None,
        *,
        http: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}

    async def __aenter__(self) -> StoryTrailClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._http.request(method, path, headers=self._headers, **kwargs)
        if response.is_error:
            try:
                message = response.json().get("error", response.reason_phrase)
            except ValueError:
                message = response.text or response.reason_phrase
            logger.info("api_request_failed", method=method, path=path, status=response.status_code)
            raise ClientError(response.status_code, message)
        return response.json()

    async def list_waypoints(self, trail_id: str) -> list[dict[str, Any]]:
        data = await self._request("GET", f"/api/v1/trails/{trail_id}/waypoints")
        return data["waypoints"]

    async def progress(self, trail_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/api/v1/trails/{trail_id}/progress")

    async def get_completion(self, trail_id: str) -> dict[str, Any] | None:
        return await self._request("GET", f"/api/v1/trails/{trail_id}/completion")

    async def record_completion(self, trail_id: str, completion_time_ms: int) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/api/v1/trails/{trail_id}/completion",
            json={"completion_time_ms": completion_time_ms},
        )

    async def validate_answer(
        self,
        trail_id: str,
        waypoint_id: str,
        answer_index: int = NO_CHOICE,
        free_text: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"cityId": trail_id, "locationId": waypoint_id, "answerIndex": answer_index}
        if free_text is not None:
            body["freeTextAnswer"] = free_text
        return await self._request("POST", "/validate-answer", json=body)

    async def check_presence(
        self,
        trail_id: str,
        waypoint_id: str,
        position: Coordinate | None = None,
        *,
        override: bool = False,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"override": override}
        if position is not None:
            body["latitude"], body["longitude"] = position
        return await self._request(
            "POST",
            f"/api/v1/trails/{trail_id}/waypoints/{waypoint_id}/presence",
            json=body,
        )

    async def playtest_enabled(self) -> bool:
        data = await self._request("GET", "/api/v1/settings/playtest")
        return bool(data["enabled"])

    async def leaderboard(self, trail_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/api/v1/leaderboard/{trail_id}")
