"""Shared test fixtures.

Every test gets its own throwaway SQLite file (via aiosqlite) and no Redis,
so rate limiting and leaderboard caching step aside.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from types import SimpleNamespace
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from storytrail.auth.jwt import create_access_token
from storytrail.config import get_settings
from storytrail.database import close_db, create_schema, get_session, init_db
from storytrail.db.models import AppSetting, CompletionRecord, Profile, ProgressRecord, Purchase, Trail, Waypoint
from storytrail.main import create_app
from storytrail.settings.service import PLAYTEST_KEY

TEST_JWT_SECRET = "storytrail-test-secret-0123456789abcdef"

# Scenario coordinates, a few hundred meters apart along a seafront.
INTRO_COORD = (50.8225, -0.1372)
HARBOUR_COORD = (50.8195, -0.1360)
LIGHTHOUSE_COORD = (50.8160, -0.1330)


@pytest.fixture(autouse=True)
def _test_settings(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("STORYTRAIL_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'storytrail.db'}")
    monkeypatch.setenv("STORYTRAIL_REDIS_URL", "")
    monkeypatch.setenv("STORYTRAIL_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("STORYTRAIL_LOG_FORMAT", "console")
    monkeypatch.setenv("STORYTRAIL_PLAYTEST_DEFAULT", "false")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Engine bound to the per-test SQLite file, with all tables created."""
    await init_db(get_settings().database_url)
    await create_schema()
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for seeding and assertions."""
    sessions = get_session()
    session = await anext(sessions)
    yield session
    await sessions.aclose()


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client. Lifespan does not run; ``database`` did its work."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Bearer headers for an arbitrary player id."""

    def _headers(player_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(player_id)}"}

    return _headers


@pytest.fixture
def player_headers(auth_headers: Callable[[str], dict[str, str]]) -> dict[str, str]:
    return auth_headers("player-1")


class Seeder:
    """Writes content and collaborator-owned rows the way external tooling would."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _add(self, obj: Any) -> Any:
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def trail(self, name: str = "Brighton Mystery", **kwargs: Any) -> Trail:
        kwargs.setdefault("is_published", True)
        return await self._add(Trail(name=name, **kwargs))

    async def waypoint(self, trail: Trail, sequence_order: int, **kwargs: Any) -> Waypoint:
        kwargs.setdefault("name", f"Stop {sequence_order}")
        return await self._add(Waypoint(city_id=trail.id, sequence_order=sequence_order, **kwargs))

    async def purchase(self, player_id: str, trail: Trail) -> Purchase:
        return await self._add(Purchase(user_id=player_id, city_id=trail.id))

    async def profile(self, player_id: str, player_name: str | None) -> Profile:
        return await self._add(Profile(user_id=player_id, player_name=player_name))

    async def progress(self, player_id: str, waypoint: Waypoint) -> ProgressRecord:
        return await self._add(ProgressRecord(user_id=player_id, city_id=waypoint.city_id, location_id=waypoint.id))

    async def completion(self, player_id: str, trail: Trail, completion_time_ms: int, **kwargs: Any) -> CompletionRecord:
        return await self._add(
            CompletionRecord(user_id=player_id, city_id=trail.id, completion_time_ms=completion_time_ms, **kwargs)
        )

    async def playtest(self, enabled: bool) -> AppSetting:
        setting = await self.db.get(AppSetting, PLAYTEST_KEY)
        if setting is None:
            return await self._add(AppSetting(key=PLAYTEST_KEY, value={"enabled": enabled}))
        setting.value = {"enabled": enabled}
        await self.db.commit()
        return setting


@pytest_asyncio.fixture
async def seed(db_session: AsyncSession) -> Seeder:
    return Seeder(db_session)


@pytest_asyncio.fixture
async def seafront(seed: Seeder) -> SimpleNamespace:
    """Three-stop free trail: intro, multiple choice (index 1), free text "lighthouse" at the end."""
    trail = await seed.trail("Seafront Secrets", tagline="Follow the gulls")
    intro = await seed.waypoint(
        trail,
        1,
        name="Clock Tower",
        latitude=INTRO_COORD[0],
        longitude=INTRO_COORD[1],
        intro_text="A letter was left under the clock.",
        is_intro_location=True,
    )
    choice = await seed.waypoint(
        trail,
        2,
        name="Harbour Steps",
        latitude=HARBOUR_COORD[0],
        longitude=HARBOUR_COORD[1],
        intro_text="The fishermen remember everything.",
        riddle_text="How many anchors are painted on the wall?",
        answer_type="multiple_choice",
        answer_options=["Two", "Three", "Four"],
        correct_answer_indices=[1],
        clue_text="Look for the light that never sleeps.",
    )
    finale = await seed.waypoint(
        trail,
        3,
        name="West Pier",
        latitude=LIGHTHOUSE_COORD[0],
        longitude=LIGHTHOUSE_COORD[1],
        intro_text="The last letter is signed with a drawing.",
        riddle_text="What guides ships home at night?",
        answer_type="free_text",
        free_text_answer="lighthouse",
        clue_text="Case closed.",
        is_end_location=True,
    )
    return SimpleNamespace(trail=trail, intro=intro, choice=choice, finale=finale)
