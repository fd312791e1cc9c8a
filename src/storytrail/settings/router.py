"""Public read of runtime settings the player app needs."""

from fastapi import APIRouter, Depends

from storytrail.dependencies import get_playtest_enabled

router = APIRouter(prefix="/api/v1/settings", tags=["Settings"])


@router.get("/playtest")
async def playtest_setting(enabled: bool = Depends(get_playtest_enabled)) -> dict[str, bool]:
    """Whether pre-launch playtest mode is on (shows the "I'm here" override)."""
    return {"enabled": enabled}
