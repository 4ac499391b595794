"""Session API routes: broadcast start, operator settings and match context."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from matchcast.core.dependencies import get_scheduler
from matchcast.scheduler import BroadcastScheduler
from matchcast.shared.models import ConsoleSettings, MatchDetails, TeamInfo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/session", tags=["session"])


# ============================================
# Response / Request Models
# ============================================


class TeamModel(BaseModel):
    name: str = Field(..., min_length=1)
    logo: str = ""


class MatchModel(BaseModel):
    fixture_id: int
    home: TeamModel
    away: TeamModel
    goals_home: int = Field(default=0, ge=0)
    goals_away: int = Field(default=0, ge=0)
    league_name: str = ""
    elapsed: int | None = Field(default=None, ge=0)
    status_short: str = ""


class MatchSelectRequest(MatchModel):
    live_match_url: str | None = None


class SettingsResponse(BaseModel):
    event_source_url: str
    match_id: str
    persona: str
    data_provider: str
    auto_play: bool
    live_match_url: str
    credentials_set: dict[str, bool]  # keys are never echoed back
    match: MatchModel | None
    match_summary: str


class CredentialsUpdate(BaseModel):
    football: str | None = None
    sportmonks: str | None = None
    eleven_labs: str | None = None
    open_router: str | None = None


class SettingsUpdate(BaseModel):
    event_source_url: str | None = None
    match_id: str | None = None
    persona: str | None = Field(default=None, max_length=500)
    data_provider: str | None = Field(default=None, pattern="^(api-football|sportmonks)$")
    auto_play: bool | None = None
    live_match_url: str | None = None
    credentials: CredentialsUpdate | None = None


# ============================================
# Helpers
# ============================================


def _match_model(details: MatchDetails | None) -> MatchModel | None:
    if details is None:
        return None
    return MatchModel(
        fixture_id=details.fixture_id,
        home=TeamModel(name=details.home.name, logo=details.home.logo),
        away=TeamModel(name=details.away.name, logo=details.away.logo),
        goals_home=details.goals_home,
        goals_away=details.goals_away,
        league_name=details.league_name,
        elapsed=details.elapsed,
        status_short=details.status_short,
    )


def build_settings_response(settings: ConsoleSettings) -> SettingsResponse:
    creds = settings.credentials
    return SettingsResponse(
        event_source_url=settings.event_source_url,
        match_id=settings.match_id,
        persona=settings.persona,
        data_provider=settings.data_provider,
        auto_play=settings.auto_play,
        live_match_url=settings.live_match_url,
        credentials_set={
            "football": bool(creds.football),
            "sportmonks": bool(creds.sportmonks),
            "eleven_labs": bool(creds.eleven_labs),
            "open_router": bool(creds.open_router),
        },
        match=_match_model(settings.match_details),
        match_summary=settings.match_summary(),
    )


# ============================================
# Endpoints
# ============================================


@router.post("/start", response_model=SettingsResponse)
async def start_broadcast(
    scheduler: BroadcastScheduler = Depends(get_scheduler),
) -> SettingsResponse:
    """Start broadcasting: polling begins and the playback engine goes ready."""
    scheduler.start_broadcast()
    return build_settings_response(scheduler.settings)


@router.get("/settings", response_model=SettingsResponse)
async def get_settings(
    scheduler: BroadcastScheduler = Depends(get_scheduler),
) -> SettingsResponse:
    return build_settings_response(scheduler.settings)


@router.put("/settings", response_model=SettingsResponse)
async def update_settings(
    body: SettingsUpdate,
    scheduler: BroadcastScheduler = Depends(get_scheduler),
) -> SettingsResponse:
    """Partial update. Changing the match id resets the session."""
    changes = body.model_dump(exclude_none=True, exclude={"credentials"})
    credentials = body.credentials.model_dump(exclude_none=True) if body.credentials else {}
    if not changes and not credentials:
        raise HTTPException(status_code=400, detail="No fields to update")

    scheduler.update_settings(changes, credentials)
    logger.info(f"Settings updated: {', '.join(sorted(changes) + sorted(credentials))}")
    return build_settings_response(scheduler.settings)


@router.post("/match", response_model=SettingsResponse)
async def select_match(
    body: MatchSelectRequest,
    scheduler: BroadcastScheduler = Depends(get_scheduler),
) -> SettingsResponse:
    """Pick the match to cover. A different match starts a fresh session."""
    details = MatchDetails(
        fixture_id=body.fixture_id,
        home=TeamInfo(name=body.home.name, logo=body.home.logo),
        away=TeamInfo(name=body.away.name, logo=body.away.logo),
        goals_home=body.goals_home,
        goals_away=body.goals_away,
        league_name=body.league_name,
        elapsed=body.elapsed,
        status_short=body.status_short,
    )
    scheduler.select_match(details, body.live_match_url)
    return build_settings_response(scheduler.settings)


@router.delete("/match", response_model=SettingsResponse)
async def reset_match(
    scheduler: BroadcastScheduler = Depends(get_scheduler),
) -> SettingsResponse:
    """Forget the match and clear queue and history; keys are kept."""
    scheduler.reset_match()
    return build_settings_response(scheduler.settings)
