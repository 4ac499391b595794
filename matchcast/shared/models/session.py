"""Data models for the scheduler session and operator settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from matchcast.core.config import Settings


@dataclass
class Credentials:
    """Provider keys forwarded to the commentary source on every request."""

    football: str = ""
    sportmonks: str = ""
    eleven_labs: str = ""
    open_router: str = ""


@dataclass
class TeamInfo:
    name: str
    logo: str = ""


@dataclass
class MatchDetails:
    """Match the console is covering, as picked by the operator."""

    fixture_id: int
    home: TeamInfo
    away: TeamInfo
    goals_home: int = 0
    goals_away: int = 0
    league_name: str = ""
    elapsed: int | None = None
    status_short: str = ""

    def summary(self) -> str:
        """One-line scoreline used as chat context, e.g. ``Arsenal 1-0 Chelsea (34')``."""
        return (
            f"{self.home.name} {self.goals_home}-{self.goals_away} "
            f"{self.away.name} ({self.elapsed or 0}')"
        )


@dataclass
class ConsoleSettings:
    """Operator-facing runtime settings. Mutated only through the scheduler."""

    event_source_url: str = ""
    match_id: str = ""
    persona: str = ""
    data_provider: str = "api-football"
    credentials: Credentials = field(default_factory=Credentials)
    auto_play: bool = True
    live_match_url: str = ""
    match_details: MatchDetails | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> ConsoleSettings:
        return cls(
            event_source_url=settings.event_source_url,
            match_id=settings.match_id,
            persona=settings.persona,
            data_provider=settings.data_provider,
            credentials=Credentials(
                football=settings.api_football_key,
                sportmonks=settings.sportmonks_key,
                eleven_labs=settings.elevenlabs_key,
                open_router=settings.openrouter_key,
            ),
            auto_play=settings.auto_play,
        )

    @property
    def is_configured(self) -> bool:
        """Both an endpoint and a context id are required before polling."""
        return bool(self.event_source_url.strip() and self.match_id.strip())

    def match_summary(self) -> str:
        if self.match_details is None:
            return "General Football Chat"
        return self.match_details.summary()


@dataclass
class SchedulerSession:
    """State scoped to one monitored match. Replaced wholesale on context reset."""

    context_id: str
    epoch: int
    last_seen_event_id: str = ""
    last_stats_snapshot: Any = None
    poll_sequence: int = 0
